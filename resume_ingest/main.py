import logging

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from resume_ingest.api.routes.parse import router as parse_router
from resume_ingest.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# pdfminer logs every malformed object it skips
for noisy in ("pdfminer", "pdfplumber"):
    logging.getLogger(noisy).setLevel(logging.ERROR)

app = FastAPI(
    title="Resume Ingest (Resume Extraction Service)",
    description="Turns uploaded resumes (PDF, Word, images) into a normalized resume through an embedded-text, OCR and vision extraction cascade",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.include_router(parse_router)

@app.get("/", tags=["health"])
def root():
    return {"service": settings.app_name, "status": "running"}

@app.get("/health", tags=["health"])
def health():
    return {"status": "ok", "vision_enabled": settings.vision_enabled}

def custom_openapi():
    """Generate OpenAPI schema with custom settings."""
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Resume Ingest API",
        version="0.1.0",
        description="Resume ingestion API with an attempt trail for every extraction",
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi
