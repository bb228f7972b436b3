from resume_ingest.core.schemas import SectionKind
from resume_ingest.core.section_segmenter import SectionSegmenter, despace_header, segment_text

from resume_fixtures import SAMPLE_RESUME_TEXT

segmenter = SectionSegmenter()


def test_every_line_is_accounted_for():
    text = SAMPLE_RESUME_TEXT + "\n\nAWARDS\nBest trainer 2024\n\n"
    section_map = segmenter.segment(text)
    assert section_map.total_lines() == len(text.split("\n"))


def test_sample_sections():
    section_map = segment_text(SAMPLE_RESUME_TEXT)
    assert section_map.lines(SectionKind.OTHER)[0] == "Vamshi Banoth"
    assert section_map.lines(SectionKind.EXPERIENCE)[0] == "Technical Lead"
    assert section_map.lines(SectionKind.EDUCATION) == ["Full Stack Developer", "NxtWave", "2023"]
    assert section_map.lines(SectionKind.CERTIFICATIONS) == [
        "AWS Certified Cloud Practitioner",
        "Google Data Analytics Certificate",
    ]
    assert section_map.header_lines == ["SUMMARY", "EXPERIENCE", "EDUCATION", "SKILLS", "CERTIFICATIONS"]
    assert not section_map.has(SectionKind.PROJECTS)


def test_label_lines_inside_skills_are_not_headers():
    section_map = segment_text(SAMPLE_RESUME_TEXT)
    assert "Technical Development:" in section_map.lines(SectionKind.SKILLS)


def test_inline_header_content_goes_to_section():
    section_map = segment_text("Jane Doe\nSkills: Python, SQL\nExperience")
    assert section_map.lines(SectionKind.SKILLS) == ["Python, SQL"]
    assert section_map.header_lines == ["Experience"]


def test_spaced_and_decorated_headers():
    assert segmenter.classify_header("E X P E R I E N C E") == (SectionKind.EXPERIENCE, None)
    assert segmenter.classify_header("== Work History ==") == (SectionKind.EXPERIENCE, None)
    assert segmenter.classify_header("Technical Skills:") == (SectionKind.SKILLS, None)
    assert despace_header("W O R K   H I S T O R Y") == "WORK HISTORY"


def test_sentences_mentioning_a_section_word_are_content():
    assert segmenter.classify_header("Experience building distributed data platforms") is None
    assert segmenter.classify_header("Led education outreach for new hires") is None


def test_unmodelled_sections_switch_to_other():
    section_map = segment_text("SKILLS\nPython\nHOBBIES\nChess")
    assert section_map.lines(SectionKind.SKILLS) == ["Python"]
    assert section_map.lines(SectionKind.OTHER) == ["Chess"]


def test_inline_label_followed_by_prose_is_content():
    assert segmenter.classify_header("Experience: 8 years building payment APIs") is None
    assert segmenter.classify_header("Skills: Python, node.js, docker") == (SectionKind.SKILLS, "Python, node.js, docker")
    assert segmenter.classify_header("Summary: Backend engineer who enjoys building reliable systems") == (
        SectionKind.SUMMARY,
        "Backend engineer who enjoys building reliable systems",
    )

    section_map = segment_text("\n".join([
        "Jane Doe",
        "SUMMARY",
        "Experience: 8 years building payment APIs",
        "Mentor to junior engineers",
        "SKILLS",
        "Python",
    ]))
    assert section_map.lines(SectionKind.SUMMARY) == [
        "Experience: 8 years building payment APIs",
        "Mentor to junior engineers",
    ]
    assert not section_map.has(SectionKind.EXPERIENCE)
