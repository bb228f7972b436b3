from typing import List

from resume_ingest.core.schemas import EducationEntry, ExperienceEntry, NormalizedResume


def _join_nonempty(parts, sep: str) -> str:
    return sep.join(p for p in parts if p)


def _experience_block(exp: ExperienceEntry) -> List[str]:
    out = [_join_nonempty([f"**{exp.title}**" if exp.title else "", exp.company], " | ")]
    if exp.duration:
        out.append(exp.duration)
    if exp.location:
        out.append(exp.location)
    out.extend(f"- {d}" for d in exp.description)
    return out


def _education_block(edu: EducationEntry) -> List[str]:
    degree = edu.degree + (f" in {edu.field}" if edu.field and edu.field not in edu.degree else "")
    out = [_join_nonempty([f"**{degree}**" if degree else "", edu.institution], " | ")]
    if edu.graduation_date:
        out.append(f"Graduated: {edu.graduation_date}")
    if edu.gpa:
        out.append(f"GPA: {edu.gpa}")
    out.extend(f"- {d}" for d in edu.details)
    return out


def format_resume(resume: NormalizedResume) -> str:
    """
    Render a NormalizedResume as canonical Markdown: header, summary,
    experience, education, skills, certifications, projects, then any
    unclassified content so nothing is lost.
    """
    blocks: List[str] = []

    if resume.name:
        blocks.append(f"# {resume.name}")

    links = resume.links
    contact = _join_nonempty(
        [resume.email, resume.phone, resume.location, links.linkedin, links.github, links.website],
        " | ",
    )
    if contact:
        blocks.append(contact)

    if resume.professional_summary:
        blocks.append(f"## Professional Summary\n{resume.professional_summary}")

    if resume.experience:
        entries = ["\n".join(_experience_block(e)) for e in resume.experience]
        blocks.append("## Professional Experience\n\n" + "\n\n".join(entries))

    if resume.education:
        entries = ["\n".join(_education_block(e)) for e in resume.education]
        blocks.append("## Education\n\n" + "\n\n".join(entries))

    if resume.skills:
        blocks.append("## Skills\n" + ", ".join(resume.skills))

    if resume.certifications:
        blocks.append("## Certifications\n" + "\n".join(f"- {c}" for c in resume.certifications))

    if resume.projects:
        entries = []
        for p in resume.projects:
            lines = [f"**{p.name}**"] if p.name else []
            if p.description:
                lines.append(p.description)
            if p.technologies:
                lines.append(f"**Technologies:** {', '.join(p.technologies)}")
            entries.append("\n".join(lines))
        blocks.append("## Projects\n\n" + "\n\n".join(entries))

    if resume.unclassified_content.strip():
        blocks.append("## Additional Information\n" + resume.unclassified_content.strip())

    return "\n\n".join(blocks) + ("\n" if blocks else "")
