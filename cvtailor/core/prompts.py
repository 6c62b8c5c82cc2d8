"""
Prompt construction for CV tailoring.

Builds the single prompt sent to the model, including the delimiter
protocol the SectionExtractor consumes.

Dependencies: cvtailor.core.analysis_sections
System role: Model request construction
"""

from cvtailor.core.analysis_sections import RESULT_SECTIONS
from cvtailor.core.section_extractor import end_marker, start_marker

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "nl": "Nederlands",
    "de": "Deutsch",
    "fr": "Français",
    "es": "Español",
}

_SECTION_INSTRUCTIONS: dict[str, str] = {
    "improved_text": "Improved CV text",
    "cover_letter_text": "Professional cover letter",
    "tips_text": "Bulleted recruiter tips",
    "changes_overview_text": "Summary of changes",
}


def language_name(language: str) -> str:
    """Human-readable language name used inside the prompt."""
    return LANGUAGE_NAMES.get(language, language.upper())


def build_analysis_prompt(cv_text: str, job_description_text: str, language: str) -> str:
    """
    Build the CV optimization prompt.

    Args:
        cv_text: Current CV text
        job_description_text: Target job posting
        language: Two-letter output language code

    Returns:
        str: Prompt text
    """
    lang = language_name(language)
    blocks = "\n\n".join(
        f"{start_marker(marker)}\n[{_SECTION_INSTRUCTIONS[name]} in {lang}]\n{end_marker(marker)}"
        for name, marker in RESULT_SECTIONS.items()
    )
    return f"""You are an expert CV optimizer. Analyze this CV against the job description and provide output in {lang}.

IMPORTANT: Respond with these EXACT markers:

{blocks}

Job Description:
{job_description_text}

Current CV:
{cv_text}

Optimize the CV for:
1. Keywords from job description
2. Relevant skills and experience
3. ATS-friendly structure
4. Professional formatting"""
