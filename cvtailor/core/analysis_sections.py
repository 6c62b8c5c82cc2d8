"""
Analysis output formats and section catalogue.

Defines the sections the model is asked to emit, their language-specific
fallback texts, and the single entry point that detects which output format
a response uses before running the shared SectionExtractor.

Formats:
    SECTIONED: four pairs, IMPROVED_CV, COVER_LETTER, RECRUITER_TIPS,
        CHANGES_OVERVIEW
    LEGACY_FLAT: a CV_SCORE block followed by IMPROVED_CV, COVER_LETTER and
        RECRUITER_TIPS; no changes overview

Dependencies: cvtailor.core.section_extractor
System role: Model output contract and parsing
"""

import enum
import re
from dataclasses import dataclass, field

from cvtailor.core.section_extractor import (
    ExtractedSection,
    SectionExtractor,
    SectionSpec,
    start_marker,
)

IMPROVED_CV = "IMPROVED_CV"
COVER_LETTER = "COVER_LETTER"
RECRUITER_TIPS = "RECRUITER_TIPS"
CHANGES_OVERVIEW = "CHANGES_OVERVIEW"
CV_SCORE = "CV_SCORE"

# Result field name -> delimiter stem, in prompt order
RESULT_SECTIONS: dict[str, str] = {
    "improved_text": IMPROVED_CV,
    "cover_letter_text": COVER_LETTER,
    "tips_text": RECRUITER_TIPS,
    "changes_overview_text": CHANGES_OVERVIEW,
}

FALLBACK_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "improved_text": "Could not generate CV. Please check input and try again.",
        "cover_letter_text": "Could not generate cover letter.",
        "tips_text": (
            "- Prepare questions about the role\n"
            "- Research the company thoroughly\n"
            "- Ask about next steps"
        ),
        "changes_overview_text": "Could not generate changes overview.",
    },
    "nl": {
        "improved_text": "Kon CV niet genereren. Controleer de input en probeer het opnieuw.",
        "cover_letter_text": "Kon sollicitatiebrief niet genereren.",
        "tips_text": (
            "- Bereid vragen voor over de functie\n"
            "- Onderzoek het bedrijf grondig\n"
            "- Vraag naar de volgende stappen"
        ),
        "changes_overview_text": "Kon overzicht van wijzigingen niet genereren.",
    },
}

_SCORE_PATTERN = re.compile(r"SCORE:\s*(\d+)\s*/\s*100", re.IGNORECASE)
_EXPLANATION_PATTERN = re.compile(r"EXPLANATION:\s*(.+)", re.IGNORECASE | re.DOTALL)


class OutputFormat(str, enum.Enum):
    """Markup variants the model has been prompted with over time."""

    LEGACY_FLAT = "legacy_flat"
    SECTIONED = "sectioned"


@dataclass(frozen=True)
class AnalysisExtraction:
    """Parsed model response."""

    output_format: OutputFormat
    sections: dict[str, ExtractedSection]
    score: int | None = None
    score_explanation: str | None = None
    fallback_sections: list[str] = field(default_factory=list)

    def content(self, name: str) -> str:
        return self.sections[name].content

    @property
    def has_content(self) -> bool:
        """False when every section carries fallback text."""
        return len(self.fallback_sections) < len(self.sections)


def fallback_messages(language: str) -> dict[str, str]:
    """Fallback texts for a language, English when unknown."""
    return FALLBACK_MESSAGES.get(language, FALLBACK_MESSAGES["en"])


def result_section_specs(language: str) -> list[SectionSpec]:
    """Section specs for the four result fields with localized fallbacks."""
    fallbacks = fallback_messages(language)
    return [
        SectionSpec(name=name, marker=marker, fallback=fallbacks[name])
        for name, marker in RESULT_SECTIONS.items()
    ]


def detect_format(text: str) -> OutputFormat:
    """
    Decide which markup variant a response uses.

    Args:
        text: Raw model output

    Returns:
        OutputFormat: LEGACY_FLAT when a score block is present without a
        changes overview, SECTIONED otherwise
    """
    has_score = start_marker(CV_SCORE) in text
    has_overview = start_marker(CHANGES_OVERVIEW) in text
    if has_score and not has_overview:
        return OutputFormat.LEGACY_FLAT
    return OutputFormat.SECTIONED


def build_extractor(output_format: OutputFormat, min_length: int = 5) -> SectionExtractor:
    """Configure the shared extractor for one output format."""
    if output_format is OutputFormat.LEGACY_FLAT:
        return SectionExtractor(
            (CV_SCORE, IMPROVED_CV, COVER_LETTER, RECRUITER_TIPS),
            bound_on_end_markers=True,
            min_length=min_length,
        )
    return SectionExtractor(RESULT_SECTIONS.values(), min_length=min_length)


def parse_score(content: str) -> tuple[int | None, str | None]:
    """
    Parse a legacy ``SCORE: n/100`` / ``EXPLANATION: ...`` block.

    Returns:
        tuple: (score clamped to 0-100 or None, explanation or None)
    """
    score_match = _SCORE_PATTERN.search(content)
    explanation_match = _EXPLANATION_PATTERN.search(content)
    score = min(100, int(score_match.group(1))) if score_match else None
    explanation = explanation_match.group(1).strip() if explanation_match else None
    return score, explanation or None


def extract_analysis(text: str, language: str, min_length: int = 5) -> AnalysisExtraction:
    """
    Detect the output format and extract the four result sections.

    Never raises for malformed output: missing sections carry their
    fallback text and are listed in ``fallback_sections``.

    Args:
        text: Raw model output
        language: Output language (selects fallback texts)
        min_length: Minimum section length

    Returns:
        AnalysisExtraction: Sections, detected format and optional score
    """
    output_format = detect_format(text)
    extractor = build_extractor(output_format, min_length)
    sections = extractor.extract(text, result_section_specs(language))

    score = explanation = None
    if output_format is OutputFormat.LEGACY_FLAT:
        score_section = extractor.extract_section(
            text, SectionSpec(name="score", marker=CV_SCORE, fallback="")
        )
        if score_section.success:
            score, explanation = parse_score(score_section.content)

    return AnalysisExtraction(
        output_format=output_format,
        sections=sections,
        score=score,
        score_explanation=explanation,
        fallback_sections=[name for name, section in sections.items() if not section.success],
    )
