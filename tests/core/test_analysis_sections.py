"""
Test suite for output format detection and analysis extraction.

Covers the sectioned and legacy (score block) formats, localized fallbacks
and score parsing.
"""

from cvtailor.core.analysis_sections import (
    FALLBACK_MESSAGES,
    OutputFormat,
    detect_format,
    extract_analysis,
    parse_score,
)

LEGACY_OUTPUT = """---CV_SCORE_START---
SCORE: 82/100
EXPLANATION: Strong Python match, little cloud experience.
---CV_SCORE_END---
---IMPROVED_CV_START---
Improved CV body for the legacy format.
---IMPROVED_CV_END---
---COVER_LETTER_START---
Dear hiring team, legacy letter.
---COVER_LETTER_END---
---RECRUITER_TIPS_START---
- Ask about the team
---RECRUITER_TIPS_END---"""


class TestDetectFormat:
    """Test suite for detect_format()."""

    def test_sectioned_output_should_be_detected(self, sectioned_output: str) -> None:
        assert detect_format(sectioned_output) is OutputFormat.SECTIONED

    def test_score_block_without_overview_should_be_legacy(self) -> None:
        assert detect_format(LEGACY_OUTPUT) is OutputFormat.LEGACY_FLAT

    def test_score_block_with_overview_should_be_sectioned(self, sectioned_output: str) -> None:
        text = "---CV_SCORE_START---\nSCORE: 1/100\n" + sectioned_output
        assert detect_format(text) is OutputFormat.SECTIONED

    def test_unstructured_output_should_default_to_sectioned(self) -> None:
        assert detect_format("free text") is OutputFormat.SECTIONED


class TestParseScore:
    """Test suite for parse_score()."""

    def test_parse_score_should_read_score_and_explanation(self) -> None:
        assert parse_score("SCORE: 82/100\nEXPLANATION: Good fit") == (82, "Good fit")

    def test_parse_score_should_clamp_to_100(self) -> None:
        assert parse_score("SCORE: 140/100")[0] == 100

    def test_parse_score_should_return_none_when_absent(self) -> None:
        assert parse_score("nothing here") == (None, None)


class TestExtractAnalysis:
    """Test suite for extract_analysis()."""

    def test_sectioned_output_should_fill_all_fields(self, sectioned_output: str) -> None:
        # Act
        extraction = extract_analysis(sectioned_output, "en")

        # Assert
        assert extraction.output_format is OutputFormat.SECTIONED
        assert extraction.fallback_sections == []
        assert extraction.content("improved_text").startswith("Jane Doe")
        assert extraction.score is None
        assert extraction.has_content is True

    def test_legacy_output_should_parse_score_and_fallback_overview(self) -> None:
        # Act
        extraction = extract_analysis(LEGACY_OUTPUT, "en")

        # Assert
        assert extraction.output_format is OutputFormat.LEGACY_FLAT
        assert extraction.score == 82
        assert extraction.score_explanation == "Strong Python match, little cloud experience."
        assert extraction.content("improved_text") == "Improved CV body for the legacy format."
        assert extraction.fallback_sections == ["changes_overview_text"]
        assert extraction.has_content is True
        assert (
            extraction.content("changes_overview_text")
            == FALLBACK_MESSAGES["en"]["changes_overview_text"]
        )

    def test_garbage_output_should_use_localized_fallbacks(self) -> None:
        # Act
        extraction = extract_analysis("the model ignored the format", "nl")

        # Assert
        assert len(extraction.fallback_sections) == 4
        assert extraction.has_content is False
        assert extraction.content("cover_letter_text") == FALLBACK_MESSAGES["nl"]["cover_letter_text"]

    def test_unknown_language_should_fall_back_to_english_texts(self) -> None:
        extraction = extract_analysis("", "fr")
        assert extraction.content("tips_text") == FALLBACK_MESSAGES["en"]["tips_text"]
