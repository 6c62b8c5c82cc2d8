"""
Test suite for content fingerprinting.

Verifies determinism, normalization and part framing of the dedup/cache key.
"""

from cvtailor.core.fingerprint import fingerprint, normalize_text, text_hash


class TestNormalizeText:
    """Test suite for normalize_text()."""

    def test_normalize_text_should_trim_and_lowercase(self) -> None:
        assert normalize_text("  Senior ENGINEER \n") == "senior engineer"


class TestFingerprint:
    """Test suite for fingerprint()."""

    def test_fingerprint_should_be_deterministic(self) -> None:
        # Act
        first = fingerprint("My CV", "The job", "en")
        second = fingerprint("My CV", "The job", "en")

        # Assert
        assert first == second
        assert len(first) == 64

    def test_fingerprint_should_ignore_case_and_surrounding_whitespace(self) -> None:
        assert fingerprint("  My CV\n", "THE JOB", "EN") == fingerprint("my cv", "the job", "en")

    def test_fingerprint_should_differ_by_language(self) -> None:
        assert fingerprint("My CV", "The job", "en") != fingerprint("My CV", "The job", "nl")

    def test_fingerprint_should_not_collide_on_shifted_part_boundaries(self) -> None:
        assert fingerprint("ab", "c", "en") != fingerprint("a", "bc", "en")

    def test_fingerprint_should_use_whole_text(self) -> None:
        # Arrange
        prefix = "x" * 5000

        # Act / Assert
        assert fingerprint(prefix + "a", "job", "en") != fingerprint(prefix + "b", "job", "en")


class TestTextHash:
    """Test suite for text_hash()."""

    def test_text_hash_should_normalize_before_hashing(self) -> None:
        assert text_hash(" Hello ") == text_hash("hello")
        assert text_hash("hello") != text_hash("world")
