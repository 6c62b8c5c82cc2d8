"""
Delimited section extraction.

Parses one blob of model output into named sections bounded by
``---<MARKER>_START---`` / ``---<MARKER>_END---`` pairs. The model is not
trusted to keep the requested order or to close every pair, so extraction
recovers in a fixed order:

1. locate the start marker (absent: fallback)
2. locate the matching end marker after it
3. otherwise bound at the nearest following marker of another section,
   or at end of text
4. trim and enforce the minimum length
5. truncate at any other section's start marker found inside the content
   and re-check the minimum length

Dependencies: dataclasses (stdlib)
System role: Fault-tolerant structured-text extraction
"""

from dataclasses import dataclass
from typing import Iterable, Sequence


def start_marker(marker: str) -> str:
    """Start delimiter for a section marker name."""
    return f"---{marker}_START---"


def end_marker(marker: str) -> str:
    """End delimiter for a section marker name."""
    return f"---{marker}_END---"


@dataclass(frozen=True)
class SectionSpec:
    """
    A named section the model is asked to emit.

    Attributes:
        name: Result field the section populates
        marker: Delimiter stem, e.g. ``IMPROVED_CV``
        fallback: Placeholder used when the section can not be extracted
    """

    name: str
    marker: str
    fallback: str

    @property
    def start_marker(self) -> str:
        return start_marker(self.marker)

    @property
    def end_marker(self) -> str:
        return end_marker(self.marker)


@dataclass(frozen=True)
class ExtractedSection:
    """Outcome of extracting one section."""

    name: str
    content: str
    success: bool


class SectionExtractor:
    """
    Extract delimited sections with recovery for malformed output.

    Args:
        known_markers: Every marker stem the output format may contain,
            including blocks that are not extracted by name
        bound_on_end_markers: Also treat other sections' end markers as an
            implicit boundary when a section is left open
        min_length: Minimum trimmed length for a successful section
    """

    def __init__(
        self,
        known_markers: Iterable[str],
        *,
        bound_on_end_markers: bool = False,
        min_length: int = 5,
    ) -> None:
        self.known_markers = tuple(known_markers)
        self.bound_on_end_markers = bound_on_end_markers
        self.min_length = min_length

    def extract(
        self,
        text: str,
        sections: Sequence[SectionSpec],
    ) -> dict[str, ExtractedSection]:
        """
        Extract every requested section from the model output.

        Args:
            text: Full model output
            sections: Sections to extract, in emission order

        Returns:
            dict[str, ExtractedSection]: One entry per section name
        """
        return {section.name: self.extract_section(text, section) for section in sections}

    def extract_section(self, text: str, section: SectionSpec) -> ExtractedSection:
        """
        Extract a single section, substituting its fallback on failure.

        Args:
            text: Full model output
            section: Section to extract

        Returns:
            ExtractedSection: Content and success flag
        """
        start_index = text.find(section.start_marker)
        if start_index == -1:
            return self._failure(section)

        content_start = start_index + len(section.start_marker)
        end_index = text.find(section.end_marker, content_start)
        if end_index == -1:
            end_index = self._implicit_end(text, content_start, section)

        content = text[content_start:end_index].strip()
        if not self._long_enough(content):
            return self._failure(section)

        cut = self._first_foreign_start(content, section)
        if cut is not None:
            content = content[:cut].strip()
            if not self._long_enough(content):
                return self._failure(section)

        return ExtractedSection(name=section.name, content=content, success=True)

    def _boundary_markers(self, section: SectionSpec) -> list[str]:
        markers = []
        for marker in self.known_markers:
            if marker == section.marker:
                continue
            markers.append(start_marker(marker))
            if self.bound_on_end_markers:
                markers.append(end_marker(marker))
        return markers

    def _implicit_end(self, text: str, content_start: int, section: SectionSpec) -> int:
        nearest = len(text)
        for marker in self._boundary_markers(section):
            index = text.find(marker, content_start)
            if index != -1 and index < nearest:
                nearest = index
        return nearest

    def _first_foreign_start(self, content: str, section: SectionSpec) -> int | None:
        positions = [
            content.find(start_marker(marker))
            for marker in self.known_markers
            if marker != section.marker
        ]
        positions = [position for position in positions if position != -1]
        return min(positions) if positions else None

    def _long_enough(self, content: str) -> bool:
        return bool(content) and len(content) >= self.min_length

    @staticmethod
    def _failure(section: SectionSpec) -> ExtractedSection:
        return ExtractedSection(name=section.name, content=section.fallback, success=False)
