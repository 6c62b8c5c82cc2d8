"""
Generative model boundary.

Exports:
  - TextGenerator: Protocol the processor depends on
  - GeminiTextClient: LangChain Gemini implementation
"""

from cvtailor.boundary.llm.base import TextGenerator
from cvtailor.boundary.llm.gemini_client import GeminiTextClient

__all__ = ["GeminiTextClient", "TextGenerator"]
