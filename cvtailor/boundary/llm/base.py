"""
Text generation protocol.

The processor depends on this protocol rather than a concrete client, so
tests and alternative providers plug in without touching the pipeline.

Dependencies: typing (stdlib)
System role: Seam between the job processor and the generative model
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGenerator(Protocol):
    """Opaque text-completion service: prompt in, free-form text out."""

    model_name: str

    async def generate(self, prompt: str) -> str:
        """
        Generate a completion for a prompt.

        Raises:
            UpstreamModelError: Service unreachable or returned no text
        """
        ...
