"""Generator contract shared by all artifact generators."""

from typing import Protocol, runtime_checkable

from ..models import BuildStep, GeneratedArtifact


@runtime_checkable
class Generator(Protocol):
    """
    Turns a prompt into one unsaved artifact.

    Implementations are pure: no I/O, and identical prompts give identical
    artifacts. The executor persists what they return.
    """

    def generate(self, request_id: str, prompt: str, step: BuildStep) -> GeneratedArtifact:
        ...


def js_string(text: str) -> str:
    """Escape text for use inside a single-quoted JS string literal."""
    return text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", " ")
