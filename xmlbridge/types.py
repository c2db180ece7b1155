"""Result types for xmlbridge."""

from dataclasses import dataclass


@dataclass
class SerializeResult:
    """Outcome of a serialization that never raises.

    Exactly one of ``text`` and ``error`` is set.

    Attributes:
        text: The XML text that was produced (None on failure)
        error: Diagnostic message if serialization failed (None if successful)
    """
    text: str | None = None
    error: str | None = None

    def __post_init__(self):
        if (self.text is None) == (self.error is None):
            raise ValueError("SerializeResult needs exactly one of text or error")

    @property
    def ok(self) -> bool:
        return self.error is None
