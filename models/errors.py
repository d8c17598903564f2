"""Exceptions raised while collecting and generating diagram images."""

from __future__ import annotations

from typing import Optional


class ReadError(ValueError):
    """The supplied sketch could not be decoded as an image."""


class GenerationError(RuntimeError):
    """The image service failed or answered without an image.

    Attributes:
        commentary: Any text the model returned alongside (or instead of) an
            image, e.g. an explanation of why it refused.
    """

    def __init__(self, message: str, commentary: Optional[str] = None) -> None:
        super().__init__(message)
        self.commentary = commentary
