"""Exception hierarchy shared by the archive layer, the model adapter and the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from shllm.schemas import Conversation


class ShllmError(Exception):
    """Base class for every error raised on purpose by shllm."""


class ArchiveError(ShllmError):
    """Something went wrong reading, decoding, encoding or writing an archive."""


class DecodeError(ArchiveError):
    """Non-empty archive bytes are not a well-formed archive document."""


class EncodeError(ArchiveError):
    """An in-memory value could not be serialized."""


class ArchiveUnavailableError(ArchiveError):
    """The primary archive could not be updated.

    The new conversation was written to ``recovery_path`` instead.
    """

    def __init__(self, message: str, recovery_path: Path):
        super().__init__(f"{message}. Your conversation was saved in: {recovery_path}")
        self.recovery_path = recovery_path


class ExchangeError(ShllmError):
    """The model endpoint failed or answered with an unusable payload."""


class FatalDataLossError(ShllmError):
    """Both recovery tiers failed; the conversation exists only in memory.

    ``conversation`` is attached so the caller can dump it to the terminal.
    """

    def __init__(self, message: str, conversation: Optional["Conversation"] = None):
        super().__init__(message)
        self.conversation = conversation
