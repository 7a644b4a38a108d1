"""Last-resort writer used when the primary archive cannot be updated.

The first stage writes whatever the caller already had (normally the merged
archive). If that is missing or the write fails, the second stage writes only
the new conversation. Both stages target the same uniquely named file in the
recovery directory.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from shllm.config import logger
from shllm.errors import EncodeError, FatalDataLossError
from shllm.schemas import Conversation
from shllm.services.archive_codec import encode_conversation

WriteFn = Callable[[BinaryIO, bytes], int]

RECOVERY_PREFIX = "shllm-failwhale-"
RECOVERY_SUFFIX = ".json"


def write_all(fh: BinaryIO, data: bytes) -> int:
    view = memoryview(data)
    written = 0
    while written < len(view):
        n = fh.write(view[written:])
        if not n:
            break
        written += n
    if written < len(view):
        # a short write leaves a truncated document; report nothing written
        return 0
    os.fsync(fh.fileno())
    return written


class RecoveryPath:
    def __init__(self, directory: Path = Path("."), write: WriteFn = write_all):
        self.directory = Path(directory)
        self._write = write

    def save(self, payload: Optional[bytes], conversation: Conversation) -> Path:
        """Write ``payload`` (or, failing that, ``conversation``) to a fresh file.

        Returns the file's path. Raises ``FatalDataLossError`` when neither
        stage manages to write anything.
        """
        try:
            fh = tempfile.NamedTemporaryFile(
                mode="wb",
                buffering=0,
                dir=self.directory,
                prefix=RECOVERY_PREFIX,
                suffix=RECOVERY_SUFFIX,
                delete=False,
            )
        except OSError as exc:
            logger.critical(f"Could not create a recovery file in {self.directory}: {exc}")
            raise FatalDataLossError(
                f"could not create a recovery file in {self.directory}", conversation
            ) from exc

        path = Path(fh.name)
        with fh:
            if payload and self._attempt(fh, payload, "archive"):
                return path
            try:
                fallback = encode_conversation(conversation)
            except EncodeError as exc:
                logger.critical(f"Conversation could not be serialized for recovery: {exc}")
                raise FatalDataLossError("conversation could not be serialized", conversation) from exc
            if self._attempt(fh, fallback, "conversation"):
                return path

        logger.critical(f"Both recovery stages failed for {path}")
        raise FatalDataLossError(f"nothing could be written to recovery file {path}", conversation)

    def _attempt(self, fh: BinaryIO, data: bytes, stage: str) -> bool:
        try:
            fh.seek(0)
            fh.truncate()
            written = self._write(fh, data)
        except OSError as exc:
            logger.error(f"Recovery stage '{stage}' failed: {exc}")
            return False
        if written <= 0:
            logger.error(f"Recovery stage '{stage}' wrote nothing")
            return False
        logger.warning(f"Recovery stage '{stage}' wrote {written} bytes to {fh.name}")
        return True
