import os
import tempfile
from pathlib import Path
from typing import Optional

from shllm.config import logger
from shllm.errors import ArchiveUnavailableError, DecodeError, EncodeError
from shllm.schemas import Conversation
from shllm.services import archive_codec
from shllm.services.recovery import RecoveryPath

ARCHIVE_FILE_MODE = 0o644


class ConversationStore:
    """
    File archive of conversations: one JSON document holding many conversations.

    Each ``append`` reads the whole archive, adds one conversation and rewrites
    the file. If the archive cannot be read, decoded or written, the new
    conversation goes through the recovery path and ``ArchiveUnavailableError``
    names the file it landed in.
    """

    def __init__(self, recovery: Optional[RecoveryPath] = None):
        self.recovery = recovery or RecoveryPath()

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.debug(f"Archive {path} does not exist yet")
            return b""

    def _write(self, path: Path, data: bytes) -> None:
        # write beside the target and rename, so a failed write leaves the old archive intact
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, ARCHIVE_FILE_MODE)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _fail(self, reason: str, payload: Optional[bytes], conversation: Conversation) -> ArchiveUnavailableError:
        logger.warning(f"{reason}; falling back to recovery file in {self.recovery.directory}")
        recovery_path = self.recovery.save(payload, conversation)
        return ArchiveUnavailableError(reason, recovery_path)

    def append(self, path: Path, conversation: Conversation) -> Path:
        path = Path(path)
        logger.debug(f"Appending conversation '{conversation.title}' ({len(conversation.messages)} messages) to {path}")

        try:
            data = self._read(path)
        except OSError as exc:
            raise self._fail(f"error reading {path}: {exc.strerror or exc}", None, conversation) from exc
        try:
            archive = archive_codec.decode(data)
        except DecodeError as exc:
            raise self._fail(f"error decoding {path}: {exc}", None, conversation) from exc

        archive.conversations.append(conversation)
        try:
            payload = archive_codec.encode(archive)
        except EncodeError as exc:
            raise self._fail(f"error encoding {path}: {exc}", None, conversation) from exc

        try:
            self._write(path, payload)
        except OSError as exc:
            raise self._fail(f"error writing {path}: {exc.strerror or exc}", payload, conversation) from exc
        except KeyboardInterrupt as exc:
            raise self._fail(f"interrupted while writing {path}", payload, conversation) from exc

        logger.info(f"Saved conversation to {path} ({len(archive.conversations)} total)")
        return path


def append_conversation(path: Path, conversation: Conversation, recovery_dir: Path = Path(".")) -> Path:
    return ConversationStore(RecoveryPath(recovery_dir)).append(path, conversation)
