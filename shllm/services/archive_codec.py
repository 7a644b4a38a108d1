"""JSON codec for the on-disk conversation archive.

An archive document looks like::

    {"version": 1.0,
     "conversations": [
        {"title": "...",
         "messages": [{"role": "user", "content": "...", "timestamp": "2026-10-18T09:00:00Z"}]}
     ]}

Version 1.0 has no optional fields, so there is nothing to migrate yet. The
``version`` tag read from disk is carried through unchanged.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, from_json

from shllm.config import logger
from shllm.errors import DecodeError, EncodeError
from shllm.schemas import Archive, Conversation


def empty_archive() -> Archive:
    return Archive()


def _parse(data: bytes) -> Any:
    try:
        return from_json(data)
    except ValueError as exc:
        raise DecodeError(f"not a JSON document: {exc}") from exc


def _is_archive(doc: Any) -> bool:
    return isinstance(doc, dict) and "version" in doc


def decode(data: Optional[bytes]) -> Archive:
    """Parse archive bytes; empty or ``None`` input yields a fresh archive."""
    if not data:
        logger.debug("Archive payload empty, using default archive")
        return empty_archive()
    doc = _parse(data)
    if not _is_archive(doc):
        raise DecodeError("archive document has no version tag")
    try:
        archive = Archive.model_validate(doc)
    except ValidationError as exc:
        raise DecodeError(f"archive is not valid: {exc.error_count()} error(s)") from exc
    logger.debug(f"Decoded archive v{archive.version} with {len(archive.conversations)} conversation(s)")
    return archive


def encode(archive: Archive) -> bytes:
    try:
        return archive.model_dump_json(indent=2).encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError, ValueError) as exc:
        raise EncodeError(f"archive could not be serialized: {exc}") from exc


def encode_conversation(conversation: Conversation) -> bytes:
    try:
        return conversation.model_dump_json(indent=2).encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError, ValueError) as exc:
        raise EncodeError(f"conversation could not be serialized: {exc}") from exc


def decode_recovery(data: bytes) -> Archive:
    """Read a recovery file, which holds either a full archive or one conversation."""
    doc = _parse(data)
    try:
        if _is_archive(doc):
            return Archive.model_validate(doc)
        return Archive(conversations=[Conversation.model_validate(doc)])
    except ValidationError as exc:
        raise DecodeError("recovery file holds neither an archive nor a conversation") from exc
