from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

ARCHIVE_VERSION = 1.0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="Role tag, e.g. 'user' or 'assistant'")
    content: str
    timestamp: datetime


class Conversation(BaseModel):
    title: str
    messages: List[Message] = Field(default_factory=list)

    # older archives store empty lists as null
    @field_validator("messages", mode="before")
    @classmethod
    def _null_messages(cls, v):
        return [] if v is None else v


class Archive(BaseModel):
    version: float = ARCHIVE_VERSION
    conversations: List[Conversation] = Field(default_factory=list)

    @field_validator("conversations", mode="before")
    @classmethod
    def _null_conversations(cls, v):
        return [] if v is None else v
