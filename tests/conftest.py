import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

# keep test runs from writing logs/ into the working tree
os.environ.setdefault("LOG_PATH", str(Path(tempfile.gettempdir()) / "shllm-tests" / "shllm.log"))

import pytest

from shllm.schemas import Archive, Conversation, Message

T0 = datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc)


def make_conversation(title: str, *texts: str) -> Conversation:
    messages = []
    for i, text in enumerate(texts):
        role = "user" if i % 2 == 0 else "assistant"
        messages.append(Message(role=role, content=text, timestamp=T0 + timedelta(seconds=i)))
    return Conversation(title=title, messages=messages)


@pytest.fixture
def conversation() -> Conversation:
    return make_conversation("new_session", "hello", "hi there")


@pytest.fixture
def archive() -> Archive:
    return Archive(
        conversations=[
            make_conversation("first", "one", "two"),
            make_conversation("second", "three", "four", "five", "six"),
        ]
    )
