"""Tests for the OpenAI-compatible model exchange adapter."""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from shllm.errors import ExchangeError
from shllm.integration.chatgpt import OpenAIClient
from shllm.utils.prompt_loader import PromptLoader
from tests.conftest import make_conversation

_REQUEST = httpx.Request("POST", "https://example.invalid/v1/chat/completions")


def _completion(*contents, role="assistant"):
    choices = [SimpleNamespace(message=SimpleNamespace(role=role, content=c)) for c in contents]
    return SimpleNamespace(id="chatcmpl-1", choices=choices)


def _adapter(response=None, side_effect=None, **kwargs) -> OpenAIClient:
    stub = MagicMock()
    stub.chat.completions.create.return_value = response
    if side_effect is not None:
        stub.chat.completions.create.side_effect = side_effect
    return OpenAIClient(api_key="k", model_name="test-model", client=stub, **kwargs)


def test_exchange_appends_one_reply():
    adapter = _adapter(_completion("sure thing"))
    before = make_conversation("t", "hello")

    after = adapter.exchange(before)

    assert len(after.messages) == 2
    assert after.messages[0] == before.messages[0]
    assert after.messages[1].role == "assistant"
    assert after.messages[1].content == "sure thing"
    assert len(before.messages) == 1


def test_exchange_sends_role_and_content_only():
    adapter = _adapter(_completion("ok"))
    adapter.exchange(make_conversation("t", "a", "b", "c"))

    kwargs = adapter._client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"] == [
        {"role": "user", "content": "a"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": "c"},
    ]


def test_history_limit_and_system_prompt(tmp_path: Path):
    prompt = tmp_path / "system.md"
    prompt.write_text("be brief", encoding="utf-8")
    adapter = _adapter(_completion("ok"), prompt_loader=PromptLoader(prompt), max_history_messages=2)

    after = adapter.exchange(make_conversation("t", "a", "b", "c"))

    sent = adapter._client.chat.completions.create.call_args.kwargs["messages"]
    assert sent == [
        {"role": "system", "content": "be brief"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": "c"},
    ]
    # the system prompt never enters the conversation itself
    assert [m.role for m in after.messages] == ["user", "assistant", "user", "assistant"]


def test_null_content_becomes_empty_string():
    adapter = _adapter(_completion(None))
    assert adapter.exchange(make_conversation("t", "a")).messages[-1].content == ""


@pytest.mark.parametrize("contents", [(), ("one", "two")])
def test_wrong_candidate_count_is_an_error(contents):
    adapter = _adapter(_completion(*contents))
    with pytest.raises(ExchangeError):
        adapter.exchange(make_conversation("t", "a"))


def test_missing_choices_is_an_error():
    adapter = _adapter(SimpleNamespace(id="x", choices=None))
    with pytest.raises(ExchangeError):
        adapter.exchange(make_conversation("t", "a"))


def test_non_assistant_reply_is_an_error():
    adapter = _adapter(_completion("hi", role="user"))
    with pytest.raises(ExchangeError):
        adapter.exchange(make_conversation("t", "a"))


def test_connection_error_is_wrapped():
    adapter = _adapter(side_effect=openai.APIConnectionError(request=_REQUEST))
    with pytest.raises(ExchangeError, match="network failure"):
        adapter.exchange(make_conversation("t", "a"))


def test_status_error_carries_body_excerpt():
    response = httpx.Response(502, json={"error": {"message": "upstream down"}}, request=_REQUEST)
    error = openai.APIStatusError("bad gateway", response=response, body=None)
    adapter = _adapter(side_effect=error)

    with pytest.raises(ExchangeError) as exc_info:
        adapter.exchange(make_conversation("t", "a"))
    assert "502" in str(exc_info.value)
    assert "upstream down" in str(exc_info.value)


def test_non_text_content_is_an_error():
    adapter = _adapter(_completion([{"type": "text"}]))
    with pytest.raises(ExchangeError, match="malformed response"):
        adapter.exchange(make_conversation("t", "a"))
