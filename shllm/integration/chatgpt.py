"""OpenAI-compatible chat endpoint integration.

This module wraps the official ``openai`` client so the rest of the project
only sees :class:`~shllm.schemas.Conversation` objects going in and coming
back one assistant turn longer.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI
from pydantic import ValidationError

from shllm.config import logger
from shllm.errors import ExchangeError
from shllm.schemas import Conversation, Message, utcnow
from shllm.utils.http import safe_http_error_message
from shllm.utils.prompt_loader import PromptLoader


class OpenAIClient:
    """Model exchange adapter for the Chat Completions API."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        prompt_loader: Optional[PromptLoader] = None,
        max_history_messages: Optional[int] = None,
        client: Any = None,
    ) -> None:
        self.model_name = model_name
        self.prompt_loader = prompt_loader or PromptLoader(None)
        self.max_history_messages = max_history_messages
        # ``client`` lets tests hand in a stub with the same surface.
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )

    def _build_messages(self, conversation: Conversation) -> List[Dict[str, str]]:
        msgs: List[Dict[str, str]] = []
        system_prompt = self.prompt_loader.load()
        if system_prompt:
            msgs.append({"role": "system", "content": system_prompt})

        hist = conversation.messages
        if self.max_history_messages is not None and len(hist) > self.max_history_messages:
            hist = hist[-self.max_history_messages :]
        msgs.extend({"role": m.role, "content": m.content} for m in hist)
        return msgs

    def _request(self, msgs: List[Dict[str, str]]):
        try:
            return self._client.chat.completions.create(model=self.model_name, messages=msgs)
        except openai.APIStatusError as exc:
            raise ExchangeError(
                f"model endpoint returned HTTP {exc.status_code}: {safe_http_error_message(exc.response)}"
            ) from exc
        except openai.APITimeoutError as exc:
            raise ExchangeError("model endpoint timed out") from exc
        except openai.APIConnectionError as exc:
            raise ExchangeError(f"network failure: {exc}") from exc
        except openai.OpenAIError as exc:
            raise ExchangeError(f"malformed response: {exc}") from exc

    def exchange(self, conversation: Conversation) -> Conversation:
        """Return ``conversation`` extended by exactly one reply turn."""
        msgs = self._build_messages(conversation)
        logger.debug(f"Sending {len(msgs)} message(s) to {self.model_name}")
        resp = self._request(msgs)

        choices = getattr(resp, "choices", None)
        if choices is None:
            raise ExchangeError("malformed response: no choices field")
        if len(choices) != 1:
            raise ExchangeError(f"expected exactly one reply candidate, got {len(choices)}")

        reply = getattr(choices[0], "message", None)
        if reply is None:
            raise ExchangeError("malformed response: reply candidate has no message")

        role = getattr(reply, "role", None) or "assistant"
        if role != "assistant":
            raise ExchangeError(f"malformed response: reply has role {role!r}")

        try:
            message = Message(
                role=role,
                content=getattr(reply, "content", None) or "",
                timestamp=utcnow(),
            )
        except ValidationError as exc:
            raise ExchangeError(f"malformed response: {exc.error_count()} invalid field(s) in reply") from exc
        logger.info(f"Model reply id={getattr(resp, 'id', None)} (len={len(message.content)})")
        return conversation.model_copy(update={"messages": [*conversation.messages, message]})
