from typing import Callable, Tuple

from shllm.config import logger
from shllm.errors import ExchangeError
from shllm.schemas import Conversation, Message, utcnow

Exchange = Callable[[Conversation], Conversation]


class ChatSession:
    """In-memory turn log for one interactive run. Turns are only ever appended."""

    def __init__(self, title: str):
        self._conversation = Conversation(title=title)

    @property
    def title(self) -> str:
        return self._conversation.title

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._conversation.messages)

    @property
    def conversation(self) -> Conversation:
        """A snapshot of the session; changing it does not affect the session."""
        return self._conversation.model_copy(update={"messages": list(self._conversation.messages)})

    def append_user_turn(self, text: str) -> Message:
        message = Message(role="user", content=text, timestamp=utcnow())
        self._conversation.messages.append(message)
        return message

    def append_reply_turn(self, message: Message) -> Message:
        self._conversation.messages.append(message)
        return message


class ChatService:
    """Runs one user turn through the model and records both sides in the session."""

    def __init__(self, session: ChatSession, exchange: Exchange):
        self.session = session
        self.exchange = exchange

    def turn(self, user_text: str) -> Message:
        self.session.append_user_turn(user_text)
        before = self.session.conversation
        after = self.exchange(before)
        if len(after.messages) != len(before.messages) + 1:
            raise ExchangeError(
                f"model exchange returned {len(after.messages) - len(before.messages)} new turn(s), expected 1"
            )
        reply = after.messages[-1]
        self.session.append_reply_turn(reply)
        logger.debug(f"Session '{self.session.title}' now has {len(self.session.messages)} message(s)")
        return reply
