"""
shllm CLI entrypoint.

Reads lines from the terminal, sends the conversation so far to the model
after each one, prints the reply, and archives the whole conversation when
the loop ends (end of input, Ctrl-C, or a failed model exchange).
"""

from __future__ import annotations

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, TextIO

from shllm.config import Settings, logger, settings as default_settings
from shllm.errors import ArchiveUnavailableError, EncodeError, ExchangeError, FatalDataLossError
from shllm.integration.chatgpt import OpenAIClient
from shllm.integration.http_clients import make_http_client
from shllm.services import archive_codec
from shllm.services.chat import ChatService, ChatSession
from shllm.services.conversation_store import ConversationStore
from shllm.services.recovery import RecoveryPath
from shllm.utils.paths import resolve_archive_path
from shllm.utils.prompt_loader import PromptLoader
from shllm.utils.titles import derive_title

PROMPT = "human\t  => "

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DATA_LOSS = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shllm",
        description="Talk to chatgpt from the command line",
    )
    p.add_argument("-f", "--filepath", type=Path, default=None, help="filepath to save session to")
    p.add_argument("session_name", nargs="*", help="words making up the session title")
    return p


@contextmanager
def saved_on_exit(store: ConversationStore, path: Path, session: ChatSession) -> Iterator[ChatSession]:
    """Archive the session exactly once however the block is left."""
    try:
        yield session
    finally:
        store.append(path, session.conversation)


def repl(chat: ChatService, read: Callable[[str], str], out: TextIO) -> Optional[ExchangeError]:
    """Run the read/exchange/print loop. Returns the exchange error that ended it, if any."""
    while True:
        try:
            line = read(PROMPT)
        except (EOFError, KeyboardInterrupt):
            out.write("\n")
            return None
        try:
            reply = chat.turn(line)
        except ExchangeError as exc:
            logger.error(f"Model exchange failed: {exc}")
            return exc
        except KeyboardInterrupt:
            out.write("\n")
            return None
        out.write(f"{reply.role} => {reply.content}\n")
        out.flush()


def _report_data_loss(exc: FatalDataLossError, err: TextIO) -> None:
    banner = "!" * 72
    err.write(f"\n{banner}\nFATAL: YOUR CONVERSATION COULD NOT BE SAVED ANYWHERE\n{exc}\n{banner}\n")
    if exc.conversation is not None:
        # last copy of the data; put it on the terminal
        try:
            err.write(archive_codec.encode_conversation(exc.conversation).decode("utf-8", "replace"))
        except EncodeError:
            for m in exc.conversation.messages:
                err.write(f"{m.role}: {m.content!r}\n")
        err.write(f"\n{banner}\n")
    err.flush()


def run(
    argv: Optional[List[str]] = None,
    cfg: Settings = default_settings,
    exchange: Optional[Callable] = None,
    read: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    args = build_parser().parse_args(argv)
    title = derive_title(args.session_name)
    path = resolve_archive_path(args.filepath, cfg.notes_dir, cfg.archive_subdir)
    logger.info(f"Session '{title}' will be saved to {path}")

    http_client = None
    if exchange is None:
        http_client = make_http_client(cfg.request_timeout, cfg.connect_timeout)
        client = OpenAIClient(
            api_key=cfg.openai_api_key,
            model_name=cfg.model_name,
            base_url=cfg.openai_base_url,
            http_client=http_client,
            prompt_loader=PromptLoader(cfg.system_prompt_path),
            max_history_messages=cfg.max_history_messages,
        )
        exchange = client.exchange

    session = ChatSession(title)
    store = ConversationStore(RecoveryPath(cfg.recovery_dir))
    failure: Optional[ExchangeError] = None
    try:
        with saved_on_exit(store, path, session):
            failure = repl(ChatService(session, exchange), read, out)
    except ArchiveUnavailableError as exc:
        logger.error(str(exc))
        err.write(f"error: {exc}\n")
        return EXIT_ERROR
    except FatalDataLossError as exc:
        logger.critical(f"Total data loss: {exc}")
        _report_data_loss(exc, err)
        return EXIT_DATA_LOSS
    finally:
        if http_client is not None:
            http_client.close()

    if failure is not None:
        err.write(f"error: {failure}\nConversation so far was saved to {path}\n")
        return EXIT_ERROR
    return EXIT_OK


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
