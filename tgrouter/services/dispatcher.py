import re
from enum import Enum
from typing import Any, Optional, Union

from tgrouter.config import Settings
from tgrouter.database import init_db, make_engine, make_session_factory
from tgrouter.logging_config import UpdateLogger, get_logger
from tgrouter.schemas.telegram import TelegramUpdate, UpdateDecodeError, decode_update, dump_update
from tgrouter.services.command_parser import ParsedCommand, parse_command
from tgrouter.services.registry import HandlerRegistry
from tgrouter.services.session_store import MemorySessionStore, SessionStore
from tgrouter.services.sql_session_store import SqlSessionStore
from tgrouter.services.telegram_service import TelegramService

logger = get_logger("dispatcher")


class DispatchOutcome(str, Enum):
    COMMAND_MATCHED = "command_matched"
    COMMAND_REJECTED = "command_rejected"  # qualified for another bot
    PATTERN_MATCHED = "pattern_matched"
    SESSION_CONSUMED = "session_consumed"
    DEFAULT_INVOKED = "default_invoked"
    NO_OP = "no_op"


def build_session_store(settings: Settings) -> SessionStore:
    if settings.session_backend == "sql":
        engine = make_engine(settings.database_url)
        init_db(engine)
        return SqlSessionStore(make_session_factory(engine))
    return MemorySessionStore()


def build_telegram_service(settings: Settings) -> Optional[TelegramService]:
    if not settings.bot_token:
        return None
    return TelegramService(settings.bot_token, base_url=settings.api_base_url, timeout=settings.request_timeout)


class Dispatcher:
    """Routes each inbound update to at most one registered handler.

    Order of precedence for a message:

    1. a command for this bot: exact-name handler, then the first matching
       pattern handler (registration order);
    2. an active session for (sender, chat), which is deleted before its
       handler runs, so it is delivered at most once;
    3. the default handler.

    Handler exceptions are not caught. A dispatcher may be shared across
    request threads once its registry is frozen.
    """

    def __init__(
        self,
        bot_name: str,
        registry: Optional[HandlerRegistry] = None,
        session_store: Optional[SessionStore] = None,
        unknown_command_fallthrough: bool = True,
        debug: bool = False,
        telegram: Optional[TelegramService] = None,
    ):
        self.bot_name = bot_name
        self.registry = registry or HandlerRegistry()
        self.session_store = session_store
        self.unknown_command_fallthrough = unknown_command_fallthrough
        self.debug = debug
        self.telegram = telegram
        self._mention_re = re.compile(rf"^@{re.escape(bot_name)}\s+", re.ASCII) if bot_name else None

    @classmethod
    def from_settings(cls, settings: Settings, registry: Optional[HandlerRegistry] = None) -> "Dispatcher":
        return cls(
            bot_name=settings.bot_name,
            registry=registry,
            session_store=build_session_store(settings),
            unknown_command_fallthrough=settings.unknown_command_fallthrough,
            debug=settings.debug,
            telegram=build_telegram_service(settings),
        )

    def handle_payload(self, payload: Union[bytes, str, dict[str, Any]]) -> DispatchOutcome:
        """Decode a raw webhook body and dispatch it."""
        return self.dispatch(decode_update(payload))

    def dispatch(self, update: TelegramUpdate) -> DispatchOutcome:
        if update.message is None:
            logger.error("Null message found", extra={"context": {"update": dump_update(update)}})
            raise UpdateDecodeError("null message found")

        log = UpdateLogger(logger, update.update_id, chat_id=update.chat_id, author_id=update.from_id)
        if self.debug:
            log.debug(f"Received in {self.bot_name}: {dump_update(update)}")

        command = parse_command(update.message.text)
        outcome = None
        if command is not None:
            outcome = self._dispatch_command(update, command, log)
        else:
            update = self.strip_mention(update)

        if outcome is None:
            outcome = self._dispatch_message(update, log)

        log.debug("Update dispatched", outcome=outcome)
        return outcome

    def strip_mention(self, update: TelegramUpdate) -> TelegramUpdate:
        """Drop a leading "@<bot_name> " mention from the message text."""
        text = update.message.text
        if not text or self._mention_re is None:
            return update
        stripped = self._mention_re.sub("", text, count=1)
        if stripped == text:
            return update
        return update.with_text(stripped)

    def _dispatch_command(
        self, update: TelegramUpdate, command: ParsedCommand, log: UpdateLogger
    ) -> Optional[DispatchOutcome]:
        if not command.targets(self.bot_name):
            log.debug(f"Command /{command.name} addressed to {command.bot_name}, ignoring")
            return DispatchOutcome.COMMAND_REJECTED

        registry = self.registry
        if registry.before_command is not None:
            registry.before_command(update)

        handler = registry.command_handler(command.name)
        if handler is not None:
            handler(update, command.args)
            return DispatchOutcome.COMMAND_MATCHED

        found = registry.match_pattern(command.name)
        if found is not None:
            route, matches = found
            route.handler(update, matches)
            return DispatchOutcome.PATTERN_MATCHED

        if self.unknown_command_fallthrough:
            return None
        return DispatchOutcome.NO_OP

    def _dispatch_message(self, update: TelegramUpdate, log: UpdateLogger) -> DispatchOutcome:
        registry = self.registry
        author_id = update.from_id

        if self.session_store is not None and author_id is not None:
            record = self.session_store.take(author_id, update.chat_id)
            if record is not None:
                handler = registry.session_handler(record.state_id)
                if handler is not None:
                    handler(update, record)
                    return DispatchOutcome.SESSION_CONSUMED

                log.warning("Session dropped, no handler for state", context={"state_id": record.state_id})

        if registry.default_handler is not None:
            registry.default_handler(update, "")
            return DispatchOutcome.DEFAULT_INVOKED

        return DispatchOutcome.NO_OP
