from tgrouter.services.command_parser import ParsedCommand, parse_command
from tgrouter.services.dispatcher import DispatchOutcome, Dispatcher, build_session_store
from tgrouter.services.registry import ConfigurationError, HandlerRegistry, PatternRoute
from tgrouter.services.session_store import MemorySessionStore, SessionRecord, SessionStore, SessionStoreError
from tgrouter.services.sql_session_store import SqlSessionStore
from tgrouter.services.telegram_service import TelegramAPIError, TelegramService

__all__ = [
    "ConfigurationError",
    "DispatchOutcome",
    "Dispatcher",
    "HandlerRegistry",
    "MemorySessionStore",
    "ParsedCommand",
    "PatternRoute",
    "SessionRecord",
    "SessionStore",
    "SessionStoreError",
    "SqlSessionStore",
    "TelegramAPIError",
    "TelegramService",
    "build_session_store",
    "parse_command",
]
