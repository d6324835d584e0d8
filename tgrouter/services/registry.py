import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Protocol, TypeVar, Union

from tgrouter.logging_config import get_logger
from tgrouter.schemas.telegram import TelegramUpdate
from tgrouter.services.session_store import SessionRecord

logger = get_logger("registry")

COMMAND_NAME_RE = re.compile(r"[a-z0-9_]+", re.ASCII)


class CommandHandler(Protocol):
    def __call__(self, update: TelegramUpdate, args: str) -> None: ...


class PatternHandler(Protocol):
    def __call__(self, update: TelegramUpdate, matches: list[str]) -> None: ...


class SessionHandler(Protocol):
    def __call__(self, update: TelegramUpdate, record: SessionRecord) -> None: ...


class PreDispatchCallback(Protocol):
    def __call__(self, update: TelegramUpdate) -> None: ...


H = TypeVar("H", bound=Callable)


class ConfigurationError(Exception):
    """Invalid handler registration; raised during setup."""


@dataclass(frozen=True)
class PatternRoute:
    pattern: Pattern[str]
    handler: PatternHandler

    def match(self, name: str) -> Optional[list[str]]:
        """Full match followed by each group, unmatched groups as ""."""
        found = self.pattern.search(name)
        if found is None:
            return None
        return [found.group(0)] + [group or "" for group in found.groups()]


class HandlerRegistry:
    """Handler tables owned by a single Dispatcher.

    Registration is a setup-time activity. Once ``freeze()`` has been called
    the tables are read concurrently by request threads without locking, so
    any further registration is rejected.
    """

    def __init__(self):
        self.commands: dict[str, CommandHandler] = {}
        self.patterns: list[PatternRoute] = []
        self.sessions: dict[int, SessionHandler] = {}
        self.default_handler: Optional[CommandHandler] = None
        self.before_command: Optional[PreDispatchCallback] = None
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_open(self) -> None:
        if self._frozen:
            raise ConfigurationError("registry is frozen; register handlers before serving")

    def add_command(self, name: str, handler: CommandHandler) -> None:
        """Register ``handler`` for "/name" and "/name@Bot". Re-registering a name replaces it."""
        self._check_open()
        key = name.lower()
        if not COMMAND_NAME_RE.fullmatch(key):
            raise ConfigurationError(f"invalid command name: {name!r}")
        if key in self.commands:
            logger.warning(f"Command handler replaced: {key}")
        self.commands[key] = handler

    def add_pattern(self, pattern: Union[str, Pattern[str]], handler: PatternHandler) -> None:
        """Append a pattern handler; patterns are tried in registration order."""
        self._check_open()
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(f"invalid command pattern {pattern!r}: {e}") from e
        self.patterns.append(PatternRoute(pattern=pattern, handler=handler))

    def add_session_handler(self, state_id: int, handler: SessionHandler) -> None:
        self._check_open()
        if state_id in self.sessions:
            logger.warning(f"Session handler replaced: state_id={state_id}")
        self.sessions[state_id] = handler

    def set_default_handler(self, handler: CommandHandler) -> None:
        self._check_open()
        self.default_handler = handler

    def set_before_command_callback(self, callback: PreDispatchCallback) -> None:
        self._check_open()
        self.before_command = callback

    # Decorator forms of the registration calls above.

    def command(self, name: str) -> Callable[[H], H]:
        def decorator(handler: H) -> H:
            self.add_command(name, handler)
            return handler

        return decorator

    def pattern(self, pattern: Union[str, Pattern[str]]) -> Callable[[H], H]:
        def decorator(handler: H) -> H:
            self.add_pattern(pattern, handler)
            return handler

        return decorator

    def session(self, state_id: int) -> Callable[[H], H]:
        def decorator(handler: H) -> H:
            self.add_session_handler(state_id, handler)
            return handler

        return decorator

    def command_handler(self, name: str) -> Optional[CommandHandler]:
        return self.commands.get(name)

    def match_pattern(self, name: str) -> Optional[tuple[PatternRoute, list[str]]]:
        for route in self.patterns:
            matches = route.match(name)
            if matches is not None:
                return route, matches
        return None

    def session_handler(self, state_id: int) -> Optional[SessionHandler]:
        return self.sessions.get(state_id)
