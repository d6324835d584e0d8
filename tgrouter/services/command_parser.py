import re
from dataclasses import dataclass
from typing import Optional

COMMAND_RE = re.compile(
    r"/(?P<name>[a-z0-9_]+)(?:@(?P<bot>[a-z0-9_]+))?(?:\s+(?P<args>.*))?",
    re.IGNORECASE | re.ASCII,
)


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    bot_name: str = ""
    args: str = ""

    def targets(self, bot_name: str) -> bool:
        """A command without a qualifier targets every bot on the webhook."""
        return not self.bot_name or self.bot_name == bot_name


def parse_command(text: Optional[str]) -> Optional[ParsedCommand]:
    """Parse "/name[@bot] [args]" into a ParsedCommand.

    The keyword is lower-cased; the bot qualifier keeps its case and the
    argument string is returned untouched. Returns None when the whole
    text does not match.

    >>> parse_command("/Help@MyBot extra  args")
    ParsedCommand(name='help', bot_name='MyBot', args='extra  args')
    """
    if not text:
        return None

    match = COMMAND_RE.fullmatch(text)
    if match is None:
        return None

    return ParsedCommand(
        name=match.group("name").lower(),
        bot_name=match.group("bot") or "",
        args=match.group("args") or "",
    )
