import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ChatType(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


class _Inbound(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class TelegramUser(_Inbound):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None

    def display_name(self) -> str:
        """Username when set, otherwise the full name."""
        if self.username:
            return self.username
        if self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name


class TelegramChat(_Inbound):
    id: int
    type: Optional[ChatType] = None
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TelegramMessage(_Inbound):
    message_id: int = 0
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")  # "from" is reserved in Python
    date: int = 0
    chat: TelegramChat
    forward_from: Optional[TelegramUser] = None
    forward_date: Optional[int] = None
    reply_to_message: Optional["TelegramMessage"] = None
    text: Optional[str] = None
    new_chat_participant: Optional[TelegramUser] = None
    left_chat_participant: Optional[TelegramUser] = None
    new_chat_title: Optional[str] = None
    delete_chat_photo: bool = False
    group_chat_created: bool = False
    supergroup_chat_created: bool = False
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None


class TelegramUpdate(_Inbound):
    update_id: int = 0
    message: Optional[TelegramMessage] = None

    def is_group(self) -> bool:
        return self.message.chat.type == ChatType.GROUP

    def is_private(self) -> bool:
        return self.message.chat.type == ChatType.PRIVATE

    @property
    def chat_id(self) -> int:
        return self.message.chat.id

    @property
    def from_id(self) -> Optional[int]:
        if self.message.from_user is None:
            return None
        return self.message.from_user.id

    def is_bot_reply(self, bot_name: str) -> bool:
        """True if the message answers a message the bot sent."""
        if self.message is None or self.message.reply_to_message is None:
            return False
        author = self.message.reply_to_message.from_user
        return author is not None and author.username == bot_name

    def with_text(self, text: str) -> "TelegramUpdate":
        """Copy of the update with the message text replaced."""
        message = self.message.model_copy(update={"text": text})
        return self.model_copy(update={"message": message})


class UpdateDecodeError(ValueError):
    """Inbound payload could not be turned into a routable update."""


def decode_update(payload: Union[bytes, str, dict[str, Any]]) -> TelegramUpdate:
    """Validate a raw webhook body into a TelegramUpdate.

    Raises UpdateDecodeError for malformed JSON, schema violations and
    updates that carry no message.
    """
    try:
        if isinstance(payload, dict):
            update = TelegramUpdate.model_validate(payload)
        else:
            update = TelegramUpdate.model_validate_json(payload)
    except ValidationError as e:
        raise UpdateDecodeError(f"invalid update: {e.error_count()} validation error(s)") from e

    if update.message is None:
        raise UpdateDecodeError("null message found")
    return update


def dump_update(update: TelegramUpdate) -> str:
    return json.dumps(update.model_dump(mode="json", by_alias=True, exclude_none=True), ensure_ascii=False)


class WebhookResponse(BaseModel):
    success: bool
    outcome: Optional[str] = None
    message: Optional[str] = None
