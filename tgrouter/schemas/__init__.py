from tgrouter.schemas.send import (
    ChatMember,
    ChatMemberResult,
    ChatMemberStatus,
    EditMessageText,
    MessageResult,
    ReplyMarkup,
    SendDocument,
    SendMessage,
)
from tgrouter.schemas.telegram import (
    ChatType,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
    UpdateDecodeError,
    WebhookResponse,
    decode_update,
)

__all__ = [
    "ChatMember",
    "ChatMemberResult",
    "ChatMemberStatus",
    "ChatType",
    "EditMessageText",
    "MessageResult",
    "ReplyMarkup",
    "SendDocument",
    "SendMessage",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
    "UpdateDecodeError",
    "WebhookResponse",
    "decode_update",
]
