from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from tgrouter.schemas.telegram import TelegramMessage, TelegramUser


class ReplyMarkup(BaseModel):
    """ReplyKeyboardMarkup, ReplyKeyboardHide and ForceReply in one object."""

    keyboard: Optional[list[list[str]]] = None
    resize_keyboard: bool = False
    one_time_keyboard: bool = False
    hide_keyboard: bool = False
    force_reply: bool = False
    selective: bool = False

    def to_payload(self) -> dict:
        return self.model_dump(exclude_defaults=True)


class SendMessage(BaseModel):
    chat_id: int
    text: str
    disable_web_page_preview: bool = False
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None

    def to_payload(self) -> dict:
        data = {"chat_id": self.chat_id, "text": self.text}
        if self.disable_web_page_preview:
            data["disable_web_page_preview"] = True
        if self.reply_to_message_id:
            data["reply_to_message_id"] = self.reply_to_message_id
        if self.reply_markup:
            data["reply_markup"] = self.reply_markup.to_payload()
        return data


class EditMessageText(BaseModel):
    chat_id: int
    message_id: int
    text: str
    disable_web_page_preview: bool = False
    reply_markup: Optional[ReplyMarkup] = None

    def to_payload(self) -> dict:
        data = {"chat_id": self.chat_id, "message_id": self.message_id, "text": self.text}
        if self.disable_web_page_preview:
            data["disable_web_page_preview"] = True
        if self.reply_markup:
            data["reply_markup"] = self.reply_markup.to_payload()
        return data


class SendDocument(BaseModel):
    chat_id: int
    document: str  # local file path, uploaded as multipart
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None


class MessageResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool
    result: Optional[TelegramMessage] = None
    error_code: Optional[int] = None
    description: Optional[str] = None


class ChatMemberStatus(str, Enum):
    CREATOR = "creator"
    ADMINISTRATOR = "administrator"
    MEMBER = "member"
    RESTRICTED = "restricted"
    LEFT = "left"
    KICKED = "kicked"


class ChatMember(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user: TelegramUser
    status: ChatMemberStatus
    until_date: Optional[int] = None
    can_be_edited: bool = False
    can_change_info: bool = False
    can_post_messages: bool = False
    can_edit_messages: bool = False
    can_delete_messages: bool = False
    can_invite_users: bool = False
    can_restrict_members: bool = False
    can_pin_messages: bool = False
    can_promote_members: bool = False
    can_send_messages: bool = False
    can_send_media_messages: bool = False
    can_send_other_messages: bool = False
    can_add_web_page_previews: bool = False

    def is_valid_status(self) -> bool:
        return self.status not in (ChatMemberStatus.KICKED, ChatMemberStatus.LEFT)


class ChatMemberResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ok: bool
    result: Optional[ChatMember] = None
    error_code: Optional[int] = None
    description: Optional[str] = None
