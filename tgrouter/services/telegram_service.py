import json
from pathlib import Path
from typing import Optional

import httpx

from tgrouter.logging_config import get_logger
from tgrouter.schemas.send import ChatMemberResult, EditMessageText, MessageResult, SendDocument, SendMessage

logger = get_logger("telegram_service")


class TelegramAPIError(Exception):
    def __init__(self, method: str, message: str):
        self.method = method
        self.message = message
        super().__init__(f"Telegram {method} failed: {message}")


class TelegramService:
    """Client for the Telegram Bot API methods handlers reply with."""

    DEFAULT_BASE_URL = "https://api.telegram.org"

    def __init__(self, bot_token: str, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0):
        self.bot_token = bot_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def url(self, method: str) -> str:
        return f"{self.base_url}/bot{self.bot_token}/{method}"

    def _make_request(
        self,
        method: str,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
        params: Optional[dict] = None,
        form: bool = False,
    ) -> dict:
        """Call a Bot API method and return the decoded JSON body."""
        url = self.url(method)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                if params is not None:
                    response = client.get(url, params=params)
                elif files or form:
                    response = client.post(url, data=data or {}, files=files)
                else:
                    response = client.post(url, json=data or {})
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram API error: {e}", extra={"context": {"method": method}})
            raise TelegramAPIError(method, str(e)) from e

    def send_message(self, message: SendMessage) -> MessageResult:
        """Send a text message."""
        return MessageResult.model_validate(self._make_request("sendMessage", message.to_payload()))

    def edit_message_text(self, edit: EditMessageText) -> MessageResult:
        """Replace the text of a message the bot sent earlier."""
        return MessageResult.model_validate(self._make_request("editMessageText", edit.to_payload()))

    def send_document(self, document: SendDocument) -> MessageResult:
        """Upload a local file as a document."""
        if not document.document:
            raise ValueError("document path not specified")

        data = {"chat_id": str(document.chat_id)}
        if document.reply_to_message_id and document.reply_to_message_id > 0:
            data["reply_to_message_id"] = str(document.reply_to_message_id)
        if document.reply_markup:
            data["reply_markup"] = json.dumps(document.reply_markup.to_payload())

        path = Path(document.document)
        with path.open("rb") as handle:
            body = self._make_request("sendDocument", data=data, files={"document": (path.name, handle)})
        return MessageResult.model_validate(body)

    def set_webhook(self, url: str, certificate_path: Optional[str] = None) -> dict:
        """Register ``url`` as the bot's webhook, optionally with a self-signed certificate."""
        data = {"url": url}
        if not certificate_path:
            return self._make_request("setWebhook", data=data, form=True)

        path = Path(certificate_path)
        with path.open("rb") as handle:
            return self._make_request("setWebhook", data=data, files={"certificate": (path.name, handle)})

    def get_chat_member(self, chat_id: int, user_id: int) -> ChatMemberResult:
        body = self._make_request("getChatMember", params={"chat_id": str(chat_id), "user_id": str(user_id)})
        return ChatMemberResult.model_validate(body)
