from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from tgrouter.main import create_app
from tgrouter.schemas.telegram import (
    ChatType,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
    UpdateDecodeError,
    decode_update,
)
from tgrouter.services.dispatcher import Dispatcher
from tgrouter.services.session_store import MemorySessionStore, SessionStore, SessionStoreError


class TestTelegramSchemas:
    def test_telegram_user(self):
        user = TelegramUser(id=123456, first_name="Иван", last_name="Петров", username="ivan_petrov")
        assert user.id == 123456
        assert user.first_name == "Иван"
        assert user.is_bot is False

    def test_display_name(self):
        user = TelegramUser(id=1000, first_name="John")
        assert user.display_name() == "John"

        user = user.model_copy(update={"last_name": "Doe"})
        assert user.display_name() == "John Doe"

        user = user.model_copy(update={"username": "jdoe"})
        assert user.display_name() == "jdoe"

    def test_telegram_chat(self):
        chat = TelegramChat(id=-1001234567890, type="supergroup", title="Менеджеры")
        assert chat.id == -1001234567890
        assert chat.type == ChatType.SUPERGROUP

    def test_unknown_chat_type_rejected(self):
        with pytest.raises(ValidationError):
            TelegramChat(id=1, type="forum")

    def test_message_from_alias(self):
        msg = TelegramMessage(
            message_id=100,
            date=1702000000,
            chat=TelegramChat(id=-100, type="group"),
            text="Привет",
            **{"from": TelegramUser(id=123, first_name="Менеджер")},
        )
        assert msg.from_user.first_name == "Менеджер"

    def test_models_are_frozen(self):
        msg = TelegramMessage(chat=TelegramChat(id=1, type="private"), text="hi")
        with pytest.raises(ValidationError):
            msg.text = "changed"

    def test_update_helpers(self):
        update = TelegramUpdate(
            update_id=1,
            message=TelegramMessage(chat=TelegramChat(id=-5, type="group"), from_user=TelegramUser(id=7)),
        )
        assert update.is_group() is True
        assert update.is_private() is False
        assert update.chat_id == -5
        assert update.from_id == 7

    def test_is_bot_reply(self):
        raw = {
            "update_id": 1,
            "message": {
                "message_id": 2,
                "chat": {"id": 1, "type": "private"},
                "text": "42",
                "reply_to_message": {
                    "message_id": 1,
                    "chat": {"id": 1, "type": "private"},
                    "from": {"id": 99, "is_bot": True, "first_name": "Bot", "username": "Test_Bot"},
                    "text": "How old are you?",
                },
            },
        }
        update = TelegramUpdate.model_validate(raw)

        assert update.message.reply_to_message.text == "How old are you?"
        assert update.is_bot_reply("Test_Bot") is True
        assert update.is_bot_reply("Other_Bot") is False

    def test_is_bot_reply_without_reply(self):
        update = TelegramUpdate(message=TelegramMessage(chat=TelegramChat(id=1, type="private")))
        assert update.is_bot_reply("Test_Bot") is False

    def test_with_text_copies(self):
        update = TelegramUpdate(message=TelegramMessage(chat=TelegramChat(id=1, type="private"), text="@B hi"))
        copy = update.with_text("hi")

        assert copy.message.text == "hi"
        assert update.message.text == "@B hi"


class TestDecodeUpdate:
    def test_parse_full_update(self):
        raw = (
            b'{"update_id": 123456789, "message": {"message_id": 100, "date": 1702000000,'
            b' "chat": {"id": -1001234567890, "type": "supergroup", "title": "Test Group"},'
            b' "from": {"id": 111222333, "is_bot": false, "first_name": "Ivan"},'
            b' "text": "/start", "unknown_field": {"nested": true}}}'
        )
        update = decode_update(raw)

        assert update.update_id == 123456789
        assert update.message.chat.id == -1001234567890
        assert update.message.from_user.first_name == "Ivan"
        assert update.message.text == "/start"

    def test_decode_dict(self):
        update = decode_update({"message": {"chat": {"id": 1, "type": "private"}}})
        assert update.chat_id == 1

    def test_chat_type_optional(self):
        update = decode_update({"update_id": 1, "message": {"from": {"id": 1}, "chat": {"id": 2}, "text": "hi"}})

        assert update.message.chat.type is None
        assert update.is_private() is False
        assert update.is_group() is False

    @pytest.mark.parametrize(
        "payload",
        [
            b"",
            b"not json",
            b"[]",
            b'{"update_id": "abc"}',
            b'{"update_id": 1}',
            b'{"update_id": 1, "message": null}',
            b'{"update_id": 1, "message": {"text": "no chat"}}',
        ],
    )
    def test_rejects(self, payload):
        with pytest.raises(UpdateDecodeError):
            decode_update(payload)


@pytest.fixture
def app_dispatcher():
    return Dispatcher("Bot", session_store=MemorySessionStore())


@pytest.fixture
def client(app_dispatcher):
    return TestClient(create_app(app_dispatcher), raise_server_exceptions=False)


def _payload(text, author_id=1, chat_id=2):
    return {"update_id": 1, "message": {"from": {"id": author_id}, "chat": {"id": chat_id, "type": "private"}, "text": text}}


class TestWebhookEndpoint:
    def test_command_dispatched(self, app_dispatcher):
        h1 = Mock()
        app_dispatcher.registry.add_command("help", h1)
        client = TestClient(create_app(app_dispatcher))

        response = client.post("/telegram-webhook", json=_payload("/help@Bot extra args"))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["outcome"] == "command_matched"
        assert h1.call_args.args[1] == "extra args"

    def test_no_op_is_success(self, client):
        response = client.post("/telegram-webhook", json=_payload("hello"))

        assert response.status_code == 200
        assert response.json()["outcome"] == "no_op"

    def test_wrong_bot_is_success(self, client):
        response = client.post("/telegram-webhook", json=_payload("/help@Other"))

        assert response.status_code == 200
        assert response.json()["outcome"] == "command_rejected"

    def test_malformed_json_is_400(self, client):
        response = client.post("/telegram-webhook", content=b"{broken", headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_missing_message_is_400(self, client):
        response = client.post("/telegram-webhook", json={"update_id": 1})
        assert response.status_code == 400
        assert "null message" in response.json()["detail"]

    def test_store_failure_is_503(self):
        store = Mock(spec=SessionStore)
        store.take.side_effect = SessionStoreError("take", "down")
        client = TestClient(create_app(Dispatcher("Bot", session_store=store)))

        response = client.post("/telegram-webhook", json=_payload("hello"))
        assert response.status_code == 503

    def test_handler_error_is_500(self, app_dispatcher):
        app_dispatcher.registry.set_default_handler(Mock(side_effect=RuntimeError("boom")))
        client = TestClient(create_app(app_dispatcher), raise_server_exceptions=False)

        response = client.post("/telegram-webhook", json=_payload("hello"))
        assert response.status_code == 500

    def test_session_consumed_across_requests(self, app_dispatcher):
        on_reply, default = Mock(), Mock()
        app_dispatcher.registry.add_session_handler(100, on_reply)
        app_dispatcher.registry.set_default_handler(default)
        app_dispatcher.session_store.set(1, 2, 100, "x")
        client = TestClient(create_app(app_dispatcher))

        first = client.post("/telegram-webhook", json=_payload("yes"))
        second = client.post("/telegram-webhook", json=_payload("yes again"))

        assert first.json()["outcome"] == "session_consumed"
        assert second.json()["outcome"] == "default_invoked"
        on_reply.assert_called_once()

    def test_create_app_freezes_registry(self, app_dispatcher):
        create_app(app_dispatcher)
        assert app_dispatcher.registry.frozen is True

    def test_health(self, client):
        response = client.get("/health")
        assert response.json() == {"status": "ok", "bot_name": "Bot"}
