from unittest.mock import Mock

import pytest

from tgrouter.schemas.telegram import TelegramUpdate
from tgrouter.services.dispatcher import Dispatcher
from tgrouter.services.registry import HandlerRegistry
from tgrouter.services.session_store import MemorySessionStore

BOT_NAME = "Test_Bot"


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def registry():
    return HandlerRegistry()


@pytest.fixture
def dispatcher(registry, session_store):
    return Dispatcher(BOT_NAME, registry=registry, session_store=session_store)


@pytest.fixture
def handlers(registry):
    """Mock handlers registered for /help, state 100, default and the pre-command callback."""
    mocks = Mock()
    registry.add_command("help", mocks.help)
    registry.add_session_handler(100, mocks.session)
    registry.set_default_handler(mocks.default)
    registry.set_before_command_callback(mocks.before_command)
    return mocks


@pytest.fixture
def make_update():
    def _make(text=None, author_id=1, chat_id=2, chat_type="private", update_id=1, **message):
        payload = {
            "update_id": update_id,
            "message": {
                "message_id": 10,
                "date": 1702000000,
                "from": {"id": author_id, "first_name": "Jane"},
                "chat": {"id": chat_id, "type": chat_type},
                **message,
            },
        }
        if text is not None:
            payload["message"]["text"] = text
        return TelegramUpdate.model_validate(payload)

    return _make
