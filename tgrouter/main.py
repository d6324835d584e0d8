import importlib
from typing import Optional

from fastapi import FastAPI

from tgrouter import __version__
from tgrouter.config import settings
from tgrouter.logging_config import get_logger, setup_logging
from tgrouter.routers import telegram_webhook
from tgrouter.services.dispatcher import Dispatcher
from tgrouter.services.registry import ConfigurationError

logger = get_logger("main")


def load_handlers(dispatcher: Dispatcher, module_name: str) -> None:
    """Import ``module_name`` and call its ``register(dispatcher)``."""
    module = importlib.import_module(module_name)
    register = getattr(module, "register", None)
    if not callable(register):
        raise ConfigurationError(f"{module_name} has no register(dispatcher) function")
    register(dispatcher)


def create_app(dispatcher: Optional[Dispatcher] = None) -> FastAPI:
    """Build the webhook application around ``dispatcher``.

    Registration must be finished before this is called: the registry is
    frozen here and read without locks while serving.
    """
    if dispatcher is None:
        dispatcher = Dispatcher.from_settings(settings)
        if settings.handlers_module:
            load_handlers(dispatcher, settings.handlers_module)
    dispatcher.registry.freeze()

    app = FastAPI(
        title="tgrouter",
        description="Telegram webhook update router",
        version=__version__,
    )
    app.state.dispatcher = dispatcher
    app.include_router(telegram_webhook.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "bot_name": dispatcher.bot_name}

    logger.info(
        "Webhook app created",
        extra={
            "context": {
                "bot_name": dispatcher.bot_name,
                "commands": sorted(dispatcher.registry.commands),
                "patterns": len(dispatcher.registry.patterns),
                "session_handlers": sorted(dispatcher.registry.sessions),
            }
        },
    )
    return app


setup_logging(settings.log_level)

app = create_app()
