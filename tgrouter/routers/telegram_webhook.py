from fastapi import APIRouter, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from tgrouter.config import settings
from tgrouter.logging_config import get_logger
from tgrouter.schemas.telegram import UpdateDecodeError, WebhookResponse
from tgrouter.services.dispatcher import Dispatcher
from tgrouter.services.session_store import SessionStoreError

logger = get_logger("telegram_webhook")

router = APIRouter()


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


@router.post(settings.webhook_path, response_model=WebhookResponse)
async def handle_telegram_webhook(request: Request):
    """Decode one Telegram update and route it to a handler.

    Dispatch runs in the worker threadpool; handlers are plain blocking
    callables and several updates may be in flight at once.
    """
    dispatcher = get_dispatcher(request)
    body = await request.body()

    try:
        outcome = await run_in_threadpool(dispatcher.handle_payload, body)
    except UpdateDecodeError as e:
        logger.warning(f"Rejected telegram payload: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SessionStoreError as e:
        logger.error(f"Session store unavailable: {e}")
        raise HTTPException(status_code=503, detail="session store unavailable")
    except Exception:
        logger.exception("Handler failed while dispatching update")
        raise

    return WebhookResponse(success=True, outcome=outcome.value)
