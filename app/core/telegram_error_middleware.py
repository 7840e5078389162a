"""
Global Telegram update error boundary middleware.

One update's failure must never stop the bot from handling the next one.
Never swallows CancelledError.
Handles TelegramForbiddenError (user never started the bot or blocked it) and
benign TelegramBadRequest silently.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

from app.core.structured_logger import log_event

logger = logging.getLogger(__name__)


def _event_user_id(event: Any) -> Optional[int]:
    for attr in ("message", "callback_query", "chat_member"):
        inner = getattr(event, attr, None)
        if inner is not None and getattr(inner, "from_user", None) is not None:
            return inner.from_user.id
    from_user = getattr(event, "from_user", None)
    return getattr(from_user, "id", None)


class TelegramErrorBoundaryMiddleware(BaseMiddleware):
    """
    Middleware that wraps handler execution in a strict error boundary.

    Catches all exceptions except CancelledError.
    TelegramForbiddenError — debug log, return.
    TelegramBadRequest (message not modified, query too old) — silent return.
    On other exception: logs with traceback, returns None.
    """

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except asyncio.CancelledError:
            raise
        except TelegramForbiddenError as e:
            logger.debug(
                "TelegramForbiddenError (user has not started the bot or blocked it): %s",
                e,
            )
            return None
        except TelegramBadRequest as e:
            error_msg = str(e).lower()
            if "message is not modified" in error_msg:
                return None
            if "query is too old" in error_msg:
                return None
            logger.warning("TelegramBadRequest: %s", e)
            return None
        except Exception as e:
            correlation_id = getattr(event, "update_id", None)
            log_event(
                logger,
                component="telegram",
                operation="update_processing",
                correlation_id=correlation_id,
                outcome="failed",
                reason=f"{type(e).__name__}: {str(e)[:200]}",
                level="error",
            )
            logger.exception(
                "UNHANDLED_HANDLER_EXCEPTION",
                extra={"update_type": type(event).__name__, "user_id": _event_user_id(event)},
            )
            return None
