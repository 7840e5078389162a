import asyncio
import logging
import os
import sys
import uuid

# Configure logging FIRST (before any other imports that may log)
from app.core.logging_config import setup_logging
setup_logging()

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramConflictError
import config
import health_server
from app.core.chat_filter_middleware import PrivateChatOnlyMiddleware
from app.core.settings import ReferralBotSettings
from app.core.structured_logger import log_event
from app.core.telegram_error_middleware import TelegramErrorBoundaryMiddleware
from app.handlers import router as root_router
from app.services.referrals import JsonLedgerStore, ReferralLedgerService

logger = logging.getLogger(__name__)

# The ledger is a single file with one writer: one process at a time
INSTANCE_LOCK_FILE = "/tmp/referral_bot.lock"


def build_dispatcher(referral_service: ReferralLedgerService, settings: ReferralBotSettings) -> Dispatcher:
    """Dispatcher with middlewares, routers and injected dependencies."""
    dp = Dispatcher()
    # Handlers receive these by parameter name
    dp["referral_service"] = referral_service
    dp["settings"] = settings

    dp.update.middleware(TelegramErrorBoundaryMiddleware())
    dp.message.middleware(PrivateChatOnlyMiddleware())
    dp.include_router(root_router)
    return dp


async def main():
    # Single instance guard
    if os.path.exists(INSTANCE_LOCK_FILE):
        logger.critical("Another instance detected (lock file exists). Exiting.")
        sys.exit(1)
    try:
        with open(INSTANCE_LOCK_FILE, "w") as f:
            f.write(str(os.getpid()))
    except OSError as e:
        logger.warning("Could not create instance lock file: %s", e)

    instance_id = os.getenv("POLLING_INSTANCE_ID", str(uuid.uuid4()))
    logger.info("BOT_INSTANCE_STARTED pid=%s instance_id=%s", os.getpid(), instance_id)
    logger.info(f"Starting bot in {config.APP_ENV.upper()} environment")

    store = JsonLedgerStore(config.REFERRALS_FILE, legacy_mirror=config.LEGACY_LEDGER_FORMAT)
    settings = ReferralBotSettings(tracked_chat_ids=config.TRACKED_CHAT_IDS)
    referral_service = ReferralLedgerService(
        store,
        privileged_user_id=config.PRIVILEGED_USER_ID,
        leaderboard_limit=config.LEADERBOARD_LIMIT,
    )

    startup_load = await store.load_result()
    log_event(
        logger,
        component="referrals",
        operation="ledger_startup_load",
        outcome=startup_load.outcome.value,
        reason=startup_load.error,
        level="warning" if startup_load.error else "info",
        message=f"Ledger {config.REFERRALS_FILE}: {startup_load.outcome.value}, entries={len(startup_load.ledger)}",
    )
    logger.info(f"Tracked chats: {sorted(settings.tracked_chat_ids)}")

    bot = Bot(token=config.BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = build_dispatcher(referral_service, settings)

    background_tasks = []
    health_task = asyncio.create_task(
        health_server.health_server_task(
            store, host=config.HEALTH_SERVER_HOST, port=config.HEALTH_SERVER_PORT
        )
    )
    background_tasks.append(health_task)

    # chat_member updates are only delivered when requested explicitly
    used_updates = dp.resolve_used_update_types()
    logger.info("Allowed updates: %s", used_updates)

    try:
        while True:
            try:
                await bot.delete_webhook(drop_pending_updates=True)
                logger.info("POLLING_START pid=%s instance_id=%s", os.getpid(), instance_id)
                log_event(
                    logger,
                    component="polling",
                    operation="polling_start",
                    outcome="success",
                    correlation_id=instance_id,
                )
                await dp.start_polling(
                    bot,
                    allowed_updates=used_updates,
                    polling_timeout=30,
                    handle_signals=False,
                )
                break
            except asyncio.CancelledError:
                logger.info("POLLING_STOP reason=cancelled")
                log_event(logger, component="polling", operation="polling_cancelled", outcome="cancelled")
                break
            except TelegramConflictError:
                log_event(
                    logger,
                    component="polling",
                    operation="conflict",
                    outcome="failed",
                    reason="another bot instance is running",
                    level="critical",
                )
                logger.critical("polling conflict traceback", exc_info=True)
                raise SystemExit(1)
            except Exception as e:
                logger.error(
                    "POLLING_EXCEPTION type=%s reason=%s instance_id=%s",
                    type(e).__name__, str(e)[:200], instance_id,
                    exc_info=True,
                )
                log_event(
                    logger,
                    component="polling",
                    operation="polling_crash",
                    outcome="failed",
                    reason=str(e)[:200],
                    level="error",
                )
                logger.info("Restarting polling in 5 seconds...")
                await asyncio.sleep(5)
    finally:
        log_event(logger, component="shutdown", operation="shutdown_start", outcome="success")

        for task in background_tasks:
            if task and not task.done():
                task.cancel()
        for task in background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Error during shutdown of task {task.get_name()}: {e}")

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.debug(f"Error closing bot session: {e}")

        log_event(logger, component="shutdown", operation="shutdown_completed", outcome="success")

        try:
            if os.path.exists(INSTANCE_LOCK_FILE):
                os.remove(INSTANCE_LOCK_FILE)
                logger.info("Instance lock file removed")
        except OSError as e:
            logger.warning("Could not remove instance lock file: %s", e)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped")
