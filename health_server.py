"""
HTTP Health Check Server

Exposes /health endpoint for monitoring and diagnostics.
Reports whether the referral ledger file is readable; always responds 200.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from aiohttp import web

from app.services.referrals import JsonLedgerStore, LedgerLoadOutcome

logger = logging.getLogger(__name__)

LEDGER_STORE_KEY = web.AppKey("ledger_store", JsonLedgerStore)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint handler

    Response format:
        {
            "status": "ok" | "degraded",
            "ledger": "loaded" | "absent" | "corrupt",
            "entries": 12,
            "timestamp": "2024-01-01T12:00:00Z"
        }

    Status rules:
        - "degraded" if the ledger file exists but cannot be parsed
        - "ok" otherwise (an absent file just means no referrals yet)
    """
    try:
        store = request.app[LEDGER_STORE_KEY]
        result = await store.load_result()
        status = "degraded" if result.outcome is LedgerLoadOutcome.CORRUPT else "ok"

        response_data: Dict[str, Any] = {
            "status": status,
            "ledger": result.outcome.value,
            "entries": len(result.ledger),
            "timestamp": _timestamp(),
        }
        return web.json_response(response_data, status=200)

    except Exception as e:
        # Still answer: monitoring must see "degraded", not a 500
        logger.exception(f"Error in health endpoint: {e}")
        response_data = {
            "status": "degraded",
            "ledger": "unknown",
            "entries": 0,
            "timestamp": _timestamp(),
            "error": "Health check error",
        }
        return web.json_response(response_data, status=200)


async def root_handler(request: web.Request) -> web.Response:
    return web.json_response({"service": "referral-leaderboard-bot", "health": "/health"})


def create_health_app(store: JsonLedgerStore) -> web.Application:
    """Create the aiohttp application with health endpoints"""
    app = web.Application()
    app[LEDGER_STORE_KEY] = store
    app.router.add_get("/health", health_handler)
    app.router.add_get("/", root_handler)
    return app


async def start_health_server(store: JsonLedgerStore, host: str = "0.0.0.0", port: int = 3000) -> web.AppRunner:
    """
    Start the HTTP server for health checks

    Returns:
        AppRunner for shutting the server down
    """
    app = create_health_app(store)
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on http://{host}:{port}/health")

    return runner


async def health_server_task(store: JsonLedgerStore, host: str = "0.0.0.0", port: int = 3000):
    """
    Background task running the health check server until cancelled
    """
    runner = None
    try:
        runner = await start_health_server(store, host, port)
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        logger.info("Health server task cancelled")
        if runner:
            try:
                await runner.cleanup()
                logger.info("Health server stopped")
            except Exception as e:
                logger.error(f"Error stopping health server: {e}")
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in health server task: {e}")
        if runner:
            try:
                await runner.cleanup()
            except Exception as cleanup_error:
                logger.debug(f"Health server cleanup failed: {cleanup_error}")
        raise
