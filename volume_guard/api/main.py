"""FastAPI application factory and worker lifecycle"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response
from volume_guard.api.middleware import RequestIDMiddleware, MetricsMiddleware
from volume_guard.api.v1 import limit, stats, ticks
from volume_guard.config import settings
from volume_guard.infrastructure.clients.stripe import StripeClient
from volume_guard.infrastructure.clients.telegram import TelegramNotifier
from volume_guard.infrastructure.clients.transfer_log import TransferLogClient
from volume_guard.infrastructure.observability.logging import setup_logging
from volume_guard.infrastructure.scheduler import run_daily, run_periodic, sync_job
from volume_guard.services.guard import VolumeGuard

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


def build_guard() -> VolumeGuard:
    """
    Construct the worker from settings.

    Raises:
        ConfigurationError: Missing credentials or account id; the app must not start
    """
    config = settings.to_guard_config()
    return VolumeGuard(
        config=config,
        store=StripeClient(),
        notifier=TelegramNotifier(),
        transfer_log=TransferLogClient(),
        lookup_concurrency=settings.settlement_lookup_concurrency,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_guard = app.state.guard is None
    if owns_guard:
        app.state.guard = build_guard()
    guard: VolumeGuard = app.state.guard

    tasks: List[asyncio.Task] = []
    if app.state.start_scheduler:
        tasks.append(asyncio.create_task(run_periodic(settings.tick_interval_seconds, guard.run_tick)))
        tasks.append(asyncio.create_task(
            run_daily(settings.notification_reset_time, guard.config.timezone, sync_job(guard.reset_daily_state))
        ))
        logger.info(
            f"Worker started for account {guard.config.account_id}, "
            f"limit {guard.config.daily_limit} {guard.config.currency.upper()}, dry_run={guard.config.dry_run}"
        )

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if owns_guard:
            await guard.store.aclose()


def create_app(
    guard: VolumeGuard | None = None,
    start_scheduler: bool | None = None,
    gateway_secret: str | None = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Volume Guard",
        description="Daily volume guard and invoice rescheduling worker",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.guard = guard
    app.state.start_scheduler = settings.scheduler_enabled if start_scheduler is None else start_scheduler
    app.state.gateway_secret = settings.gateway_secret if gateway_secret is None else gateway_secret

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        current = app.state.guard
        return {
            "status": "ok",
            "service": settings.service_name,
            "current_limit": float(current.config.daily_limit) if current else None,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(limit.router, prefix="/v1", tags=["limit"])
    app.include_router(stats.router, prefix="/v1", tags=["stats"])
    app.include_router(ticks.router, prefix="/v1", tags=["ticks"])

    return app


app = create_app()
