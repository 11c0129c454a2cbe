"""Composition root: wires the store, the engines and the scheduler."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from tripsync.application.use_cases.notifications import (
    NotificationDispatchEngine,
    NotificationFanoutService,
)
from tripsync.application.use_cases.polls import PollClosureEngine
from tripsync.application.use_cases.reconciliation import ReconciliationTick
from tripsync.config import Settings, get_settings
from tripsync.infrastructure.database import (
    build_session_factory,
    create_engine_from_settings,
    initialize_database,
)
from tripsync.infrastructure.scheduler import ReconciliationScheduler
from tripsync.infrastructure.store import SqlAlchemyStore
from tripsync.interfaces.api.routes import register_routes
from tripsync.utils import Clock, now_in_app_timezone


@dataclass
class Container:
    """Long-lived objects shared by the application."""

    engine: Engine
    store: SqlAlchemyStore
    fanout: NotificationFanoutService
    tick: ReconciliationTick
    scheduler: ReconciliationScheduler


def build_container(settings: Settings, *, clock: Clock = now_in_app_timezone) -> Container:
    """Create the store, engines and scheduler described by ``settings``."""

    engine = create_engine_from_settings(settings)
    store = SqlAlchemyStore(build_session_factory(engine))
    fanout = NotificationFanoutService(store, clock=clock)
    tick = ReconciliationTick(
        NotificationDispatchEngine(store, batch_size=settings.dispatch_batch_size),
        PollClosureEngine(store, fanout),
    )
    scheduler = ReconciliationScheduler(
        tick.run,
        interval_seconds=settings.reconciler_interval_seconds,
        clock=clock,
    )
    return Container(
        engine=engine, store=store, fanout=fanout, tick=tick, scheduler=scheduler
    )


def configure_logging(settings: Settings) -> None:
    logging.getLogger("tripsync").setLevel(settings.log_level.upper())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Start the reconciliation scheduler and release resources on shutdown."""

        container = build_container(settings)
        initialize_database(container.engine)
        app.state.container = container
        app.state.scheduler = container.scheduler
        if settings.reconciler_enabled:
            await container.scheduler.start()
        try:
            yield
        finally:
            await container.scheduler.stop()
            container.engine.dispose()

    app = FastAPI(lifespan=lifespan)
    register_routes(app)
    return app


__all__ = ["Container", "build_container", "configure_logging", "create_app"]
