"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .domain.repositories import LedgerRepositories
from .domain.state import LedgerState
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import build_sqlmodel_repositories
from .logging_config import get_logger, setup_logging
from .models import UserPreferences
from .services.coordinator import LedgerCoordinator, MutationResult

logger = get_logger(__name__)


@dataclass
class LedgerContext:
    """Everything a front end needs to drive the ledger."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    repositories: LedgerRepositories
    state: LedgerState
    coordinator: LedgerCoordinator
    load_result: MutationResult

    def dispose(self) -> None:
        self.engine.dispose()


def create_ledger_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Callable[[], datetime] = datetime.now,
    configure_logging: bool = True,
) -> LedgerContext:
    """Create the engine, repositories and coordinator, then load the ledger."""

    if config is None:
        config = BaseConfig()
    if configure_logging:
        setup_logging(config)

    engine, session_factory = bootstrap_database(config)
    repositories = build_sqlmodel_repositories(session_factory)

    state = LedgerState()
    coordinator = LedgerCoordinator(
        state,
        repositories,
        clock=clock,
        week_start=config.WEEK_START,
        default_preferences=UserPreferences(
            currency_symbol=config.CURRENCY_SYMBOL,
            locale=config.LOCALE,
        ),
    )
    load_result = coordinator.load()
    if not load_result.saved:
        logger.warning(
            "Ledger loaded with storage errors",
            extra={"collections": [e.collection for e in load_result.storage_errors]},
        )

    return LedgerContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        repositories=repositories,
        state=state,
        coordinator=coordinator,
        load_result=load_result,
    )
