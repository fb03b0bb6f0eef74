"""Entry point wiring a PipelineBoard from configuration.

``open_board`` builds every collaborator from BoardSettings for one
signed-in user and tears them down again on exit:

    async with open_board(identity, get_settings()) as board:
        await board.load()
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from src.applications.board import PipelineBoard
from src.applications.config import BoardSettings, get_settings
from src.applications.events.emitter import create_event_emitter
from src.applications.notifications import Notifier
from src.applications.promotion.bridge import (
    HttpPromotionBridge,
    NullPromotionBridge,
    PromotionBridge,
)
from src.applications.remote.postgres import PostgresApplicationRemote
from src.applications.remote.protocol import IdentityResolver

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: BoardSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Application board configuration:")
    logger.info(f"  Database URL: {_redact_secret(settings.database_url)}")
    logger.info(
        f"  Database Pool Size: {settings.database_min_pool_size}"
        f"-{settings.database_max_pool_size}"
    )
    logger.info(f"  Research API URL: {settings.research_api_url or '(not set)'}")
    if settings.research_api_token:
        logger.info(
            f"  Research API Token: {_redact_secret(settings.research_api_token)}"
        )
    logger.info(f"  Promotion Timeout Seconds: {settings.promotion_timeout_seconds}")
    logger.info(f"  Undo Window Seconds: {settings.undo_window_seconds}")
    logger.info(f"  Quick Notes Debounce ms: {settings.quick_notes_debounce_ms}")
    logger.info(f"  Panel Notes Debounce ms: {settings.panel_notes_debounce_ms}")
    logger.info(f"  Drag Activation Distance px: {settings.drag_activation_distance_px}")
    logger.info(
        f"  Event Sinks: {', '.join(sink.value for sink in settings.event_sinks)}"
    )


def _build_promotion_bridge(settings: BoardSettings) -> PromotionBridge:
    if not settings.research_api_url:
        return NullPromotionBridge()
    return HttpPromotionBridge(
        base_url=settings.research_api_url,
        token=settings.research_api_token,
        timeout=settings.promotion_timeout_seconds,
    )


def _build_board(
    settings: BoardSettings,
    remote: PostgresApplicationRemote,
    promotion: PromotionBridge,
    notifier: Optional[Notifier] = None,
) -> PipelineBoard:
    """Wire all board dependencies into a PipelineBoard."""
    return PipelineBoard(
        remote=remote,
        promotion=promotion,
        emitter=create_event_emitter(settings.event_sinks),
        notifier=notifier,
        undo_window_seconds=settings.undo_window_seconds,
        activation_distance=settings.drag_activation_distance_px,
        quick_notes_delay_seconds=settings.quick_notes_delay_seconds,
        panel_notes_delay_seconds=settings.panel_notes_delay_seconds,
    )


@asynccontextmanager
async def open_board(
    identity: IdentityResolver,
    settings: Optional[BoardSettings] = None,
    notifier: Optional[Notifier] = None,
) -> AsyncIterator[PipelineBoard]:
    """Open a board for ``identity``, connecting and closing its resources.

    Raises:
        pydantic.ValidationError: If settings are read from the environment
            and are missing or invalid.
        RemoteStoreError: If the database cannot be reached.
    """
    settings = settings or get_settings()
    _log_configuration(settings)

    remote = PostgresApplicationRemote(
        settings.database_url,
        identity=identity,
        min_pool_size=settings.database_min_pool_size,
        max_pool_size=settings.database_max_pool_size,
    )
    promotion = _build_promotion_bridge(settings)

    await remote.connect()
    board = _build_board(settings, remote, promotion, notifier)
    logger.info("Application board ready")
    try:
        yield board
    finally:
        logger.info("Application board shutting down...")
        await board.close()
        if isinstance(promotion, HttpPromotionBridge):
            await promotion.close()
        await remote.disconnect()
        logger.info("Application board shutdown complete")
