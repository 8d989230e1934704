"""Application setup for the Queens puzzle core."""

import logging
from pathlib import Path
from typing import Optional

from queens.core.levels import LevelCatalog
from queens.core.progress import IntroFlagStore, ProgressStore
from queens.core.rules import Variant
from queens.core.session import SessionController, TickSource
from queens.ui.ticker import QtTickSource


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_controller(
    variant: Variant,
    base_dir: Optional[Path] = None,
    ticker: Optional[TickSource] = None,
    catalog: Optional[LevelCatalog] = None,
) -> SessionController:
    """Wire the shipped catalog, the on-disk stores and a Qt clock into a controller.

    A QCoreApplication must exist before the default Qt clock is created.
    """
    if ticker is None:
        ticker = QtTickSource()
    controller = SessionController(
        catalog=catalog or LevelCatalog(),
        variant=variant,
        progress_store=ProgressStore(base_dir),
        intro_store=IntroFlagStore(base_dir),
        ticker=ticker,
    )
    logging.getLogger(__name__).info("Built %s session controller", variant.value)
    return controller
