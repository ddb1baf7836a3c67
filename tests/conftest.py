from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.source_builder import SourceTreeBuilder


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_exposify_logger() -> Iterator[None]:
    """Undo configure_logging so caplog sees records in every test."""
    yield
    logger = logging.getLogger("exposify")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
