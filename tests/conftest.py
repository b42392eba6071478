from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeGenerator, RecordingView  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Keep config lookups and logs inside the per-test tmp directory."""

    monkeypatch.setenv("MEDQUIZ_DATA_HOME", str(tmp_path / "data-home"))
    monkeypatch.delenv("MEDQUIZ_CONFIG", raising=False)
    yield
    logger = logging.getLogger("medquiz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()
