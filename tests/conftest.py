from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from intune_assign.utils import LoggingOptions, configure_logging


# Configure before any module-level get_logger() so tests never write log files.
configure_logging(LoggingOptions(level="WARNING", log_to_file=False))


@pytest.fixture(autouse=True)
def isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> Iterator[None]:
    """Keep INTUNE_ASSIGN_* variables and platform dirs away from the host."""

    for key in list(os.environ):
        if key.startswith("INTUNE_ASSIGN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(
        "intune_assign.config.settings.user_config_dir",
        lambda *_args, **_kwargs: str(tmp_path / "config"),
    )
    monkeypatch.setattr(
        "intune_assign.config.settings.user_cache_dir",
        lambda *_args, **_kwargs: str(tmp_path / "cache"),
    )
    yield
    configure_logging(LoggingOptions(level="WARNING", log_to_file=False))


@pytest.fixture
def fake_graph():
    from tests.stubs import FakeGraphClientFactory

    return FakeGraphClientFactory()
