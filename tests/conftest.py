from __future__ import annotations

import pytest

from emlformat.core.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch) -> None:
    # Tests rely on the built-in defaults, not on the developer's environment.
    for name in (
        "EMLFORMAT_DEFAULT_CHARSET",
        "EMLFORMAT_LENIENT_BOUNDARY_DETECTION",
        "EMLFORMAT_HEADERS_ONLY",
        "EMLFORMAT_VERBOSE_DIAGNOSTICS",
        "EMLFORMAT_FILE_EXTENSIONS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

