import pytest

from mcintegrate.config import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate tests from MCINTEGRATE_* variables and configure() calls."""
    for name in ("MCINTEGRATE_SEED", "MCINTEGRATE_N_SAMPLES", "MCINTEGRATE_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
