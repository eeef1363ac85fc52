"""Runtime settings for mcintegrate.

Defaults can be overridden through environment variables so that
experiments stay reproducible without code changes::

    MCINTEGRATE_SEED=7 MCINTEGRATE_MAX_WORKERS=4 python examples/comparison_demo.py
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from .errors import InvalidArgument

_ENV_PREFIX = "MCINTEGRATE_"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(_ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgument(
            f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}"
        ) from None


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults.

    Attributes:
        seed: Seed used when a UniformSource is created without one.
        n_samples: Default Monte Carlo sample size for the convenience functions.
        max_resample_rounds: How many times a zero uniform is redrawn before
            giving up (see ``UniformSource.draw_open``).
        max_workers: Worker count for comparison sweeps (1 = sequential).
        executor: "thread" or "process".
        table_size: Grid size for table-based (PDF) distributions.
    """

    seed: int = 42
    n_samples: int = 100_000
    max_resample_rounds: int = 64
    max_workers: int = 1
    executor: str = "thread"
    table_size: int = 2048

    @classmethod
    def from_env(cls) -> "Settings":
        base = cls()
        return replace(
            base,
            seed=_env_int("SEED", base.seed),
            n_samples=_env_int("N_SAMPLES", base.n_samples),
            max_workers=_env_int("MAX_WORKERS", base.max_workers),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(**overrides) -> Settings:
    """Replace selected settings for the rest of the process."""
    global _settings
    try:
        _settings = replace(get_settings(), **overrides)
    except TypeError as exc:
        raise InvalidArgument(f"Unknown setting: {exc}") from exc
    return _settings


def reset_settings() -> None:
    """Forget cached settings; the environment is read again on next use."""
    global _settings
    _settings = None
