"""
Engine configuration.

Values come from the environment (optionally seeded from a .env file) and
are fixed for the lifetime of the components they are passed to.
"""

import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping

from dotenv import load_dotenv

from .errors import ConfigError
from .money import exact_fraction

DEFAULT_KELLY_FRACTION = 0.25
DEFAULT_MAX_WAGER_PERCENT = 5.0
DEFAULT_LOG_LEVEL = "INFO"

# Opponent classification
MIN_HANDS_FOR_CLASSIFICATION = 10
LOOSE_VPIP_THRESHOLD = 0.30
AGGRESSIVE_AF_THRESHOLD = 2.0

# Risk gates
STOP_LOSS_DIVISOR = 5           # stop after losing 1/5 of the starting balance
UNKNOWN_OPPONENT_DIVISOR = 20   # cap wagers vs unknown opponents at 1/20 of total


@dataclass(frozen=True)
class EngineConfig:
    kelly_fraction: float = DEFAULT_KELLY_FRACTION
    max_wager_percent: float = DEFAULT_MAX_WAGER_PERCENT
    log_level: str = DEFAULT_LOG_LEVEL
    min_hands_for_classification: int = MIN_HANDS_FOR_CLASSIFICATION
    loose_vpip_threshold: float = LOOSE_VPIP_THRESHOLD
    aggressive_af_threshold: float = AGGRESSIVE_AF_THRESHOLD
    stop_loss_divisor: int = STOP_LOSS_DIVISOR
    unknown_opponent_divisor: int = UNKNOWN_OPPONENT_DIVISOR

    def __post_init__(self):
        if not 0 < self.kelly_fraction <= 1:
            raise ConfigError(f"kelly_fraction must be in (0, 1], got {self.kelly_fraction}")
        if not 0 < self.max_wager_percent <= 100:
            raise ConfigError(f"max_wager_percent must be in (0, 100], got {self.max_wager_percent}")
        if self.min_hands_for_classification < 0:
            raise ConfigError("min_hands_for_classification must be >= 0")
        if self.stop_loss_divisor <= 0 or self.unknown_opponent_divisor <= 0:
            raise ConfigError("Risk divisors must be positive")

    @property
    def max_risk_fraction(self) -> Fraction:
        """Maximum share of the bankroll at risk in one match, as an exact fraction."""
        return exact_fraction(self.max_wager_percent) / 100


def _parse_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def load_config(env: Mapping[str, str] | None = None, dotenv_path: str | None = None) -> EngineConfig:
    """
    Build an EngineConfig from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ after loading a
            .env file (dotenv_path, or the nearest .env found).
        dotenv_path: Explicit .env location

    Reads KELLY_FRACTION, MAX_WAGER_PERCENT and LOG_LEVEL.

    Raises:
        ConfigError: On unparsable or out-of-range values
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    return EngineConfig(
        kelly_fraction=_parse_float(env, 'KELLY_FRACTION', DEFAULT_KELLY_FRACTION),
        max_wager_percent=_parse_float(env, 'MAX_WAGER_PERCENT', DEFAULT_MAX_WAGER_PERCENT),
        log_level=env.get('LOG_LEVEL', DEFAULT_LOG_LEVEL).upper(),
    )
