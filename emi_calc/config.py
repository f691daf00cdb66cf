"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .utils import MAX_PLACES

TRUTHY = {"1", "true", "yes", "on"}


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer; got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    currency_symbol: str = "₹"
    rounding_places: int = 0
    settle_final: bool = False
    scenario_database_url: str = "sqlite:///emi_scenarios.sqlite3"
    max_scenarios: int = 10
    secret_key: str = "dev-secret-key"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        places = _int_env(env, "EMI_CALC_ROUNDING_PLACES", cls.rounding_places)
        if not 0 <= places <= MAX_PLACES:
            raise ValueError(f"EMI_CALC_ROUNDING_PLACES must be between 0 and {MAX_PLACES}")
        return cls(
            currency_symbol=env.get("EMI_CALC_CURRENCY_SYMBOL", cls.currency_symbol),
            rounding_places=places,
            settle_final=env.get("EMI_CALC_SETTLE_FINAL", "").strip().lower() in TRUTHY,
            scenario_database_url=env.get("EMI_CALC_SCENARIO_DATABASE_URL") or cls.scenario_database_url,
            max_scenarios=_int_env(env, "EMI_CALC_MAX_SCENARIOS", cls.max_scenarios),
            secret_key=env.get("FLASK_SECRET_KEY", cls.secret_key),
        )
