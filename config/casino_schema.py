"""
MOOD CASINO — Table & Save Schemas

Pydantic models for the two pieces of data that cross a boundary:

  • BetConfig — per-table bet limits (default bet, stepper step, min/max).
    Engines read these instead of hardcoding bet sizes.
  • PersistedEconomy — the raw key-value save, validated leniently. A corrupt
    or missing key becomes None (or the field default) rather than an error,
    so a damaged save degrades to defaults instead of crashing the app.

Usage:
    from config.casino_schema import GAME_TABLES, PersistedEconomy
    table = GAME_TABLES["crash"]
    bet = table.snap(33)               # → 30.0
    saved = PersistedEconomy.from_store(store)
"""

from __future__ import annotations

import logging
import math
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from config.settings import StorageConfig

logger = logging.getLogger("moodcasino.schema")


# ═══════════════════════════════════════════════════════════════
# Bet Configuration
# ═══════════════════════════════════════════════════════════════

class BetConfig(BaseModel):
    """Bet limits for one game table."""
    default_bet: float = 10.0
    min_bet: float = 5.0
    max_bet: float = 500.0
    bet_step: float = 5.0             # stepper increment (+/- buttons)

    @field_validator("min_bet", "bet_step")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def _default_in_range(self) -> "BetConfig":
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must be >= min_bet")
        self.default_bet = self.clamp(self.default_bet)
        return self

    def clamp(self, amount: float) -> float:
        return max(self.min_bet, min(self.max_bet, float(amount)))

    def snap(self, amount: float) -> float:
        """Nearest stepper position, counted in whole steps from the default bet."""
        steps = math.floor((float(amount) - self.default_bet) / self.bet_step + 0.5)
        return self.clamp(self.default_bet + steps * self.bet_step)


GAME_TABLES: dict[str, BetConfig] = {
    "slots": BetConfig(default_bet=10),
    "wheel": BetConfig(default_bet=25),
    "crash": BetConfig(default_bet=20, bet_step=10),
    "drop": BetConfig(default_bet=10),
    "hand": BetConfig(default_bet=10),
}


# ═══════════════════════════════════════════════════════════════
# Persisted Economy
# ═══════════════════════════════════════════════════════════════

class PersistedEconomy(BaseModel):
    """Typed view of the economy keys in the key-value store.

    Every field is optional: None means "nothing usable was stored".
    """
    balance: Optional[float] = None
    balance_initialized: bool = False
    current_mood: Optional[str] = None
    session_wins: int = 0
    last_daily_bonus: Optional[float] = None   # seconds since epoch

    dropped: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("balance", "last_daily_bonus", mode="before")
    @classmethod
    def _lenient_float(cls, v):
        if v is None or isinstance(v, bool):
            return None
        try:
            f = float(v)
        except (TypeError, ValueError):
            return None
        if math.isnan(f) or math.isinf(f):
            return None
        return f

    @field_validator("balance_initialized", mode="before")
    @classmethod
    def _lenient_bool(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes")
        return bool(v)

    @field_validator("current_mood", mode="before")
    @classmethod
    def _lenient_str(cls, v):
        return v if isinstance(v, str) else None

    @field_validator("session_wins", mode="before")
    @classmethod
    def _lenient_int(cls, v):
        if v is None or isinstance(v, bool):
            return 0
        try:
            return max(0, int(v))
        except (TypeError, ValueError):
            return 0

    @classmethod
    def from_store(cls, store) -> "PersistedEconomy":
        """Read and validate the economy keys. Never raises on bad data."""
        raw = {
            "balance": store.get(StorageConfig.BALANCE_KEY),
            "balance_initialized": store.get(StorageConfig.BALANCE_INITIALIZED_KEY, False),
            "current_mood": store.get(StorageConfig.CURRENT_MOOD_KEY),
            "session_wins": store.get(StorageConfig.SESSION_WINS_KEY, 0),
            "last_daily_bonus": store.get(StorageConfig.LAST_DAILY_BONUS_KEY),
        }
        saved = cls.model_validate(raw)

        for key in ("balance", "current_mood", "last_daily_bonus"):
            if raw[key] is not None and getattr(saved, key) is None:
                saved.dropped.append(key)
        if raw["session_wins"] not in (None, 0) and saved.session_wins == 0:
            saved.dropped.append("session_wins")
        if saved.dropped:
            logger.warning(f"Ignoring corrupt saved values: {', '.join(saved.dropped)}")
        return saved
