"""
MOOD CASINO — Game Engines

Five mini-games sharing one EconomyEngine. Each engine owns its round state
machine and settles wins through the economy, which applies the mood bonus.

Usage:
    from casino_engine.games import get_game_engine
    engine = get_game_engine("crash", economy, scheduler=sched)
    engine.start()
    sched.advance(1.0)
    engine.cash_out()

    # Monte Carlo RTP check (never touches the economy)
    result = engine.simulate(rounds=100_000)
"""

from casino_engine.games.base import BaseGameEngine, RoundPhase, RoundState, SimResult
from casino_engine.games.slots import SlotEngine
from casino_engine.games.wheel import WheelEngine
from casino_engine.games.crash import CrashEngine
from casino_engine.games.drop import DropEngine
from casino_engine.games.hand_match import HandMatchEngine

GAME_ENGINES = {
    "slots": SlotEngine,
    "wheel": WheelEngine,
    "crash": CrashEngine,
    "drop": DropEngine,
    "hand": HandMatchEngine,
}

GAME_TYPES = list(GAME_ENGINES.keys())


def get_game_engine(game_type: str, economy, **kwargs) -> BaseGameEngine:
    """Build the engine for a game type, bound to the shared economy.

    Pass the host's scheduler. If omitted, the engine creates a private
    ManualScheduler and its rounds only settle when engine.scheduler is
    advanced. CasinoSession.game() always passes the session scheduler.
    """
    cls = GAME_ENGINES.get(game_type.lower())
    if cls is None:
        raise ValueError(f"Unknown game type: {game_type}. Available: {GAME_TYPES}")
    return cls(economy, **kwargs)


__all__ = [
    "BaseGameEngine", "RoundPhase", "RoundState", "SimResult",
    "SlotEngine", "WheelEngine", "CrashEngine", "DropEngine", "HandMatchEngine",
    "GAME_ENGINES", "GAME_TYPES", "get_game_engine",
]
