#!/usr/bin/env python3
"""
Tests for the Monte Carlo simulation layer

Validates:
1. simulate() is reproducible for a fixed seed
2. Mood multiplier scales RTP exactly
3. Every hand / drop / wheel round credits something (hit rate 100%)
4. Slots hit rate matches 1 - (24/25)^3
5. Wheel average multiplier matches the uniform segment mean
6. Crash simulation honours the cash-out target
7. SimResult.to_dict() is JSON-serializable
8. Simulation never touches the economy
"""

import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from casino_engine.games import GAME_TYPES, get_game_engine
from casino_engine.games.wheel import WHEEL_SEGMENTS
from casino_engine.mood import Mood
from testing_utils import make_economy


def _engine(game_type, **kwargs):
    return get_game_engine(game_type, make_economy(), **kwargs)


# ============================================================
# Tests
# ============================================================

def test_simulation_reproducible():
    """Same seed → identical results for every game."""
    for gt in GAME_TYPES:
        a = _engine(gt).simulate(rounds=5_000, seed=7).to_dict()
        b = _engine(gt).simulate(rounds=5_000, seed=7).to_dict()
        assert a == b, f"{gt}: simulate() not reproducible"
    print(f"✅ simulate() reproducible for {len(GAME_TYPES)} games")


def test_mood_scales_rtp():
    """HOT RTP is exactly CHILL RTP × 1.15 on the same draws."""
    engine = _engine("hand")
    chill = engine.simulate(rounds=20_000, seed=3, mood=Mood.CHILL)
    hot = engine.simulate(rounds=20_000, seed=3, mood=Mood.HOT)
    assert abs(hot.rtp - chill.rtp * 1.15) < 1e-9, f"{hot.rtp} vs {chill.rtp * 1.15}"
    assert hot.mood == "hot"
    print(f"✅ Mood scaling: chill RTP {chill.rtp:.4f} → hot RTP {hot.rtp:.4f}")


def test_always_credit_games():
    """Hand, drop and wheel pay on every round."""
    for gt in ("hand", "drop", "wheel"):
        result = _engine(gt).simulate(rounds=10_000, seed=11)
        assert result.hit_rate == 1.0, f"{gt}: hit rate {result.hit_rate}"
        assert "0x" not in result.distribution
    print("✅ Hand/drop/wheel credit every round")


def test_slots_hit_rate():
    """P(any of 3 rows matches) = 1 - (24/25)^3 ≈ 0.1153."""
    result = _engine("slots").simulate(rounds=100_000, seed=5)
    expected = 1 - (24 / 25) ** 3
    assert abs(result.hit_rate - expected) < 0.005, f"hit rate {result.hit_rate:.4f} vs {expected:.4f}"
    print(f"✅ Slots hit rate {result.hit_rate:.4f} (expected {expected:.4f})")


def test_wheel_average_multiplier():
    """Uniform rotation → each segment equally likely."""
    result = _engine("wheel").simulate(rounds=100_000, seed=9)
    expected = sum(s.multiplier for s in WHEEL_SEGMENTS) / len(WHEEL_SEGMENTS)
    assert abs(result.avg_multiplier - expected) < 0.1, f"{result.avg_multiplier:.4f} vs {expected:.4f}"
    print(f"✅ Wheel avg multiplier {result.avg_multiplier:.4f} (expected {expected:.4f})")


def test_crash_target():
    """Cash-out target caps the win; most rounds survive to 2×."""
    result = _engine("crash").simulate(rounds=50_000, seed=13)
    assert result.max_multiplier_hit < 2.1, f"max {result.max_multiplier_hit}"
    # 41 ticks reach ≈2.0075; P(crash point above it) = (8 - 2.0075) / 6.8
    expected = (8.0 - 2.0075) / 6.8
    assert abs(result.hit_rate - expected) < 0.01, f"hit rate {result.hit_rate:.4f} vs {expected:.4f}"

    cautious = _engine("crash", auto_cash_out=1.3).simulate(rounds=20_000, seed=13)
    assert cautious.hit_rate > result.hit_rate
    print(f"✅ Crash: 2× hit rate {result.hit_rate:.4f}, 1.3× hit rate {cautious.hit_rate:.4f}")


def test_sim_result_json():
    """to_dict() output survives a JSON round trip."""
    data = _engine("drop").simulate(rounds=1_000).to_dict()
    decoded = json.loads(json.dumps(data))
    for key in ("game_type", "rounds", "rtp", "house_edge", "hit_rate", "distribution", "confidence_95"):
        assert key in decoded, f"missing {key}"
    lo, hi = decoded["confidence_95"]
    assert lo <= decoded["house_edge"] <= hi
    print("✅ SimResult JSON-serializable")


def test_simulation_leaves_economy_alone():
    economy = make_economy(balance=123)
    engine = get_game_engine("slots", economy)
    engine.simulate(rounds=2_000)
    assert economy.balance == 123
    assert economy.session_wins == 0
    print("✅ simulate() is side-effect free")


# ============================================================
# Run all tests
# ============================================================

if __name__ == "__main__":
    tests = [
        test_simulation_reproducible,
        test_mood_scales_rtp,
        test_always_credit_games,
        test_slots_hit_rate,
        test_wheel_average_multiplier,
        test_crash_target,
        test_sim_result_json,
        test_simulation_leaves_economy_alone,
    ]

    print(f"\n{'='*60}")
    print(f"Simulation Tests — {len(tests)} tests")
    print(f"{'='*60}\n")

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"❌ {test.__name__}: {e}")
            failed += 1
        print()

    print(f"{'='*60}")
    print(f"Results: {passed} passed, {failed} failed, {passed + failed} total")
    print(f"{'='*60}")

    sys.exit(0 if failed == 0 else 1)
