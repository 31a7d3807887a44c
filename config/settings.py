"""
MOOD CASINO — Configuration

Economy constants and storage locations. Every value can be overridden from
the environment (or a local .env file) so balancing tweaks don't need a code
change.

    MOOD_CASINO_STARTING_BALANCE=1000     # balance when nothing is stored
    MOOD_CASINO_FIRST_LAUNCH_BALANCE=5000 # one-time grant on very first run
    MOOD_CASINO_DAILY_BONUS=500
    MOOD_CASINO_DAILY_BONUS_THRESHOLD=100 # bonus only offered below this
    MOOD_CASINO_BOOST_PRICE=100
    MOOD_CASINO_BOOST_SECONDS=1800
    MOOD_CASINO_DB_PATH=moodcasino.db
"""

import os
from dotenv import load_dotenv

load_dotenv()


class EconomyConfig:

    # --- Balance ---
    STARTING_BALANCE = float(os.getenv("MOOD_CASINO_STARTING_BALANCE", "1000"))
    FIRST_LAUNCH_BALANCE = float(os.getenv("MOOD_CASINO_FIRST_LAUNCH_BALANCE", "5000"))

    # --- Daily bonus ---
    DAILY_BONUS = float(os.getenv("MOOD_CASINO_DAILY_BONUS", "500"))
    DAILY_BONUS_THRESHOLD = float(os.getenv("MOOD_CASINO_DAILY_BONUS_THRESHOLD", "100"))

    # --- Hot Mood Booster (shop) ---
    BOOST_PRICE = float(os.getenv("MOOD_CASINO_BOOST_PRICE", "100"))
    BOOST_SECONDS = int(os.getenv("MOOD_CASINO_BOOST_SECONDS", "1800"))  # 30 min


class StorageConfig:

    DB_PATH = os.getenv("MOOD_CASINO_DB_PATH", "moodcasino.db")

    # Persistence keys (kept identical to the mobile build so saves carry over)
    BALANCE_KEY = "balance"
    BALANCE_INITIALIZED_KEY = "balanceInitialized"
    CURRENT_MOOD_KEY = "currentMood"
    SESSION_WINS_KEY = "sessionWins"
    LAST_DAILY_BONUS_KEY = "lastDailyBonusDate"
    INITIAL_COINS_FLAG = "didAddInitialCoins"


class TimingConfig:
    """Presentation delays (seconds) that rounds wait on before settling."""

    SLOTS_SETTLE = 2.6
    WHEEL_BASE_SPIN = 3.0
    WHEEL_DEGREES_PER_EXTRA_SECOND = 120.0
    CRASH_TICK = 0.05
    DROP_STEP = 0.12
    HAND_SETTLE = 0.3
