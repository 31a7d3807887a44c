"""First-launch grant: seed the wallet once, guarded by its own flag."""
import logging

from config.database import KeyValueStore
from config.settings import EconomyConfig, StorageConfig

logger = logging.getLogger("moodcasino.bootstrap")


def grant_initial_balance(store: KeyValueStore) -> bool:
    """Write the first-launch balance unless it was already granted.

    Runs before the EconomyEngine loads. Returns True when the grant happened.
    """
    if store.get_bool(StorageConfig.INITIAL_COINS_FLAG):
        return False
    store.set(StorageConfig.BALANCE_KEY, EconomyConfig.FIRST_LAUNCH_BALANCE)
    store.set(StorageConfig.INITIAL_COINS_FLAG, True)
    logger.info(f"First launch: granted {EconomyConfig.FIRST_LAUNCH_BALANCE:.0f} coins")
    return True
