# src/circuitsim_core/cache/service.py
"""
Provides the single-slot factorization cache used by the MNA solver.
"""
import logging
from typing import Any, Dict, Optional

from .keys import FactorizationKey

logger = logging.getLogger(__name__)


class FactorizationCache:
    """
    Holds at most one (key, factorization) pair.

    Consecutive solves of an unchanged linear circuit (an AC source only moves
    the right-hand side) hit the slot. Any matrix change evicts it. The solver
    invalidates the slot on `set_circuit` and after every non-converged outer
    iteration.
    """

    def __init__(self):
        self._key: Optional[FactorizationKey] = None
        self._value: Any = None
        self.clear_stats()
        logger.debug("FactorizationCache instance created.")

    def get(self, key: FactorizationKey) -> Any:
        """Returns the cached factorization for `key`, or None."""
        if self._key is not None and self._key == key:
            self._stats['hits'] += 1
            logger.debug(f"Factorization cache HIT for key: {str(key)[:150]}...")
            return self._value

        self._stats['misses'] += 1
        logger.debug(f"Factorization cache MISS for key: {str(key)[:150]}...")
        return None

    def put(self, key: FactorizationKey, value: Any) -> None:
        """Stores `value` in the slot, replacing whatever was there."""
        self._key = key
        self._value = value

    def invalidate(self) -> None:
        self._key = None
        self._value = None

    @property
    def is_populated(self) -> bool:
        return self._key is not None

    def get_stats(self) -> Dict[str, int]:
        """Returns a copy of the hit/miss statistics."""
        return self._stats.copy()

    def clear_stats(self) -> None:
        self._stats = {'hits': 0, 'misses': 0}
