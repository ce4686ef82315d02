from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

from shudenout.core.breaker import BreakerConfig, CircuitBreaker


class BreakerRegistry:
    """In-memory, process-lifetime breakers keyed by upstream name."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self.breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, name: str, config: Optional[BreakerConfig] = None) -> CircuitBreaker:
        with self._lock:
            breaker = self.breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(name, config or BreakerConfig(), clock=self.clock)
                self.breakers[name] = breaker
            return breaker

    def find(self, name: str) -> Optional[CircuitBreaker]:
        return self.breakers.get(name)

    def names(self) -> List[str]:
        return list(self.breakers.keys())

    def states(self) -> Dict[str, dict]:
        return {name: breaker.stats() for name, breaker in list(self.breakers.items())}

    def reset(self, name: str) -> bool:
        breaker = self.find(name)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def reset_all(self) -> List[str]:
        names = self.names()
        for name in names:
            self.breakers[name].reset()
        return names
