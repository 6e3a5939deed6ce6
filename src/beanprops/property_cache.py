"""
Per-controller cache of resolved property chains.

Keys are structured dotted paths (PropertyPath), values are the chain of
BoundProperty objects walked to reach the terminal property. Discovery runs
outside the lock; only the insert is atomic, so racing threads may discover the
same path twice but exactly one chain wins the slot.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from beanprops.binding import BoundProperty

PropertyChain = Tuple[BoundProperty, ...]


@dataclass(frozen=True)
class PropertyPath:
    """Immutable cache key: the trimmed, non-empty segments of a dotted path."""
    segments: Tuple[str, ...]

    def __str__(self) -> str:
        return '.'.join(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def is_nested(self) -> bool:
        return len(self.segments) > 1

    @classmethod
    def parse(cls, path: str, segment_budget: int = -1) -> 'PropertyPath':
        """Split ``path`` on dots, honouring the segment budget.

        A negative budget splits everywhere. A budget of N yields at most N + 1
        pieces; the last piece keeps its remaining dots, so with budget 0 the
        whole of "bean.value" is looked up as one (nonexistent) name.
        """
        if not isinstance(path, str):
            raise TypeError(f"Property path must be a string, got {type(path).__name__}")
        pieces = path.split('.') if segment_budget < 0 else path.split('.', segment_budget)
        return cls(tuple(piece.strip() for piece in pieces if piece.strip()))


class PropertyCache:
    """Thread-safe mapping PropertyPath -> PropertyChain.

    Example:
        cache = PropertyCache()
        chain = cache.get_or_bind(PropertyPath.parse('bean.value'), lambda: resolve(...))
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._chains: Dict[PropertyPath, PropertyChain] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._chains)

    def __contains__(self, key: PropertyPath) -> bool:
        with self._lock:
            return key in self._chains

    def get(self, key: PropertyPath) -> Optional[PropertyChain]:
        with self._lock:
            return self._chains.get(key)

    def put_if_absent(self, key: PropertyPath, chain: PropertyChain) -> PropertyChain:
        """Insert ``chain`` unless another one got there first; return the cached chain."""
        with self._lock:
            return self._chains.setdefault(key, chain)

    def get_or_bind(self, key: PropertyPath, bind_fn: Callable[[], PropertyChain]) -> PropertyChain:
        """Cached chain for ``key``, binding it with ``bind_fn`` on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        # bind_fn may invoke user accessors; never hold the lock across it
        return self.put_if_absent(key, bind_fn())

    def replace(self, key: PropertyPath, chain: PropertyChain) -> None:
        with self._lock:
            self._chains[key] = chain

    def evict(self, key: PropertyPath) -> None:
        with self._lock:
            self._chains.pop(key, None)

    def items(self) -> List[Tuple[PropertyPath, PropertyChain]]:
        """Snapshot of the entries, safe to iterate while the cache changes."""
        with self._lock:
            return list(self._chains.items())

    def clear(self) -> None:
        with self._lock:
            self._chains.clear()
