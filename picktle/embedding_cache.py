# picktle/embedding_cache.py

import threading
from typing import Dict, List, Optional


class EmbeddingCache:
    """
    Process-local cache of text embeddings.

    - No TTL, no eviction, no persistence.
    - Keys are the trimmed text exactly as supplied (case-sensitive).
    - Overwriting a key is harmless: the provider returns the same vector.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._vectors: Dict[str, List[float]] = {}

    def get(self, key: str) -> Optional[List[float]]:
        with self._lock:
            return self._vectors.get(key)

    def put(self, key: str, vector: List[float]) -> None:
        if not key:
            return
        with self._lock:
            self._vectors[key] = list(vector)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._vectors

    def __len__(self) -> int:
        with self._lock:
            return len(self._vectors)

    def keys(self) -> List[str]:
        """
        Return a copy of all keys currently cached.
        """
        with self._lock:
            return list(self._vectors)

    def clear(self) -> int:
        """
        Drop every cached vector. Returns how many were removed.
        """
        with self._lock:
            removed = len(self._vectors)
            self._vectors.clear()
        return removed
