from typing import List, Optional, Tuple


class MatchmakingQueue:
    """FIFO of identities waiting for an opponent.

    Plain arrival-order pairing: no skill matching, no rematch avoidance.
    Not thread-safe on its own; MatchEngine calls it with its lock held.
    """

    def __init__(self):
        self._waiting: List[str] = []

    def enqueue(self, identity: str) -> bool:
        """Append identity. Returns False (and changes nothing) if already queued."""
        if identity in self._waiting:
            return False
        self._waiting.append(identity)
        return True

    def dequeue_pair(self) -> Optional[Tuple[str, str]]:
        """Remove and return the two oldest entries, or None if fewer than two wait."""
        if len(self._waiting) < 2:
            return None
        first = self._waiting.pop(0)
        second = self._waiting.pop(0)
        return first, second

    def remove(self, identity: str) -> bool:
        if identity in self._waiting:
            self._waiting.remove(identity)
            return True
        return False

    def snapshot(self) -> List[str]:
        return list(self._waiting)

    def __contains__(self, identity: object) -> bool:
        return identity in self._waiting

    def __len__(self) -> int:
        return len(self._waiting)
