from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional


@dataclass
class Session:
    identity: str
    handle: Any = None
    display_name: Optional[str] = None
    match_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.display_name is not None


class ConnectionRegistry:
    """Live sessions keyed by connection identity.

    Not thread-safe on its own; MatchEngine calls it with its lock held.
    Callers that need to clean up a session's match must do so before
    calling unregister, since the session is gone afterwards.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def register(self, identity: str, handle: Any = None) -> Session:
        session = Session(identity=identity, handle=handle)
        self._sessions[identity] = session
        return session

    def bind(self, identity: str, display_name: str) -> Optional[Session]:
        # Names are labels only; two sessions may share one
        session = self._sessions.get(identity)
        if session is not None:
            session.display_name = display_name
        return session

    def lookup(self, identity: str) -> Optional[Session]:
        return self._sessions.get(identity)

    def unregister(self, identity: str) -> Optional[Session]:
        return self._sessions.pop(identity, None)

    def __contains__(self, identity: object) -> bool:
        return identity in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))
