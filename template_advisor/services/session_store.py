"""
In-memory interview session store.

The interview itself runs elsewhere; this store holds the session snapshots
the recommendation workflows read and update.
"""

from typing import Dict, Iterable, Optional

import structlog

from ..models.session import InterviewSession

logger = structlog.get_logger(__name__)


class InMemorySessionStore:
    def __init__(self, sessions: Optional[Iterable[InterviewSession]] = None):
        self._sessions: Dict[str, InterviewSession] = {s.id: s for s in sessions or []}

    def get(self, session_id: str) -> Optional[InterviewSession]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def save(self, session: InterviewSession) -> None:
        self._sessions[session.id] = session.model_copy(deep=True)
        logger.debug("Session saved", session_id=session.id, recommendations=len(session.recommendations))

    def __len__(self) -> int:
        return len(self._sessions)
