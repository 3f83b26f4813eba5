"""Storage for sessions and score records.

``Store`` is the seam the score service talks to. Two implementations:

- ``InMemoryStore``: dicts behind a lock; handy for tests and single-process runs.
- ``SqlAlchemyStore``: Flask-SQLAlchemy models; must be used inside an app context.

``consume_session_and_insert_score`` is the one compound operation: the
session is marked consumed and the record inserted together, or neither.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from lab_panic.leaderboard.errors import InvalidSession, StorageFailure
from lab_panic.leaderboard.ranking import BestScore, reduce_best_scores

SCOPES = ('weekly', 'alltime')


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    token: str
    platform: str
    created_at: datetime
    expires_at: datetime
    consumed: bool = False

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class ScoreEntry:
    score_id: str
    player_name: str
    score: int
    session_id: str
    week_key: str
    created_at: datetime
    share_id: str
    platform: Optional[str] = None

    def to_dict(self):
        return {
            'score_id': self.score_id,
            'player_name': self.player_name,
            'score': self.score,
            'weekly_key': self.week_key,
            'created_at': self.created_at.isoformat(),
            'share_slug': self.share_id,
        }


class Store(ABC):

    @abstractmethod
    def create_session(self, session: SessionInfo) -> None:
        ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[SessionInfo]:
        ...

    @abstractmethod
    def consume_session_and_insert_score(self, session_id: str, token: str, entry: ScoreEntry) -> ScoreEntry:
        """Atomically consume the session and persist the entry.

        Raises InvalidSession if the session is gone, the token does not
        match or it was consumed first by someone else.
        """

    @abstractmethod
    def query_best_scores(self, scope: str, week_key: Optional[str] = None) -> List[BestScore]:
        ...

    @abstractmethod
    def list_distinct_weeks(self, limit: int) -> List[str]:
        """Distinct week keys, most recent first."""

    @abstractmethod
    def delete_expired_sessions(self, now: datetime) -> int:
        ...

    @abstractmethod
    def get_score_by_share_id(self, share_id: str) -> Optional[ScoreEntry]:
        ...

    @abstractmethod
    def share_id_exists(self, share_id: str) -> bool:
        ...

    @abstractmethod
    def counts(self) -> Tuple[int, int]:
        """(session count, score count)."""


class InMemoryStore(Store):

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionInfo] = {}
        self._scores: List[ScoreEntry] = []
        self._by_share_id: Dict[str, ScoreEntry] = {}

    def create_session(self, session):
        with self._lock:
            self._sessions[session.session_id] = session

    def get_session(self, session_id):
        with self._lock:
            return self._sessions.get(session_id)

    def consume_session_and_insert_score(self, session_id, token, entry):
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.token != token or session.consumed:
                raise InvalidSession()
            if entry.share_id in self._by_share_id:
                raise StorageFailure("Share identifier collision")
            self._sessions[session_id] = replace(session, consumed=True)
            self._scores.append(entry)
            self._by_share_id[entry.share_id] = entry
            return entry

    def query_best_scores(self, scope, week_key=None):
        with self._lock:
            records = list(self._scores)
        if scope == 'weekly':
            records = [r for r in records if r.week_key == week_key]
        return reduce_best_scores(records)

    def list_distinct_weeks(self, limit):
        with self._lock:
            weeks = {r.week_key for r in self._scores}
        return sorted(weeks, reverse=True)[:limit]

    def delete_expired_sessions(self, now):
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def get_score_by_share_id(self, share_id):
        with self._lock:
            return self._by_share_id.get(share_id)

    def share_id_exists(self, share_id):
        with self._lock:
            return share_id in self._by_share_id

    def counts(self):
        with self._lock:
            return len(self._sessions), len(self._scores)


class SqlAlchemyStore(Store):

    def __init__(self, db):
        from lab_panic.leaderboard.models import GameSession, ScoreRecord
        self._db = db
        self._GameSession = GameSession
        self._ScoreRecord = ScoreRecord

    @contextmanager
    def _transaction(self):
        session = self._db.session
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageFailure() from exc
        except Exception:
            session.rollback()
            raise

    @contextmanager
    def _reading(self):
        try:
            yield self._db.session
        except SQLAlchemyError as exc:
            self._db.session.rollback()
            raise StorageFailure() from exc

    def create_session(self, session):
        with self._transaction() as s:
            s.add(self._GameSession.from_info(session))

    def get_session(self, session_id):
        with self._reading():
            row = self._GameSession.query.filter_by(id=session_id).first()
            return row.to_info() if row else None

    def consume_session_and_insert_score(self, session_id, token, entry):
        GameSession = self._GameSession
        with self._transaction() as s:
            # Conditional update: only one concurrent submitter can flip consumed
            updated = (
                GameSession.query
                .filter_by(id=session_id, start_token=token, consumed=False)
                .update({'consumed': True}, synchronize_session=False)
            )
            if updated != 1:
                raise InvalidSession()
            s.add(self._ScoreRecord.from_entry(entry))
        return entry

    def query_best_scores(self, scope, week_key=None):
        ScoreRecord = self._ScoreRecord
        with self._reading() as s:
            query = s.query(ScoreRecord)
            if scope == 'weekly':
                query = query.filter(ScoreRecord.week_key == week_key)
            records = [row.to_entry() for row in query.all()]
        return reduce_best_scores(records)

    def list_distinct_weeks(self, limit):
        ScoreRecord = self._ScoreRecord
        with self._reading() as s:
            rows = (
                s.query(ScoreRecord.week_key)
                .distinct()
                .order_by(ScoreRecord.week_key.desc())
                .limit(limit)
                .all()
            )
        return [row[0] for row in rows]

    def delete_expired_sessions(self, now):
        GameSession = self._GameSession
        with self._transaction():
            deleted = (
                GameSession.query
                .filter(GameSession.expires_at < now)
                .delete(synchronize_session=False)
            )
        return deleted

    def get_score_by_share_id(self, share_id):
        with self._reading():
            row = self._ScoreRecord.query.filter_by(share_id=share_id).first()
            return row.to_entry() if row else None

    def share_id_exists(self, share_id):
        with self._reading():
            return self._ScoreRecord.query.filter_by(share_id=share_id).first() is not None

    def counts(self):
        with self._reading():
            return self._GameSession.query.count(), self._ScoreRecord.query.count()
