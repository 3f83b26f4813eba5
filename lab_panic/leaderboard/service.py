"""Score protocol: sessions, submissions and leaderboards.

Transport-free so that HTTP routes and tests share the same logic. Time
comes from an injectable clock returning aware UTC datetimes.
"""

import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from lab_panic.leaderboard.errors import (
    InvalidName,
    InvalidPlatform,
    InvalidScope,
    InvalidScore,
    InvalidSession,
    MissingFields,
    SessionExpired,
    ShareNotFound,
)
from lab_panic.leaderboard.ranking import LeaderboardEntry, leaderboard, rank_of, week_key
from lab_panic.leaderboard.store import SCOPES, ScoreEntry, SessionInfo, Store

PLATFORMS = ('mobile', 'desktop')
MAX_SCORE = 1_000_000_000
NAME_PATTERN = re.compile(r'[A-Za-z0-9 _-]{1,12}')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_player_name(name) -> bool:
    return isinstance(name, str) and NAME_PATTERN.fullmatch(name) is not None


def validate_score(score) -> bool:
    # bool is an int subclass; never a score
    if isinstance(score, bool):
        return False
    if isinstance(score, float):
        if not score.is_integer():
            return False
        score = int(score)
    if not isinstance(score, int):
        return False
    return 0 <= score <= MAX_SCORE


def _token_matches(expected: str, given: str) -> bool:
    # compare_digest refuses non-ASCII str; bytes always compare
    return secrets.compare_digest(
        expected.encode('utf-8', 'surrogatepass'),
        given.encode('utf-8', 'surrogatepass'),
    )


@dataclass(frozen=True)
class SubmissionResult:
    entry: ScoreEntry
    weekly_rank: int
    alltime_rank: int
    share_url: str

    def to_dict(self):
        data = self.entry.to_dict()
        data.update({
            'weekly_rank': self.weekly_rank,
            'alltime_rank': self.alltime_rank,
            'share_url': self.share_url,
        })
        return data


@dataclass(frozen=True)
class LeaderboardPage:
    scope: str
    week_key: Optional[str]
    updated_at: datetime
    entries: List[LeaderboardEntry]

    def to_dict(self):
        return {
            'scope': self.scope,
            'weekly_key': self.week_key,
            'updated_at': self.updated_at.isoformat(),
            'entries': [e.to_dict() for e in self.entries],
        }


class ScoreService:

    def __init__(
        self,
        store: Store,
        session_ttl: timedelta = timedelta(hours=2),
        clock: Callable[[], datetime] = utc_now,
        default_limit: int = 25,
        max_limit: int = 100,
        weeks_cap: int = 52,
    ):
        self.store = store
        self.session_ttl = session_ttl
        self.clock = clock
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.weeks_cap = weeks_cap

    def start_session(self, platform) -> SessionInfo:
        if not platform or platform not in PLATFORMS:
            raise InvalidPlatform()
        now = self.clock()
        session = SessionInfo(
            session_id=str(uuid.uuid4()),
            token=secrets.token_urlsafe(16),
            platform=platform,
            created_at=now,
            expires_at=now + self.session_ttl,
        )
        self.store.create_session(session)
        return session

    def submit_score(self, session_id, token, player_name, score, platform, base_url='') -> SubmissionResult:
        """Validate a submission, consume its session and rank the score.

        Checks run in a fixed order: missing fields, session match, expiry,
        name, score. Only a fully valid submission consumes the session.
        """
        if not session_id or not token or not player_name or score is None or not platform:
            raise MissingFields()

        if not isinstance(session_id, str) or not isinstance(token, str):
            raise InvalidSession()
        session = self.store.get_session(session_id)
        if session is None or session.consumed or not _token_matches(session.token, token):
            raise InvalidSession()

        now = self.clock()
        if session.is_expired(now):
            raise SessionExpired()

        if not validate_player_name(player_name):
            raise InvalidName()
        if not validate_score(score):
            raise InvalidScore()

        entry = ScoreEntry(
            score_id=str(uuid.uuid4()),
            player_name=player_name,
            score=int(score),
            session_id=session_id,
            week_key=week_key(now),
            created_at=now,
            share_id=self._new_share_id(),
            platform=platform,
        )
        self.store.consume_session_and_insert_score(session_id, token, entry)

        weekly = self.store.query_best_scores('weekly', entry.week_key)
        alltime = self.store.query_best_scores('alltime')
        return SubmissionResult(
            entry=entry,
            weekly_rank=rank_of(entry.score, entry.created_at, weekly),
            alltime_rank=rank_of(entry.score, entry.created_at, alltime),
            share_url=f"{base_url.rstrip('/')}/share/{entry.share_id}",
        )

    def _new_share_id(self) -> str:
        while True:
            share_id = secrets.token_urlsafe(6)
            if not self.store.share_id_exists(share_id):
                return share_id

    def clamp_limit(self, limit) -> int:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = self.default_limit
        return max(1, min(self.max_limit, limit))

    def get_leaderboard(self, scope, limit=None, week=None) -> LeaderboardPage:
        if scope not in SCOPES:
            raise InvalidScope()
        now = self.clock()
        key = (week or week_key(now)) if scope == 'weekly' else None
        best = self.store.query_best_scores(scope, key)
        return LeaderboardPage(
            scope=scope,
            week_key=key,
            updated_at=now,
            entries=leaderboard(best, self.clamp_limit(limit)),
        )

    def get_available_weeks(self) -> List[str]:
        return self.store.list_distinct_weeks(self.weeks_cap)

    def get_shared_score(self, share_id) -> ScoreEntry:
        entry = self.store.get_score_by_share_id(share_id)
        if entry is None:
            raise ShareNotFound()
        return entry

    def reap_expired_sessions(self) -> int:
        return self.store.delete_expired_sessions(self.clock())
