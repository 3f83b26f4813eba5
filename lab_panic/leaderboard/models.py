from datetime import timezone

from lab_panic.leaderboard import db
from lab_panic.leaderboard.store import ScoreEntry, SessionInfo


def _as_utc(value):
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.String(36), primary_key=True)
    start_token = db.Column(db.String(64), nullable=False)
    platform = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    consumed = db.Column(db.Boolean, default=False, nullable=False)

    @classmethod
    def from_info(cls, info: SessionInfo) -> 'GameSession':
        return cls(
            id=info.session_id,
            start_token=info.token,
            platform=info.platform,
            created_at=info.created_at,
            expires_at=info.expires_at,
            consumed=info.consumed,
        )

    def to_info(self) -> SessionInfo:
        return SessionInfo(
            session_id=self.id,
            token=self.start_token,
            platform=self.platform,
            created_at=_as_utc(self.created_at),
            expires_at=_as_utc(self.expires_at),
            consumed=bool(self.consumed),
        )


class ScoreRecord(db.Model):
    __tablename__ = 'score_record'
    id = db.Column(db.String(36), primary_key=True)
    player_name = db.Column(db.String(12), nullable=False, index=True)
    score = db.Column(db.BigInteger, nullable=False)
    # One record per session; no FK so expired sessions can be reaped
    session_id = db.Column(db.String(36), nullable=False, unique=True)
    week_key = db.Column(db.String(10), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    share_id = db.Column(db.String(16), nullable=False, unique=True, index=True)
    platform = db.Column(db.String(16), nullable=True)

    @classmethod
    def from_entry(cls, entry: ScoreEntry) -> 'ScoreRecord':
        return cls(
            id=entry.score_id,
            player_name=entry.player_name,
            score=entry.score,
            session_id=entry.session_id,
            week_key=entry.week_key,
            created_at=entry.created_at,
            share_id=entry.share_id,
            platform=entry.platform,
        )

    def to_entry(self) -> ScoreEntry:
        return ScoreEntry(
            score_id=self.id,
            player_name=self.player_name,
            score=int(self.score),
            session_id=self.session_id,
            week_key=self.week_key,
            created_at=_as_utc(self.created_at),
            share_id=self.share_id,
            platform=self.platform,
        )
