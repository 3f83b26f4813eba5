"""
Tests for the score service: sessions, submissions, leaderboards, reaping.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from lab_panic.leaderboard.errors import (
    InvalidName,
    InvalidPlatform,
    InvalidScope,
    InvalidScore,
    InvalidSession,
    MissingFields,
    SessionExpired,
    ShareNotFound,
    StorageFailure,
)
from lab_panic.leaderboard.ranking import week_key
from lab_panic.leaderboard.service import ScoreService, validate_player_name, validate_score
from lab_panic.leaderboard.store import InMemoryStore, ScoreEntry


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def service(store, clock):
    return ScoreService(store, clock=clock)


def submit(service, name, score, platform="desktop"):
    session = service.start_session(platform)
    return service.submit_score(session.session_id, session.token, name, score, platform, "http://lab.test")


def entry_for(session, name, score, now, share_id):
    return ScoreEntry(
        score_id=f"score-{share_id}",
        player_name=name,
        score=score,
        session_id=session.session_id,
        week_key=week_key(now),
        created_at=now,
        share_id=share_id,
        platform=session.platform,
    )


class TestStartSession:
    """Session creation."""

    @pytest.mark.parametrize("platform", ["mobile", "desktop"])
    def test_valid_platforms(self, service, clock, platform):
        session = service.start_session(platform)
        assert session.platform == platform
        assert session.created_at == clock.now
        assert session.expires_at == clock.now + timedelta(hours=2)
        assert not session.consumed
        assert session.token

    @pytest.mark.parametrize("platform", ["tablet", "", None, "Mobile"])
    def test_invalid_platform(self, service, platform):
        with pytest.raises(InvalidPlatform):
            service.start_session(platform)

    def test_sessions_are_unique(self, service):
        a = service.start_session("mobile")
        b = service.start_session("mobile")
        assert a.session_id != b.session_id
        assert a.token != b.token


class TestValidation:
    """Name and score rules."""

    @pytest.mark.parametrize("name", ["Ann_Lee-01", "a", "A" * 12, "Dr Lab", "x-_ 9"])
    def test_valid_names(self, name):
        assert validate_player_name(name)

    @pytest.mark.parametrize("name", ["", "A" * 13, "Bad!Name", "Zoë", "tab\tname", None, 42])
    def test_invalid_names(self, name):
        assert not validate_player_name(name)

    @pytest.mark.parametrize("score", [0, 1, 1_000_000_000, 250.0])
    def test_valid_scores(self, score):
        assert validate_score(score)

    @pytest.mark.parametrize("score", [-1, 1_000_000_001, 2.5, "100", True, float("inf")])
    def test_invalid_scores(self, score):
        assert not validate_score(score)


class TestSubmitScore:
    """Submission protocol."""

    def test_valid_submission(self, service, store, clock):
        result = submit(service, "Alice", 120)

        assert result.entry.player_name == "Alice"
        assert result.entry.score == 120
        assert result.entry.week_key == "2026-W10"
        assert result.entry.created_at == clock.now
        assert result.weekly_rank == 1
        assert result.alltime_rank == 1
        assert result.share_url == f"http://lab.test/share/{result.entry.share_id}"
        assert store.counts() == (1, 1)

    def test_response_fields(self, service):
        data = submit(service, "Alice", 120).to_dict()
        assert set(data) == {
            "score_id", "player_name", "score", "weekly_rank", "alltime_rank",
            "weekly_key", "created_at", "share_slug", "share_url",
        }

    def test_replay_rejected(self, service):
        session = service.start_session("desktop")
        service.submit_score(session.session_id, session.token, "Alice", 10, "desktop")

        with pytest.raises(InvalidSession):
            service.submit_score(session.session_id, session.token, "Alice", 99999, "desktop")

    def test_wrong_token_rejected_and_session_kept(self, service):
        session = service.start_session("desktop")
        with pytest.raises(InvalidSession):
            service.submit_score(session.session_id, "forged", "Alice", 10, "desktop")

        result = service.submit_score(session.session_id, session.token, "Alice", 10, "desktop")
        assert result.entry.score == 10

    def test_unknown_session(self, service):
        with pytest.raises(InvalidSession):
            service.submit_score("nope", "nope", "Alice", 10, "desktop")

    @pytest.mark.parametrize("token", ["tök", "☃" * 22, "\ud800"])
    def test_non_ascii_token_rejected(self, service, token):
        session = service.start_session("desktop")
        with pytest.raises(InvalidSession):
            service.submit_score(session.session_id, token, "Alice", 10, "desktop")
        assert not service.store.get_session(session.session_id).consumed

    @pytest.mark.parametrize("session_id", [["x"], {"id": "x"}, 12345])
    def test_non_string_session_id_rejected(self, service, session_id):
        with pytest.raises(InvalidSession):
            service.submit_score(session_id, "token", "Alice", 10, "desktop")

    def test_non_string_token_rejected(self, service):
        session = service.start_session("desktop")
        with pytest.raises(InvalidSession):
            service.submit_score(session.session_id, [session.token], "Alice", 10, "desktop")

    def test_expired_session(self, service, clock):
        session = service.start_session("mobile")
        clock.advance(hours=2, seconds=1)
        with pytest.raises(SessionExpired):
            service.submit_score(session.session_id, session.token, "Alice", 10, "mobile")

    def test_expiry_boundary_accepted(self, service, clock):
        """Exactly at expiry is still valid; only later is expired."""
        session = service.start_session("mobile")
        clock.advance(hours=2)
        result = service.submit_score(session.session_id, session.token, "Alice", 10, "mobile")
        assert result.entry.score == 10

    @pytest.mark.parametrize("field", ["session_id", "token", "player_name", "score", "platform"])
    def test_missing_fields(self, service, field):
        session = service.start_session("desktop")
        args = {
            "session_id": session.session_id,
            "token": session.token,
            "player_name": "Alice",
            "score": 10,
            "platform": "desktop",
        }
        args[field] = None
        with pytest.raises(MissingFields):
            service.submit_score(**args)

    def test_zero_score_is_not_missing(self, service):
        assert submit(service, "Zero", 0).entry.score == 0

    def test_check_order_session_before_name(self, service):
        """A bad session is reported before a bad name."""
        with pytest.raises(InvalidSession):
            service.submit_score("nope", "nope", "Bad!Name", -5, "desktop")

    def test_expiry_before_name(self, service, clock):
        session = service.start_session("desktop")
        clock.advance(hours=3)
        with pytest.raises(SessionExpired):
            service.submit_score(session.session_id, session.token, "Bad!Name", 10, "desktop")

    def test_name_before_score(self, service):
        session = service.start_session("desktop")
        with pytest.raises(InvalidName):
            service.submit_score(session.session_id, session.token, "Bad!Name", -5, "desktop")

    def test_invalid_score(self, service):
        session = service.start_session("desktop")
        with pytest.raises(InvalidScore):
            service.submit_score(session.session_id, session.token, "Alice", 1_000_000_001, "desktop")

    def test_rejected_submission_keeps_session(self, service):
        """Validation failures do not consume the session."""
        session = service.start_session("desktop")
        with pytest.raises(InvalidName):
            service.submit_score(session.session_id, session.token, "A" * 13, 10, "desktop")
        with pytest.raises(InvalidScore):
            service.submit_score(session.session_id, session.token, "Alice", -1, "desktop")

        result = service.submit_score(session.session_id, session.token, "Alice", 10, "desktop")
        assert result.entry.player_name == "Alice"

    def test_float_score_stored_as_int(self, service):
        result = submit(service, "Alice", 300.0)
        assert result.entry.score == 300
        assert isinstance(result.entry.score, int)

    def test_ranks(self, service, clock):
        submit(service, "Alice", 300)
        clock.advance(minutes=1)
        submit(service, "Bob", 200)
        clock.advance(minutes=1)
        result = submit(service, "Cara", 250)

        assert result.weekly_rank == 2
        assert result.alltime_rank == 2

    def test_weekly_rank_only_counts_this_week(self, service, clock):
        submit(service, "Alice", 1000)
        clock.advance(weeks=1)
        result = submit(service, "Bob", 10)

        assert result.weekly_rank == 1
        assert result.alltime_rank == 2

    def test_own_higher_best_counts_in_rank(self, service, clock):
        """A lower score ranks behind the player's own earlier best."""
        submit(service, "Alice", 200)
        clock.advance(minutes=1)
        submit(service, "Bob", 150)
        clock.advance(minutes=1)
        result = submit(service, "Alice", 100)

        assert result.weekly_rank == 3
        assert result.alltime_rank == 3

    def test_share_ids_unique(self, service):
        slugs = {submit(service, f"P{i}", i).entry.share_id for i in range(30)}
        assert len(slugs) == 30

    def test_share_collision_retries(self, service, monkeypatch):
        """A share id already in use is redrawn."""
        first = submit(service, "Alice", 1)
        session = service.start_session("desktop")

        slugs = iter([first.entry.share_id, "fresh-slug"])
        monkeypatch.setattr(
            "lab_panic.leaderboard.service.secrets.token_urlsafe",
            lambda nbytes=None: next(slugs),
        )
        result = service.submit_score(session.session_id, session.token, "Bob", 2, "desktop")
        assert result.entry.share_id == "fresh-slug"


class TestAtomicConsume:
    """Store-level single consumption."""

    def test_second_consume_fails(self, service, store, clock):
        """Two submitters that both saw an unconsumed session: one wins."""
        session = service.start_session("desktop")
        first = entry_for(session, "Alice", 10, clock.now, "share-a")
        second = entry_for(session, "Mallory", 999, clock.now, "share-b")

        store.consume_session_and_insert_score(session.session_id, session.token, first)
        with pytest.raises(InvalidSession):
            store.consume_session_and_insert_score(session.session_id, session.token, second)

        assert store.get_session(session.session_id).consumed
        assert store.counts() == (1, 1)
        assert store.get_score_by_share_id("share-b") is None

    def test_share_collision_inserts_nothing(self, service, store):
        first = submit(service, "Alice", 1)
        session = service.start_session("desktop")
        clash = replace(first.entry, score_id="other", session_id=session.session_id)

        with pytest.raises(StorageFailure):
            store.consume_session_and_insert_score(session.session_id, session.token, clash)

        assert not store.get_session(session.session_id).consumed
        assert store.counts() == (2, 1)


class TestLeaderboard:
    """Leaderboard queries."""

    def test_alice_bob_example(self, service, clock):
        submit(service, "Alice", 100)
        clock.advance(minutes=1)
        submit(service, "Bob", 150)
        clock.advance(minutes=1)
        submit(service, "Alice", 200)

        page = service.get_leaderboard("alltime")
        assert [(e.rank, e.player_name, e.score) for e in page.entries] == [
            (1, "Alice", 200),
            (2, "Bob", 150),
        ]
        assert page.week_key is None

    def test_tie_break(self, service, clock):
        submit(service, "First", 500)
        clock.advance(seconds=30)
        submit(service, "Second", 500)

        names = [e.player_name for e in service.get_leaderboard("weekly").entries]
        assert names == ["First", "Second"]

    def test_weekly_defaults_to_current_week(self, service, clock):
        submit(service, "Old", 900)
        clock.advance(weeks=1)
        submit(service, "New", 100)

        page = service.get_leaderboard("weekly")
        assert page.week_key == "2026-W11"
        assert [e.player_name for e in page.entries] == ["New"]

        past = service.get_leaderboard("weekly", week="2026-W10")
        assert [e.player_name for e in past.entries] == ["Old"]

    def test_invalid_scope(self, service):
        with pytest.raises(InvalidScope):
            service.get_leaderboard("monthly")

    @pytest.mark.parametrize("limit,expected", [
        (None, 25), ("abc", 25), ("3", 3), (0, 1), (-4, 1), (500, 100), (100, 100),
    ])
    def test_limit_clamping(self, service, limit, expected):
        assert service.clamp_limit(limit) == expected

    def test_limit_applies(self, service, clock):
        for i in range(5):
            submit(service, f"P{i}", i * 10)
            clock.advance(seconds=1)
        assert len(service.get_leaderboard("alltime", limit=2).entries) == 2

    def test_envelope(self, service, clock):
        data = service.get_leaderboard("weekly").to_dict()
        assert data == {
            "scope": "weekly",
            "weekly_key": "2026-W10",
            "updated_at": clock.now.isoformat(),
            "entries": [],
        }


class TestWeeksAndReaper:
    """Available weeks, share lookup and session reaping."""

    def test_available_weeks_most_recent_first(self, service, clock):
        for _ in range(3):
            submit(service, "Alice", 1)
            clock.advance(weeks=1)
        assert service.get_available_weeks() == ["2026-W12", "2026-W11", "2026-W10"]

    def test_available_weeks_capped(self, store, clock):
        service = ScoreService(store, clock=clock, weeks_cap=2)
        for _ in range(4):
            submit(service, "Alice", 1)
            clock.advance(weeks=1)
        assert len(service.get_available_weeks()) == 2

    def test_reaper_deletes_only_expired(self, service, store, clock):
        service.start_session("desktop")
        clock.advance(hours=1)
        fresh = service.start_session("desktop")
        clock.advance(hours=1, minutes=30)

        assert service.reap_expired_sessions() == 1
        assert store.get_session(fresh.session_id) is not None
        assert store.counts()[0] == 1

    def test_reaping_keeps_scores(self, service, store, clock):
        submit(service, "Alice", 50)
        clock.advance(hours=3)
        service.reap_expired_sessions()
        assert store.counts() == (0, 1)
        assert len(service.get_leaderboard("alltime").entries) == 1

    def test_shared_score(self, service):
        result = submit(service, "Alice", 77)
        entry = service.get_shared_score(result.entry.share_id)
        assert entry.score == 77

    def test_unknown_share(self, service):
        with pytest.raises(ShareNotFound):
            service.get_shared_score("missing")
