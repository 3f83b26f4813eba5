"""
Tests for best-score reduction, rank and leaderboard listing.
"""

from datetime import datetime, timedelta, timezone

from lab_panic.leaderboard.ranking import (
    BestScore,
    leaderboard,
    rank_of,
    reduce_best_scores,
    week_key,
)
from lab_panic.leaderboard.store import ScoreEntry

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def record(name, score, minutes):
    return ScoreEntry(
        score_id=f"{name}-{minutes}",
        player_name=name,
        score=score,
        session_id=f"s-{name}-{minutes}",
        week_key=week_key(T0),
        created_at=T0 + timedelta(minutes=minutes),
        share_id=f"sh-{name}-{minutes}",
    )


class TestWeekKey:
    """ISO week bucket keys."""

    def test_format(self):
        assert week_key(datetime(2026, 3, 2, tzinfo=timezone.utc)) == "2026-W10"

    def test_iso_year_boundary(self):
        """Early January can belong to the previous ISO year."""
        assert week_key(datetime(2021, 1, 1, tzinfo=timezone.utc)) == "2020-W53"
        assert week_key(datetime(2024, 12, 30, tzinfo=timezone.utc)) == "2025-W01"

    def test_keys_sort_chronologically(self):
        keys = [week_key(datetime(2026, 1, 5, tzinfo=timezone.utc) + timedelta(weeks=i)) for i in range(12)]
        assert keys == sorted(keys)


class TestReduceBestScores:
    """One best entry per player."""

    def test_superseded_score_dropped(self):
        best = reduce_best_scores([record("Alice", 100, 1), record("Bob", 150, 2), record("Alice", 200, 3)])
        by_name = {b.player_name: b.score for b in best}
        assert by_name == {"Alice": 200, "Bob": 150}

    def test_equal_scores_keep_earliest(self):
        best = reduce_best_scores([record("Alice", 100, 5), record("Alice", 100, 1)])
        assert len(best) == 1
        assert best[0].created_at == T0 + timedelta(minutes=1)


class TestLeaderboard:
    """Listing order and ranks."""

    def test_alice_bob_example(self):
        best = reduce_best_scores([record("Alice", 100, 1), record("Bob", 150, 2), record("Alice", 200, 3)])
        entries = leaderboard(best, 25)

        assert [(e.rank, e.player_name, e.score) for e in entries] == [
            (1, "Alice", 200),
            (2, "Bob", 150),
        ]

    def test_tie_break_earlier_wins(self):
        best = reduce_best_scores([record("Late", 300, 10), record("Early", 300, 2)])
        entries = leaderboard(best, 25)
        assert [e.player_name for e in entries] == ["Early", "Late"]
        assert [e.rank for e in entries] == [1, 2]

    def test_limit(self):
        best = reduce_best_scores([record(f"P{i}", i * 10, i) for i in range(10)])
        entries = leaderboard(best, 3)
        assert [e.score for e in entries] == [90, 80, 70]

    def test_empty(self):
        assert leaderboard([], 10) == []

    def test_entry_dict(self):
        entry = leaderboard([BestScore("Ann", 5, T0)], 1)[0]
        assert entry.to_dict() == {
            "rank": 1,
            "player_name": "Ann",
            "score": 5,
            "created_at": T0.isoformat(),
        }


class TestRankOf:
    """Rank for a freshly submitted score."""

    def test_counts_strictly_better(self):
        best = [BestScore("A", 300, T0), BestScore("B", 200, T0), BestScore("C", 100, T0)]
        assert rank_of(250, T0 + timedelta(minutes=1), best) == 2
        assert rank_of(400, T0, best) == 1
        assert rank_of(50, T0, best) == 4

    def test_equal_score_ranks_below_earlier(self):
        best = [BestScore("A", 200, T0)]
        assert rank_of(200, T0 + timedelta(seconds=1), best) == 2

    def test_matches_listing_position(self):
        """Submission rank and listing rank agree for the same entry."""
        records = [record("A", 300, 1), record("B", 200, 2), record("C", 200, 3), record("D", 100, 4)]
        best = reduce_best_scores(records)
        listed = {e.player_name: e.rank for e in leaderboard(best, 100)}

        for r in records:
            assert rank_of(r.score, r.created_at, best) == listed[r.player_name]

    def test_own_better_best_is_counted(self):
        """Rank is 1 + every strictly better best entry, the player's own included."""
        records = [record("Alice", 200, 1), record("Bob", 150, 2), record("Alice", 100, 3)]
        best = reduce_best_scores(records)
        assert rank_of(100, T0 + timedelta(minutes=3), best) == 3
        assert rank_of(500, T0 + timedelta(minutes=3), best) == 1
