"""Rank and leaderboard computation.

Score history is reduced to one best entry per player name before ranking.
Ordering is by score descending, then creation time ascending; the same
ordering decides both the listing and the rank returned on submission.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class BestScore:
    player_name: str
    score: int
    created_at: datetime

    @property
    def sort_key(self) -> Tuple[int, datetime]:
        return (-self.score, self.created_at)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_name: str
    score: int
    created_at: datetime

    def to_dict(self):
        return {
            'rank': self.rank,
            'player_name': self.player_name,
            'score': self.score,
            'created_at': self.created_at.isoformat(),
        }


def week_key(moment: datetime) -> str:
    """ISO year and week of a moment, e.g. '2026-W42'."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def is_better(score: int, created_at: datetime, other_score: int, other_created_at: datetime) -> bool:
    """True if (score, created_at) ranks strictly above the other entry."""
    if score != other_score:
        return score > other_score
    return created_at < other_created_at


def reduce_best_scores(records: Iterable) -> List[BestScore]:
    """Collapse records to each player's highest score, earliest on ties.

    Records need ``player_name``, ``score`` and ``created_at`` attributes.
    """
    best = {}
    for record in records:
        current = best.get(record.player_name)
        if current is None or is_better(record.score, record.created_at, current.score, current.created_at):
            best[record.player_name] = BestScore(record.player_name, record.score, record.created_at)
    return list(best.values())


def rank_of(score: int, created_at: datetime, best_scores: Iterable[BestScore]) -> int:
    """1 + the number of best entries strictly better than (score, created_at).

    Every player's best counts, the submitter's own earlier best included.
    """
    better = sum(1 for entry in best_scores if is_better(entry.score, entry.created_at, score, created_at))
    return better + 1


def leaderboard(best_scores: Iterable[BestScore], limit: int) -> List[LeaderboardEntry]:
    ordered = sorted(best_scores, key=lambda entry: entry.sort_key)[:max(0, limit)]
    return [
        LeaderboardEntry(rank=i + 1, player_name=e.player_name, score=e.score, created_at=e.created_at)
        for i, e in enumerate(ordered)
    ]
