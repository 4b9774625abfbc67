"""
Leaderboard aggregation.

Scores are computed on read from the raw event log:

    score = 0.5 * profit / max_profit + 0.3 * volume / max_volume + 0.2 * rounds / max_rounds

Each axis is normalised by the best value in the selected group and drops to
zero when that best value is zero, so every score falls in [0, 1].
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from .models import GameEvent, LeaderboardEntry, LeaderboardResponse, LeaderboardWindow
from .season import current_season, parse_season, previous_season, utc_now
from .storage import InMemoryStorage

PROFIT_WEIGHT = 0.5
VOLUME_WEIGHT = 0.3
ROUNDS_WEIGHT = 0.2

CURRENT_LIMIT = 50
FINAL_LIMIT = 100

WINDOWS = {
    LeaderboardWindow.HOURS_48: timedelta(hours=48),
    LeaderboardWindow.DAYS_7: timedelta(days=7),
}


@dataclass
class Totals:
    wallet: str
    profit: float = 0.0
    volume: float = 0.0
    rounds: int = 0


def aggregate(events: Iterable[GameEvent]) -> list[Totals]:
    totals: dict[str, Totals] = {}
    for event in events:
        row = totals.get(event.wallet)
        if row is None:
            row = totals[event.wallet] = Totals(wallet=event.wallet)
        row.profit += event.profit
        row.volume += event.volume
        row.rounds += event.rounds
    return list(totals.values())


def _ratio(value: float, best: float) -> float:
    if best <= 0:
        return 0.0
    return min(max(value, 0.0) / best, 1.0)


def score(totals: list[Totals]) -> list[tuple[Totals, float]]:
    if not totals:
        return []
    max_profit = max(0.0, max(t.profit for t in totals))
    max_volume = max(t.volume for t in totals)
    max_rounds = max(t.rounds for t in totals)
    return [
        (t, PROFIT_WEIGHT * _ratio(t.profit, max_profit)
            + VOLUME_WEIGHT * _ratio(t.volume, max_volume)
            + ROUNDS_WEIGHT * _ratio(t.rounds, max_rounds))
        for t in totals
    ]


def rank(events: Iterable[GameEvent], balances: Callable[[str], int], limit: int) -> list[LeaderboardEntry]:
    scored = score(aggregate(events))
    # equal scores fall back to wallet order
    scored.sort(key=lambda pair: (-pair[1], pair[0].wallet))
    return [
        LeaderboardEntry(
            rank=position,
            wallet=t.wallet,
            profit=t.profit,
            volume=t.volume,
            rounds=t.rounds,
            points=balances(t.wallet),
            score=value,
        )
        for position, (t, value) in enumerate(scored[:limit], start=1)
    ]


class LeaderboardAggregator:
    def __init__(self, storage: InMemoryStorage, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.clock = clock

    def current(self, window: Optional[str] = None) -> LeaderboardResponse:
        now = self.clock()
        selected = LeaderboardWindow.parse(window)
        season = current_season(now)
        start = now - WINDOWS[selected]
        events = [e for e in self.storage.events.since(start) if e.season == season.id]
        return LeaderboardResponse(
            view="current",
            season=season.id,
            window=selected,
            generated_at=now,
            entries=rank(events, self.storage.get_points, CURRENT_LIMIT),
        )

    def final(self, season_id: Optional[str] = None) -> LeaderboardResponse:
        now = self.clock()
        season = parse_season(season_id) if season_id else previous_season(now)
        events = self.storage.events.for_season(season.id)
        return LeaderboardResponse(
            view="final",
            season=season.id,
            generated_at=now,
            entries=rank(events, self.storage.get_points, FINAL_LIMIT),
        )
