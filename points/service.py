from datetime import datetime
from typing import Any, Callable, Optional

from .deposits import DepositPolicy, DepositReconciler, EventSource
from .games import GameEventValidator, GamePolicy
from .leaderboard import LeaderboardAggregator
from .models import (
    Balance,
    GameEventResponse,
    LeaderboardResponse,
    LedgerHistoryResponse,
    ReconcileResponse,
    Season,
)
from .season import current_season, utc_now
from .storage import InMemoryStorage


class PointsService:
    def __init__(
        self,
        source: EventSource,
        deposit_policy: DepositPolicy,
        game_policy: GamePolicy = GamePolicy(),
        storage: Optional[InMemoryStorage] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage or InMemoryStorage()
        self.clock = clock
        self.deposits = DepositReconciler(source, self.storage, deposit_policy, clock)
        self.games = GameEventValidator(self.storage, game_policy, clock)
        self.leaderboard = LeaderboardAggregator(self.storage, clock)

    def reconcile_deposit(self, wallet: str) -> ReconcileResponse:
        result = self.deposits.reconcile(wallet)
        return ReconcileResponse(
            wallet=wallet,
            credited_points=result.credited_points,
            credited_signatures=result.credited_signatures,
            balance=self.storage.get_points(wallet),
        )

    def submit_game_event(self, wallet: str, profit: Any, volume: Any) -> GameEventResponse:
        admission = self.games.submit(wallet, profit, volume)
        return GameEventResponse(
            event=admission.event,
            credited_points=admission.credited_points,
            balance=admission.balance,
            message="Game event accepted",
        )

    def get_leaderboard(self, window: Optional[str] = None) -> LeaderboardResponse:
        return self.leaderboard.current(window)

    def get_final_leaderboard(self, season: Optional[str] = None) -> LeaderboardResponse:
        return self.leaderboard.final(season)

    def get_balance(self, wallet: str) -> Balance:
        return self.storage.get_balance(wallet)

    def get_ledger_history(self, wallet: str, limit: int = 50, offset: int = 0) -> LedgerHistoryResponse:
        entries = self.storage.entries_for(wallet)
        entries.sort(key=lambda e: e.observed_at, reverse=True)
        return LedgerHistoryResponse(
            wallet=wallet,
            entries=entries[offset:offset + limit],
            total_count=len(entries),
            current_balance=self.storage.get_points(wallet),
        )

    def get_season(self) -> Season:
        return current_season(self.clock())
