import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from .errors import (
    GameEventRejected, ImplausibleResult, InvalidRound, InvalidValue,
    MalformedInput, RateLimited, TooFast,
)
from .models import GameEvent
from .season import season_id, utc_now
from .storage import InMemoryStorage, RateState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GamePolicy:
    max_profit_multiplier: float = 100
    min_interval: timedelta = timedelta(milliseconds=800)
    rate_window: timedelta = timedelta(seconds=60)
    rate_cap: int = 120


@dataclass
class Admission:
    event: GameEvent
    credited_points: int
    balance: int


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


class GameEventValidator:
    """
    Admits self-reported game results.

    Checks run in a fixed order and stop at the first failure. A rejected
    event leaves balance, event log and rate state untouched.
    """

    def __init__(self, storage: InMemoryStorage, policy: GamePolicy = GamePolicy(),
                 clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.policy = policy
        self.clock = clock

    def submit(self, wallet: str, profit: Any, volume: Any) -> Admission:
        try:
            self.check_result(profit, volume)
            with self.storage.wallet_lock(wallet):
                now = self.clock()
                state = self._check_pace(wallet, now)
                return self._admit(wallet, float(profit), float(volume), now, state)
        except GameEventRejected as e:
            logger.info("Rejected game event from %s: %s (%s)", wallet, e.reason.value, e.message)
            raise

    def check_result(self, profit: Any, volume: Any) -> None:
        if not _is_number(profit) or not _is_number(volume):
            raise MalformedInput("profit and volume must be numbers")
        if profit < 0 or volume < 0:
            raise InvalidValue("profit and volume must not be negative")
        if volume == 0 and profit > 0:
            raise InvalidRound("cannot profit without volume")
        if profit > volume * self.policy.max_profit_multiplier:
            raise ImplausibleResult(
                f"profit {profit} exceeds {self.policy.max_profit_multiplier}x volume {volume}"
            )

    def _check_pace(self, wallet: str, now: datetime) -> RateState:
        state = self.storage.get_rate_state(wallet)
        if state is None:
            return RateState(last_event_at=now, window_start=now, window_count=0)

        if now - state.last_event_at < self.policy.min_interval:
            raise TooFast(f"minimum interval is {self.policy.min_interval.total_seconds():g}s")

        if now - state.window_start >= self.policy.rate_window:
            return RateState(last_event_at=state.last_event_at, window_start=now, window_count=0)
        if state.window_count >= self.policy.rate_cap:
            raise RateLimited(
                f"at most {self.policy.rate_cap} events per {self.policy.rate_window.total_seconds():g}s"
            )
        return RateState(state.last_event_at, state.window_start, state.window_count)

    def _admit(self, wallet: str, profit: float, volume: float, now: datetime, state: RateState) -> Admission:
        event = GameEvent(
            wallet=wallet,
            profit=profit,
            volume=volume,
            rounds=1,
            occurred_at=now,
            season=season_id(now),
        )
        credit = math.floor(profit)
        balance = self.storage.append_game_event(event, credit)
        self.storage.set_rate_state(wallet, RateState(
            last_event_at=now,
            window_start=state.window_start,
            window_count=state.window_count + 1,
        ))
        return Admission(event=event, credited_points=credit, balance=balance)
