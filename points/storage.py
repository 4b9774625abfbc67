import threading
from bisect import bisect_left
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from .errors import ConflictError
from .models import Balance, GameEvent, LedgerEntry

WALLET_LOCK_STRIPES = 256


@dataclass
class RateState:
    last_event_at: datetime
    window_start: datetime
    window_count: int = 0


class EventLog:
    """
    Time-ordered log of admitted game events.

    Writers append under a lock; readers take a slice of the current list
    without locking. Eviction swaps in a new list, so a reader holding the
    old one keeps a consistent snapshot.
    """

    def __init__(self):
        self._events: list[GameEvent] = []
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[GameEvent]:
        return iter(self.snapshot())

    def append(self, event: GameEvent) -> None:
        with self._write_lock:
            events = self._events
            if events and event.occurred_at < events[-1].occurred_at:
                # keep the log sorted when the clock steps back
                index = bisect_left(events, event.occurred_at, key=lambda e: e.occurred_at)
                self._events = events[:index] + [event] + events[index:]
            else:
                events.append(event)

    def snapshot(self) -> list[GameEvent]:
        return self._events[:]

    def since(self, start: datetime) -> list[GameEvent]:
        events = self._events[:]
        index = bisect_left(events, start, key=lambda e: e.occurred_at)
        return events[index:]

    def for_season(self, season: str) -> list[GameEvent]:
        return [e for e in self._events[:] if e.season == season]

    def for_wallet(self, wallet: str) -> list[GameEvent]:
        return [e for e in self._events[:] if e.wallet == wallet]

    def evict_before(self, cutoff: datetime) -> int:
        with self._write_lock:
            events = self._events
            index = bisect_left(events, cutoff, key=lambda e: e.occurred_at)
            if index:
                self._events = events[index:]
            return index


class InMemoryStorage:
    def __init__(self):
        self.balances: dict[str, int] = {}
        self.ledger_entries: dict[str, LedgerEntry] = {}
        self.wallet_signatures: dict[str, list[str]] = defaultdict(list)
        self.game_counts: dict[str, int] = defaultdict(int)
        self.last_credit_at: dict[str, datetime] = {}
        self.rate_states: dict[str, RateState] = {}
        self.events = EventLog()

        self._ledger_lock = threading.Lock()
        self._balance_lock = threading.Lock()
        self._wallet_locks = [threading.Lock() for _ in range(WALLET_LOCK_STRIPES)]

    # Dedup ledger

    def is_processed(self, signature: str) -> bool:
        return signature in self.ledger_entries

    def get_entry(self, signature: str) -> Optional[LedgerEntry]:
        return self.ledger_entries.get(signature)

    def record_deposit(self, entry: LedgerEntry) -> int:
        """
        Insert the signature and credit its points as one step.

        Raises ConflictError if the signature is already recorded; in that case
        the balance is left untouched. Returns the new balance.
        """
        with self._ledger_lock:
            existing = self.ledger_entries.get(entry.signature)
            if existing is not None:
                raise ConflictError(entry.signature, existing.wallet)
            self.ledger_entries[entry.signature] = entry
            self.wallet_signatures[entry.wallet].append(entry.signature)
            return self.add_points(entry.wallet, entry.points_credited, entry.observed_at)

    def entries_for(self, wallet: str) -> list[LedgerEntry]:
        with self._ledger_lock:
            signatures = list(self.wallet_signatures.get(wallet, ()))
        return [self.ledger_entries[s] for s in signatures]

    # Points accumulator

    def add_points(self, wallet: str, delta: int, at: Optional[datetime] = None) -> int:
        with self._balance_lock:
            points = self.balances.get(wallet, 0) + delta
            self.balances[wallet] = points
            if at is not None:
                self.last_credit_at[wallet] = at
            return points

    def get_points(self, wallet: str) -> int:
        return self.balances.get(wallet, 0)

    def get_balance(self, wallet: str) -> Balance:
        return Balance(
            wallet=wallet,
            points=self.get_points(wallet),
            deposit_count=len(self.wallet_signatures.get(wallet, ())),
            game_count=self.game_counts.get(wallet, 0),
            last_credit_at=self.last_credit_at.get(wallet),
        )

    # Game events

    def wallet_lock(self, wallet: str) -> threading.Lock:
        # fixed pool; wallets sharing a stripe just serialize
        return self._wallet_locks[hash(wallet) % WALLET_LOCK_STRIPES]

    def get_rate_state(self, wallet: str) -> Optional[RateState]:
        return self.rate_states.get(wallet)

    def set_rate_state(self, wallet: str, state: RateState) -> None:
        self.rate_states[wallet] = state

    def append_game_event(self, event: GameEvent, credit: int) -> int:
        self.events.append(event)
        self.game_counts[event.wallet] += 1
        return self.add_points(event.wallet, credit, event.occurred_at)

    def drop_rate_states_before(self, cutoff: datetime) -> int:
        stale = [w for w, s in list(self.rate_states.items()) if s.last_event_at < cutoff]
        for wallet in stale:
            self.rate_states.pop(wallet, None)
        return len(stale)
