from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from points.deposits import DepositPolicy
from points.errors import SourceUnavailable
from points.models import SignatureInfo, Transfer, TransferDetail
from points.service import PointsService
from points.storage import InMemoryStorage

SYSTEM_ADDRESS = "So1spaceVau1tXq8f3RkWm9ZbCcT7yDdJ4hPnEo2Ga5"
W1 = "W1aLLetXq8f3RkWm9ZbCcT7yDdJ4hPnEo2Ga5Ub6Vr"
W2 = "W2aLLetXq8f3RkWm9ZbCcT7yDdJ4hPnEo2Ga5Ub6Vr"

# Wednesday of the season starting 2026-10-19
START = datetime(2026, 10, 21, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeEventSource:
    def __init__(self):
        self.details: dict[str, Optional[TransferDetail]] = {}
        self.order: list[str] = []
        self.failing: set[str] = set()
        self.unavailable = False
        self.detail_calls: list[str] = []

    def add(self, signature: str, transfers: list[tuple[str, str, int]], success: bool = True) -> None:
        self.details[signature] = TransferDetail(
            signature=signature,
            success=success,
            transfers=[Transfer(source=s, destination=d, lamports=a) for s, d, a in transfers],
        )
        self.order.insert(0, signature)

    def deposit(self, signature: str, wallet: str, lamports: int) -> None:
        self.add(signature, [(wallet, SYSTEM_ADDRESS, lamports)])

    def list_recent_signatures(self, address: str, limit: int) -> list[SignatureInfo]:
        if self.unavailable:
            raise SourceUnavailable("connection refused")
        return [SignatureInfo(signature=s) for s in self.order[:limit]]

    def get_transfer_detail(self, signature: str) -> Optional[TransferDetail]:
        self.detail_calls.append(signature)
        if signature in self.failing:
            raise SourceUnavailable(f"timeout fetching {signature}")
        return self.details.get(signature)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> FakeEventSource:
    return FakeEventSource()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def policy() -> DepositPolicy:
    return DepositPolicy(system_address=SYSTEM_ADDRESS, points_per_sol=1000, min_deposit_lamports=5_000_000)


@pytest.fixture
def service(source, policy, storage, clock) -> PointsService:
    return PointsService(source, policy, storage=storage, clock=clock)
