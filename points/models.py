from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict


class RejectionReason(str, Enum):
    MALFORMED_INPUT = "MALFORMED_INPUT"
    INVALID_VALUE = "INVALID_VALUE"
    INVALID_ROUND = "INVALID_ROUND"
    IMPLAUSIBLE_RESULT = "IMPLAUSIBLE_RESULT"
    TOO_FAST = "TOO_FAST"
    RATE_LIMITED = "RATE_LIMITED"


class LeaderboardWindow(str, Enum):
    HOURS_48 = "48h"
    DAYS_7 = "7d"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LeaderboardWindow":
        try:
            return cls(value)
        except ValueError:
            return cls.HOURS_48


class ReconcileRequest(BaseModel):
    wallet: str = Field(..., min_length=1, description="Wallet address that sent the deposit")

    model_config = ConfigDict(json_schema_extra={
        "example": {"wallet": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"}
    })


class GameEventRequest(BaseModel):
    wallet: str = Field(..., min_length=1)
    # Shape is checked by the validator so malformed values get a rejection reason
    profit: Any = None
    volume: Any = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "wallet": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
            "profit": 50,
            "volume": 10,
        }
    })


class Transfer(BaseModel):
    source: str
    destination: str
    lamports: int


class TransferDetail(BaseModel):
    signature: str
    success: bool
    transfers: list[Transfer] = Field(default_factory=list)


class SignatureInfo(BaseModel):
    signature: str
    slot: Optional[int] = None
    block_time: Optional[int] = None
    failed: bool = False


class LedgerEntry(BaseModel):
    signature: str
    wallet: str
    points_credited: int
    lamports: int = 0
    observed_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class GameEvent(BaseModel):
    wallet: str
    profit: float
    volume: float
    rounds: int = 1
    occurred_at: datetime
    season: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Balance(BaseModel):
    wallet: str
    points: int
    deposit_count: int = 0
    game_count: int = 0
    last_credit_at: Optional[datetime] = None


class Season(BaseModel):
    id: str
    starts_at: datetime
    ends_at: datetime

    model_config = ConfigDict(frozen=True)


class ReconcileResponse(BaseModel):
    wallet: str
    credited_points: int
    credited_signatures: list[str] = Field(default_factory=list)
    balance: int


class GameEventResponse(BaseModel):
    event: GameEvent
    credited_points: int
    balance: int
    message: str


class LeaderboardEntry(BaseModel):
    rank: int
    wallet: str
    profit: float
    volume: float
    rounds: int
    points: int
    score: float


class LeaderboardResponse(BaseModel):
    view: str
    season: str
    window: Optional[LeaderboardWindow] = None
    generated_at: datetime
    entries: list[LeaderboardEntry]


class LedgerHistoryResponse(BaseModel):
    wallet: str
    entries: list[LedgerEntry]
    total_count: int
    current_balance: int
