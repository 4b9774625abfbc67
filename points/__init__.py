"""
Points Ledger for Solspace

This package provides:
- Exactly-once crediting of on-chain SOL deposits, deduplicated by signature
- Validation and rate limiting for self-reported game results
- A per-wallet points balance fed by both sources
- Weekly seasons and a windowed, multi-factor leaderboard computed on read
"""

from .models import (
    Balance,
    GameEvent,
    LedgerEntry,
    LeaderboardEntry,
    LeaderboardWindow,
    RejectionReason,
    Season,
)
from .service import PointsService

__all__ = [
    "Balance",
    "GameEvent",
    "LedgerEntry",
    "LeaderboardEntry",
    "LeaderboardWindow",
    "RejectionReason",
    "Season",
    "PointsService",
]
