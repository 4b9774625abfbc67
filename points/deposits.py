"""
Deposit reconciliation.

Scans the most recent signatures on the collection address and credits
native SOL transfers sent from a wallet exactly once per signature. The
dedup ledger insert in storage is the only exclusion point; any number of
overlapping passes may run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Protocol

from .errors import ConflictError, SourceUnavailable
from .models import LedgerEntry, SignatureInfo, TransferDetail
from .season import utc_now
from .storage import InMemoryStorage

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000


class EventSource(Protocol):
    def list_recent_signatures(self, address: str, limit: int) -> list[SignatureInfo]:
        ...

    def get_transfer_detail(self, signature: str) -> Optional[TransferDetail]:
        ...


@dataclass(frozen=True)
class DepositPolicy:
    system_address: str
    points_per_sol: int = 1000
    min_deposit_lamports: int = 5_000_000
    scan_limit: int = 25

    @classmethod
    def from_sol(cls, system_address: str, points_per_sol: int = 1000,
                 min_deposit_sol: Decimal = Decimal("0.005"), scan_limit: int = 25) -> "DepositPolicy":
        min_lamports = int(Decimal(str(min_deposit_sol)) * LAMPORTS_PER_SOL)
        return cls(system_address, points_per_sol, min_lamports, scan_limit)

    def points_for(self, lamports: int) -> int:
        if lamports < self.min_deposit_lamports:
            return 0
        return lamports * self.points_per_sol // LAMPORTS_PER_SOL


@dataclass
class ReconcileResult:
    wallet: str
    credited_points: int = 0
    credited_signatures: list[str] = field(default_factory=list)
    skipped: int = 0


class DepositReconciler:
    def __init__(self, source: EventSource, storage: InMemoryStorage, policy: DepositPolicy,
                 clock: Callable[[], datetime] = utc_now):
        self.source = source
        self.storage = storage
        self.policy = policy
        self.clock = clock

    def reconcile(self, wallet: str) -> ReconcileResult:
        """Credit every unrecorded qualifying transfer from ``wallet``.

        Raises SourceUnavailable, with nothing credited, when the signature
        listing itself fails. Individual signatures that cannot be fetched
        are skipped.
        """
        try:
            signatures = self.source.list_recent_signatures(self.policy.system_address, self.policy.scan_limit)
        except SourceUnavailable:
            logger.warning("Event source unavailable while reconciling %s", wallet)
            raise

        result = ReconcileResult(wallet=wallet)
        for info in signatures[:self.policy.scan_limit]:
            if info.failed or self.storage.is_processed(info.signature):
                continue

            try:
                detail = self.source.get_transfer_detail(info.signature)
            except Exception as e:  # noqa: BLE001 - one bad signature must not end the pass
                logger.warning("Skipping signature %s: %s", info.signature, e)
                result.skipped += 1
                continue
            if detail is None or not detail.success:
                logger.debug("Skipping signature %s: no successful transaction", info.signature)
                result.skipped += 1
                continue

            lamports = self._inbound_lamports(detail, wallet)
            points = self.policy.points_for(lamports)
            if points <= 0:
                continue

            entry = LedgerEntry(
                signature=info.signature,
                wallet=wallet,
                points_credited=points,
                lamports=lamports,
                observed_at=self.clock(),
            )
            try:
                balance = self.storage.record_deposit(entry)
            except ConflictError:
                logger.debug("Signature %s already credited by a concurrent pass", info.signature)
                continue

            result.credited_points += points
            result.credited_signatures.append(info.signature)
            logger.info("Credited %s points to %s for %s (balance %s)", points, wallet, info.signature, balance)

        return result

    def _inbound_lamports(self, detail: TransferDetail, wallet: str) -> int:
        # threshold applies to the total of all qualifying transfers in the transaction
        return sum(
            t.lamports for t in detail.transfers
            if t.destination == self.policy.system_address and t.source == wallet and t.lamports > 0
        )
