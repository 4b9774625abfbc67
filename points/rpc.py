"""Solana JSON-RPC event source for deposit reconciliation."""

import itertools
import logging
from typing import Any, Optional

import httpx

from .errors import SourceUnavailable
from .models import SignatureInfo, Transfer, TransferDetail

logger = logging.getLogger(__name__)

SYSTEM_PROGRAM = "system"
TRANSFER_TYPES = ("transfer", "transferWithSeed")


class SolanaRpcSource:
    def __init__(self, rpc_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.rpc_url = rpc_url
        self.client = client or httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def list_recent_signatures(self, address: str, limit: int) -> list[SignatureInfo]:
        result = self._call("getSignaturesForAddress", [address, {"limit": limit}])
        return [
            SignatureInfo(
                signature=item["signature"],
                slot=item.get("slot"),
                block_time=item.get("blockTime"),
                failed=item.get("err") is not None,
            )
            for item in result or []
        ]

    def get_transfer_detail(self, signature: str) -> Optional[TransferDetail]:
        result = self._call("getTransaction", [
            signature,
            {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0, "commitment": "confirmed"},
        ])
        if not result:
            return None

        if not isinstance(result, dict):
            raise SourceUnavailable(f"getTransaction returned {type(result).__name__} for {signature}")

        meta = result.get("meta") or {}
        message = (result.get("transaction") or {}).get("message") or {}
        instructions = list(message.get("instructions") or [])
        for inner in meta.get("innerInstructions") or []:
            if isinstance(inner, dict):
                instructions.extend(inner.get("instructions") or [])
        instructions = [ix for ix in instructions if isinstance(ix, dict)]

        return TransferDetail(
            signature=signature,
            success=meta.get("err") is None,
            transfers=[t for t in (self._parse_transfer(ix) for ix in instructions) if t is not None],
        )

    def _parse_transfer(self, instruction: dict) -> Optional[Transfer]:
        if instruction.get("program") != SYSTEM_PROGRAM:
            return None
        parsed = instruction.get("parsed")
        if not isinstance(parsed, dict) or parsed.get("type") not in TRANSFER_TYPES:
            return None
        info = parsed.get("info", {})
        try:
            return Transfer(source=info["source"], destination=info["destination"], lamports=int(info["lamports"]))
        except (KeyError, TypeError, ValueError):
            return None

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("RPC %s to %s failed: %s", method, self.rpc_url, e)
            raise SourceUnavailable(f"{method} failed: {e}") from e

        if "error" in body:
            raise SourceUnavailable(f"{method} failed: {body['error']}")
        return body.get("result")
