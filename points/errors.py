from .models import RejectionReason


class PointsServiceError(Exception):
    pass


class ConflictError(PointsServiceError):
    """Raised when a signature has already been recorded in the dedup ledger."""

    def __init__(self, signature: str, wallet: str):
        super().__init__(f"Signature {signature} already credited to {wallet}")
        self.signature = signature
        self.wallet = wallet


class SourceUnavailable(PointsServiceError):
    pass


class SeasonNotFound(PointsServiceError):
    pass


class GameEventRejected(PointsServiceError):
    reason: RejectionReason = RejectionReason.MALFORMED_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedInput(GameEventRejected):
    reason = RejectionReason.MALFORMED_INPUT


class InvalidValue(GameEventRejected):
    reason = RejectionReason.INVALID_VALUE


class InvalidRound(GameEventRejected):
    reason = RejectionReason.INVALID_ROUND


class ImplausibleResult(GameEventRejected):
    reason = RejectionReason.IMPLAUSIBLE_RESULT


class TooFast(GameEventRejected):
    reason = RejectionReason.TOO_FAST


class RateLimited(GameEventRejected):
    reason = RejectionReason.RATE_LIMITED
