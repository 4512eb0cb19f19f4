"""Typed failures surfaced by the ledger, settlement and admin operations."""

from typing import Any


class SolSporeError(Exception):
    """Base exception. ``kind`` is the machine-readable error name."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or (self.__class__.__doc__ or self.kind).strip()

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.kind, "message": self.message}


# Validation


class ValidationFailed(SolSporeError):
    """The request is invalid."""

    kind = "validation_error"
    status_code = 400


class InvalidRequest(ValidationFailed):
    """The request body is missing or malformed."""

    kind = "invalid_request"


class InvalidMarketId(ValidationFailed):
    """The provided market ID is not in a valid format."""

    kind = "invalid_market_id"


class InvalidOutcome(ValidationFailed):
    """The outcome must be either "yes" or "no"."""

    kind = "invalid_outcome"


class InvalidStake(ValidationFailed):
    """The bet amount must be a positive number greater than zero."""

    kind = "invalid_stake"


class InvalidOdds(ValidationFailed):
    """Odds are outside the published bounds."""

    kind = "invalid_odds"


# Identity


class AuthenticationFailed(SolSporeError):
    """Authentication required."""

    kind = "authentication_required"
    status_code = 401


class AdminRequired(SolSporeError):
    """Admin privileges required."""

    kind = "admin_required"
    status_code = 403


# Not found


class NotFound(SolSporeError):
    """Resource not found."""

    kind = "not_found"
    status_code = 404


class MarketNotFound(NotFound):
    """The specified betting market could not be found."""

    kind = "market_not_found"


class TournamentNotFound(NotFound):
    """Tournament not found."""

    kind = "tournament_not_found"


class UserNotFound(NotFound):
    """User not found."""

    kind = "user_not_found"


# State conflicts


class StateConflict(SolSporeError):
    """The resource is not in a state that allows this operation."""

    kind = "state_conflict"
    status_code = 409


class MarketClosed(StateConflict):
    """This market is no longer accepting bets as it has closed."""

    kind = "market_closed"


class MarketUnavailable(StateConflict):
    """This market is not open for betting."""

    kind = "market_unavailable"

    def __init__(self, status: str):
        super().__init__(f"This market is not open for betting. Current status: {status}.")
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class MarketUpdateConflict(StateConflict):
    """The market was modified concurrently too many times; try again."""

    kind = "market_update_conflict"


class PaymentAlreadyRecorded(StateConflict):
    """A bet has already been recorded for this payment transaction."""

    kind = "payment_already_recorded"


class UserAlreadyExists(StateConflict):
    """A user with this username or email already exists."""

    kind = "user_exists"


# Payments


class PaymentNotConfirmed(SolSporeError):
    """The payment transaction could not be confirmed on-chain."""

    kind = "payment_not_confirmed"
    status_code = 402


class InsufficientBalance(SolSporeError):
    """Insufficient wallet balance for this bet."""

    kind = "insufficient_balance"
    status_code = 400


class PaymentRailError(SolSporeError):
    """The payment rail is unavailable."""

    kind = "payment_rail_error"
    status_code = 503


# Infrastructure


class BetPersistenceFailed(SolSporeError):
    """Your bet was processed but could not be saved in our records."""

    kind = "bet_persistence_failed"
    status_code = 500

    def __init__(
        self,
        transaction_signature: str,
        compensated: bool,
        incident_id: str | None = None,
    ):
        super().__init__()
        self.transaction_signature = transaction_signature
        self.compensated = compensated
        self.incident_id = incident_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["transaction_signature"] = self.transaction_signature
        data["incident_id"] = self.incident_id
        return data


class RetryExhausted(SolSporeError):
    """An operation kept failing after every retry attempt."""

    kind = "retry_exhausted"
    status_code = 503

    def __init__(self, name: str, attempts: int, last_error: BaseException):
        super().__init__(f"{name} failed after {attempts} attempts: {last_error}")
        self.name = name
        self.attempts = attempts
        self.last_error = last_error
