# Error taxonomy of the claim engine
# Every error is an expected, caller-recoverable condition; the HTTP layer
# maps http_status onto the response.


class EngineError(Exception):
    """Base class for claim engine errors"""
    kind = "engine_error"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EngineError):
    kind = "not_found"
    http_status = 404


class ItemNotFoundError(NotFoundError):
    kind = "item_not_found"


class ClaimNotFoundError(NotFoundError):
    kind = "claim_not_found"


class DonationNotFoundError(NotFoundError):
    kind = "donation_not_found"


class ItemInactiveError(EngineError):
    kind = "item_inactive"


class ItemExpiredError(EngineError):
    kind = "item_expired"


class ClaimExpiredError(EngineError):
    kind = "claim_expired"


class InsufficientQuantityError(EngineError):
    kind = "insufficient_quantity"


class AlreadyClaimedError(EngineError):
    kind = "already_claimed"


class InvalidStateError(EngineError):
    kind = "invalid_state"
    http_status = 409


class StorageUnavailableError(EngineError):
    """Transient persistence failure; the only kind worth retrying"""
    kind = "storage_unavailable"
    http_status = 503
