# Closed status enumerations for claims, donations and users

from enum import Enum


class ClaimStatus(str, Enum):
    RESERVED = "reserved"
    CLAIMED = "claimed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @property
    def is_live(self) -> bool:
        """Live claims count against the one-claim-per-user-per-item rule"""
        return self in (ClaimStatus.RESERVED, ClaimStatus.CLAIMED)

    @property
    def is_terminal(self) -> bool:
        return self is not ClaimStatus.RESERVED


class DonationStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED_FOR_NGO = "reserved_for_ngo"
    COLLECTED = "collected"


class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


LIVE_CLAIM_STATUSES = tuple(status.value for status in ClaimStatus if status.is_live)

# Message shown when verification finds a claim that is no longer redeemable
CLAIM_STATUS_MESSAGES = {
    ClaimStatus.RESERVED: "Claim is reserved",
    ClaimStatus.CLAIMED: "Claim has already been redeemed",
    ClaimStatus.EXPIRED: "Claim has expired",
    ClaimStatus.CANCELLED: "Claim was cancelled",
}
