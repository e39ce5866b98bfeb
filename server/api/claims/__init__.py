# Food claim module

from .routes import router as claims_router
from .models import CreateClaimRequest, VerifyClaimRequest

__all__ = [
    "claims_router",
    "CreateClaimRequest",
    "VerifyClaimRequest"
]
