# Donation module

from .routes import router as donations_router
from .models import ReserveDonationRequest

__all__ = [
    "donations_router",
    "ReserveDonationRequest"
]
