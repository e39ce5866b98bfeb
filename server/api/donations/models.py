# Donation request models

from pydantic import BaseModel, Field


class ReserveDonationRequest(BaseModel):
    """NGO taking a donation"""
    ngo_name: str = Field(..., min_length=1, max_length=255, description="NGO name")
    ngo_contact_person: str = Field(..., min_length=1, max_length=255, description="Contact person")
    ngo_phone_number: str = Field(..., min_length=1, max_length=20, description="Contact phone number")
