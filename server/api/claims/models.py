# Food claim request models

from pydantic import BaseModel, Field


class CreateClaimRequest(BaseModel):
    """Reserve units of a food item"""
    food_item_id: int = Field(..., ge=1, description="Food item id")
    quantity: int = Field(1, ge=1, description="Units requested")


class VerifyClaimRequest(BaseModel):
    """Claim code presented at the counter"""
    claim_code: str = Field(..., min_length=1, max_length=20, description="Claim code, e.g. X7K-Q2M")
