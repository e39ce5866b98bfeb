# Food item request models

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CreateFoodItemRequest(BaseModel):
    """Post a surplus meal"""
    name: str = Field(..., min_length=1, max_length=255, description="Meal name")
    description: Optional[str] = Field(None, max_length=2000, description="Description")
    canteen_name: str = Field(..., min_length=1, max_length=255, description="Canteen")
    canteen_location: Optional[str] = Field(None, max_length=255, description="Where to collect")
    image_url: Optional[str] = Field(None, max_length=1000, description="Image URL")
    quantity: int = Field(..., ge=1, description="Units on offer")
    available_until: datetime = Field(..., description="Claim deadline (UTC if no offset)")


class UpdateFoodItemRequest(BaseModel):
    """Edit a meal; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    canteen_name: Optional[str] = Field(None, min_length=1, max_length=255)
    canteen_location: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = Field(None, max_length=1000)
    quantity: Optional[int] = Field(None, ge=0, description="New posted quantity")
    available_until: Optional[datetime] = None
