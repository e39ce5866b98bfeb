# Food item module

from .routes import router as food_items_router
from .models import CreateFoodItemRequest, UpdateFoodItemRequest

__all__ = [
    "food_items_router",
    "CreateFoodItemRequest",
    "UpdateFoodItemRequest"
]
