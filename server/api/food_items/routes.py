# Food item routes

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, Path

from .models import CreateFoodItemRequest, UpdateFoodItemRequest
from api.auth.routes import get_current_user, get_admin_user, get_database
from api.auth.models import TokenData
from db.manager import DatabaseManager
from db.food_item_operations import FoodItemOperations
from utils.response import create_success_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/food-items", tags=["food items"])


@router.get("", response_model=Dict[str, Any])
async def list_food_items(
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    """Meals that can be claimed right now"""
    items = FoodItemOperations(db).list_active_food_items()

    return create_success_response(
        data={"food_items": items, "total_count": len(items)},
        message="Food items loaded"
    )


@router.get("/my", response_model=Dict[str, Any])
async def get_my_food_items(
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Meals posted by the current staff member"""
    items = FoodItemOperations(db).get_food_items_by_creator(current_admin.user_id)

    return create_success_response(
        data={"food_items": items, "total_count": len(items)},
        message="Food items loaded"
    )


@router.get("/{food_item_id}", response_model=Dict[str, Any])
async def get_food_item(
    food_item_id: int = Path(..., description="Food item id"),
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    item = FoodItemOperations(db).get_food_item(food_item_id)
    return create_success_response(data=item, message="Food item loaded")


@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_food_item(
    item_request: CreateFoodItemRequest,
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Post a surplus meal"""
    item = FoodItemOperations(db).create_food_item(
        user_id=current_admin.user_id,
        name=item_request.name,
        canteen_name=item_request.canteen_name,
        quantity=item_request.quantity,
        available_until=item_request.available_until,
        description=item_request.description,
        canteen_location=item_request.canteen_location,
        image_url=item_request.image_url
    )

    return create_success_response(
        data=item,
        message=f"Food item \"{item['name']}\" posted"
    )


@router.put("/{food_item_id}", response_model=Dict[str, Any])
async def update_food_item(
    update_request: UpdateFoodItemRequest,
    food_item_id: int = Path(..., description="Food item id"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Edit a meal the current staff member posted"""
    item = FoodItemOperations(db).update_food_item(
        current_admin.user_id,
        food_item_id,
        **update_request.model_dump(exclude_unset=True)
    )

    return create_success_response(data=item, message="Food item updated")


@router.delete("/{food_item_id}", response_model=Dict[str, Any])
async def delete_food_item(
    food_item_id: int = Path(..., description="Food item id"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """
    Remove a meal. Meals with claim or donation history are withdrawn rather
    than deleted.
    """
    result = FoodItemOperations(db).remove_food_item(current_admin.user_id, food_item_id)

    message = "Food item deleted" if result["deleted"] else "Food item withdrawn"
    return create_success_response(data=result, message=message)
