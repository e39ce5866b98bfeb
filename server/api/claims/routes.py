# Food claim routes

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, Path

from .models import CreateClaimRequest, VerifyClaimRequest
from api.auth.routes import get_current_user, get_admin_user, get_database, config
from api.auth.models import TokenData
from db.manager import DatabaseManager
from db.claim_operations import ClaimOperations
from utils.response import create_success_response, create_error_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/food-claims", tags=["food claims"])


def _claim_operations(db: DatabaseManager) -> ClaimOperations:
    claims_config = config.get_claims_config()
    return ClaimOperations(
        db,
        reservation_ttl_minutes=claims_config["reservation_ttl_minutes"],
        code_generation_attempts=claims_config["code_generation_attempts"]
    )


@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_claim(
    claim_request: CreateClaimRequest,
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    """
    Reserve units of a meal. The response carries the claim code to show at
    the counter and the time the reservation lapses.
    """
    claim = _claim_operations(db).create_claim(
        user_id=current_user.user_id,
        food_item_id=claim_request.food_item_id,
        quantity=claim_request.quantity
    )

    return create_success_response(
        data=claim,
        message=f"Reserved, show code {claim['claim_code']} at the counter"
    )


@router.get("/my", response_model=Dict[str, Any])
async def get_my_claims(
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    claims = _claim_operations(db).get_claims_by_user(current_user.user_id)

    return create_success_response(
        data={"claims": claims, "total_count": len(claims)},
        message="Claims loaded"
    )


@router.get("/active", response_model=Dict[str, Any])
async def get_active_claims(
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Reservations still waiting to be picked up"""
    claims = _claim_operations(db).get_active_claims()

    return create_success_response(
        data={"claims": claims, "total_count": len(claims)},
        message="Active claims loaded"
    )


@router.post("/verify", response_model=Dict[str, Any])
async def verify_claim(
    verify_request: VerifyClaimRequest,
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """
    Check a claim code. Invalid, expired and already handled codes come back
    as 200 with success false so the counter screen can show the reason.
    """
    result = _claim_operations(db).verify_claim(verify_request.claim_code)

    if not result["success"]:
        logger.info(f"Claim code {verify_request.claim_code} rejected: {result['message']}")
        return create_error_response(result["message"])

    return create_success_response(data=result["claim"], message=result["message"])


@router.get("/code/{claim_code}", response_model=Dict[str, Any])
async def get_claim_by_code(
    claim_code: str = Path(..., description="Claim code"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    claim = _claim_operations(db).get_claim_by_code(claim_code)
    return create_success_response(data=claim, message="Claim loaded")


@router.post("/{claim_id}/complete", response_model=Dict[str, Any])
async def complete_claim(
    claim_id: int = Path(..., description="Claim id"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Hand the food over: consumes the reserved units"""
    claim = _claim_operations(db).complete_claim(claim_id)

    logger.info(f"Claim {claim_id} completed by {current_admin.user_id}")
    return create_success_response(data=claim, message="Claim completed")


@router.put("/code/{claim_code}/claim", response_model=Dict[str, Any])
async def complete_claim_by_code(
    claim_code: str = Path(..., description="Claim code"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Complete a claim straight from its code"""
    claim = _claim_operations(db).complete_claim_by_code(claim_code)

    logger.info(f"Claim {claim['claim_id']} completed by code by {current_admin.user_id}")
    return create_success_response(data=claim, message="Claim completed")


@router.post("/{claim_id}/cancel", response_model=Dict[str, Any])
async def cancel_claim(
    claim_id: int = Path(..., description="Claim id"),
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    """Give up a reservation; staff may cancel anyone's"""
    claim = _claim_operations(db).cancel_claim(
        claim_id,
        user_id=current_user.user_id,
        is_admin=current_user.is_admin
    )

    return create_success_response(data=claim, message="Claim cancelled")
