# Donation routes

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, Path

from .models import ReserveDonationRequest
from api.auth.routes import get_admin_user, get_database
from api.auth.models import TokenData
from db.manager import DatabaseManager
from db.donation_operations import DonationOperations
from utils.response import create_success_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/donations", tags=["donations"])


@router.get("", response_model=Dict[str, Any])
async def get_my_donations(
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Donations sourced from the current staff member's meals"""
    donations = DonationOperations(db).get_donations_by_creator(current_admin.user_id)

    return create_success_response(
        data={"donations": donations, "total_count": len(donations)},
        message="Donations loaded"
    )


@router.get("/all", response_model=Dict[str, Any])
async def get_all_donations(
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    donations = DonationOperations(db).get_all_donations()

    return create_success_response(
        data={"donations": donations, "total_count": len(donations)},
        message="Donations loaded"
    )


@router.post("/transfer-expired", response_model=Dict[str, Any])
async def transfer_expired(
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    """Move expired, unclaimed stock into donations"""
    transferred_count = DonationOperations(db).sweep_expired_to_donations()

    logger.info(f"Expired stock transfer run by {current_admin.user_id}: {transferred_count}")
    return create_success_response(
        data={"transferred_count": transferred_count},
        message=f"{transferred_count} expired item(s) transferred to donations"
    )


@router.put("/{donation_id}/reserve", response_model=Dict[str, Any])
async def reserve_donation(
    reserve_request: ReserveDonationRequest,
    donation_id: int = Path(..., description="Donation id"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    donation = DonationOperations(db).reserve_for_ngo(
        donation_id,
        ngo_name=reserve_request.ngo_name,
        ngo_contact_person=reserve_request.ngo_contact_person,
        ngo_phone_number=reserve_request.ngo_phone_number
    )

    return create_success_response(
        data=donation,
        message=f"Donation reserved for {donation['ngo_name']}"
    )


@router.put("/{donation_id}/collect", response_model=Dict[str, Any])
async def collect_donation(
    donation_id: int = Path(..., description="Donation id"),
    current_admin: TokenData = Depends(get_admin_user),
    db: DatabaseManager = Depends(get_database)
):
    donation = DonationOperations(db).mark_collected(donation_id)
    return create_success_response(data=donation, message="Donation collected")
