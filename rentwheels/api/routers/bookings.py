import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from rentwheels.api.deps import get_current_identity, get_db_service
from rentwheels.controllers.bookings import (
    create_booking_controller,
    delete_booking_controller,
    list_bookings_by_product_controller,
    list_bookings_controller,
)
from rentwheels.models.booking import BookingCreate
from rentwheels.models.results import DeleteResult, InsertResult
from rentwheels.models.user import Identity
from rentwheels.services.database_service import MongoDBService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/bookings", response_model=List[Dict[str, Any]])
async def list_bookings(
    email: Optional[str] = Query(None, description="Must match the authenticated user."),
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Lists bookings where the caller is the renter or the provider."""
    return await list_bookings_controller(email, identity, db_service)

@router.post("/bookings", response_model=InsertResult)
async def create_booking(
    payload: BookingCreate,
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
):
    return await create_booking_controller(payload, identity, db_service)

@router.delete("/bookings/{booking_id}", response_model=DeleteResult)
async def delete_booking(
    booking_id: str,
    db_service: MongoDBService = Depends(get_db_service),
):
    return await delete_booking_controller(booking_id, db_service)

@router.get("/cars/bookings/{product_id}", response_model=List[Dict[str, Any]])
async def list_bookings_by_product(
    product_id: str,
    db_service: MongoDBService = Depends(get_db_service),
):
    """Bookings made for one car, highest rent price first."""
    return await list_bookings_by_product_controller(product_id, db_service)
