import logging
from typing import Any, Dict, List, Optional

from rentwheels.models.booking import BookingCreate
from rentwheels.models.user import Identity
from rentwheels.services.access_policy import (
    can_create_booking,
    can_list_bookings,
    enforce,
    participant_filter,
)
from rentwheels.services.database_service import HIGHEST_PRICE_FIRST, MongoDBService

logger = logging.getLogger(__name__)


async def list_bookings_controller(
    email: Optional[str],
    identity: Identity,
    db_service: MongoDBService,
) -> List[Dict[str, Any]]:
    """Bookings the caller takes part in, as renter or as provider."""
    enforce(can_list_bookings(identity, email), f"{identity.email} asked for bookings of {email}")
    return await db_service.find_bookings(participant_filter(email))


async def create_booking_controller(
    payload: BookingCreate,
    identity: Identity,
    db_service: MongoDBService,
) -> Dict[str, Any]:
    # A renter may only book for themselves
    enforce(
        can_create_booking(identity, payload.userEmail),
        f"{identity.email} tried to book as {payload.userEmail}",
    )
    return await db_service.add_booking(payload.model_dump(exclude_unset=True))


async def delete_booking_controller(booking_id: str, db_service: MongoDBService) -> Dict[str, bool]:
    # TODO: restrict to booking participants once the web client sends a token here
    return {"success": await db_service.delete_booking(booking_id)}


async def list_bookings_by_product_controller(product_id: str, db_service: MongoDBService) -> List[Dict[str, Any]]:
    return await db_service.find_bookings({"product": product_id}, sort=HIGHEST_PRICE_FIRST)
