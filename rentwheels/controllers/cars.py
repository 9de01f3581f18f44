import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rentwheels.core.config import Settings
from rentwheels.core.exceptions import NotFoundOrNoChange
from rentwheels.models.car import IMMUTABLE_CAR_FIELDS, CarCreate
from rentwheels.models.user import Identity
from rentwheels.services.access_policy import can_modify_car, enforce
from rentwheels.services.database_service import OLDEST_FIRST, MongoDBService

logger = logging.getLogger(__name__)


async def list_cars_controller(db_service: MongoDBService, provider_email: Optional[str] = None) -> List[Dict[str, Any]]:
    query = {"providerEmail": provider_email} if provider_email else {}
    return await db_service.find_cars(query, sort=OLDEST_FIRST)


async def featured_cars_controller(db_service: MongoDBService, settings: Settings) -> List[Dict[str, Any]]:
    # Same ordering as the full listing: the earliest postings are featured.
    return await db_service.find_cars(sort=OLDEST_FIRST, limit=settings.FEATURED_CARS_LIMIT)


async def get_car_controller(car_id: str, db_service: MongoDBService) -> Optional[Dict[str, Any]]:
    return await db_service.get_car(car_id)


async def list_cars_by_provider_controller(email: str, db_service: MongoDBService) -> List[Dict[str, Any]]:
    return await db_service.find_cars({"providerEmail": email})


async def create_car_controller(payload: CarCreate, identity: Identity, db_service: MongoDBService) -> Dict[str, Any]:
    car = payload.model_dump(exclude_unset=True)
    car["providerEmail"] = identity.email
    if car.get("postedAt") is None:
        car["postedAt"] = datetime.now(timezone.utc).isoformat()
    return await db_service.add_car(car)


async def _check_car_owner(car_id: str, identity: Identity, db_service: MongoDBService, settings: Settings) -> bool:
    """Applies the ownership rule when enabled. Returns False if the car is gone."""
    if not settings.ENFORCE_CAR_OWNERSHIP:
        return True
    car = await db_service.get_car(car_id)
    if car is None:
        return False
    enforce(can_modify_car(identity, car, True), f"{identity.email} does not own car {car_id}")
    return True


async def update_car_controller(
    car_id: str,
    update_data: Dict[str, Any],
    identity: Identity,
    db_service: MongoDBService,
    settings: Settings,
) -> Dict[str, Any]:
    fields = {key: value for key, value in update_data.items() if key not in IMMUTABLE_CAR_FIELDS}
    if not fields:
        raise NotFoundOrNoChange()
    if not await _check_car_owner(car_id, identity, db_service, settings):
        raise NotFoundOrNoChange()

    result = await db_service.update_car(car_id, fields)
    if result["modifiedCount"] == 0:
        raise NotFoundOrNoChange()
    return result


async def delete_car_controller(
    car_id: str,
    identity: Identity,
    db_service: MongoDBService,
    settings: Settings,
) -> Dict[str, bool]:
    if not await _check_car_owner(car_id, identity, db_service, settings):
        return {"success": False}
    return {"success": await db_service.delete_car(car_id)}
