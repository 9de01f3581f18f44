import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from rentwheels.api.deps import get_current_identity, get_db_service
from rentwheels.controllers.cars import (
    create_car_controller,
    delete_car_controller,
    featured_cars_controller,
    get_car_controller,
    list_cars_by_provider_controller,
    list_cars_controller,
    update_car_controller,
)
from rentwheels.core.config import get_settings, Settings
from rentwheels.models.car import CarCreate
from rentwheels.models.results import DeleteResult, InsertResult, UpdateResult
from rentwheels.models.user import Identity
from rentwheels.services.database_service import MongoDBService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/cars", response_model=List[Dict[str, Any]])
async def list_cars(
    email: Optional[str] = Query(None, description="Only cars listed by this provider."),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Lists cars, oldest posting first."""
    return await list_cars_controller(db_service, provider_email=email)

@router.get("/featured-cars", response_model=List[Dict[str, Any]])
async def featured_cars(
    db_service: MongoDBService = Depends(get_db_service),
    settings: Settings = Depends(get_settings),
):
    return await featured_cars_controller(db_service, settings)

@router.get("/cars/provider/{email}", response_model=List[Dict[str, Any]])
async def list_cars_by_provider(
    email: str,
    db_service: MongoDBService = Depends(get_db_service),
):
    return await list_cars_by_provider_controller(email, db_service)

@router.get("/cars/{car_id}", response_model=Optional[Dict[str, Any]])
async def get_car(
    car_id: str,
    db_service: MongoDBService = Depends(get_db_service),
):
    """Returns the car, or null when no car has this id."""
    return await get_car_controller(car_id, db_service)

@router.post("/cars", response_model=InsertResult)
async def create_car(
    payload: CarCreate,
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Lists a new car on behalf of the authenticated provider."""
    return await create_car_controller(payload, identity, db_service)

@router.patch("/cars/{car_id}", response_model=UpdateResult)
async def update_car(
    car_id: str,
    update_data: Dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
    settings: Settings = Depends(get_settings),
):
    """
    Merges the given fields into the car. Responds 404 both when the car does
    not exist and when nothing changed.
    """
    return await update_car_controller(car_id, update_data, identity, db_service, settings)

@router.delete("/cars/{car_id}", response_model=DeleteResult)
async def delete_car(
    car_id: str,
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
    settings: Settings = Depends(get_settings),
):
    return await delete_car_controller(car_id, identity, db_service, settings)
