import logging
from typing import Any, Dict, List, Union

from fastapi import APIRouter, Depends

from rentwheels.api.deps import get_current_identity, get_db_service
from rentwheels.controllers.users import create_user_controller, list_users_controller
from rentwheels.models.results import InsertResult, MessageResponse
from rentwheels.models.user import Identity, UserCreate
from rentwheels.services.database_service import MongoDBService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/users", response_model=List[Dict[str, Any]], summary="List all users (admin)")
async def list_users(
    identity: Identity = Depends(get_current_identity),
    db_service: MongoDBService = Depends(get_db_service),
):
    """Returns every registered user. Only callers whose stored role is admin may list users."""
    return await list_users_controller(identity, db_service)

@router.post("/users", response_model=Union[InsertResult, MessageResponse], summary="Register a user")
async def create_user(
    payload: UserCreate,
    db_service: MongoDBService = Depends(get_db_service),
):
    """Stores the user on first sign-in; re-registering an email is a no-op."""
    return await create_user_controller(payload, db_service)
