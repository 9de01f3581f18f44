import logging
from typing import Any, Dict, List

from rentwheels.models.user import DEFAULT_ROLE, Identity, UserCreate
from rentwheels.services.access_policy import can_list_users, enforce
from rentwheels.services.database_service import MongoDBService

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "User already exists"


async def list_users_controller(identity: Identity, db_service: MongoDBService) -> List[Dict[str, Any]]:
    decision = await can_list_users(identity, db_service.get_user_role)
    enforce(decision, f"{identity.email} is not an admin")
    return await db_service.list_users()


async def create_user_controller(payload: UserCreate, db_service: MongoDBService) -> Dict[str, Any]:
    """Registers a user on first sign-in. Repeated registrations are a no-op."""
    user = payload.model_dump(exclude_unset=True)
    user["email"] = payload.email
    user["role"] = DEFAULT_ROLE

    result = await db_service.register_user(user)
    if result is None:
        logger.debug("User %s already registered", user["email"])
        return {"message": USER_EXISTS_MESSAGE}
    return result
