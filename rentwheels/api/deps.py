from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rentwheels.core.config import get_settings, Settings
from rentwheels.core.exceptions import Unauthorized
from rentwheels.models.user import Identity
from rentwheels.services.auth_service import FirebaseAuthService
from rentwheels.services.database_service import MongoDBService

# Bearer scheme; missing or non-Bearer headers yield None and are rejected by the guard
bearer_scheme = HTTPBearer(auto_error=False)

# Service Dependencies
def get_db_service(request: Request) -> MongoDBService:
    # Created and pinged once at startup, shared by all requests
    return request.app.state.db_service

def get_auth_service(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> FirebaseAuthService:
    return FirebaseAuthService(settings, request.app.state.firebase_app)

# Authorization guard
async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: FirebaseAuthService = Depends(get_auth_service),
) -> Identity:
    """
    Verifies the bearer token and returns the caller's identity.
    Raises Unauthorized (401) before the route handler runs.
    """
    if credentials is None:
        raise Unauthorized()
    return await auth_service.verify(credentials.credentials)
