import base64
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions
from starlette.concurrency import run_in_threadpool

from rentwheels.core.config import Settings
from rentwheels.core.exceptions import Unauthorized
from rentwheels.models.user import Identity

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings) -> firebase_admin.App:
    """Initialize the default Firebase app once; later calls return it unchanged."""
    try:
        app = firebase_admin.get_app()
        logger.info("Firebase app already initialized.")
        return app
    except ValueError:
        logger.info("Initializing Firebase app...")

    if settings.FIREBASE_SERVICE_KEY:
        decoded = base64.b64decode(settings.FIREBASE_SERVICE_KEY.get_secret_value()).decode("utf-8")
        cred = credentials.Certificate(json.loads(decoded))
    elif settings.GOOGLE_APPLICATION_CREDENTIALS:
        cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
    else:
        # For environments like Google Cloud Run where service account is implicit
        cred = credentials.ApplicationDefault()

    options = {"projectId": settings.GOOGLE_CLOUD_PROJECT} if settings.GOOGLE_CLOUD_PROJECT else None
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase app initialized successfully.")
    return app


class FirebaseAuthService:
    def __init__(self, settings: Settings, firebase_app: Optional[firebase_admin.App] = None):
        self.firebase_app = firebase_app
        self.check_revoked = settings.FIREBASE_CHECK_REVOKED

    async def verify(self, token: Optional[str]) -> Identity:
        """
        Verifies a Firebase ID token and returns the caller's identity.
        Every failure collapses into Unauthorized.
        """
        if not token:
            raise Unauthorized()
        try:
            # verify_id_token may fetch Google's public keys, keep it off the event loop
            decoded_token = await run_in_threadpool(
                auth.verify_id_token, token, app=self.firebase_app, check_revoked=self.check_revoked
            )
        except (ValueError, exceptions.FirebaseError) as e:
            logger.warning(f"Invalid token or authentication error: {e}")
            raise Unauthorized() from e

        email = decoded_token.get("email")
        if not email:
            logger.warning("Verified token for uid %s carries no email claim.", decoded_token.get("uid"))
            raise Unauthorized()
        logger.debug(f"Token verified for user: {email}")
        return Identity(uid=decoded_token.get("uid", ""), email=email)
