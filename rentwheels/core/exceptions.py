"""
Error taxonomy for the API.

Every error carries the HTTP status and the client-facing message; the
application-level handler in ``main.py`` renders them as ``{"message": ...}``.
"""
from fastapi import status


class RentWheelsError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "internal server error"
    headers = None

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(RentWheelsError):
    """Missing, malformed or unverifiable bearer credential."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "unauthorized access"
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(RentWheelsError):
    """Verified identity lacks the required role or ownership."""
    status_code = status.HTTP_403_FORBIDDEN
    message = "forbidden access"


class NotFoundOrNoChange(RentWheelsError):
    """An update matched no document or left it unchanged."""
    status_code = status.HTTP_404_NOT_FOUND
    message = "Car not found or no change"


class MalformedIdentifier(RentWheelsError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, value):
        self.value = value
        super().__init__(f"Malformed identifier: {value!r}")


class StorageUnavailable(RentWheelsError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "storage unavailable"
