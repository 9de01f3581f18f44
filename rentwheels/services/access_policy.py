"""
Resource access policy for users, cars and bookings.

Decisions are made by small functions that take the verified identity and the
facts they need (a role lookup, a target document, a requested email) and
return a Decision. Handlers turn a DENY into a 403 with ``enforce``.

``ENDPOINT_POLICIES`` is the table the routers are checked against: which
endpoints require a verified identity and which rule applies after that.
Entries marked ``flagged`` reproduce known gaps of the deployed API:

* car PATCH/DELETE only require authentication unless ENFORCE_CAR_OWNERSHIP
  is set, after which only the provider may mutate the listing;
* DELETE /bookings/{id} has no identity check at all.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, NamedTuple, Optional

from rentwheels.core.exceptions import Forbidden
from rentwheels.models.user import ADMIN_ROLE, Identity

logger = logging.getLogger(__name__)

RoleLookup = Callable[[str], Awaitable[Optional[str]]]


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class EndpointPolicy(NamedTuple):
    guarded: bool
    rule: str
    flagged: bool = False


ENDPOINT_POLICIES: Dict[tuple, EndpointPolicy] = {
    ("GET", "/users"): EndpointPolicy(True, "requester's stored role is admin"),
    ("POST", "/users"): EndpointPolicy(False, "always; idempotent on email"),
    ("GET", "/cars"): EndpointPolicy(False, "public"),
    ("GET", "/featured-cars"): EndpointPolicy(False, "public"),
    ("GET", "/cars/{car_id}"): EndpointPolicy(False, "public"),
    ("POST", "/cars"): EndpointPolicy(True, "any identity; providerEmail stamped from identity"),
    ("PATCH", "/cars/{car_id}"): EndpointPolicy(True, "any identity, provider only when enforced", flagged=True),
    ("DELETE", "/cars/{car_id}"): EndpointPolicy(True, "any identity, provider only when enforced", flagged=True),
    ("GET", "/cars/provider/{email}"): EndpointPolicy(False, "public"),
    ("GET", "/bookings"): EndpointPolicy(True, "email query equals identity; participant filter"),
    ("POST", "/bookings"): EndpointPolicy(True, "userEmail equals identity"),
    ("DELETE", "/bookings/{booking_id}"): EndpointPolicy(False, "none, anyone holding the id", flagged=True),
    ("GET", "/cars/bookings/{product_id}"): EndpointPolicy(False, "public"),
}


def enforce(decision: Decision, reason: str = "") -> None:
    if decision is not Decision.ALLOW:
        logger.warning("Access denied: %s", reason or "policy")
        raise Forbidden()


async def can_list_users(identity: Identity, role_lookup: RoleLookup) -> Decision:
    """Admins only. A requester without a user record is denied."""
    role = await role_lookup(identity.email)
    return Decision.ALLOW if role == ADMIN_ROLE else Decision.DENY


def can_modify_car(identity: Identity, car: Optional[Mapping[str, Any]], enforce_ownership: bool) -> Decision:
    if not enforce_ownership:
        return Decision.ALLOW
    if car is None or car.get("providerEmail") != identity.email:
        return Decision.DENY
    return Decision.ALLOW


def can_create_booking(identity: Identity, user_email: Optional[str]) -> Decision:
    return Decision.ALLOW if user_email == identity.email else Decision.DENY


def can_list_bookings(identity: Identity, requested_email: Optional[str]) -> Decision:
    if not requested_email or requested_email != identity.email:
        return Decision.DENY
    return Decision.ALLOW


def participant_filter(email: str) -> Dict[str, Any]:
    """Bookings where the email is either the provider or the renter."""
    return {"$or": [{"providerEmail": email}, {"userEmail": email}]}
