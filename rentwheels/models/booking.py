from typing import Any
from pydantic import BaseModel, ConfigDict

class BookingCreate(BaseModel):
    """
    A booking request. Only userEmail is read by the access policy; product,
    providerEmail, rentPrice and any other field are stored as sent. A missing
    renter is rejected by the policy rather than by validation.
    """
    model_config = ConfigDict(extra="allow")

    userEmail: Any = None
