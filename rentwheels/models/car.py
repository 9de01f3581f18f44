from typing import Any, Optional
from pydantic import BaseModel, ConfigDict

# Fields a PATCH may never touch
IMMUTABLE_CAR_FIELDS = frozenset({"_id", "providerEmail"})

class CarCreate(BaseModel):
    """
    A new listing. Listing fields (carName, rentPrice, description, location...)
    are stored exactly as sent; providerEmail is overwritten with the caller's identity.
    """
    model_config = ConfigDict(extra="allow")

    providerEmail: Optional[str] = None
    postedAt: Any = None
