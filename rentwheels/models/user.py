from pydantic import BaseModel, ConfigDict, Field

ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"

class Identity(BaseModel):
    """
    The principal behind a verified Firebase ID token.
    """
    uid: str
    email: str

class UserCreate(BaseModel):
    """
    Self-registration payload. The email is stored verbatim so it compares
    equal to the token's email claim; profile fields are stored as sent and
    the role is always assigned by the server.
    """
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., min_length=1)
