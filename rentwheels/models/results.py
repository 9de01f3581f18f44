from typing import Optional
from pydantic import BaseModel

class InsertResult(BaseModel):
    acknowledged: bool
    insertedId: str

class UpdateResult(BaseModel):
    acknowledged: bool
    matchedCount: int
    modifiedCount: int
    upsertedCount: int = 0
    upsertedId: Optional[str] = None

class DeleteResult(BaseModel):
    success: bool

class MessageResponse(BaseModel):
    message: str
