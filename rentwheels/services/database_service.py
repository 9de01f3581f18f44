import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from rentwheels.core.config import Settings
from rentwheels.core.exceptions import MalformedIdentifier, StorageUnavailable

logger = logging.getLogger(__name__)

USERS = "users"
CARS = "cars"
BOOKINGS = "bookings"

Sort = Sequence[Tuple[str, int]]


def parse_object_id(value: Any) -> ObjectId:
    """Convert an external hex id into an ObjectId.

    Only 24-character hex strings are accepted. ``ObjectId`` itself also
    takes 12-byte strings, which would silently coerce arbitrary input.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or len(value) != 24:
        raise MalformedIdentifier(value)
    try:
        return ObjectId(value)
    except InvalidId:
        raise MalformedIdentifier(value)


def to_json_compatible(value: Any) -> Any:
    """Render ObjectIds as hex strings, recursing into dicts and lists."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Mapping):
        return {key: to_json_compatible(val) for key, val in value.items()}
    if isinstance(value, list):
        return [to_json_compatible(val) for val in value]
    return value


class MongoDBService:
    """Thin wrapper around the three marketplace collections.

    Every public method performs exactly one collection operation. Results are
    converted to plain JSON-compatible structures so handlers can return them
    unchanged.
    """

    def __init__(self, database, client: Optional[AsyncMongoClient] = None):
        self.database = database
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoDBService":
        client = AsyncMongoClient(
            settings.MONGO_URI,
            serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )
        return cls(client[settings.MONGO_DB_NAME], client=client)

    async def ping(self) -> None:
        """Round-trip to the server; raises StorageUnavailable when unreachable."""
        try:
            await self.database.command("ping")
            logger.info("Connected to MongoDB database '%s'", self.database.name)
        except PyMongoError as e:
            logger.error(f"MongoDB ping failed: {e}")
            raise StorageUnavailable() from e

    async def ensure_indexes(self) -> None:
        # Backs the upsert in register_user against concurrent first sign-ins
        await self.database[USERS].create_index("email", unique=True)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            logger.info("MongoDB client closed.")

    # ---- Generic helpers -------------------------------------------------------
    async def _find(
        self,
        collection: str,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self.database[collection].find(query or {})
        if sort:
            cursor = cursor.sort(list(sort))
        if limit is not None:
            cursor = cursor.limit(limit)
        documents = await cursor.to_list(length=None)
        logger.debug("Found %d documents in %s for %s", len(documents), collection, query)
        return [to_json_compatible(doc) for doc in documents]

    async def _find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        document = await self.database[collection].find_one(query)
        return to_json_compatible(document) if document is not None else None

    async def _insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        # insert_one adds _id to the mapping it is given
        result = await self.database[collection].insert_one(dict(document))
        logger.info("Inserted document %s into %s", result.inserted_id, collection)
        return {"acknowledged": result.acknowledged, "insertedId": str(result.inserted_id)}

    async def _delete_by_id(self, collection: str, document_id: str) -> bool:
        result = await self.database[collection].delete_one({"_id": parse_object_id(document_id)})
        logger.info("Deleted %d document(s) with id %s from %s", result.deleted_count, document_id, collection)
        return result.deleted_count > 0

    # ---- Users -----------------------------------------------------------------
    async def list_users(self) -> List[Dict[str, Any]]:
        return await self._find(USERS)

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self._find_one(USERS, {"email": email})

    async def get_user_role(self, email: str) -> Optional[str]:
        user = await self.get_user_by_email(email)
        return user.get("role") if user else None

    async def register_user(self, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Insert the user unless the email is already registered, in one upsert.

        Returns the insert acknowledgment, or None when the email existed.
        """
        fields = {key: value for key, value in user.items() if key != "email"}
        result = await self.database[USERS].update_one(
            {"email": user["email"]}, {"$setOnInsert": fields}, upsert=True
        )
        if result.upserted_id is None:
            return None
        logger.info("Registered user %s as %s", user["email"], result.upserted_id)
        return {"acknowledged": result.acknowledged, "insertedId": str(result.upserted_id)}

    # ---- Cars ------------------------------------------------------------------
    async def find_cars(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return await self._find(CARS, query, sort=sort, limit=limit)

    async def get_car(self, car_id: str) -> Optional[Dict[str, Any]]:
        return await self._find_one(CARS, {"_id": parse_object_id(car_id)})

    async def add_car(self, car: Dict[str, Any]) -> Dict[str, Any]:
        return await self._insert_one(CARS, car)

    async def update_car(self, car_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.database[CARS].update_one(
            {"_id": parse_object_id(car_id)}, {"$set": fields}
        )
        logger.info(
            "Updated car %s: matched=%d modified=%d", car_id, result.matched_count, result.modified_count
        )
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
            "upsertedCount": 1 if result.upserted_id is not None else 0,
            "upsertedId": to_json_compatible(result.upserted_id),
        }

    async def delete_car(self, car_id: str) -> bool:
        return await self._delete_by_id(CARS, car_id)

    # ---- Bookings --------------------------------------------------------------
    async def find_bookings(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Sort] = None,
    ) -> List[Dict[str, Any]]:
        return await self._find(BOOKINGS, query, sort=sort)

    async def add_booking(self, booking: Dict[str, Any]) -> Dict[str, Any]:
        return await self._insert_one(BOOKINGS, booking)

    async def delete_booking(self, booking_id: str) -> bool:
        return await self._delete_by_id(BOOKINGS, booking_id)


OLDEST_FIRST: Sort = [("postedAt", ASCENDING)]
HIGHEST_PRICE_FIRST: Sort = [("rentPrice", DESCENDING)]
