"""
MongoDB access for the Smart Cart backend.

Collections are named after the lowercased schema (e.g. CashIntent -> "cash_intent").
Route handlers receive a `MongoStore` through `Depends(get_store)`; each store
call is a single MongoDB operation and nothing spans two of them.
"""
from functools import lru_cache, wraps
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import StoreError
from logging_utils import get_app_logger
from settings import SmartCartConfigs

logger = get_app_logger(__name__)
configs = SmartCartConfigs()

SortSpec = Sequence[Tuple[str, int]]


def _wrap_errors(func):
    @wraps(func)
    def wrapper(self, collection, *args, **kwargs):
        try:
            return func(self, collection, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"store_error | op={func.__name__} collection={collection} error={str(e)}", exc_info=True)
            raise StoreError(error=str(e)) from e
    return wrapper


class MongoStore:
    """Thin handle over a pymongo database implementing the store contract."""

    def __init__(self, db: Database):
        self.db = db

    @_wrap_errors
    def find(self, collection: str, filter: Optional[Dict[str, Any]] = None, sort: Optional[SortSpec] = None) -> List[dict]:
        cursor = self.db[collection].find(filter or {})
        if sort:
            cursor = cursor.sort(list(sort))
        return list(cursor)

    @_wrap_errors
    def find_one(self, collection: str, filter: Dict[str, Any], sort: Optional[SortSpec] = None) -> Optional[dict]:
        return self.db[collection].find_one(filter, sort=list(sort) if sort else None)

    @_wrap_errors
    def upsert(self, collection: str, filter: Dict[str, Any], fields: Dict[str, Any], on_insert: Optional[Dict[str, Any]] = None) -> dict:
        update = {"$set": fields}
        if on_insert:
            update["$setOnInsert"] = on_insert
        return self.db[collection].find_one_and_update(
            filter, update, upsert=True, return_document=ReturnDocument.AFTER
        )

    @_wrap_errors
    def delete_one(self, collection: str, filter: Dict[str, Any]) -> int:
        return self.db[collection].delete_one(filter).deleted_count

    @_wrap_errors
    def update_one(self, collection: str, filter: Dict[str, Any], fields: Dict[str, Any]) -> int:
        return self.db[collection].update_one(filter, {"$set": fields}).matched_count

    @_wrap_errors
    def insert_one(self, collection: str, document: Dict[str, Any]) -> str:
        return str(self.db[collection].insert_one(document).inserted_id)

    @_wrap_errors
    def count(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> int:
        return self.db[collection].count_documents(filter or {})

    def collection_names(self) -> List[str]:
        try:
            return self.db.list_collection_names()
        except PyMongoError as e:
            raise StoreError(error=str(e)) from e


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    logger.info(f"mongo_client_created | database={configs.DATABASE_NAME}")
    return MongoClient(configs.DATABASE_URL, tz_aware=True)


def get_store() -> MongoStore:
    return MongoStore(get_client()[configs.DATABASE_NAME])


def serialize_doc(doc: dict) -> dict:
    """Copy of a stored document with `_id` replaced by a string `id`."""
    out = dict(doc)
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out
