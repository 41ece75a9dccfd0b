import logging
from typing import Any, Dict, Iterable

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.services.errors import PersistenceError

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("title", "rating", "price", "stock")


def replace_all(collection: Collection, items: Iterable[Any]) -> Dict[str, int]:
    """Swap the whole stored catalog for ``items``: delete everything, then insert.

    Not atomic. Readers running between the two steps see an empty
    collection, and if the insert fails after the delete succeeded the
    collection stays empty; nothing is rolled back.
    """
    docs = [x.to_dict() if hasattr(x, "to_dict") else dict(x) for x in items]
    try:
        deleted = collection.delete_many({}).deleted_count
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to clear catalog: {exc}") from exc
    logger.info("Deleted %d books from %s", deleted, collection.name)

    inserted = 0
    if docs:
        try:
            inserted = len(collection.insert_many(docs).inserted_ids)
        except PyMongoError as exc:
            raise PersistenceError(f"Failed to insert {len(docs)} books: {exc}") from exc
    logger.info("Inserted %d books into %s", inserted, collection.name)
    return {"deleted": deleted, "inserted": inserted}


def ensure_indexes(collection: Collection) -> None:
    """Single-field indexes backing the title sort and the range/equality filters."""
    try:
        for name in INDEXED_FIELDS:
            collection.create_index([(name, ASCENDING)])
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to create indexes: {exc}") from exc
