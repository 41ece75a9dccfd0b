import os
from typing import Optional, Tuple

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

_client: Optional[MongoClient] = None
_config: Optional[Tuple[str, str, str]] = None


def get_client() -> MongoClient:
    """Return the shared MongoClient, creating it on first use."""
    global _client
    if _client is None:
        uri, _, _ = _get_mongo_config()
        try:
            _client = MongoClient(uri, serverSelectionTimeoutMS=10_000)
        except PyMongoError as exc:
            raise RuntimeError(
                f"Failed to create MongoDB client for URI '{uri}'. Check that the database is running and the URI is correct.\nError: {exc}"
            ) from exc
    return _client


def close_client():
    global _client, _config
    _config = None
    if _client is not None:
        _client.close()
        _client = None


def get_books_collection() -> Collection:
    """Return the collection that holds the crawled catalog.

    Used as a FastAPI dependency so tests can override it.
    """
    _, db_name, collection_name = _get_mongo_config()
    return get_client()[db_name][collection_name]


def load_env_from_file():
    """Load environment variables from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    """
    try:
        root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
        env_path = os.path.join(root_dir, ".env")
        if not os.path.isfile(env_path):
            return
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith("#"):
                    continue
                if "=" not in s:
                    continue
                key, val = s.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key and (key not in os.environ or not os.environ[key]):
                    os.environ[key] = val
    except OSError:
        # .env is optional
        pass


def _get_mongo_config() -> Tuple[str, str, str]:
    """Return (uri, database, collection), read once from the environment and .env."""
    global _config
    if _config is None:
        load_env_from_file()
        _config = (
            os.getenv("MONGODB_URI") or "mongodb://localhost:27017",
            os.getenv("MONGODB_DB") or "book_explorer",
            os.getenv("MONGODB_COLLECTION") or "books",
        )
    return _config
