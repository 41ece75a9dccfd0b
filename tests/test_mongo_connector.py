import mongomock

from app.db import mongo_connector


def test_collection_config_is_read_once(monkeypatch):
    calls = []
    monkeypatch.setattr(mongo_connector, "load_env_from_file", lambda: calls.append(1))
    monkeypatch.setattr(mongo_connector, "_config", None)
    monkeypatch.setattr(mongo_connector, "_client", mongomock.MongoClient())
    monkeypatch.setenv("MONGODB_DB", "catalog_test")
    monkeypatch.setenv("MONGODB_COLLECTION", "listings")

    first = mongo_connector.get_books_collection()
    second = mongo_connector.get_books_collection()

    assert calls == [1]
    assert first.full_name == second.full_name == "catalog_test.listings"
