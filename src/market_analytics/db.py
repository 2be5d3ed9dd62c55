"""MongoDB helpers for the hosted record store.

Centralizes creation of Mongo clients and the batched read used by the CLI.
The aggregation core never receives a client; it only sees the rows these
helpers return.
"""

from __future__ import annotations

import logging
from typing import Any

import certifi
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

log = logging.getLogger(__name__)


def get_client(uri: str) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    return MongoClient(
        uri,
        tls=True,
        tlsCAFile=certifi.where(),
        serverSelectionTimeoutMS=30000,
        socketTimeoutMS=30000,
        connectTimeoutMS=30000,
    )


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]


def fetch_records(
    collection: Collection[dict[str, Any]],
    query: dict[str, Any] | None = None,
    projection: dict[str, Any] | None = None,
    batch_size: int = 50_000,
) -> list[dict[str, Any]]:
    """Read every document matching `query` into memory.

    Args:
        collection: Source PyMongo collection.
        query: Optional filter document (all documents when omitted).
        projection: Optional projection; `_id` is dropped unless requested.
        batch_size: Cursor batch size.

    Returns:
        List of documents.
    """
    proj = {"_id": False}
    if projection:
        proj.update(projection)
    cursor = collection.find(query or {}, proj).batch_size(batch_size)
    docs = list(cursor)
    log.info("Fetched %d documents from %s", len(docs), collection.name)
    return docs
