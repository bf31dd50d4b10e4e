"""Identifier normalization between the model layer and MongoDB.

Models address records by ``id``; MongoDB stores them under ``_id`` as
ObjectId. Callers may pass either name and either an ObjectId or its
24-character hex string.
"""

from typing import Any

from bson import ObjectId


def normalize_identifier(value: Any) -> Any:
    """Convert a hex string to ObjectId; pass anything else through.

    Raises:
        bson.errors.InvalidId: If ``value`` is a string that is not a valid ObjectId
    """
    if isinstance(value, str):
        return ObjectId(value)
    return value


def fix_query_identifier(query: dict | None) -> dict | None:
    """Rewrite a filter so the store only ever sees ``_id``.

    ``id`` is copied into ``_id`` when ``_id`` is absent, then always
    removed. A string ``_id`` is converted to ObjectId. The filter is
    modified in place and returned; an empty or missing filter is returned
    unchanged.
    """
    if not query:
        return query

    if "_id" not in query and "id" in query:
        query["_id"] = query["id"]
    query.pop("id", None)

    if isinstance(query.get("_id"), str):
        query["_id"] = normalize_identifier(query["_id"])

    return query
