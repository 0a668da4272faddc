from __future__ import annotations

import pytest

from pylitetrigger import Collection, Database


@pytest.fixture
def db() -> Database:
    return Database()


@pytest.fixture
def coll(db: Database) -> Collection:
    """
    Empty collection, truncated the way a test harness resets shared state.
    """
    return db.collection("transformColl").truncate()


@pytest.fixture
def slot_doc() -> dict:
    """One parent with a single slot holding four unavailable subjects."""
    return {
        "_id": 1,
        "slots": [{
            "_id": 1,
            "subjects": [
                {"_id": 1, "available": 0},
                {"_id": 2, "available": 0},
                {"_id": 3, "available": 0},
                {"_id": 4, "available": 0},
            ],
        }],
    }
