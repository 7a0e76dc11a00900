"""Repository classes encapsulating document store operations.

Each repository wraps a single pymongo collection. Repositories take
already-parsed `ObjectId` values and return raw documents (dicts) or
``None`` when nothing matched.
"""

import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database

from .models import COURSE_COLLECTION, STUDENT_COLLECTION


class _CollectionRepository:
    collection_name: str

    def __init__(self, database: Database):
        self.collection = database[self.collection_name]

    def get(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": oid})

    def create(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert `document` and return it with its generated `_id`."""
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    def update(self, oid: ObjectId, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply `changes` with ``$set`` and return the updated document."""
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        """Remove a document and return what was deleted."""
        return self.collection.find_one_and_delete({"_id": oid})

    def count(self, filter_q: Optional[Dict[str, Any]] = None) -> int:
        return self.collection.count_documents(filter_q or {})


class CourseRepository(_CollectionRepository):
    """Queries over the ``courses`` collection."""
    collection_name = COURSE_COLLECTION

    def list_by_name(self) -> List[Dict[str, Any]]:
        return list(self.collection.find().sort("name", ASCENDING))


class StudentRepository(_CollectionRepository):
    """Queries over the ``students`` collection."""
    collection_name = STUDENT_COLLECTION

    def list_newest_first(self) -> List[Dict[str, Any]]:
        return list(self.collection.find().sort("createdAt", DESCENDING))

    def count_for_course(self, course_value: str) -> int:
        """Count students whose `course` field equals `course_value` exactly."""
        return self.collection.count_documents({"course": course_value})

    def search(self, term: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match over name, course and email."""
        pattern = {"$regex": re.escape(term), "$options": "i"}
        return list(self.collection.find({
            "$or": [
                {"name": pattern},
                {"course": pattern},
                {"email": pattern},
            ]
        }))

    def count_by_course(self) -> List[Dict[str, Any]]:
        return list(self.collection.aggregate([
            {"$group": {"_id": "$course", "count": {"$sum": 1}}},
        ]))
