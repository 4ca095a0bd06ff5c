import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app
from pymongo import ReturnDocument

from .pagination import PageRequest
from .responses import BadRequest, NotFound

NEWEST_FIRST = [("createdAt", -1), ("_id", -1)]


@dataclass(frozen=True)
class Resource:
    label: str
    collection: str
    plural: str


CATEGORY = Resource("Category", "categories", "categories")
MATERIAL = Resource("Material", "materials", "materials")
SIZE = Resource("Size", "sizes", "sizes")
PRODUCT = Resource("Product", "products", "products")
BLOG = Resource("Blog", "blogs", "blogs")
CONTACT = Resource("Contact query", "contacts", "contacts")
ADMIN = Resource("Admin", "admins", "admins")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        return value.isoformat() + "Z"
    return value.isoformat()


def serialize_document(document: Optional[Mapping], exclude: Iterable[str] = ()) -> Dict[str, Any]:
    if not document:
        return {}

    hidden = set(exclude)
    serialized: Dict[str, Any] = {}
    for key, value in document.items():
        if key in hidden:
            continue
        if key == "_id":
            serialized["id"] = str(value)
        elif isinstance(value, ObjectId):
            serialized[key] = str(value)
        elif isinstance(value, datetime):
            serialized[key] = format_timestamp(value)
        else:
            serialized[key] = value
    return serialized


def exact_match(value: str) -> Dict[str, str]:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def contains(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


def parse_flag(value) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def build_filter(
    args: Mapping,
    search_params: Mapping[str, str] = None,
    exact_params: Iterable[str] = (),
) -> Dict[str, Any]:
    """Translate query-string arguments into a MongoDB filter.

    ``search_params`` maps a query parameter to the field it searches by
    case-insensitive substring; ``exact_params`` are compared verbatim.
    ``isActive`` is honoured only when it reads ``true`` or ``false``.
    """
    query: Dict[str, Any] = {}
    for param, field_name in (search_params or {}).items():
        term = (args.get(param) or "").strip()
        if term:
            query[field_name] = contains(term)

    for param in exact_params:
        value = args.get(param)
        if value:
            query[param] = value

    active_flag = parse_flag(args.get("isActive"))
    if active_flag is not None:
        query["isActive"] = active_flag
    return query


class CatalogRepository:
    def __init__(self, collection, resource: Resource):
        self.collection = collection
        self.resource = resource

    def object_id(self, identifier) -> ObjectId:
        if isinstance(identifier, ObjectId):
            return identifier
        try:
            return ObjectId(str(identifier))
        except (InvalidId, TypeError):
            raise BadRequest(f"Invalid {self.resource.label.lower()} identifier")

    def not_found(self) -> NotFound:
        return NotFound(f"{self.resource.label} not found")

    def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        timestamp = utcnow()
        document = dict(fields)
        document["createdAt"] = timestamp
        document["updatedAt"] = timestamp
        result = self.collection.insert_one(document)
        return self.collection.find_one({"_id": result.inserted_id})

    def list(
        self, query: Mapping[str, Any], page_request: PageRequest
    ) -> Tuple[List[Dict[str, Any]], int]:
        total = self.collection.count_documents(dict(query))
        cursor = self.collection.find(dict(query)).sort(NEWEST_FIRST)
        if page_request.paginated:
            cursor = cursor.skip(page_request.skip).limit(page_request.limit)
        return list(cursor), total

    def latest(self, limit: int) -> List[Dict[str, Any]]:
        return list(self.collection.find().sort(NEWEST_FIRST).limit(limit))

    def get_by_id(self, identifier) -> Dict[str, Any]:
        document = self.collection.find_one({"_id": self.object_id(identifier)})
        if not document:
            raise self.not_found()
        return document

    def update(self, identifier, changes: Mapping[str, Any]) -> Dict[str, Any]:
        update_fields = dict(changes)
        update_fields["updatedAt"] = utcnow()
        document = self.collection.find_one_and_update(
            {"_id": self.object_id(identifier)},
            {"$set": update_fields},
            return_document=ReturnDocument.AFTER,
        )
        if not document:
            raise self.not_found()
        return document

    def delete(self, identifier) -> Dict[str, Any]:
        document = self.collection.find_one_and_delete(
            {"_id": self.object_id(identifier)}
        )
        if not document:
            raise self.not_found()
        return document

    def has_conflict(self, scope: Mapping[str, Any], exclude_id=None) -> bool:
        query = dict(scope)
        if exclude_id is not None:
            query["_id"] = {"$ne": self.object_id(exclude_id)}
        return self.collection.find_one(query) is not None

    def find_one(self, query: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return self.collection.find_one(dict(query))

    def count(self) -> int:
        return self.collection.count_documents({})


def get_repository(resource: Resource) -> CatalogRepository:
    db = current_app.extensions["mongo_db"]
    return CatalogRepository(db[resource.collection], resource)
