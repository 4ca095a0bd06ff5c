from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..pagination import PageRequest
from ..repository import CONTACT, contains, get_repository, serialize_document
from ..responses import respond
from ..schemas import ContactCreate, validate
from . import request_payload

contacts_bp = Blueprint("contacts", __name__)

TEXT_SEARCH_FIELDS = ("firstName", "lastName", "email", "message")


def build_contact_filter(search_term: str):
    term = (search_term or "").strip()
    if not term:
        return {}
    if term.isdigit():
        return {"phone": contains(term)}
    return {"$or": [{field_name: contains(term)} for field_name in TEXT_SEARCH_FIELDS]}


@contacts_bp.route("", methods=["POST"])
def submit_contact_query():
    query = validate(ContactCreate, request_payload())
    document = get_repository(CONTACT).create(
        {
            "firstName": query.first_name or "",
            "lastName": query.last_name or "",
            "email": query.email or "",
            "phone": query.phone,
            "message": query.message or "",
        }
    )
    return respond(201, serialize_document(document), "Contact query created successfully")


@contacts_bp.route("", methods=["GET"])
@jwt_required()
def list_contact_queries():
    page_request = PageRequest.from_args(request.args)
    documents, total = get_repository(CONTACT).list(
        build_contact_filter(request.args.get("search")), page_request
    )
    message = (
        "Contact queries fetched successfully" if documents else "No contact queries found"
    )
    return respond(
        200,
        {
            "contacts": [serialize_document(document) for document in documents],
            "pagination": page_request.describe(total),
        },
        message,
    )
