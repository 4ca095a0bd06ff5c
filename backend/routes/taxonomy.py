from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..pagination import PageRequest
from ..repository import (
    CATEGORY,
    MATERIAL,
    SIZE,
    Resource,
    build_filter,
    exact_match,
    get_repository,
    serialize_document,
)
from ..responses import Conflict, respond
from ..schemas import TaxonomyCreate, TaxonomyUpdate, validate
from . import passthrough, request_payload


def create_taxonomy_blueprint(resource: Resource, gate_reads: bool = True) -> Blueprint:
    """CRUD routes for a name-only classification (category, material, size).

    Mutations always require a token; reads only when ``gate_reads`` is set.
    """
    blueprint = Blueprint(resource.plural, __name__)
    label = resource.label
    read_gate = jwt_required() if gate_reads else passthrough

    @blueprint.route("", methods=["POST"])
    @jwt_required()
    def create_entry():
        entry = validate(TaxonomyCreate, request_payload())
        repository = get_repository(resource)

        if repository.has_conflict({"name": exact_match(entry.name)}):
            raise Conflict(f"{label} already exists")

        document = repository.create(entry.fields())
        return respond(201, serialize_document(document), f"{label} created successfully")

    @blueprint.route("", methods=["GET"])
    @read_gate
    def list_entries():
        page_request = PageRequest.from_args(request.args)
        query = build_filter(request.args, search_params={"search": "name"})
        documents, total = get_repository(resource).list(query, page_request)
        return respond(
            200,
            {
                resource.plural: [serialize_document(document) for document in documents],
                "pagination": page_request.describe(total),
            },
            f"Fetched {resource.plural} successfully",
        )

    @blueprint.route("/<entry_id>", methods=["GET"])
    @read_gate
    def get_entry(entry_id: str):
        document = get_repository(resource).get_by_id(entry_id)
        return respond(200, serialize_document(document), f"Fetched {label.lower()} successfully")

    @blueprint.route("/<entry_id>", methods=["PUT"])
    @jwt_required()
    def update_entry(entry_id: str):
        changes = validate(TaxonomyUpdate, request_payload()).fields()
        repository = get_repository(resource)
        repository.get_by_id(entry_id)

        if "name" in changes and repository.has_conflict(
            {"name": exact_match(changes["name"])}, exclude_id=entry_id
        ):
            raise Conflict(f"{label} name already exists")

        document = repository.update(entry_id, changes)
        return respond(200, serialize_document(document), f"{label} updated successfully")

    @blueprint.route("/<entry_id>", methods=["DELETE"])
    @jwt_required()
    def delete_entry(entry_id: str):
        get_repository(resource).delete(entry_id)
        return respond(200, None, f"{label} deleted successfully")

    return blueprint


categories_bp = create_taxonomy_blueprint(CATEGORY)
materials_bp = create_taxonomy_blueprint(MATERIAL)
sizes_bp = create_taxonomy_blueprint(SIZE, gate_reads=False)
