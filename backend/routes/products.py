from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from ..pagination import PageRequest
from ..repository import (
    BLOG,
    CATEGORY,
    MATERIAL,
    PRODUCT,
    SIZE,
    build_filter,
    exact_match,
    get_repository,
    serialize_document,
)
from ..responses import Conflict, respond
from ..schemas import ProductCreate, ProductUpdate, validate
from ..uploads import get_upload_pipeline
from . import request_payload

products_bp = Blueprint("products", __name__)

HOME_SCREEN_LIMIT = 8
IDENTITY_FIELDS = ("name", "category", "material")


def product_scope(name: str, category: str, material: str):
    return {"name": exact_match(name), "category": category, "material": material}


@products_bp.route("", methods=["POST"])
@jwt_required()
def create_product():
    settings = current_app.extensions["settings"]
    with get_upload_pipeline().receive(request.files) as batch:
        product = validate(ProductCreate, request_payload())
        repository = get_repository(PRODUCT)

        if repository.has_conflict(
            product_scope(product.name, product.category, product.material)
        ):
            raise Conflict("Product with this name, category, and material already exists")

        fields = product.fields()
        fields["images"] = batch.upload_images(settings.image_folder)
        document = repository.create(fields)

    return respond(201, serialize_document(document), "Product created successfully")


@products_bp.route("", methods=["GET"])
def list_products():
    page_request = PageRequest.from_args(request.args)
    query = build_filter(
        request.args,
        search_params={"name": "name"},
        exact_params=("category", "material"),
    )
    documents, total = get_repository(PRODUCT).list(query, page_request)
    return respond(
        200,
        {
            "products": [serialize_document(document) for document in documents],
            "pagination": page_request.describe(total),
        },
        "Products fetched successfully",
    )


@products_bp.route("/home", methods=["GET"])
def home_screen_products():
    documents = get_repository(PRODUCT).latest(HOME_SCREEN_LIMIT)
    return respond(
        200,
        [serialize_document(document) for document in documents],
        "Latest home screen products fetched",
    )


@products_bp.route("/dashboard/counts", methods=["GET"])
@jwt_required()
def dashboard_counts():
    counts = {
        resource.plural: get_repository(resource).count()
        for resource in (PRODUCT, CATEGORY, MATERIAL, SIZE, BLOG)
    }
    return respond(200, counts, "Home screen counts fetched")


@products_bp.route("/<product_id>", methods=["GET"])
def get_product(product_id: str):
    document = get_repository(PRODUCT).get_by_id(product_id)
    return respond(200, serialize_document(document), "Product fetched")


@products_bp.route("/<product_id>", methods=["PUT"])
@jwt_required()
def update_product(product_id: str):
    settings = current_app.extensions["settings"]
    with get_upload_pipeline().receive(request.files) as batch:
        repository = get_repository(PRODUCT)
        current = repository.get_by_id(product_id)
        changes = validate(ProductUpdate, request_payload(("existingImages",))).fields()

        if any(field_name in changes for field_name in IDENTITY_FIELDS):
            scope = product_scope(
                changes.get("name", current.get("name", "")),
                changes.get("category", current.get("category")),
                changes.get("material", current.get("material")),
            )
            if repository.has_conflict(scope, exclude_id=product_id):
                raise Conflict(
                    "A product with this name, category, and material already exists"
                )

        retained_images = changes.pop("existingImages", None)
        new_images = batch.upload_images(settings.image_folder)
        if retained_images is not None or new_images:
            changes["images"] = (retained_images or []) + new_images

        document = repository.update(product_id, changes)

    return respond(200, serialize_document(document), "Product updated successfully")


@products_bp.route("/<product_id>", methods=["DELETE"])
@jwt_required()
def delete_product(product_id: str):
    get_repository(PRODUCT).delete(product_id)
    return respond(200, {}, "Product deleted successfully")
