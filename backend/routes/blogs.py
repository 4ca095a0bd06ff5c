from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required

from ..pagination import PageRequest
from ..repository import BLOG, build_filter, get_repository, serialize_document
from ..responses import respond
from ..schemas import BlogCreate, BlogUpdate, validate
from ..uploads import get_upload_pipeline
from . import request_payload

blogs_bp = Blueprint("blogs", __name__)


@blogs_bp.route("", methods=["POST"])
@jwt_required()
def create_blog():
    settings = current_app.extensions["settings"]
    with get_upload_pipeline().receive(request.files) as batch:
        blog = validate(BlogCreate, request_payload())

        fields = blog.fields()
        fields["content"] = batch.attach_icons(
            [block.model_dump() for block in blog.content], settings.blog_icon_folder
        )
        fields["images"] = batch.upload_images(settings.blog_image_folder)
        document = get_repository(BLOG).create(fields)

    return respond(201, serialize_document(document), "Blog created successfully")


@blogs_bp.route("", methods=["GET"])
def list_blogs():
    page_request = PageRequest.from_args(request.args)
    query = build_filter(request.args, search_params={"search": "title"})
    documents, total = get_repository(BLOG).list(query, page_request)
    return respond(
        200,
        {
            "blogs": [serialize_document(document) for document in documents],
            "pagination": page_request.describe(total),
        },
        "Fetched all blogs",
    )


@blogs_bp.route("/<blog_id>", methods=["GET"])
def get_blog(blog_id: str):
    document = get_repository(BLOG).get_by_id(blog_id)
    return respond(200, serialize_document(document), "Fetched blog successfully")


@blogs_bp.route("/<blog_id>", methods=["PUT"])
@jwt_required()
def update_blog(blog_id: str):
    settings = current_app.extensions["settings"]
    with get_upload_pipeline().receive(request.files) as batch:
        repository = get_repository(BLOG)
        current = repository.get_by_id(blog_id)
        blog = validate(BlogUpdate, request_payload())

        changes = blog.fields()
        if blog.content is not None:
            changes["content"] = batch.attach_icons(
                [block.model_dump() for block in blog.content],
                settings.blog_icon_folder,
            )
        new_images = batch.upload_images(settings.blog_image_folder)
        if new_images:
            changes["images"] = list(current.get("images") or []) + new_images

        document = repository.update(blog_id, changes)

    return respond(200, serialize_document(document), "Blog updated successfully")


@blogs_bp.route("/<blog_id>", methods=["DELETE"])
@jwt_required()
def delete_blog(blog_id: str):
    document = get_repository(BLOG).delete(blog_id)
    return respond(200, serialize_document(document), "Blog deleted successfully")
