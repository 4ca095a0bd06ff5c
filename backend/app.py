from typing import Optional

from flask import Flask, request
from flask_cors import CORS
from flask_pymongo import PyMongo
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth import init_auth
from .config import Settings
from .mailer import Mailer
from .repository import ADMIN, BLOG, CATEGORY, CONTACT, MATERIAL, PRODUCT, SIZE
from .responses import ApiError, InternalError, error_response
from .routes.admin import admin_bp
from .routes.blogs import blogs_bp
from .routes.contacts import contacts_bp
from .routes.products import products_bp
from .routes.taxonomy import categories_bp, materials_bp, sizes_bp
from .uploads import ImageStore, UploadPipeline

API_PREFIX = "/api/v1"


def ensure_indexes(app: Flask, db) -> None:
    try:
        db[ADMIN.collection].create_index("email", unique=True)
        for resource in (PRODUCT, CATEGORY, MATERIAL, SIZE, BLOG, CONTACT):
            db[resource.collection].create_index([("createdAt", -1)])
    except Exception as exc:
        app.logger.warning("Unable to ensure indexes: %s", exc)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return error_response(ApiError(error.description or error.name, error.code))

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.exception(
            "Unhandled error on %s %s: %s", request.method, request.path, error
        )
        return error_response(InternalError())


def create_app(settings: Optional[Settings] = None, db=None) -> Flask:
    """Create and configure the Flask application."""
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.logger.setLevel(settings.log_level)

    # Honor proxy headers so generated links keep the public HTTPS origin.
    if settings.trusted_proxy_hops:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=settings.trusted_proxy_hops,
            x_proto=settings.trusted_proxy_hops,
            x_host=settings.trusted_proxy_hops,
            x_port=settings.trusted_proxy_hops,
        )

    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_mb * 1024 * 1024

    CORS(app, supports_credentials=True, origins=list(settings.cors_origins) or "*")
    init_auth(app, settings)

    if db is None:
        app.config["MONGO_URI"] = settings.mongo_uri
        db = PyMongo(app).db
    ensure_indexes(app, db)

    image_store = ImageStore(settings)
    app.extensions["settings"] = settings
    app.extensions["mongo_db"] = db
    app.extensions["upload_pipeline"] = UploadPipeline(settings, image_store)
    app.extensions["mailer"] = Mailer(settings)

    app.register_blueprint(admin_bp, url_prefix=f"{API_PREFIX}/admin")
    app.register_blueprint(products_bp, url_prefix=f"{API_PREFIX}/products")
    app.register_blueprint(categories_bp, url_prefix=f"{API_PREFIX}/categories")
    app.register_blueprint(materials_bp, url_prefix=f"{API_PREFIX}/materials")
    app.register_blueprint(sizes_bp, url_prefix=f"{API_PREFIX}/sizes")
    app.register_blueprint(blogs_bp, url_prefix=f"{API_PREFIX}/blogs")
    app.register_blueprint(contacts_bp, url_prefix=f"{API_PREFIX}/contacts")

    register_error_handlers(app)

    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    return app
