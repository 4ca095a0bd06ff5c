import bcrypt
from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app
from flask_jwt_extended import JWTManager, create_access_token

from .config import Settings
from .repository import ADMIN, serialize_document
from .responses import Unauthorized, error_response

jwt = JWTManager()

SECRET_FIELDS = ("password",)


def hash_password(password: str) -> bytes:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())


def check_password(password: str, hashed) -> bool:
    if not hashed:
        return False
    if isinstance(hashed, str):
        hashed = hashed.encode("utf-8")
    return bcrypt.checkpw(password.encode("utf-8"), hashed)


def serialize_admin(document):
    return serialize_document(document, exclude=SECRET_FIELDS)


def issue_token(admin_document) -> str:
    return create_access_token(identity=str(admin_document["_id"]))


def init_auth(app, settings: Settings) -> None:
    app.config["JWT_SECRET_KEY"] = settings.jwt_secret
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = settings.jwt_expires
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = settings.token_header_name
    app.config["JWT_HEADER_TYPE"] = settings.token_header_type
    jwt.init_app(app)


@jwt.user_lookup_loader
def load_principal(_jwt_header, jwt_data):
    try:
        admin_id = ObjectId(str(jwt_data.get("sub")))
    except (InvalidId, TypeError):
        return None
    admins = current_app.extensions["mongo_db"][ADMIN.collection]
    document = admins.find_one({"_id": admin_id}, {field: 0 for field in SECRET_FIELDS})
    return serialize_admin(document) if document else None


@jwt.unauthorized_loader
def missing_token(reason):
    current_app.logger.info("Rejected request without token: %s", reason)
    return error_response(Unauthorized("No Token! Unauthorized!"))


@jwt.invalid_token_loader
def invalid_token(reason):
    current_app.logger.info("Rejected invalid token: %s", reason)
    return error_response(Unauthorized("Unauthorized! - Invalid Token!"))


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_data):
    return error_response(Unauthorized("Token has expired"))


@jwt.user_lookup_error_loader
def unknown_principal(_jwt_header, jwt_data):
    current_app.logger.info("Token refers to missing admin %s", jwt_data.get("sub"))
    return error_response(Unauthorized("Unauthorized! - Invalid Token!"))
