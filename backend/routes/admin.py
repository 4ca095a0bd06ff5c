from flask import Blueprint, current_app
from flask_jwt_extended import get_current_user, jwt_required

from ..auth import check_password, hash_password, issue_token, serialize_admin
from ..mailer import generate_otp_code, get_mailer
from ..repository import ADMIN, get_repository
from ..responses import BadRequest, Conflict, InternalError, NotFound, Unauthorized, respond
from ..schemas import (
    AdminLogin,
    AdminRegister,
    ForgotPassword,
    ProfileUpdate,
    normalize_email,
    validate,
)
from . import request_payload

admin_bp = Blueprint("admin", __name__)


def find_admin_by_email(email: str):
    return get_repository(ADMIN).find_one({"email": normalize_email(email)})


@admin_bp.route("/register", methods=["POST"])
def register():
    account = validate(AdminRegister, request_payload())
    repository = get_repository(ADMIN)

    if repository.has_conflict({"email": account.email}):
        raise Conflict("Admin user already exists")

    document = repository.create(
        {
            "name": account.name,
            "email": account.email,
            "password": hash_password(account.password),
            "avatar": account.avatar or "",
        }
    )
    current_app.logger.info("Registered admin %s", account.email)
    return respond(201, {"newAdmin": serialize_admin(document)}, "Admin registered successfully")


@admin_bp.route("/login", methods=["POST"])
def login():
    credentials = validate(AdminLogin, request_payload())
    admin = find_admin_by_email(credentials.email)
    if not admin or not check_password(credentials.password, admin.get("password")):
        raise Unauthorized("Invalid credentials")

    return respond(
        200,
        {"token": issue_token(admin), "admin": serialize_admin(admin)},
        "Login successful",
    )


@admin_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    response, status_code = respond(200, {}, "User Logged out")
    response.set_cookie(
        "jwt", "", expires=0, httponly=True, secure=not current_app.debug, samesite="None"
    )
    return response, status_code


@admin_bp.route("/profile", methods=["GET"])
@jwt_required()
def current_profile():
    return respond(200, get_current_user(), "User profile fetched successfully")


@admin_bp.route("/profile/<admin_id>", methods=["GET"])
@jwt_required()
def profile(admin_id: str):
    repository = get_repository(ADMIN)
    try:
        document = repository.get_by_id(admin_id)
    except NotFound:
        raise NotFound("User not found")
    return respond(200, serialize_admin(document), "User profile fetched successfully")


@admin_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    update = validate(ProfileUpdate, request_payload())
    repository = get_repository(ADMIN)
    admin = repository.get_by_id(get_current_user()["id"])

    changes = {}
    for field_name in ("name", "email", "avatar"):
        value = getattr(update, field_name)
        if value:
            changes[field_name] = value

    if "email" in changes and repository.has_conflict(
        {"email": changes["email"]}, exclude_id=admin["_id"]
    ):
        raise Conflict("Another admin already uses this email")

    if update.old_password and update.new_password:
        if not check_password(update.old_password, admin.get("password")):
            raise Unauthorized("Old password is incorrect Please enter correct password")
        changes["password"] = hash_password(update.new_password)
    elif update.old_password or update.new_password:
        raise BadRequest("Both old and new passwords are required to change password")

    document = repository.update(admin["_id"], changes)
    return respond(200, serialize_admin(document), "Profile updated successfully")


@admin_bp.route("/send-otp/<email>", methods=["POST"])
def send_otp(email: str):
    admin = find_admin_by_email(email)
    if not admin:
        raise NotFound("Admin user not found")

    otp = generate_otp_code()
    sent, error_details = get_mailer().send_password_reset_otp(
        admin["email"], admin.get("name", ""), otp
    )
    if not sent:
        current_app.logger.error(
            "Password reset email delivery failed for %s: %s",
            admin["email"],
            error_details or "Unknown delivery error",
        )
        raise InternalError()

    # The code is returned to the caller and never stored server-side.
    return respond(200, otp, "OTP sent to email")


@admin_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    reset = validate(ForgotPassword, request_payload())
    admin = find_admin_by_email(reset.email)
    if not admin:
        raise NotFound("Admin not found")

    get_repository(ADMIN).update(admin["_id"], {"password": hash_password(reset.new_password)})
    current_app.logger.info("Password reset for admin %s", reset.email)
    return respond(200, None, "Password reset successfully")
