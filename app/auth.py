from flask import Blueprint, request
from flask_login import LoginManager, current_user, login_required, login_user, logout_user
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.security import check_password_hash, generate_password_hash
import logging

from api_responses import success_response, error_response, handle_api_errors, validation_error_response, ErrorCode
from db import db
from exceptions import DuplicateEntryException, ValidationException
from models.user import User
from repositories.profile_repository import ProfileRepository
from repositories.user_repository import UserRepository
from services.profile_service import ensure_username_available, sync_profile, validate_username

# Retrieve main logger
logger = logging.getLogger("main")

auth_blueprint = Blueprint("auth", __name__, url_prefix="/api/auth")

login_manager = LoginManager()
limiter = Limiter(key_func=get_remote_address, default_limits=["300 per day", "100 per hour"])

PROFILE_FIELDS = ("username", "full_name", "avatar_url", "profile_color")
MIN_PASSWORD_LENGTH = 6


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized_json():
    return error_response(ErrorCode.UNAUTHORIZED, message="Authentication required", status_code=401)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


def _account_payload(user):
    profile = ProfileRepository.get_by_id(user.id)
    return {
        "id": user.id,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "metadata": user.metadata_dict(),
        "profile": profile.to_dict() if profile else None,
    }


def create_user(email, password, **metadata):
    """Create an account and its public profile."""
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationException("A valid email is required", field="email")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )

    username = validate_username(metadata.get("username"), required=True)
    ensure_username_available(username)

    try:
        user = UserRepository.create(
            email=email,
            password=generate_password_hash(password, method="pbkdf2:sha256"),
            username=username,
            full_name=(metadata.get("full_name") or "").strip() or None,
            avatar_url=metadata.get("avatar_url") or None,
            profile_color=metadata.get("profile_color") or None,
        )
    except DuplicateEntryException:
        raise ValidationException("An account with this email already exists", field="email")

    logger.info(f"Creating new user {email}")
    sync_profile(user)
    return user


@auth_blueprint.route("/signup", methods=["POST"])
@limiter.limit("10 per minute")
@handle_api_errors
def signup():
    data = _json_body()
    user = create_user(
        data.get("email"),
        data.get("password"),
        **{key: data.get(key) for key in PROFILE_FIELDS},
    )
    login_user(user, remember=bool(data.get("remember")))
    return success_response(_account_payload(user), message="Account created", status_code=201)


@auth_blueprint.route("/login", methods=["POST"])
@limiter.limit("20 per minute")
@handle_api_errors
def login():
    data = _json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = UserRepository.get_by_email(email)

    # take the user-supplied password, hash it, and compare it to the hashed password in the database
    if not user or not check_password_hash(user.password, password):
        logger.warning(f"Incorrect login for user {email}")
        return error_response(ErrorCode.UNAUTHORIZED, message="Invalid email or password", status_code=401)

    logger.info(f"Sucessfull login for user {email}")
    login_user(user, remember=bool(data.get("remember")))
    return success_response(_account_payload(user))


@auth_blueprint.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return success_response(message="Logged out")


@auth_blueprint.route("/me")
@login_required
@handle_api_errors
def me():
    return success_response(_account_payload(current_user))


@auth_blueprint.route("/profile", methods=["PUT"])
@login_required
@handle_api_errors
def update_profile():
    """Update account metadata and mirror it into the public profile"""
    data = _json_body()
    changes = {}
    if "username" in data:
        changes["username"] = validate_username(data.get("username"))
        ensure_username_available(changes["username"], current_user.id)
    for key in ("full_name", "avatar_url", "profile_color"):
        if key in data:
            value = data.get(key)
            changes[key] = value.strip() if isinstance(value, str) and value.strip() else None

    user = UserRepository.update(current_user.id, **changes)
    profile = sync_profile(user)
    logger.info(f"Profile updated for user {user.id}")
    return success_response({"metadata": user.metadata_dict(), "profile": profile.to_dict()})


@auth_blueprint.route("/password", methods=["POST"])
@login_required
@handle_api_errors
def change_password():
    data = _json_body()
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password:
        return validation_error_response("current_password", "Current password is required.")

    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        return validation_error_response(
            "new_password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )

    if not check_password_hash(current_user.password, current_password):
        return error_response(ErrorCode.UNAUTHORIZED, message="Current password is incorrect.", status_code=401)

    UserRepository.update(current_user.id, password=generate_password_hash(new_password, method="pbkdf2:sha256"))
    logger.info(f"Password changed for user {current_user.id}")
    return success_response(message="Password changed")
