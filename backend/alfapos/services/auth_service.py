# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
User accounts and password authentication.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Branch, User, ROLE_BRANCH_ADMIN, ROLES
from ..time_utils import utcnow
from ..validation import parse_int


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength before hashing."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. Malformed hashes (e.g. rows
    migrated from the old plain-text column) never match.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _resolve_role_branch(role: str | None, branch_id) -> int | None:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    if role != ROLE_BRANCH_ADMIN:
        # Head office accounts are not tied to a branch
        return None

    if not branch_id:
        raise ValidationError("Branch admins must be assigned to a branch")
    branch = db.session.query(Branch).filter_by(id=branch_id).first()
    if not branch:
        raise NotFoundError("Branch not found", details={"branch_id": branch_id})
    return branch.id


def create_user(
    *,
    username: str,
    password: str,
    full_name: str,
    role: str,
    branch_id: int | None = None,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises ValidationError for missing fields or a weak password,
    NotFoundError for an unknown branch and ConflictError if the username
    is taken.
    """
    if not username or not password or not full_name or not role:
        raise ValidationError("username, password, full_name and role are required")

    resolved_branch_id = _resolve_role_branch(role, branch_id)

    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        branch_id=resolved_branch_id,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists")
    return user


def update_user(user_id: int, *, full_name: str, role: str, branch_id: int | None = None) -> User:
    if not full_name or not role:
        raise ValidationError("full_name and role are required")
    user_id = parse_int(user_id, "user_id")

    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found", details={"user_id": user_id})

    user.branch_id = _resolve_role_branch(role, branch_id)
    user.full_name = full_name
    user.role = role

    db.session.commit()
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.full_name.asc()).all()


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
