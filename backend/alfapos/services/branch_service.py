# Overview: Service-layer operations for branches; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Branch


def resolve_branch(code: str | None) -> Branch:
    """Look up a branch by its short code. Raises NotFoundError if unknown."""
    branch = None
    if code:
        branch = db.session.query(Branch).filter_by(code=code).first()
    if branch is None:
        raise NotFoundError(f"Branch {code} not found", details={"branch_code": code})
    return branch


def list_branches() -> list[Branch]:
    return db.session.query(Branch).order_by(Branch.name.asc()).all()


def create_branch(code: str, name: str) -> Branch:
    code = (code or "").strip().upper()
    name = (name or "").strip()
    if not code or not name:
        raise ValidationError("Branch code and name are required")

    if db.session.query(Branch).filter_by(code=code).first():
        raise ConflictError(f"Branch code {code} already exists")

    branch = Branch(code=code, name=name)
    db.session.add(branch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Branch code {code} already exists")
    return branch
