"""Lookup helpers that enforce per-user ownership of rows."""

from typing import Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ..db.models import User
from .middleware import forbidden, not_found

ModelT = TypeVar("ModelT")


def get_owned(db: Session, model: Type[ModelT], entity_id: UUID, user: User, label: str) -> ModelT:
    """
    Load a row by id and check that it belongs to user.

    Raises:
        ProblemDetailsException: 404 if the row is missing, 403 if another user owns it
    """
    entity = db.query(model).filter(model.id == entity_id).first()
    if entity is None:
        raise not_found(label, entity_id)
    if entity.user_id != user.id:
        raise forbidden(f"{label} {entity_id} belongs to another user")
    return entity
