"""Credential store: user records keyed by a unique email."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktracker.core.errors import DuplicateEmailError
from tasktracker.models.user import User

logger = logging.getLogger(__name__)


def create_user(email: str, password_hash: str, db: Session) -> User:
    """Insert a user, relying on the unique constraint on ``users.email``.

    There is deliberately no lookup first: two concurrent registrations race
    on the constraint and the loser gets ``DuplicateEmailError``.
    """
    user = User(email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info('Rejected duplicate registration for %s', email)
        raise DuplicateEmailError() from exc
    db.refresh(user)
    return user


def find_user_by_email(email: str, db: Session) -> User | None:
    return db.query(User).filter(User.email == email).first()


def find_user_by_id(user_id: int, db: Session) -> User | None:
    return db.get(User, user_id)
