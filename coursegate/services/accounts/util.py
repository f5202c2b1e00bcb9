"""Helpers and Flask application integration."""

from typing import Generator, Optional
from datetime import datetime
from contextlib import contextmanager
import logging

from pytz import UTC
from flask import Flask
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

from .models import db
from ..exceptions import Unavailable

logger = logging.getLogger(__name__)


def now() -> int:
    """Get the current epoch/unix time."""
    return epoch(datetime.now(tz=UTC))


def epoch(t: datetime) -> int:
    """Convert a :class:`.datetime` to UNIX time."""
    delta = t - datetime.fromtimestamp(0, tz=UTC)
    return int(round((delta).total_seconds()))


def from_epoch(t: Optional[int]) -> Optional[datetime]:
    """Get a :class:`datetime` from an UNIX timestamp."""
    if t is None:
        return None
    return datetime.fromtimestamp(t, tz=UTC)


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """Context manager for database transaction."""
    try:
        yield db.session
        # The caller may have committed already in order to handle an
        # integrity error; only commit if there is anything left to flush.
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except OperationalError as e:
        logger.error('Datastore unavailable, rolling back: %s', e)
        db.session.rollback()
        raise Unavailable('Datastore is not available') from e
    except Exception as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def init_app(app: Flask) -> None:
    """Attach the database session to the application."""
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()
