"""FastAPI dependencies shared by the route modules."""

from fastapi import Depends
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.services.access_broker import AccessBroker
from portal.services.access_store import SqlAccessStore


def get_broker(db: Session = Depends(get_db)) -> AccessBroker:
    """Build an AccessBroker over the request's database session."""
    return AccessBroker(SqlAccessStore(db))
