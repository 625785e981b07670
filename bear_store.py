"""Document store adapter for bears and their sighting updates.

Every operation runs its blocking SQLAlchemy work in a worker thread so the
event loop keeps serving other requests while the round-trip completes.
"""

import asyncio
import logging
import threading
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from database import Bear, BearUpdate, SessionLocal, utcnow

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class StoreUnavailable(Exception):
    """A read or write against the document store failed."""


class BearExists(Exception):
    """A bear with the same identifier already exists."""


class BearStore:
    """Async access to bears and sighting updates.

    Args:
        session_factory: SQLAlchemy session factory. Defaults to SessionLocal.
    """

    def __init__(self, session_factory: sessionmaker = None):
        self.session_factory = session_factory or SessionLocal
        self._insert_lock = threading.Lock()

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            logger.error("Store operation %s failed: %s", fn.__name__, e)
            raise StoreUnavailable(str(e)) from e

    async def get_bear(self, bear_id: str) -> Optional[Dict[str, Any]]:
        """Read one bear by identifier, or None if it does not exist."""
        return await self._run(self._get_bear, bear_id)

    async def list_bears(self) -> List[Dict[str, Any]]:
        return await self._run(self._list_bears)

    async def list_updates(self, bear_id: str, newest_first: bool = False) -> List[Dict[str, Any]]:
        """Query all updates for a bear ordered by creation timestamp.

        Args:
            bear_id: Bear identifier.
            newest_first: Order descending (most recent first) instead of ascending.

        Returns:
            List of update dictionaries.
        """
        return await self._run(self._list_updates, bear_id, newest_first)

    async def insert_update(
        self,
        bear_id: str,
        city: str,
        country: str,
        message: str,
        latitude: float,
        longitude: float,
    ) -> Dict[str, Any]:
        """Insert a sighting update; the store assigns ``created_at``.

        Returns:
            The stored update as a dictionary.
        """
        return await self._run(self._insert_update, bear_id, city, country, message, latitude, longitude)

    async def create_bear(self, bear: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new bear.

        Raises:
            BearExists: If the identifier is already taken.
            StoreUnavailable: On any other store failure.
        """
        return await self._run(self._create_bear, bear)

    def _get_bear(self, bear_id):
        db = self.session_factory()
        try:
            bear = db.get(Bear, bear_id)
            return bear.to_dict() if bear else None
        finally:
            db.close()

    def _list_bears(self):
        db = self.session_factory()
        try:
            return [b.to_dict() for b in db.query(Bear).order_by(Bear.name, Bear.id).all()]
        finally:
            db.close()

    def _list_updates(self, bear_id, newest_first):
        db = self.session_factory()
        try:
            query = db.query(BearUpdate).filter(BearUpdate.bear_id == bear_id)
            if newest_first:
                query = query.order_by(BearUpdate.created_at.desc(), BearUpdate.id.desc())
            else:
                query = query.order_by(BearUpdate.created_at.asc(), BearUpdate.id.asc())
            return [u.to_dict() for u in query.all()]
        finally:
            db.close()

    def _insert_update(self, bear_id, city, country, message, latitude, longitude):
        with self._insert_lock:
            db = self.session_factory()
            try:
                created_at = utcnow()
                last = db.query(func.max(BearUpdate.created_at)).scalar()
                if last is not None and created_at <= last:
                    created_at = last + _TICK

                update = BearUpdate(
                    bear_id=bear_id,
                    city=city,
                    country=country,
                    message=message,
                    latitude=latitude,
                    longitude=longitude,
                    created_at=created_at,
                )
                db.add(update)
                db.commit()
                db.refresh(update)
                return update.to_dict()
            except SQLAlchemyError:
                db.rollback()
                raise
            finally:
                db.close()

    def _create_bear(self, data):
        db = self.session_factory()
        try:
            bear = Bear(**data)
            db.add(bear)
            db.commit()
            return bear.to_dict()
        except IntegrityError as e:
            db.rollback()
            raise BearExists(data.get("id")) from e
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()
