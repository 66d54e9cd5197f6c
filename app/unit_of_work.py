import logging
from typing import Any, Dict, Hashable, Optional, Tuple, Type

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import StorageError
from app.models import Country, Genre, Network, Show

logger = logging.getLogger(__name__)


def natural_key(entity: Any) -> Optional[Hashable]:
    if isinstance(entity, Country):
        return entity.code
    if isinstance(entity, Genre):
        return entity.name
    # Networks always carry an id by the time they are staged.
    if isinstance(entity, (Network, Show)):
        return entity.id
    return None


class UnitOfWork:
    """Batch-scoped staging area over a SQLAlchemy session.

    Staged inserts are registered in an identity map keyed by entity type and
    natural key, so lookups made later in the same batch return the staged
    instance instead of querying storage (which, with autoflush disabled, only
    sees committed rows). ``commit`` applies everything in one database
    transaction: either all staged entities are written or none are.

    A unit of work belongs to one ingestion run or request and must not be
    shared between callers.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.pending: Dict[Tuple[Type, Hashable], Any] = {}
        self.staged_count = 0

    def _pending(self, model: Type, key: Hashable) -> Any:
        return self.pending.get((model, key))

    def _first(self, statement) -> Any:
        try:
            return self.session.execute(statement.limit(1)).scalars().first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Storage lookup failed: {exc}") from exc

    def find_show_by_id(self, show_id: int) -> Optional[Show]:
        return self._first(select(Show).where(Show.id == show_id))

    def find_pending_show(self, show_id: int) -> Optional[Show]:
        return self._pending(Show, show_id)

    def find_network_by_id(self, network_id: int) -> Optional[Network]:
        network = self._pending(Network, network_id)
        if network is not None:
            return network
        return self._first(select(Network).where(Network.id == network_id))

    def next_network_id(self) -> int:
        """Next id for a network the upstream did not number, staged ones included."""
        committed = self._first(select(func.max(Network.id))) or 0
        staged = [key for model, key in self.pending if model is Network]
        return max([committed, *staged]) + 1

    def find_country_by_code(self, code: str) -> Optional[Country]:
        country = self._pending(Country, code)
        if country is not None:
            return country
        return self._first(select(Country).where(Country.code == code))

    def find_genre_by_name(self, name: str) -> Optional[Genre]:
        genre = self._pending(Genre, name)
        if genre is not None:
            return genre
        return self._first(select(Genre).where(Genre.name == name))

    def stage_insert(self, entity: Any) -> Any:
        key = natural_key(entity)
        if key is not None:
            self.pending[(type(entity), key)] = entity
        try:
            self.session.add(entity)
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not stage {type(entity).__name__}: {exc}") from exc
        self.staged_count += 1
        return entity

    def stage_delete(self, entity: Any) -> None:
        try:
            self.session.delete(entity)
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not stage delete of {type(entity).__name__}: {exc}") from exc

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            logger.error("Commit failed, rolling back: %s", exc)
            self.session.rollback()
            raise StorageError(f"Commit failed: {exc}") from exc
        finally:
            self.pending.clear()
        self.staged_count = 0

    def rollback(self) -> None:
        self.pending.clear()
        self.staged_count = 0
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            raise StorageError(f"Rollback failed: {exc}") from exc
