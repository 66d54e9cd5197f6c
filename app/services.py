import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.errors import MalformedRecord, ShowAlreadyExists, ShowNotFound, StorageError
from app.models import Externals, Network, Rating, Show
from app.reconcile import Reconciler
from app.schemas import ShowCreate, ShowRecord, ShowUpdate
from app.source import fetch_shows
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class IngestionSummary:
    added: int = 0
    skipped: int = 0


def record_id(record: ShowRecord, index: int) -> int:
    if record.id is None:
        raise MalformedRecord(index)
    return record.id


def normalize_record(record: ShowRecord, index: int = 0) -> Show:
    """Build a transient Show from an upstream record.

    Externals and rating are only created when their block is present.
    Genres and network are left for the reconciler.
    """
    show = Show(
        id=record_id(record, index),
        name=record.name or "",
        language=record.language,
        genres=[],
    )
    if record.externals is not None:
        show.externals = Externals(
            imdb=record.externals.imdb,
            tvrage=record.externals.tvrage,
            thetvdb=record.externals.thetvdb,
        )
    if record.rating is not None:
        show.rating = Rating(average=record.rating.average)
    return show


def stage_show(uow: UnitOfWork, show: Show) -> Show:
    # Dependents are written with the owner, so point them at it before staging.
    if show.externals is not None:
        show.externals.show = show
    if show.rating is not None:
        show.rating.show = show
    return uow.stage_insert(show)


def ingest_shows(session: Session, records: Iterable[ShowRecord]) -> IngestionSummary:
    """Insert every record whose show id is not stored yet, then commit once.

    Existing shows are skipped, never updated. Any failure rolls the whole
    batch back before propagating.
    """
    summary = IngestionSummary()
    uow = UnitOfWork(session)
    reconciler = Reconciler(uow)
    try:
        for index, record in enumerate(records):
            show_id = record_id(record, index)
            if reconciler.resolve_show(show_id) is not None:
                logger.debug("Show %s already stored, skipping.", show_id)
                summary.skipped += 1
                continue
            show = normalize_record(record, index)
            reconciler.resolve_genres(show, record.genres)
            if record.network is not None:
                show.network = reconciler.resolve_network(
                    record.network.id, record.network.name, record.network.country
                )
            stage_show(uow, show)
            summary.added += 1
        if summary.added:
            uow.commit()
            logger.info("Committed %s new shows, skipped %s.", summary.added, summary.skipped)
        else:
            logger.info("No new shows to store, skipped %s.", summary.skipped)
    except Exception:
        logger.exception("Show ingestion failed; rolling back.")
        uow.rollback()
        raise
    return summary


def fetch_and_store_shows(
    session: Session, base_url: Optional[str] = None
) -> IngestionSummary:
    records = fetch_shows(base_url)
    return ingest_shows(session, records)


def show_query():
    return select(Show).options(
        selectinload(Show.genres),
        joinedload(Show.externals),
        joinedload(Show.rating),
        joinedload(Show.network).joinedload(Network.country),
    )


def list_shows(session: Session) -> List[Show]:
    try:
        return session.execute(show_query().order_by(Show.id)).unique().scalars().all()
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not list shows: {exc}") from exc


def get_show(session: Session, show_id: int) -> Optional[Show]:
    try:
        return (
            session.execute(show_query().where(Show.id == show_id))
            .unique()
            .scalars()
            .first()
        )
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not load show {show_id}: {exc}") from exc


def create_show(session: Session, payload: ShowCreate) -> Show:
    uow = UnitOfWork(session)
    reconciler = Reconciler(uow)
    if reconciler.resolve_show(payload.id) is not None:
        raise ShowAlreadyExists(payload.id)
    try:
        show = Show(id=payload.id, name=payload.name, language=payload.language, genres=[])
        if payload.externals is not None:
            show.externals = Externals(**payload.externals.model_dump())
        if payload.rating is not None:
            show.rating = Rating(**payload.rating.model_dump())
        reconciler.resolve_genres(show, payload.genres)
        if payload.network is not None:
            show.network = reconciler.resolve_network(
                payload.network.id, payload.network.name, payload.network.country
            )
        stage_show(uow, show)
        uow.commit()
    except Exception:
        uow.rollback()
        raise
    logger.info("Created show %s.", payload.id)
    return get_show(session, payload.id)


def update_show(session: Session, show_id: int, payload: ShowUpdate) -> Show:
    show = get_show(session, show_id)
    if show is None:
        raise ShowNotFound(show_id)
    uow = UnitOfWork(session)
    reconciler = Reconciler(uow)
    try:
        show.name = payload.name
        show.language = payload.language

        if payload.network is not None:
            show.network = reconciler.resolve_network(
                payload.network.id, payload.network.name, payload.network.country
            )
        else:
            show.network = None

        if payload.externals is None:
            show.externals = None
        elif show.externals is None:
            show.externals = Externals(**payload.externals.model_dump())
        else:
            for key, value in payload.externals.model_dump().items():
                setattr(show.externals, key, value)

        if payload.rating is None:
            show.rating = None
        elif show.rating is None:
            show.rating = Rating(average=payload.rating.average)
        else:
            show.rating.average = payload.rating.average

        show.genres = []
        reconciler.resolve_genres(show, payload.genres)
        uow.commit()
    except Exception:
        uow.rollback()
        raise
    logger.info("Updated show %s.", show_id)
    return get_show(session, show_id)


def delete_show(session: Session, show_id: int) -> None:
    """Delete a show with its externals and rating; shared rows stay."""
    show = get_show(session, show_id)
    if show is None:
        raise ShowNotFound(show_id)
    uow = UnitOfWork(session)
    try:
        uow.stage_delete(show)
        uow.commit()
    except Exception:
        uow.rollback()
        raise
    logger.info("Deleted show %s.", show_id)
