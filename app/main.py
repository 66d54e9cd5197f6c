from contextlib import asynccontextmanager
import logging
import os
import secrets
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import Depends, FastAPI, Header, HTTPException
from sqlalchemy.orm import Session

from app import services
from app.db import SessionLocal, engine
from app.errors import IngestionError, ShowAlreadyExists, ShowNotFound, StorageError
from app.models import Base
from app.schemas import IngestionResponse, ShowCreate, ShowResponse, ShowUpdate

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()
JOB_API_KEY = os.getenv("JOB_API_KEY")
JOB_INTERVAL_HOURS = float(os.getenv("SHOWS_JOB_INTERVAL_HOURS", "0"))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_scheduled_ingestion() -> None:
    db = SessionLocal()
    try:
        services.fetch_and_store_shows(db)
    except (IngestionError, StorageError):
        logger.exception("Scheduled show ingestion failed.")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    if JOB_INTERVAL_HOURS > 0:
        scheduler.add_job(
            run_scheduled_ingestion,
            "interval",
            hours=JOB_INTERVAL_HOURS,
            id="show_ingestion",
            replace_existing=True,
        )
        scheduler.start()
    yield
    if scheduler.running:
        scheduler.shutdown()


app = FastAPI(lifespan=lifespan)


@app.post("/api/job/run", response_model=IngestionResponse)
def run_job(
    x_api_key: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    if not JOB_API_KEY or not x_api_key or not secrets.compare_digest(x_api_key, JOB_API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key.")
    try:
        summary = services.fetch_and_store_shows(db)
    except IngestionError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"added": summary.added, "skipped": summary.skipped}


@app.get("/api/shows", response_model=List[ShowResponse])
def list_shows(db: Session = Depends(get_db)):
    return services.list_shows(db)


@app.get("/api/shows/{show_id}", response_model=ShowResponse)
def get_show(show_id: int, db: Session = Depends(get_db)):
    show = services.get_show(db, show_id)
    if not show:
        raise HTTPException(status_code=404, detail="Show not found")
    return show


@app.post("/api/shows", response_model=ShowResponse, status_code=201)
def create_show(payload: ShowCreate, db: Session = Depends(get_db)):
    try:
        return services.create_show(db, payload)
    except ShowAlreadyExists as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.put("/api/shows/{show_id}", response_model=ShowResponse)
def update_show(show_id: int, payload: ShowUpdate, db: Session = Depends(get_db)):
    try:
        return services.update_show(db, show_id, payload)
    except ShowNotFound:
        raise HTTPException(status_code=404, detail="Show not found")
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.delete("/api/shows/{show_id}")
def delete_show(show_id: int, db: Session = Depends(get_db)):
    try:
        services.delete_show(db, show_id)
    except ShowNotFound:
        raise HTTPException(status_code=404, detail="Show not found")
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"deleted": show_id}
