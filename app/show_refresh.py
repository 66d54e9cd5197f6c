import argparse
import logging

from app.db import SessionLocal, engine
from app.models import Base
from app.services import IngestionSummary, fetch_and_store_shows

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def refresh_once(api_url: str | None = None) -> IngestionSummary:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        logger.info("Starting show ingestion.")
        summary = fetch_and_store_shows(db, api_url)
        logger.info("Show ingestion done. Added %s, skipped %s.", summary.added, summary.skipped)
        return summary
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Fetch the show list from the listings API and store new shows."
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Base URL of the listings API (defaults to SHOWS_API_URL).",
    )
    args = parser.parse_args()

    summary = refresh_once(args.api_url)
    print(
        "Show ingestion completed. "
        f"Added {summary.added} shows. Skipped {summary.skipped} already stored."
    )


if __name__ == "__main__":
    main()
