import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./shows.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Staged rows stay invisible to queries until commit; the unit of work tracks them.
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
