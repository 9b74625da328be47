from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from os import getenv

DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://taskboard:taskboard@db:5432/taskboard")


def engine_options(url: str) -> dict:
    """Options de create_engine selon le backend"""
    if url.startswith("sqlite"):
        # sessions partagées entre les threads du serveur
        return {"connect_args": {"check_same_thread": False}}
    # connexions coupées par Postgres détectées avant usage
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Une session par requête, fermée même en cas d'erreur"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
