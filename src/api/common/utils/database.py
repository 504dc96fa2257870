import os
from fastapi.logger import logger
from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel
from dotenv import load_dotenv

load_dotenv()

SQLITE_FALLBACK_URL = "sqlite:///./contract_pricing.db"


def _get_database_url_from_env_vars():
    DB_SCHEME = os.getenv("DB_SCHEME", "postgresql")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "contract_pricing")
    if not DB_HOST:
        return SQLITE_FALLBACK_URL
    return f"{DB_SCHEME}://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


def get_database_url():
    url = os.getenv("DATABASE_URL", _get_database_url_from_env_vars())
    logger.info(f"Using database at {url.split('@')[-1]}")
    return url


DATABASE_URL = get_database_url()

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("ENV") not in ("production", "test"),
)


def create_db_and_tables():
    # Importing the models registers their tables on the metadata
    from src.api.contracts.models.contract_draft import ContractDraft  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_db():
    with Session(engine) as session:
        yield session
