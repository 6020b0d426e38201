import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from models import Base
import logging

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
USER_TOKEN_EXPIRE_DAYS = int(os.getenv("USER_TOKEN_EXPIRE_DAYS", 7))
ADMIN_TOKEN_EXPIRE_HOURS = int(os.getenv("ADMIN_TOKEN_EXPIRE_HOURS", 24))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
CURRENCY = os.getenv("CURRENCY", "LKR")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

# Flat fee in LKR; store pickup is free
DELIVERY_CHARGE = float(os.getenv("DELIVERY_CHARGE", 1300))

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")


class DatabaseNotConfigured(RuntimeError):
    """Raised when a session or engine is requested without DATABASE_URL"""


def _async_url(url: str) -> str:
    if url.startswith("sqlite"):
        if "+aiosqlite" not in url:
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    # asyncpg rejects libpq query options, and pgbouncer needs the statement cache off
    asyncpg_url = url.replace("postgresql://", "postgresql+asyncpg://", 1).split("?")[0]
    return f"{asyncpg_url}?prepared_statement_cache_size=0"


def _sync_url(url: str) -> str:
    return url.replace("postgresql+asyncpg://", "postgresql://").replace("sqlite+aiosqlite://", "sqlite://")


def _build_engines(url: str):
    async_url = _async_url(url)
    if async_url.startswith("sqlite"):
        engine = create_async_engine(async_url, echo=False)
    else:
        engine = create_async_engine(async_url, echo=False, pool_size=5, max_overflow=0)

    session_factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return create_engine(_sync_url(url)), engine, session_factory


if DATABASE_URL:
    sync_engine, async_engine, AsyncSessionLocal = _build_engines(DATABASE_URL)
else:
    sync_engine = async_engine = AsyncSessionLocal = None


async def get_db():
    """Request-scoped session; uncommitted work is rolled back when the request fails"""
    if AsyncSessionLocal is None:
        raise DatabaseNotConfigured("DATABASE_URL is not set")
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create missing tables; migrations own the schema outside development"""
    if async_engine is None:
        raise DatabaseNotConfigured("DATABASE_URL is not set")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Tables created for {async_engine.url.render_as_string(hide_password=True)}")


def get_sync_engine():
    if sync_engine is None:
        raise DatabaseNotConfigured("DATABASE_URL is not set")
    return sync_engine
