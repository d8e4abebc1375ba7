import structlog
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from common.enum import TransactionTypeEnum
from config import Settings

logger = structlog.get_logger(__name__)

Base = declarative_base()

DEFAULT_CATEGORIES = [
    ("Salary", TransactionTypeEnum.INCOME),
    ("Freelance", TransactionTypeEnum.INCOME),
    ("Investments", TransactionTypeEnum.INCOME),
    ("Other Income", TransactionTypeEnum.INCOME),
    ("Food", TransactionTypeEnum.EXPENSE),
    ("Rent", TransactionTypeEnum.EXPENSE),
    ("Transport", TransactionTypeEnum.EXPENSE),
    ("Utilities", TransactionTypeEnum.EXPENSE),
    ("Entertainment", TransactionTypeEnum.EXPENSE),
    ("Healthcare", TransactionTypeEnum.EXPENSE),
    ("Shopping", TransactionTypeEnum.EXPENSE),
    ("Other Expenses", TransactionTypeEnum.EXPENSE),
]


def normalize_database_url(url: str) -> str:
    # Fix if the host provides postgres://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings) -> Engine:
    """Build the engine the application owns for its whole lifetime.

    In-memory SQLite shares a single connection so every session sees the
    same database. Everything else gets a bounded pool that gives up after
    ``DB_POOL_TIMEOUT`` seconds instead of queueing forever.
    """
    url = normalize_database_url(settings.DATABASE_URL)

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,  # drop connections the server closed while idle
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )


def init_db(engine: Engine, seed_defaults: bool = True) -> None:
    """Create missing tables and, optionally, the shared default categories."""
    import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=engine)

    if not seed_defaults:
        return

    with Session(engine) as db:
        has_globals = db.query(models.Category).filter(models.Category.user_id.is_(None)).first()
        if has_globals:
            return
        db.add_all(
            models.Category(name=name, type=category_type, user_id=None)
            for name, category_type in DEFAULT_CATEGORIES
        )
        db.commit()
        logger.info("default_categories_seeded", count=len(DEFAULT_CATEGORIES))


def get_db(request: Request):
    db = request.app.state.SessionLocal()
    try:
        yield db
    finally:
        db.close()
