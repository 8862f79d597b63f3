import importlib
import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from shopcore.config import settings

log = logging.getLogger("shopcore.db")

DATABASE_URL = settings.DATABASE_URL


def _connect_args(url: str) -> dict:
    # sqlite: connections are handed between request threads, and writers
    # wait on the database lock instead of failing straight away
    if url.startswith("sqlite"):
        return {
            "check_same_thread": False,
            "timeout": settings.DB_BUSY_TIMEOUT_SECONDS,
        }
    return {}


engine = create_engine(
    DATABASE_URL,
    future=True,
    echo=settings.DB_ECHO,
    connect_args=_connect_args(DATABASE_URL),
)

if DATABASE_URL.startswith("sqlite"):
    # pysqlite defers BEGIN until the first write, so a SAVEPOINT would open
    # the real transaction and its RELEASE would commit it. Take over BEGIN
    # so savepoints nest inside the caller's transaction.
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# every module that declares tables; imported before create_all so the
# metadata is complete
MODEL_MODULES = [
    "shopcore.models.product",
    "shopcore.models.cart",
    "shopcore.models.cart_item",
    "shopcore.models.order",
]


def init_db(reset: Optional[bool] = None):
    """
    Initialize DB schema.

    Behavior:
      - If ``reset`` is true (or, when not given, the RESET_DB setting is
        set), drop & recreate all tables.
      - Otherwise, create missing tables and leave existing ones in place.
    """
    if reset is None:
        reset = settings.RESET_DB

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.warning("Resetting database schema at %s", engine.url)
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized: tables=%s", sorted(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
