from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from stockroom.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # Import all models so Base.metadata knows about them
    import stockroom.models.category  # noqa: F401
    import stockroom.models.product  # noqa: F401
    import stockroom.models.inventory_log  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def is_foreign_key_violation(error: IntegrityError) -> bool:
    # SQLite, PostgreSQL and MySQL all name the constraint kind in the message
    return "foreign key" in str(error.orig).lower()
