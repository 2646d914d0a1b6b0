"""
Database configuration - SQLAlchemy persistence layer
All business operations go through the service layer; the database only persists state
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from travelhub.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency: yield a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables"""
    from travelhub.models import ontology  # noqa
    Base.metadata.create_all(bind=engine)
