"""
Database engine + session factory.

Defaults to SQLite for local dev, Postgres in production. Stores take a
session factory so tests can bind them to an in-memory engine.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadops.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def normalize_url(url):
    """Heroku/Railway style postgres:// URLs are rejected by SQLAlchemy 2.x."""
    return url.replace('postgres://', 'postgresql://', 1)


def make_engine(url):
    url = normalize_url(url)
    if url.startswith('sqlite'):
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session():
    """Return a new DB session."""
    return SessionLocal()
