from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def make_engine(database_url: str):
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Check your .env file.")

    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )


def make_session_factory(engine):
    # Records are handed out after the session closes
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine):
    # Import registers the tables on Base.metadata
    from shop_payments import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def ping(session_factory):
    with session_factory() as db:
        db.execute(text("SELECT 1"))
