from sqlmodel import SQLModel, create_engine, Session

from config import settings

DATABASE_URL = settings.database_url

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=settings.sql_echo, connect_args=connect_args)


def init_db(bind=None) -> None:
    """Create tables for every SQLModel table model."""
    import models  # noqa: F401  (registers the tables on SQLModel.metadata)

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
