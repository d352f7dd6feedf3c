# chair_app/db.py

from sqlmodel import SQLModel, create_engine, Session

from chair_app.config import DATABASE_URL, DEBUG

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # required for SQLite + FastAPI
    connect_args["check_same_thread"] = False

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=DEBUG,
    connect_args=connect_args,
)


def init_db(bind=engine) -> None:
    # Import models so every table is registered on the metadata
    from chair_app import models  # noqa: F401

    SQLModel.metadata.create_all(bind)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
