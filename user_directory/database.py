from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """One engine plus its session factory, owned by an application instance."""

    def __init__(self, url: str):
        # SQLAlchemy requires the postgresql:// scheme
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)

        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine = create_engine(url, connect_args=connect_args)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def session(self):
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
