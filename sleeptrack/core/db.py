from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from sleeptrack.core.config import settings

Base = declarative_base()


class Database:
    """
    Process-wide connection handle.

    The engine and session factory are created on first use and reused for
    every request afterwards.
    """

    def __init__(self, dsn: str, **engine_kwargs):
        self.dsn = dsn
        self._engine_kwargs = engine_kwargs
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            kwargs = dict(self._engine_kwargs)
            if self.dsn.startswith("sqlite"):
                kwargs.setdefault("connect_args", {"check_same_thread": False})
            self._engine = create_engine(self.dsn, future=True, **kwargs)
        return self._engine

    def session(self) -> Session:
        if self._sessionmaker is None:
            self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        return self._sessionmaker()

    def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        import sleeptrack.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @property
    def initialized(self) -> bool:
        return self._engine is not None


database = Database(settings.DATABASE_URL)


def get_db():
    db = database.session()
    try:
        yield db
    finally:
        db.close()
