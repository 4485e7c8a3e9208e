"""Database lifecycle for the check-in record store."""

import logging
import pathlib
from types import TracebackType

import sqlalchemy
import sqlalchemy.engine
import sqlalchemy.exc
import sqlalchemy.pool
import sqlmodel

from .. import settings
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class CheckInDatabase:
    """An explicitly opened and closed handle on the record database.

    Pass an existing engine to share it (tests use an in-memory engine);
    otherwise one is created from the URL when the database is opened.
    """

    def __init__(
        self,
        url: str | None = None,
        echo: bool | None = None,
        engine: sqlalchemy.Engine | None = None,
    ) -> None:
        self.url = url or settings.DATABASE_URL
        self.echo = settings.DATABASE_ECHO if echo is None else echo
        self._engine = engine
        self._owns_engine = engine is None
        self._open = False

    @property
    def is_open(self) -> bool:
        """True between open() and close()."""
        return self._open

    @property
    def engine(self) -> sqlalchemy.Engine:
        """The underlying engine; only valid while open."""
        if not self._open or self._engine is None:
            raise PersistenceError('Check-in database is not open')
        return self._engine

    def open(self) -> 'CheckInDatabase':
        """Create the engine if needed and make sure the tables exist."""
        if self._open:
            return self
        if self._engine is None:
            try:
                self._engine = self._create_engine()
            except OSError as exc:
                raise PersistenceError(f'Could not prepare {self.url}') from exc
        # Import models to ensure they're registered with SQLModel
        from . import models  # noqa: F401 # pyright: ignore[reportUnusedImport]

        try:
            sqlmodel.SQLModel.metadata.create_all(self._engine)
        except sqlalchemy.exc.SQLAlchemyError as exc:
            if self._owns_engine:
                self._engine.dispose()
                self._engine = None
            raise PersistenceError(f'Could not initialise {self.url}') from exc
        self._open = True
        logger.info('Opened check-in database %s', self._engine.url)
        return self

    def close(self) -> None:
        """Release the engine's connections. Safe to call twice."""
        if not self._open:
            return
        self._open = False
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None
        logger.info('Closed check-in database')

    def session(self) -> sqlmodel.Session:
        """Return a new session bound to the open database."""
        return sqlmodel.Session(self.engine)

    def __enter__(self) -> 'CheckInDatabase':
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _create_engine(self) -> sqlalchemy.Engine:
        url = sqlalchemy.engine.make_url(self.url)
        if url.get_backend_name() != 'sqlite':
            return sqlmodel.create_engine(url, echo=self.echo)

        # check_same_thread=False lets FastAPI's threadpool share the engine
        connect_args = {'check_same_thread': False}
        if url.database in (None, '', ':memory:'):
            # One shared connection, otherwise every session sees an empty db
            return sqlmodel.create_engine(
                url,
                connect_args=connect_args,
                poolclass=sqlalchemy.pool.StaticPool,
                echo=self.echo,
            )
        pathlib.Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return sqlmodel.create_engine(url, connect_args=connect_args, echo=self.echo)
