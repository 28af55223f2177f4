from typing import Optional
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from bot.config import Config
from bot.database.models import Base
from bot.utils.leaderboard_exceptions import StoreFailure
from bot.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = self.database_url
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        engine_kwargs = {'echo': Config.DEBUG}
        if database_url.startswith('sqlite+aiosqlite'):
            # Writers wait on each other instead of failing with "database is locked"
            engine_kwargs['connect_args'] = {'timeout': 30}

        self.engine = create_async_engine(database_url, **engine_kwargs)

        if self.engine.dialect.name == 'sqlite':
            self._enable_sqlite_write_serialization()

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    def _enable_sqlite_write_serialization(self):
        """
        Start every SQLite transaction with BEGIN IMMEDIATE.

        pysqlite defers BEGIN until the first write, so two transactions that
        both read and then write can deadlock on lock upgrade. Taking the
        reserved lock up front turns that into an ordinary wait on the busy
        timeout, which gives row-level FOR UPDATE semantics on SQLite.
        """
        sync_engine = self.engine.sync_engine

        @event.listens_for(sync_engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session (read paths, caller commits if needed)"""
        async with self.async_session() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreFailure("session", str(e)) from e
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context will be committed together on success,
        or rolled back together on failure. Storage errors surface as
        StoreFailure; an exception or cancellation before the commit leaves
        nothing behind because closing the session rolls back.

        Usage:
            async with db.transaction() as session:
                participant = await store.get_by_id(pid, session=session, for_update=True)
                await store.update_points(pid, participant.points + delta, session=session)
                await history.append(participant, delta, new_total, session=session)
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreFailure("transaction", str(e)) from e
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")
