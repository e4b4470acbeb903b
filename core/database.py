from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator, Self
from dependency_injector.resources import AsyncResource
from sqlalchemy import URL, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from core.environment import SQLConfig
from core.exceptions import BackendError
from core.logger import app_logger


def backend_message(exc: SQLAlchemyError) -> str:
    """Return the driver's own message for a store failure."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class SQLDatabase(AsyncResource):
    async def init(
        self,
        db_config: SQLConfig,
        create_schema: bool = False,
        logger: logging.Logger = app_logger,
    ) -> Self:
        db_url = URL.create(
            drivername=db_config.driver,
            username=db_config.username,
            password=db_config.password,
            host=db_config.host,
            port=db_config.port,
            database=db_config.database,
            query=db_config.additional_config or {},
        )
        self._logger = logger

        self._engine = create_async_engine(db_url, pool_recycle=3600)

        self._session_factory = async_sessionmaker(
            class_=AsyncSession, autocommit=False, autoflush=False, bind=self._engine
        )

        if create_schema:
            await self.create_schema()

        return self

    async def shutdown(self, _: None) -> None:
        self._logger.info("Shutting down...")
        await self._engine.dispose()

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    async def create_schema(self) -> None:
        # Registers the table models on SQLModel.metadata
        import model.dao.tables  # noqa: F401

        self._logger.info("Creating normalized table schema")
        try:
            async with self._engine.begin() as connection:
                await connection.run_sync(SQLModel.metadata.create_all)
        except SQLAlchemyError as exc:
            raise BackendError(backend_message(exc)) from exc

    async def ping(self) -> bool:
        """Check that the store answers a trivial query."""
        async with self.session() as session:
            await session.execute(text("select 1"))
        return True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session: AsyncSession = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            self._logger.error("A database error occurred. Rolling back", exc_info=e)
            await session.rollback()
            raise BackendError(backend_message(e)) from e
        except Exception as e:
            self._logger.error("An error occurred. Rolling back", exc_info=e)
            await session.rollback()
            raise
        finally:
            self._logger.debug("Closing session")
            await session.close()

    async def refresh_detached_instance(self, session: AsyncSession, instance: object):
        merged_instance = await session.merge(instance)
        await session.refresh(merged_instance)

        return merged_instance
