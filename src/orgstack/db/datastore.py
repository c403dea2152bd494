"""Transaction coordination.

Every provisioning operation runs inside exactly one transaction obtained
from :class:`Datastore`. The ``transaction()`` context manager commits on
normal exit and rolls back on any exception, re-raising the original
exception unless the rollback itself fails.

Usage:
    datastore = Datastore(session_factory)

    async with datastore.transaction() as tx:
        await OrgRepository(tx).create(...)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orgstack.core.exceptions import DatabaseError
from orgstack.core.logging import get_logger, log_exception

logger = get_logger(__name__)

# Failures raised by drivers when the database is unreachable
STORAGE_ERRORS = (SQLAlchemyError, OSError)


class Datastore:
    """Begins, commits and rolls back transactions.

    Attributes:
        session_factory: Factory for AsyncSession instances
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize datastore.

        Args:
            session_factory: Factory producing sessions bound to an engine
        """
        self.session_factory = session_factory

    async def ping(self) -> None:
        """Check the database is reachable.

        Raises:
            DatabaseError: If the round trip fails
        """
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except STORAGE_ERRORS as e:
            raise DatabaseError(f"database ping failed: {e}") from e

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Short-lived session for reads outside a coordinated transaction.

        Nothing is committed; the session is closed on exit.
        """
        async with self.session_factory() as session:
            yield session

    async def begin_tx(self) -> AsyncSession:
        """Start a transaction.

        A connection is acquired immediately so an unreachable database
        fails here rather than on the first write.

        Returns:
            Session with an open transaction

        Raises:
            DatabaseError: If the transaction cannot be started
        """
        session = self.session_factory()
        try:
            await session.begin()
            await session.connection()
        except STORAGE_ERRORS as e:
            await session.close()
            raise DatabaseError(f"begin transaction failed: {e}") from e
        return session

    async def commit_tx(self, tx: AsyncSession) -> None:
        """Commit and close a transaction.

        Raises:
            DatabaseError: If the commit fails
        """
        try:
            await tx.commit()
        except STORAGE_ERRORS as e:
            raise DatabaseError(f"commit transaction failed: {e}") from e
        finally:
            await tx.close()

    async def rollback_tx(self, tx: AsyncSession, err: BaseException) -> BaseException:
        """Roll back and close a transaction after ``err``.

        Args:
            tx: The transaction to roll back
            err: The error that caused the rollback

        Returns:
            ``err`` unchanged

        Raises:
            DatabaseError: If the rollback itself fails, chained from that failure
        """
        try:
            await tx.rollback()
        except STORAGE_ERRORS as e:
            logger.error(
                "transaction_rollback_failed",
                cause_type=type(err).__name__,
                error_message=str(e),
            )
            raise DatabaseError(f"rollback failed: {e} (cause: {err})") from e
        finally:
            await tx.close()

        log_exception(logger, err, outcome="transaction_rolled_back")
        return err

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Scope a transaction: commit on success, roll back on any error.

        Yields:
            Session with an open transaction

        Raises:
            DatabaseError: If begin, commit or rollback fails
        """
        tx = await self.begin_tx()
        try:
            yield tx
        except BaseException as exc:
            await self.rollback_tx(tx, exc)
            raise
        await self.commit_tx(tx)
