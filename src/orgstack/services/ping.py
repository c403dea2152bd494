"""Database reachability check."""

from orgstack.core.exceptions import DatabaseError
from orgstack.core.logging import get_logger
from orgstack.db.datastore import Datastore
from orgstack.db.schemas import PingResponse

logger = get_logger(__name__)


class PingService:
    """Reports whether the database answers."""

    def __init__(self, datastore: Datastore):
        self.datastore = datastore

    async def ping(self) -> PingResponse:
        """Round-trip the database. Never raises; a failure reports ``db_up=False``."""
        try:
            await self.datastore.ping()
        except DatabaseError as e:
            logger.error("database_ping_failed", error_message=str(e))
            return PingResponse(db_up=False)
        return PingResponse(db_up=True)
