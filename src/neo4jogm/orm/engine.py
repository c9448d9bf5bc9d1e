"""
neo4jogm Engine

Owns the Neo4j driver for one database configuration. ``Neo4jTransport``
borrows sessions from an engine; entities never see it.

Example:
    ```python
    async with create_graph_engine("bolt://localhost:7687", ("neo4j", "secret")) as engine:
        em = EntityManager(Neo4jTransport(engine))
    ```
"""

import asyncio
import logging
from neo4j import AsyncGraphDatabase, AsyncDriver, AsyncSession
from typing import Optional, Tuple, Dict, Any, cast


logger = logging.getLogger(__name__)

USER_AGENT = "neo4jogm/0.1.0"


class GraphEngine:
    """
    Connection configuration and driver lifecycle for one Neo4j database.

    Nothing is opened until ``connect()`` is awaited or the engine is used
    as an async context manager. ``driver_config`` is merged over the
    engine defaults and passed to ``AsyncGraphDatabase.driver`` as-is.
    """

    def __init__(
        self,
        uri: str,
        auth: Tuple[str, str],
        database: str = "neo4j",
        driver_config: Optional[Dict[str, Any]] = None
    ):
        self.uri: str = uri
        self.auth: Tuple[str, str] = auth
        self.default_database: str = database
        self.driver_config: Dict[str, Any] = {"user_agent": USER_AGENT, **(driver_config or {})}

        self._driver: Optional[AsyncDriver] = None
        self._is_connected: bool = False
        self._connection_lock = asyncio.Lock()

    async def connect(self) -> None:
        """
        Create the driver and verify the server is reachable. Idempotent.

        Raises:
            ConnectionError: If the driver cannot be created or verified.
                A driver that was created but failed verification is closed.
        """
        async with self._connection_lock:
            if self._is_connected and self._driver:
                return

            logger.info("Connecting to %s (default database '%s')", self.uri, self.default_database)
            try:
                self._driver = AsyncGraphDatabase.driver(self.uri, auth=self.auth, **self.driver_config)
                await self._driver.verify_connectivity()
            except Exception as e:
                logger.error("Connection to %s failed: %s", self.uri, e)
                await self._discard_driver()
                raise ConnectionError(f"Could not connect to Neo4j at {self.uri}: {e}") from e

            self._is_connected = True
            logger.info("Connected to %s", self.uri)

    async def close(self) -> None:
        """Close the driver if one is open. Safe to call repeatedly."""
        async with self._connection_lock:
            if self._driver is None:
                return
            if self._is_connected:
                logger.info("Closing connection to %s", self.uri)
            else:
                logger.warning("Closing driver for %s that never finished connecting", self.uri)
            await self._discard_driver()
            logger.info("Connection to %s closed", self.uri)

    async def _discard_driver(self) -> None:
        driver, self._driver = self._driver, None
        self._is_connected = False
        if driver is not None:
            await driver.close()

    def _require_driver(self) -> AsyncDriver:
        if not self._driver or not self._is_connected:
            raise ConnectionError(f"Engine for {self.uri} is not connected, await connect() first")
        return self._driver

    def get_session(self, database: Optional[str] = None) -> AsyncSession:
        """
        Open a session on ``database``, or on the engine's default database.

        Raises:
            ConnectionError: If the engine is not connected.
        """
        driver = self._require_driver()
        return cast(AsyncSession, driver.session(database=database or self.default_database))

    @property
    def driver(self) -> AsyncDriver:
        """The underlying driver. Raises ConnectionError when not connected."""
        return self._require_driver()

    @property
    def connected(self) -> bool:
        return self._is_connected

    async def __aenter__(self) -> "GraphEngine":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def create_graph_engine(
    uri: str,
    auth: Tuple[str, str],
    database: str = "neo4j",
    **driver_config: Any
) -> GraphEngine:
    """Build an unconnected engine; keyword arguments become driver options."""
    return GraphEngine(uri=uri, auth=auth, database=database, driver_config=driver_config)
