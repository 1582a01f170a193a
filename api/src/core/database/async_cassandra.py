"""Async Cassandra database connection using cassandra-asyncio-driver.

Provides:
- Cluster connection and session lifecycle
- Session with aexecute() for non-blocking queries
- Keyspace and table initialization (async)

The cassandra-asyncio-driver extends the standard cassandra-driver
with `session.aexecute()` method for async/await support.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from src.auth.models import AUTH_TABLES_CQL
from src.config.settings import Settings
from src.courses.models import COURSES_TABLES_CQL
from src.email.models import EMAIL_TABLES_CQL
from src.entitlements.models import ENTITLEMENTS_TABLES_CQL
from src.kits.models import KITS_TABLES_CQL
from src.lesson_files.models import LESSON_FILES_TABLES_CQL
from src.lessons.models import LESSONS_TABLES_CQL
from src.orders.models import ORDERS_TABLES_CQL
from src.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)


# Table groups in creation order
SCHEMA: list[tuple[str, list[str]]] = [
    ("auth", AUTH_TABLES_CQL),
    ("kits", KITS_TABLES_CQL),
    ("entitlements", ENTITLEMENTS_TABLES_CQL),
    ("courses", COURSES_TABLES_CQL),
    ("lessons", LESSONS_TABLES_CQL),
    ("lesson_files", LESSON_FILES_TABLES_CQL),
    ("progress", PROGRESS_TABLES_CQL),
    ("orders", ORDERS_TABLES_CQL),
    ("email", EMAIL_TABLES_CQL),
]


class AsyncCassandraConnection:
    """Async Cassandra connection manager.

    Owns one cluster and one session. Uses cassandra-asyncio-driver for
    non-blocking execute via aexecute().
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._cluster: Cluster | None = None
        self._session = None  # Session type from cassandra_asyncio

    def connect(self):
        """Establish connection to Cassandra cluster.

        Note: Connection is synchronous, but execute calls can be async.

        Returns:
            Active Cassandra session with aexecute() support

        Raises:
            ConnectionError: If connection fails
        """
        if self._session is not None:
            return self._session

        settings = self.settings

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        self._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            self._session = self._cluster.connect()
            self._session.default_timeout = settings.cassandra_request_timeout
            logger.info(
                "async_cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
                protocol_version=settings.cassandra_protocol_version,
            )
        except Exception as e:
            logger.error("async_cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return self._session

    @property
    def session(self):
        """Active session, connecting if necessary."""
        return self.connect()

    def disconnect(self) -> None:
        """Close connection to Cassandra."""
        if self._session is not None:
            self._session.shutdown()
            self._session = None
            logger.info("async_cassandra_session_closed")

        if self._cluster is not None:
            self._cluster.shutdown()
            self._cluster = None
            logger.info("async_cassandra_cluster_closed")

    def is_connected(self) -> bool:
        """Check if connection is active."""
        return self._session is not None and not self._session.is_shutdown


def keyspace_cql(keyspace: str, production: bool) -> str:
    """CREATE KEYSPACE statement; replication depends on the environment."""
    if production:
        replication = """
            'class': 'NetworkTopologyStrategy',
            'datacenter1': 3
        """
    else:
        replication = """
            'class': 'SimpleStrategy',
            'replication_factor': 1
        """

    return f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """


async def init_async_schema(session, keyspace: str, production: bool = False) -> None:
    """Create the keyspace and every table group (async).

    Args:
        session: Active Cassandra session with aexecute()
        keyspace: Keyspace name
        production: Use NetworkTopologyStrategy replication
    """
    await session.aexecute(keyspace_cql(keyspace, production))
    logger.info("async_keyspace_created", keyspace=keyspace)

    session.set_keyspace(keyspace)

    for group, statements in SCHEMA:
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("async_tables_created", group=group, keyspace=keyspace)


async def init_async_cassandra(connection: AsyncCassandraConnection):
    """Connect and initialize the schema.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    settings = connection.settings
    session = connection.connect()
    await init_async_schema(
        session,
        settings.cassandra_keyspace,
        production=settings.is_production,
    )
    logger.info("async_cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session
