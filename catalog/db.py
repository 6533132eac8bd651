import logging

from pymongo import ASCENDING, DESCENDING, TEXT, AsyncMongoClient, IndexModel
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

ARTISTS = "artists"
RELEASES = "releases"

ARTIST_INDEXES = [
    IndexModel([("name", TEXT), ("bio", TEXT)], name="artist_text"),
    IndexModel([("slug", ASCENDING)], unique=True, name="artist_slug"),
    IndexModel([("featured", DESCENDING), ("createdAt", DESCENDING)], name="artist_featured"),
    IndexModel([("genre", ASCENDING)], name="artist_genre"),
]

RELEASE_INDEXES = [
    IndexModel(
        [("title", TEXT), ("description", TEXT), ("tracks.title", TEXT)], name="release_text"
    ),
    IndexModel([("slug", ASCENDING)], unique=True, name="release_slug"),
    IndexModel([("catalogNumber", ASCENDING)], unique=True, name="release_catalog_number"),
    IndexModel([("artist", ASCENDING), ("releaseDate", DESCENDING)], name="release_artist"),
    IndexModel([("featured", DESCENDING), ("releaseDate", DESCENDING)], name="release_featured"),
    IndexModel([("genre", ASCENDING)], name="release_genre"),
    IndexModel([("releaseDate", DESCENDING)], name="release_date"),
    IndexModel([("published", ASCENDING), ("releaseDate", DESCENDING)], name="release_published"),
]


class CatalogDB:
    """Async MongoDB handle for the artist and release collections.

    Constructed once in the application lifespan and injected into request
    handlers; ``connect`` and ``close`` bracket its lifetime.
    """

    def __init__(self, uri: str, db_name: str, timeout_ms: int = 5000):
        self.uri = uri
        self.db_name = db_name
        self.timeout_ms = timeout_ms
        self._client: AsyncMongoClient | None = None
        self._db: AsyncDatabase | None = None

    async def connect(self):
        """Open the client and verify the server answers a ping."""
        self._client = AsyncMongoClient(
            self.uri,
            serverSelectionTimeoutMS=self.timeout_ms,
            tz_aware=True,
        )
        self._db = self._client[self.db_name]
        await self._client.admin.command("ping")
        logger.info(f"Connected to MongoDB database: {self.db_name}")

    async def ensure_indexes(self):
        """Create the text, uniqueness and sort indexes the queries rely on."""
        await self.artists.create_indexes(ARTIST_INDEXES)
        await self.releases.create_indexes(RELEASE_INDEXES)
        logger.info("MongoDB indexes ensured")

    async def is_available(self) -> bool:
        """Check if the server still answers a ping."""
        try:
            if self._client is None:
                return False
            result = await self._client.admin.command("ping")
            return bool(result.get("ok"))
        except PyMongoError:
            return False

    async def close(self):
        """Close the client connection pool."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._db = None
            logger.info("Closed MongoDB connection")

    @property
    def database(self) -> AsyncDatabase:
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    @property
    def artists(self) -> AsyncCollection:
        return self.database[ARTISTS]

    @property
    def releases(self) -> AsyncCollection:
        return self.database[RELEASES]
