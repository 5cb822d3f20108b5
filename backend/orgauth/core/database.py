import logging
from motor.motor_asyncio import AsyncIOMotorClient
from orgauth.core.config import MONGO_URL, DB_NAME

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


async def ensure_indexes(database=None):
    """Create the lookup indexes used by the auth, user and organization queries."""
    database = database if database is not None else db
    await database.users.create_index("id", unique=True)
    await database.users.create_index("email", unique=True)
    await database.users.create_index("email_verification_token")
    await database.users.create_index("password_reset_token")
    await database.users.create_index("refresh_tokens")
    await database.organizations.create_index("id", unique=True)
    logger.info("Database indexes ensured")
