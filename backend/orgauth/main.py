import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orgauth.core.config import CORS_ORIGINS, ADMIN_EMAIL
from orgauth.core.database import client, db, ensure_indexes
from orgauth.core.cache import cache
from orgauth.routes import (
    auth_router,
    users_router,
    organizations_router,
)

VERSION = "1.0.0"

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="OrgAuth API",
    description="Authentication, user accounts and organization membership",
    version=VERSION
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(organizations_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": VERSION}


@app.on_event("startup")
async def startup_db_client():
    logger.info(f"Starting OrgAuth API v{VERSION}")
    try:
        await ensure_indexes(db)
    except Exception as e:
        logger.error(f"Index creation failed: {e}")

    if ADMIN_EMAIL:
        result = await db.users.update_one(
            {"email": ADMIN_EMAIL},
            {"$set": {"role": "admin"}},
        )
        if result.modified_count:
            logger.info(f"Promoted {ADMIN_EMAIL} to admin")
        elif result.matched_count:
            logger.info(f"{ADMIN_EMAIL} is already admin")

    if await cache.ping():
        logger.info("Connected to Redis")
    else:
        logger.warning("Redis unavailable, serving without cache")


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
    await cache.close()
