from contextlib import asynccontextmanager
import logging

from jobportal.ai.factory import get_completion_client
from jobportal.core.config import settings
from jobportal.db.portal_store import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    _ = app
    init_db()
    logger.info("portal_store_ready path=%s", settings.portal_db_path)

    client = get_completion_client(settings)
    if client is None:
        logger.info("text_generation_disabled using=templates")
    yield
