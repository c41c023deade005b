import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from libs.redis_common.config import LOG_LEVEL, REDIS_COMMAND_TIMEOUT
from libs.redis_common.logging_config import setup_logging
from libs.redis_common.redis_factory import create_client
from services.order_service.app.api.routes import router
from services.order_service.order_repository import RedisOrderRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(LOG_LEVEL)
    client = create_client()
    app.state.repository = RedisOrderRepository(client, command_timeout=REDIS_COMMAND_TIMEOUT)
    logger.info("Order service started")
    yield
    # Shutdown
    app.state.repository = None
    await client.aclose()


app = FastAPI(lifespan=lifespan)
app.include_router(router)
