import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import configure_logging, get_settings

# Routers
from app.api.routers.institutions import router as institutions_router
from app.api.routers.land_plots import router as land_plots_router
from app.api.routers.pdf import router as pdf_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the Telegram poller alongside the API when a bot token is configured."""
    configure_logging()
    settings = get_settings()
    bot = None
    if settings.telegram_token and settings.bot_autostart:
        from app.services.bot.telegram import build_bot

        bot = build_bot(settings)
        bot.start()
    else:
        logger.info("Telegram bot disabled (no TELEGRAM_BOT_TOKEN or BOT_AUTOSTART=false)")
    try:
        yield
    finally:
        if bot is not None:
            bot.stop()


app = FastAPI(title="Education Institution Catalog", version="0.1", lifespan=lifespan)

app.include_router(institutions_router)
app.include_router(land_plots_router)
app.include_router(pdf_router)
