import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings
from alerts import EventBus, ToastManager
from api.alerts import router as alerts_router
from api.settings import router as settings_router
from api.data import router as data_router
from sensors import ReadingSource
from services import AlertMonitor, EmailDispatcher, FunctionEmailSender
from services.email import EmailSender
from storage import EmailSettingsStore, ReadStateStore, SQLiteStorage, ThresholdConfigStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_app(
    settings: Optional[Settings] = None,
    source: Optional[ReadingSource] = None,
    email_sender: Optional[EmailSender] = None
) -> FastAPI:
    """
    Wire the stores, pipeline and routers.

    Components are owned by the app (app.state) and injected into each
    other; the polling loop lives for the duration of the lifespan.
    """
    settings = settings or Settings()
    configure_logging(settings)

    bus = EventBus()
    storage = SQLiteStorage(settings.DB_PATH)
    config_store = ThresholdConfigStore(storage, bus)
    read_store = ReadStateStore(storage, bus)
    email_store = EmailSettingsStore(storage, bus)

    if source is None:
        source = ReadingSource(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY,
            table=settings.READINGS_TABLE,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    if email_sender is None and settings.email_endpoint and settings.SUPABASE_ANON_KEY:
        email_sender = FunctionEmailSender(
            settings.email_endpoint,
            settings.SUPABASE_ANON_KEY,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )

    email = EmailDispatcher(email_store, email_sender)
    monitor = AlertMonitor(
        source,
        config_store,
        read_store,
        ToastManager(settings.TOAST_DURATION_MS, settings.MAX_TOASTS),
        email=email,
        batch_size=settings.ALERT_BATCH_SIZE,
        series_limit=settings.SERIES_LIMIT,
        poll_interval=settings.POLL_INTERVAL_SECONDS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.AUTOSTART_POLLING:
            monitor.start()
        yield
        monitor.stop(timeout=settings.REQUEST_TIMEOUT_SECONDS)
        email.shutdown(wait=False)

    app = FastAPI(
        title="Garden Monitor API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.bus = bus
    app.state.source = source
    app.state.config_store = config_store
    app.state.read_store = read_store
    app.state.email_store = email_store
    app.state.monitor = monitor

    app.include_router(alerts_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(data_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": "Garden Monitor API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "source_configured": getattr(source, "configured", True),
            "email_configured": email_sender is not None,
            "monitor": monitor.stats(),
        }

    return app


if __name__ == "__main__":
    import uvicorn
    settings = Settings()
    uvicorn.run("main:create_app", factory=True, host=settings.HOST, port=settings.PORT, reload=True)
