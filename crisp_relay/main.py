import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from crisp_relay.api.v1 import api_router
from crisp_relay.core.settings import settings
from crisp_relay.services.backend_service import BackendClient
from crisp_relay.services.crisp_service import CrispClient
from crisp_relay.services.debounce_engine import DebounceEngine
from crisp_relay.services.dispatch_service import RelayDispatchSink

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    crisp_client = CrispClient()
    sink = RelayDispatchSink(crisp_client, BackendClient())

    app.state.crisp_client = crisp_client
    app.state.engine = DebounceEngine(sink)

    yield

    await app.state.engine.shutdown()


def create_app() -> FastAPI:
    app = FastAPI(title="Crisp Relay", version=VERSION, lifespan=lifespan)

    app.include_router(api_router, prefix="/v1")

    @app.get("/")
    def root():
        return {"message": "Crisp Relay", "version": VERSION, "status": "running"}

    @app.get("/health")
    def health():
        engine = getattr(app.state, "engine", None)
        pending = len(engine.pending_sessions()) if engine else 0
        return {"status": "ok", "pending_sessions": pending}

    return app


app = create_app()
