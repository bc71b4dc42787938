# main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ballot_ledger import __version__
from ballot_ledger.config import Settings, load_settings
from ballot_ledger.contract import VotingContract
from ballot_ledger.errors import (
    AlreadyExists,
    DecodeError,
    LedgerError,
    NotFound,
    NotRegistered,
    StaleStateError,
    UnknownCandidate,
)
from ballot_ledger.legacy import AssetTransferContract
from ballot_ledger.routes.ledger_routes import build_operations, router as ledger_router
from ballot_ledger.storage import WorldState, build_world_state

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    AlreadyExists: 409,
    NotFound: 404,
    NotRegistered: 422,
    UnknownCandidate: 422,
    DecodeError: 500,
    StaleStateError: 409,
}

origins = [
    "http://localhost:3000",  # For Create React App
    "http://localhost:5173",  # For Vite
]


def create_app(settings: Optional[Settings] = None, world_state: Optional[WorldState] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Ballot Ledger API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.world_state = world_state if world_state is not None else build_world_state(settings)
    app.state.contract = VotingContract.from_settings(settings)
    app.state.assets = AssetTransferContract()
    app.state.operations = build_operations(app.state.contract, app.state.assets)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        status = ERROR_STATUS.get(type(exc), 400)
        if status >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "key": exc.key, "detail": exc.message},
        )

    app.include_router(ledger_router)

    @app.get("/health", tags=["Health"])
    def health_check():
        return {"status": "healthy", "backend": settings.backend}

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the Ballot Ledger API"}

    return app


_app: Optional[FastAPI] = None


def __getattr__(name: str):
    # "ballot_ledger.main:app" builds the app on first access, so importing
    # create_app never opens the configured store
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
