# chatapi/main.py
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .database import create_engine, create_session_factory, init_db
from .errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    UnknownSenderError,
    ValidationError,
)
from .messages import MessageLog
from .models import MessageIn, ParticipantIn
from .registry import ParticipantRegistry
from .settings import ChatSettings
from .store import ChatStore
from .sweeper import run_sweeper

logger = logging.getLogger(__name__)


def _describe(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f'"{field}" {error.get("msg", "is invalid")}' if field else error.get("msg", "")


def _install_error_handlers(app: FastAPI):
    @app.exception_handler(ValidationError)
    async def on_validation(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content=exc.messages)

    @app.exception_handler(RequestValidationError)
    async def on_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422, content=[_describe(error) for error in exc.errors()]
        )

    @app.exception_handler(UnknownSenderError)
    async def on_unknown_sender(request: Request, exc: UnknownSenderError):
        return Response(status_code=422)

    @app.exception_handler(ConflictError)
    async def on_conflict(request: Request, exc: ConflictError):
        return Response(status_code=409)

    @app.exception_handler(NotFoundError)
    async def on_not_found(request: Request, exc: NotFoundError):
        return Response(status_code=404)

    @app.exception_handler(StoreError)
    async def on_store_error(request: Request, exc: StoreError):
        return PlainTextResponse(str(exc), status_code=500)


def get_registry(request: Request) -> ParticipantRegistry:
    return request.app.state.registry


def get_message_log(request: Request) -> MessageLog:
    return request.app.state.messages


def create_app(settings: ChatSettings | None = None) -> FastAPI:
    settings = settings or ChatSettings.from_env()

    engine = create_engine(settings.database_url, echo=settings.echo)
    store = ChatStore(create_session_factory(engine))
    registry = ParticipantRegistry(store, broadcast=settings.broadcast)
    messages = MessageLog(store, registry, broadcast=settings.broadcast)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(engine)
        sweeper = asyncio.create_task(
            run_sweeper(registry, settings.sweep_interval, settings.threshold)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                with suppress(asyncio.CancelledError):
                    await sweeper
            finally:
                await engine.dispose()
            logger.info("Chat API shut down")

    app = FastAPI(title="Chat API", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.messages = messages

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    @app.post("/participants", status_code=201)
    async def register_participant(
        payload: ParticipantIn,
        registry: ParticipantRegistry = Depends(get_registry),
    ):
        await registry.register(payload.name)
        return Response(status_code=201)

    @app.get("/participants")
    async def list_participants(registry: ParticipantRegistry = Depends(get_registry)):
        return [participant.to_public() for participant in await registry.list()]

    @app.post("/messages", status_code=201)
    async def post_message(
        payload: MessageIn,
        user: str | None = Header(default=None),
        messages: MessageLog = Depends(get_message_log),
    ):
        await messages.append_user_message(user, payload.to, payload.text, payload.type)
        return Response(status_code=201)

    @app.get("/messages")
    async def list_messages(
        limit: str | None = Query(default=None),
        user: str | None = Header(default=None),
        messages: MessageLog = Depends(get_message_log),
    ):
        return [message.to_public() for message in await messages.retrieve(user, limit)]

    @app.post("/status")
    async def heartbeat(
        user: str | None = Header(default=None),
        registry: ParticipantRegistry = Depends(get_registry),
    ):
        await registry.heartbeat(user)
        return Response(status_code=200)

    return app
