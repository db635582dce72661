from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend import NotFound, RedisBackend
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from realtime.connection import ParticipantConnection
from realtime.registry import RoomRegistry
from realtime.relay import EventRelay
from routers.attendance import attendance_router
from routers.posts import posts_router
from routers.rooms import rooms_router

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(backend: Optional[RedisBackend] = None, relay: Optional[EventRelay] = None) -> FastAPI:
    """Build the application with its own registry, relay and store.

    Tests pass isolated instances; the module-level ``app`` builds defaults.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.backend.ping()
        logger.info("Live classroom relay is ready")
        yield
        logger.info(f"Shutting down, dropping {len(app.state.relay.connections)} live connections")

    app = FastAPI(title="Live Classroom Relay", lifespan=lifespan)
    app.state.backend = backend if backend is not None else RedisBackend()
    app.state.relay = relay if relay is not None else EventRelay(RoomRegistry())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)
    app.include_router(posts_router)
    app.include_router(attendance_router)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(redis.RedisError)
    async def storage_error_handler(request: Request, exc: redis.RedisError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})

    @app.get("/health", tags=["health"])
    async def health():
        relay: EventRelay = app.state.relay
        return {
            "status": "healthy",
            "connections": len(relay.connections),
            "rooms": len(relay.registry.room_ids()),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket, role: str = "student", display_name: Optional[str] = None):
        """Live classroom socket.

        Query parameters:
        - role: teacher or student (display only)
        - display_name: Optional display name for the participant

        After connecting, the client sends ``join``/``leave`` frames for session
        rooms and ``event`` frames to relay into a joined room.
        """
        relay: EventRelay = app.state.relay
        await websocket.accept()
        connection = ParticipantConnection(websocket, role=role, display_name=display_name)
        relay.attach(connection)
        logger.info(f"WebSocket connection accepted: {connection.connection_id} ({connection.role})")

        try:
            await connection.send({
                "type": "system",
                "message": "Connected",
                "connection_id": connection.connection_id,
                "role": connection.role,
                "display_name": connection.display_name,
            })

            message_count = 0
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
                    break
                data = message.get("text")
                if data is None:
                    logger.warning(f"Dropped binary frame from connection {connection.connection_id}")
                    continue
                message_count += 1
                logger.debug(f"Received message #{message_count} from connection {connection.connection_id}")
                await relay.handle_frame(connection.connection_id, data)
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection.connection_id}: {e}", exc_info=True)
        finally:
            # Disconnect is an implicit leave of every joined room
            await relay.detach(connection.connection_id)
            try:
                await websocket.close()
            except RuntimeError as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
