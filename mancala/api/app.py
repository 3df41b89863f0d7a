"""
FastAPI Application - WebSocket relay and HTTP endpoints.

Endpoints (all under BASE_PATH):
    WS     /ws                      Room protocol (create, join, move, reset, ping)
    GET    /health                  Health check
    GET    /api/v1/rooms/{code}     Room snapshot (status, seats, state)

WebSocket flow:
    1. Client connects, sends {"type": "create"} -> room_created with a code
    2. Opponent connects, sends {"type": "join", "code": ...}
       -> joined_room (joiner), game_starting (creator), game_update (both)
    3. Players send {"type": "move", "code": ..., "pit_index": ...}
       -> game_update (both) or error (mover only)
    4. Either connection closes -> opponent_disconnected, room removed

All frames are JSON with explicit Pydantic schemas (see schemas.py).
"""

from typing import Any, Optional, Union
import json
import logging
import uuid

from fastapi import APIRouter, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .. import config
from .relay import RelayHandler
from .schemas import (
    ErrorCode,
    ErrorResponse,
    GameStateSchema,
    HealthResponse,
    RoomResponse,
)


logger = logging.getLogger(__name__)


class WebSocketParticipant:
    """Binds one WebSocket connection to a seat. Hashed by identity."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.connection_id = uuid.uuid4().hex[:8]

    async def send_json(self, message: dict[str, Any]) -> None:
        await self.websocket.send_json(message)

    def __repr__(self) -> str:
        return f"WebSocketParticipant({self.connection_id})"


def create_app(
    relay: Optional[RelayHandler] = None,
    base_path: Optional[str] = None,
    allowed_origins: Optional[list[str]] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        relay: Optional RelayHandler (creates one with a fresh SessionManager if not provided)
        base_path: URL prefix (defaults to BASE_PATH from the environment)
        allowed_origins: CORS origins (defaults to ALLOWED_ORIGINS from the environment)

    Returns:
        FastAPI application instance
    """
    prefix = config.normalize_base_path(config.BASE_PATH if base_path is None else base_path)
    origins = allowed_origins if allowed_origins is not None else config.ALLOWED_ORIGINS

    app = FastAPI(
        title="Mancala Relay",
        description="""
Authoritative Kalah engine with two-seat rooms shared over WebSocket.

## Error Codes

| Code | Description |
|------|-------------|
| `NOT_YOUR_TURN` | It is the other player's move |
| `NOT_YOUR_PIT` | Pit is not one of your six |
| `EMPTY_PIT` | Pit holds no stones |
| `GAME_ALREADY_OVER` | Reset the room to play again |
| `ROOM_NOT_FOUND` | Room does not exist or was torn down |
| `ROOM_FULL` | Both seats are taken |
| `INVALID_REQUEST` | Frame could not be parsed |
        """,
        version=__version__,
        docs_url=f"{prefix}/api/docs",
        redoc_url=f"{prefix}/api/redoc",
        openapi_url=f"{prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    relay = relay if relay is not None else RelayHandler()
    app.state.relay = relay
    router = APIRouter(prefix=prefix)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    # =========================================================================
    # Room Endpoints
    # =========================================================================

    @router.get(
        "/api/v1/rooms/{code}",
        response_model=RoomResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Get room status and state",
    )
    async def get_room(code: str) -> Union[RoomResponse, JSONResponse]:
        """Snapshot of a live room, for clients that poll instead of listening."""
        result = relay.sessions.get_state(code)
        if not result.success:
            return make_error_response(
                ErrorCode.ROOM_NOT_FOUND,
                result.error or "Room not found!",
                status_code=404,
            )
        return RoomResponse(
            code=result.code,
            status=result.status,
            seat_count=result.seat_count,
            state=GameStateSchema.from_state(result.state),
        )

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @router.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket carrying the room protocol.

        Messages from client:
        - create / join / move / reset: room requests
        - ping: Keep-alive

        Messages from server:
        - room_created, joined_room, game_starting: seating
        - game_update: State changed
        - opponent_disconnected: Room closed by the other seat
        - error: Request refused (sent to the requester only)
        - pong
        """
        await websocket.accept()
        participant = WebSocketParticipant(websocket)
        logger.info("User connected: %s", participant.connection_id)

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))
                data = frame.get("text")
                if data is None:
                    await relay.reject(participant, ErrorCode.INVALID_REQUEST, "Expected a text frame")
                    continue
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await relay.reject(participant, ErrorCode.INVALID_REQUEST, "Invalid JSON")
                    continue
                await relay.handle(participant, message)
        except WebSocketDisconnect:
            logger.info("User disconnected: %s", participant.connection_id)
        finally:
            await relay.disconnect(participant)

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            version=__version__,
            active_rooms=len(relay.sessions),
        )

    health_paths = {"/health", f"{prefix}/health"}
    for path in sorted(health_paths):
        app.add_api_route(
            path,
            health_check,
            methods=["GET"],
            response_model=HealthResponse,
            tags=["System"],
            summary="Health check",
        )

    @router.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Mancala Relay",
            "version": __version__,
            "docs": f"{prefix}/api/docs",
            "health": f"{prefix}/health",
            "websocket": f"{prefix}/ws",
        }

    app.include_router(router)
    return app


# For running directly: uvicorn mancala.api.app:app
app = create_app()
