import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .connections import ConnectionManager
from .events import EventRouter
from .game import Room
from .settings import Settings, settings

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    manager = ConnectionManager()
    room = Room(manager, config=config)
    router = EventRouter(room, manager, config=config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("WebSocket server running on port %s", config.PORT)
        yield
        logger.info("Shutting down gracefully")
        room.close()
        await manager.close_all()

    app = FastAPI(title="Who Said What? API", lifespan=lifespan)
    app.state.room = room
    app.state.connections = manager
    app.state.router = router

    origins = [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        snapshot = room.status()
        return {
            "status": "healthy",
            "players": snapshot["players"],
            "gameState": snapshot["gameState"],
            "round": snapshot["round"],
        }

    async def game_socket(websocket: WebSocket):
        await websocket.accept()
        conn = manager.register(websocket)
        logger.info("New connection established")
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                router.handle(conn, raw)
        finally:
            await manager.unregister(conn)
            router.disconnect(conn)

    app.add_api_websocket_route("/", game_socket)
    app.add_api_websocket_route("/ws", game_socket)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
