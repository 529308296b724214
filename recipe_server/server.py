#!/usr/bin/env python3
"""Recipe Room Socket.IO Server

This module wires the Recipe Room event handlers onto a Socket.IO server running
inside an aiohttp application. The same application serves the browser client:
the landing page at ``/`` and every other path from the static directory.

Key Features:
- Room-scoped broadcast of chat, steps, timers and photos
- AI cooking assistant answers posted into the room chat
- Configuration from defaults, config/server_config.json and the environment
- File and console logging
"""
import os
import sys
import logging
import argparse
import asyncio
from typing import Optional, Tuple

import socketio
from aiohttp import web

from .utils.config_loader import ConfigManager, ConfigError
from .utils.event_utils import ClientEvent
from .utils.path_config import get_logs_dir

from .ai_client import AIAdvisoryClient
from .connection_registry import ConnectionRegistry
from .event_router import EventRouter
from .room_store import RoomStore

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", log_format: Optional[str] = None) -> logging.Logger:
    """Configure logging with the specified level."""
    log_file = os.path.join(get_logs_dir(), "recipe_server.log")

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format or '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    return logging.getLogger('recipe-room')


def register_handlers(sio: socketio.AsyncServer, router: EventRouter) -> None:
    """Bind every client event to its router handler."""

    @sio.event
    async def connect(sid, environ, auth=None):
        logger.info(f"User connected: {sid} ({environ.get('REMOTE_ADDR', 'Unknown IP')})")

    @sio.event
    async def disconnect(sid, reason=None):
        await router.disconnect(sid)
        logger.info(f"User disconnected: {sid}")

    sio.on(ClientEvent.JOIN_ROOM.value, router.join)
    sio.on(ClientEvent.CHAT_MESSAGE.value, router.chat)
    sio.on(ClientEvent.NEXT_STEP.value, router.next_step)
    sio.on(ClientEvent.START_TIMER.value, router.start_timer)
    sio.on(ClientEvent.AI_QUESTION.value, router.ask_ai)
    sio.on(ClientEvent.SHARE_PHOTO.value, router.share_photo)


def add_static_routes(app: web.Application, static_dir: str) -> None:
    """Serve the landing page at / and the client bundle from static_dir."""
    index_file = os.path.join(static_dir, "index.html")

    async def index(request: web.Request) -> web.FileResponse:
        return web.FileResponse(index_file)

    app.router.add_get("/", index)
    app.router.add_static("/", static_dir)


def create_app(
    config: ConfigManager,
    advisor: Optional[AIAdvisoryClient] = None,
) -> Tuple[web.Application, socketio.AsyncServer, EventRouter]:
    """Build the aiohttp application with the Socket.IO server attached.

    Raises:
        ConfigError: if no AI credential is configured and no advisor is given.
    """
    if advisor is None:
        advisor = AIAdvisoryClient(
            api_key=config.require("ai", "api_key"),
            model=config.get("ai", "model"),
            base_url=config.get("ai", "base_url"),
        )

    sio = socketio.AsyncServer(
        async_mode='aiohttp',
        cors_allowed_origins=config.get("server", "cors_origins", default="*"),
    )
    app = web.Application()
    sio.attach(app)

    router = EventRouter(
        transport=sio,
        rooms=RoomStore(
            max_participants=config.get("rooms", "max_participants"),
            max_messages=config.get("rooms", "max_messages"),
        ),
        connections=ConnectionRegistry(),
        advisor=advisor,
        assistant_name=config.get("ai", "assistant_name"),
    )
    register_handlers(sio, router)
    add_static_routes(app, config.get("server", "static_dir"))

    async def close_advisor(app: web.Application) -> None:
        await advisor.close()

    app.on_cleanup.append(close_advisor)
    return app, sio, router


def parse_args(config: ConfigManager, argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Recipe Room Socket.IO Server')
    parser.add_argument('--host', default=config.get('server', 'host'),
                        help='Host IP address to bind the server to.')
    parser.add_argument('--port', type=int, default=config.get('server', 'port'),
                        help='Port number to bind the server to.')
    parser.add_argument('--log-level', default=config.get('server', 'log_level'),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser.parse_args(argv)


async def start_server(app: web.Application, host: str, port: int) -> None:
    """Run the application until cancelled."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
        logger.info(f"Recipe Room server running on {host}:{port}")
        await asyncio.Event().wait()
    finally:
        logger.info("Stopping Recipe Room server...")
        await runner.cleanup()


def main(argv=None) -> int:
    """Main entry point."""
    try:
        config = ConfigManager()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.critical(f"Invalid configuration: {e}")
        return 1

    args = parse_args(config, argv)
    setup_logging(args.log_level, config.get('logging', 'format'))

    try:
        app, _, _ = create_app(config)
    except ConfigError as e:
        logger.critical(f"Failed to start server: {e}")
        return 1

    try:
        asyncio.run(start_server(app, args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user (KeyboardInterrupt).")
    return 0


if __name__ == '__main__':
    sys.exit(main())
