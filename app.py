from contextlib import asynccontextmanager
import json

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from constants import ANNOUNCE_PEER_LEFT, CORS_ALLOW_ORIGINS, LOG_FILE, LOG_LEVEL, REPORT_ERRORS_TO_SENDER, WS_PATH
from exceptions import MalformedMessage, RelayError
from logging_config import get_logger, setup_logging
from registry import MembershipRegistry
from relay import RelayRouter
from routers.meetings import meetings_router
from schemas.signaling import connected_message, error_message
from transport import ConnectionManager

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Signaling relay starting")
    yield
    app.state.registry.clear()
    logger.info("Signaling relay stopped")


def create_app(announce_peer_left: bool = ANNOUNCE_PEER_LEFT, report_errors_to_sender: bool = REPORT_ERRORS_TO_SENDER) -> FastAPI:
    """Build the relay with a fresh registry, connection table and router."""
    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = MembershipRegistry()
    connections = ConnectionManager()
    relay = RelayRouter(registry, connections, announce_peer_left=announce_peer_left)
    app.state.registry = registry
    app.state.connections = connections
    app.state.relay = relay

    app.include_router(meetings_router)

    @app.websocket(WS_PATH)
    async def websocket_endpoint(websocket: WebSocket):
        connection_id = await connections.connect(websocket)
        logger.info(f"Connection {connection_id} opened")

        try:
            await connections.send(connection_id, connected_message(connection_id))

            message_count = 0
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                    break
                message_count += 1
                logger.debug(f"Received message #{message_count} from connection {connection_id}")

                try:
                    data = frame.get("text")
                    if data is None:
                        raise MalformedMessage("Binary frames are not supported", connection_id=connection_id)
                    try:
                        raw = json.loads(data)
                    except json.JSONDecodeError:
                        raise MalformedMessage("Message is not valid JSON", connection_id=connection_id)
                    deliveries = relay.dispatch(connection_id, raw)
                except RelayError as e:
                    logger.warning(f"Dropped message #{message_count} from connection {connection_id}: [{e.code}] {e.message}")
                    if report_errors_to_sender:
                        await connections.send(connection_id, error_message(e.code, e.message))
                    continue

                await connections.deliver(deliveries)

        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            # Unknown to the transport first, so nothing is forwarded to it while cleaning up
            connections.disconnect(connection_id)
            deliveries = relay.disconnect(connection_id)
            await connections.deliver(deliveries)
            logger.info(f"Connection {connection_id} closed")

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
