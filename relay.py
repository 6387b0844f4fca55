import threading
from dataclasses import dataclass
from typing import Any, List, Protocol

from pydantic import ValidationError

from exceptions import MalformedMessage, StaleTarget
from logging_config import get_logger
from registry import MembershipRegistry
from schemas.signaling import (
    JoinMessage,
    LeaveMessage,
    NEGOTIATION_TYPES,
    NegotiationMessage,
    SignalingMessage,
    inbound_adapter,
    peer_announced_message,
    peer_left_message,
)

logger = get_logger(__name__)


class ConnectionDirectory(Protocol):
    def is_connected(self, connection_id: str) -> bool: ...


@dataclass(frozen=True)
class Delivery:
    target_connection_id: str
    message: dict


def parse_message(raw: Any, connection_id: str = None):
    """Validate a decoded JSON frame into one of the inbound message types."""
    try:
        return inbound_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid message: {e.error_count()} validation error(s)", connection_id=connection_id) from e


class RelayRouter:
    """Decides whom to notify and what to forward for each inbound message.

    Holds no membership state; everything is read from and written to the
    injected registry. Returns deliveries instead of sending them so the
    caller owns the transport.
    """

    def __init__(self, registry: MembershipRegistry, connections: ConnectionDirectory, announce_peer_left: bool = False):
        self.registry = registry
        self.connections = connections
        self.announce_peer_left = announce_peer_left
        self._lock = threading.Lock()

    def dispatch(self, connection_id: str, message) -> List[Delivery]:
        if not isinstance(message, SignalingMessage):
            message = parse_message(message, connection_id)

        if isinstance(message, JoinMessage):
            return self.join(connection_id, message.display_name, message.meeting_id)
        if isinstance(message, LeaveMessage):
            return self.leave(connection_id)
        if message.type in NEGOTIATION_TYPES:
            return self.forward(connection_id, message)
        raise MalformedMessage(f"Unsupported message type {message.type!r}", connection_id=connection_id)

    def join(self, connection_id: str, display_name: str, meeting_id: str) -> List[Delivery]:
        display_name = display_name.strip() if display_name and display_name.strip() else f"User_{connection_id[:8]}"
        # Query and register as one step so concurrent joiners cannot miss each other
        with self._lock:
            others = self.registry.list_others(meeting_id, connection_id)
            self.registry.register(connection_id, display_name, meeting_id)

        logger.info(f"{connection_id} ({display_name}) joined meeting {meeting_id}, announcing to {len(others)} peer(s)")
        announcement = peer_announced_message(display_name, connection_id)
        return [Delivery(other.connection_id, dict(announcement)) for other in others]

    def forward(self, connection_id: str, message: NegotiationMessage) -> List[Delivery]:
        target = message.target_connection_id
        if not self.connections.is_connected(target):
            raise StaleTarget(
                f"Dropping {message.type} from {connection_id}: target {target} is not connected",
                connection_id=connection_id,
                target_connection_id=target,
            )

        forwarded = message.model_dump(by_alias=True, exclude={"target_connection_id"})
        forwarded["senderConnectionId"] = connection_id
        logger.debug(f"Forwarding {message.type} from {connection_id} to {target}")
        return [Delivery(target, forwarded)]

    def leave(self, connection_id: str) -> List[Delivery]:
        participant = self.registry.remove(connection_id)
        if participant is None:
            logger.debug(f"Leave from {connection_id} which has not joined, ignoring")
            return []
        logger.info(f"{connection_id} ({participant.display_name}) left meeting {participant.meeting_id}")
        return self._departure_deliveries(participant)

    def disconnect(self, connection_id: str) -> List[Delivery]:
        participant = self.registry.remove(connection_id)
        if participant is None:
            return []
        logger.info(f"{connection_id} ({participant.display_name}) disconnected from meeting {participant.meeting_id}")
        return self._departure_deliveries(participant)

    def _departure_deliveries(self, participant) -> List[Delivery]:
        if not self.announce_peer_left:
            return []
        notice = peer_left_message(participant.display_name, participant.connection_id)
        return [
            Delivery(other.connection_id, dict(notice))
            for other in self.registry.list_participants(participant.meeting_id)
        ]
