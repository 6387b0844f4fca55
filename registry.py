import threading
from datetime import datetime
from typing import Dict, List, Optional

from exceptions import DuplicateJoin
from logging_config import get_logger
from schemas.meetings import Participant

logger = get_logger(__name__)


class MembershipRegistry:
    """In-memory ownership of every Participant record.

    Meetings are implicit: a meeting exists while at least one participant
    references its id. Both maps keep insertion order, which is join order.
    """

    def __init__(self):
        self._lock = threading.RLock()
        # {connection_id: Participant}
        self._participants: Dict[str, Participant] = {}
        # {meeting_id: {connection_id: None}}
        self._meetings: Dict[str, Dict[str, None]] = {}
        logger.info("Initializing MembershipRegistry")

    def register(self, connection_id: str, display_name: str, meeting_id: str) -> Participant:
        with self._lock:
            if connection_id in self._participants:
                existing = self._participants[connection_id]
                logger.debug(f"Connection {connection_id} already registered in meeting {existing.meeting_id}")
                raise DuplicateJoin(
                    f"Connection {connection_id} has already joined meeting {existing.meeting_id}",
                    connection_id=connection_id,
                )
            participant = Participant(
                connection_id=connection_id,
                display_name=display_name,
                meeting_id=meeting_id,
                joined_at=datetime.now().isoformat(),
            )
            self._participants[connection_id] = participant
            self._meetings.setdefault(meeting_id, {})[connection_id] = None
            logger.debug(f"Registered {connection_id} ({display_name}) in meeting {meeting_id} "
                         f"({len(self._meetings[meeting_id])} participants)")
            return participant

    def list_others(self, meeting_id: str, excluding_connection_id: str) -> List[Participant]:
        """Participants of a meeting in join order, minus the given connection.

        An unknown meeting is simply empty.
        """
        with self._lock:
            members = self._meetings.get(meeting_id, {})
            return [self._participants[conn_id] for conn_id in members if conn_id != excluding_connection_id]

    def list_participants(self, meeting_id: str) -> List[Participant]:
        with self._lock:
            return [self._participants[conn_id] for conn_id in self._meetings.get(meeting_id, {})]

    def remove(self, connection_id: str) -> Optional[Participant]:
        """Remove a participant. Unknown ids are a no-op and return None."""
        with self._lock:
            participant = self._participants.pop(connection_id, None)
            if participant is None:
                logger.debug(f"Remove for unknown connection {connection_id}, ignoring")
                return None
            members = self._meetings.get(participant.meeting_id)
            if members is not None:
                members.pop(connection_id, None)
                if not members:
                    del self._meetings[participant.meeting_id]
                    logger.debug(f"Meeting {participant.meeting_id} is now empty")
            logger.debug(f"Removed {connection_id} from meeting {participant.meeting_id}")
            return participant

    def get(self, connection_id: str) -> Optional[Participant]:
        with self._lock:
            return self._participants.get(connection_id)

    def meeting_ids(self) -> List[str]:
        with self._lock:
            return list(self._meetings)

    def clear(self):
        with self._lock:
            count = len(self._participants)
            self._participants.clear()
            self._meetings.clear()
        logger.info(f"MembershipRegistry cleared ({count} participants dropped)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._participants)
