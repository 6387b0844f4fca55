from fastapi import APIRouter, Request

from logging_config import get_logger
from schemas.meetings import HealthResponse, MeetingDetailsResponse

logger = get_logger(__name__)

meetings_router = APIRouter(tags=["meetings"])


@meetings_router.get("/meetings/{meeting_id}", response_model=MeetingDetailsResponse)
async def get_meeting_details(meeting_id: str, request: Request):
    """
    Current participants of a meeting in join order.

    A meeting nobody has joined is reported as empty rather than missing.
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Meeting details request for {meeting_id} from {client_host}")

    participants = request.app.state.registry.list_participants(meeting_id)
    return MeetingDetailsResponse(
        meeting_id=meeting_id,
        participant_count=len(participants),
        participants=participants,
    )


@meetings_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    return HealthResponse(
        status="ok",
        connections=len(request.app.state.connections),
        participants=len(request.app.state.registry),
        meetings=len(request.app.state.registry.meeting_ids()),
    )
