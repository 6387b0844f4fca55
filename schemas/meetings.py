from pydantic import BaseModel


class Participant(BaseModel):
    connection_id: str
    display_name: str
    meeting_id: str
    joined_at: str

class MeetingDetailsResponse(BaseModel):
    meeting_id: str
    participant_count: int
    participants: list[Participant] = []

class HealthResponse(BaseModel):
    status: str
    connections: int
    participants: int
    meetings: int
