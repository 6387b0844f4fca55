from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, StringConstraints, TypeAdapter


class SignalingMessage(BaseModel):
    pass


# client -> relay

class JoinMessage(SignalingMessage):
    type: Literal["join"]
    display_name: str = Field("", alias="displayName")
    meeting_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(..., alias="meetingId")

class LeaveMessage(SignalingMessage):
    type: Literal["leave"]

class OfferMessage(SignalingMessage):
    type: Literal["offer"]
    target_connection_id: str = Field(..., alias="targetConnectionId")
    sdp: Any

class AnswerMessage(SignalingMessage):
    type: Literal["answer"]
    target_connection_id: str = Field(..., alias="targetConnectionId")
    sdp: Any

class IceCandidateMessage(SignalingMessage):
    type: Literal["icecandidate"]
    target_connection_id: str = Field(..., alias="targetConnectionId")
    candidate: Any


InboundMessage = Annotated[
    Union[JoinMessage, LeaveMessage, OfferMessage, AnswerMessage, IceCandidateMessage],
    Field(discriminator="type"),
]
inbound_adapter = TypeAdapter(InboundMessage)

NEGOTIATION_TYPES = ("offer", "answer", "icecandidate")
NegotiationMessage = Union[OfferMessage, AnswerMessage, IceCandidateMessage]


# relay -> client

def connected_message(connection_id: str) -> dict:
    return {"type": "connected", "connectionId": connection_id}

def peer_announced_message(display_name: str, connection_id: str) -> dict:
    return {"type": "peer-announced", "displayName": display_name, "connectionId": connection_id}

def peer_left_message(display_name: str, connection_id: str) -> dict:
    return {"type": "peer-left", "displayName": display_name, "connectionId": connection_id}

def error_message(code: str, message: str) -> dict:
    return {"type": "error", "code": code, "message": message}
