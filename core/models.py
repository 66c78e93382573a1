"""
Pydantic data models for engine state and wire payloads.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Literal
import time

SessionState = Literal["idle", "starting", "active", "stopping"]
ConnectionState = Literal["disconnected", "connecting", "connected", "error"]
Modality = Literal["facial", "voice"]

class EmotionScore(BaseModel):
    name: str
    score: float

class ModalityResult(BaseModel):
    top_emotions: List[EmotionScore] = Field(default_factory=list)

class DetectionEvent(BaseModel):
    speaker: Optional[str] = None
    is_sales_rep: Optional[bool] = None
    blended_label: Optional[str] = None
    audio: Optional[ModalityResult] = None
    video: Optional[ModalityResult] = None

    @field_validator("speaker", "blended_label", mode="before")
    @classmethod
    def _scalar_to_str(cls, v):
        # numeric speaker ids arrive from some meeting platforms
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

class DisplaySignal(BaseModel):
    label: str
    confidence: float
    participant: str
    is_user: bool
    modality: Modality
    color: str
    breakdown: List[EmotionScore]

class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    ts: float = Field(default_factory=time.time)
    text: str

    def render(self) -> str:
        return f"[{time.strftime('%H:%M:%S', time.localtime(self.ts))}] {self.text}"


# backend wire models


class SessionConfig(BaseModel):
    user_name: str = ""
    meeting_url: str
    meeting_objective: str
    selected_emotions: List[str] = Field(default_factory=list)

class StartSessionResponse(BaseModel):
    success: bool = False
    session_id: Optional[str] = None
    error: Optional[str] = None

class HealthReport(BaseModel):
    status: Literal["healthy", "unhealthy", "unreachable"]
    data: Optional[dict] = None
    error: Optional[str] = None


# bridge model


class EngineStatus(BaseModel):
    state: SessionState
    connection: ConnectionState
    status: str
    display_name: str = ""
    returning_user: bool = False
    has_session: bool = False
    selected_emotions: List[str] = Field(default_factory=list)
    logs: List[str] = Field(default_factory=list)
    signal: Optional[DisplaySignal] = None
    advice: str = ""
