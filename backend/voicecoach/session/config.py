from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from core.config import CONVAI_AGENT_ID, CONVAI_VOICE_ID

DEFAULT_DYNAMIC_VARIABLES: dict[str, Any] = {
    "user_name": "Sarah",
    "ai_name": "Michael",
    "tone": (
        "Professional and engaging, maintaining a warm and conversational tone. "
        "They focus on clear communication and building rapport, acting as a "
        "knowledgeable conversational partner who listens actively and responds thoughtfully."
    ),
}


@dataclass
class SessionConfig:
    agent_id: str
    voice_id: Optional[str] = None
    dynamic_variables: dict[str, Any] = field(default_factory=dict)
    connection_type: str = "websocket"


def build_session_config(
    agent_id: Optional[str] = None,
    voice_id: Optional[str] = None,
    dynamic_variables: Optional[dict[str, Any]] = None,
    connection_type: str = "websocket",
) -> SessionConfig:
    resolved_agent = str(agent_id or CONVAI_AGENT_ID or "").strip()
    if not resolved_agent:
        raise ValueError("agent_id is required (pass it or set CONVAI_AGENT_ID)")

    variables = dict(DEFAULT_DYNAMIC_VARIABLES)
    variables.update(dynamic_variables or {})

    return SessionConfig(
        agent_id=resolved_agent,
        voice_id=str(voice_id or CONVAI_VOICE_ID or "").strip() or None,
        dynamic_variables=variables,
        connection_type=connection_type,
    )
