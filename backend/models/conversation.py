"""Conversation data models."""
from dataclasses import dataclass
from typing import Optional

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass
class ConversationTurn:
    """Represents a single turn of caller-supplied conversation history."""
    role: str  # "user" or "assistant"
    text: str
    full_response: Optional[str] = None  # Serialized QueryResult of an assistant turn

    @property
    def is_user(self) -> bool:
        return self.role == USER_ROLE

    def replay_content(self) -> str:
        """
        Content sent back to the model when this turn is replayed.

        Assistant turns prefer the serialized artifact so the model can refer
        to the previous visualization state, not just its prose summary.
        """
        if not self.is_user and self.full_response:
            return self.full_response
        return self.text or ""
