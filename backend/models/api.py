"""Request/response models for the HTTP API."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from models.conversation import ConversationTurn


class HistoryTurn(BaseModel):
    """One chat message as the client keeps it."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role: str
    text: str = ""
    full_response: Optional[str] = Field(default=None, alias="fullResponse")

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, text=self.text, full_response=self.full_response)


class QueryRequest(BaseModel):
    """Body of POST /api/process-query."""
    query: str
    history: List[HistoryTurn] = Field(default_factory=list)


class QueryResult(BaseModel):
    """
    Visualization bundle returned for one query.

    ``visualization`` is kept as a plain mapping so every step field the model
    produced reaches the presentation layer untouched.
    """
    model_config = ConfigDict(extra="allow")

    message: Optional[str] = None
    code: Optional[str] = None
    visualization: Dict[str, Any]
