"""Data models for AlgoVision API."""
from .conversation import ConversationTurn
from .visualization import VisualizationKind, StepContract, STEP_CONTRACTS
from .api import HistoryTurn, QueryRequest, QueryResult

__all__ = [
    "ConversationTurn",
    "VisualizationKind",
    "StepContract",
    "STEP_CONTRACTS",
    "HistoryTurn",
    "QueryRequest",
    "QueryResult",
]
