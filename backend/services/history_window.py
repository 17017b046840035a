"""Bound the caller-supplied conversation history before it reaches the prompt."""
import logging
from typing import Any, List, Optional, Sequence

from config import HISTORY_MAX_TURNS
from models.conversation import ConversationTurn

logger = logging.getLogger(__name__)


class HistoryWindow:
    """
    Keep only the most recent turns of a conversation.

    History is never stored server-side, so the window is recomputed from
    whatever the caller sends on every request. Callers are expected to trim
    already, but the window is applied regardless.
    """

    def __init__(
        self,
        max_turns: int = HISTORY_MAX_TURNS,
        max_tokens: Optional[int] = None,
        encoder: Optional[Any] = None
    ):
        """
        Args:
            max_turns: Maximum number of recent turns to keep
            max_tokens: Optional token budget for the replayed content
            encoder: tiktoken-style encoder (anything with ``encode(str)``);
                the token budget is only enforced when one is provided
        """
        self.max_turns = max_turns
        self.max_tokens = max_tokens
        self.encoder = encoder

    def apply(self, history: Optional[Sequence[ConversationTurn]]) -> List[ConversationTurn]:
        """
        Return the bounded window of history, oldest first.

        Args:
            history: Caller-supplied turns, oldest first (may be None)

        Returns:
            New list holding at most ``max_turns`` turns that also fit the
            token budget when one is configured
        """
        if not history or self.max_turns <= 0:
            return []

        window = list(history[-self.max_turns:])

        if self.max_tokens is not None and self.encoder is not None:
            token_counts = [self.count_tokens(turn) for turn in window]
            total = sum(token_counts)
            while window and total > self.max_tokens:
                window.pop(0)
                total -= token_counts.pop(0)

        dropped = len(history) - len(window)
        if dropped:
            logger.debug(f"History window dropped {dropped} of {len(history)} turns")

        return window

    def count_tokens(self, turn: ConversationTurn) -> int:
        """Count tokens of the content that will be replayed for a turn."""
        if self.encoder is None:
            return 0
        return len(self.encoder.encode(turn.replay_content()))
