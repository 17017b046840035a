"""Prompt assembly for visualization generation."""
from typing import Dict, List, Optional, Sequence

from models.conversation import ConversationTurn, USER_ROLE, ASSISTANT_ROLE

SYSTEM_ROLE = "system"


class PromptAssembler:
    """Builds the role-tagged message list sent to the LLM for one query."""

    SYSTEM_PROMPT = """You are a Data Structures and Algorithms (DSA) visualization expert.
Explain the requested concept and produce a structured dataset that a frontend renders as a step-by-step animation.

RETURN ONLY ONE VALID JSON OBJECT. DO NOT WRAP IT IN MARKDOWN. DO NOT ADD TEXT BEFORE OR AFTER IT.

Schema:
{
  "message": "Markdown explanation with the headings: # 💡 Intuition, # 🏗️ Example, # 📊 Dry Run Output",
  "code": "A complete Java implementation",
  "visualization": {
    "title": "Short title",
    "description": "One-sentence summary",
    "type": "array" | "tree" | "linked-list" | "stack" | "queue" | "recursion" | "graph" | "hashmap",
    "timeComplexity": "O(...)",
    "spaceComplexity": "O(...)",
    "steps": [
      {
        "description": "What happens in this step",
        "state": [],
        "nodes": [],
        "edges": [],
        "stack": [],
        "entries": [],
        "activeIndices": [],
        "activeNodeId": "n1"
      }
    ]
  }
}

Field rules per type (include only the fields the chosen type needs):
- array, stack, queue: every step has "state", a list of primitives such as [5, 1, 4].
- tree: every step has "nodes", a list of {"id": "1", "val": 10, "left": "2", "right": "3"}. Pointers are node ids.
- linked-list: every step has "nodes", a list of {"id": "1", "val": 10, "next": true}.
- graph: every step has "nodes" with {"id", "val", "x", "y"} (coordinates 0-500) and "edges" with {"from", "to"}.
- recursion: every step has "stack", a list of {"fn": "name", "args": {"n": 5}, "val": null}.
- hashmap: every step has "entries", a list of {"key": "k", "val": "v", "hash": 0}.
- "activeIndices" (array kinds) and "activeNodeId" (node kinds) are optional highlights.
- "steps" must never be empty and must show the algorithm's progression one operation at a time.
"""

    def build_messages(
        self,
        query: str,
        history: Optional[Sequence[ConversationTurn]] = None
    ) -> List[Dict[str, str]]:
        """
        Build the message list for one completion request.

        Args:
            query: Current user question
            history: Already-windowed conversation turns, oldest first

        Returns:
            System message, replayed history, then the current query
        """
        messages = [{"role": SYSTEM_ROLE, "content": self.SYSTEM_PROMPT}]

        for turn in history or []:
            messages.append({
                "role": USER_ROLE if turn.is_user else ASSISTANT_ROLE,
                "content": turn.replay_content()
            })

        messages.append({"role": USER_ROLE, "content": query})
        return messages
