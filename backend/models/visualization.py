"""Visualization data models and per-kind step contracts."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class VisualizationKind(str, Enum):
    """Kinds of visualization the presentation layer knows how to render."""
    ARRAY = "array"
    TREE = "tree"
    LINKED_LIST = "linked-list"
    STACK = "stack"
    QUEUE = "queue"
    GRAPH = "graph"
    HASHMAP = "hashmap"
    RECURSION = "recursion"

    @classmethod
    def parse(cls, value: Any) -> Optional["VisualizationKind"]:
        """Return the matching kind, or None for values outside the known set."""
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


@dataclass(frozen=True)
class StepContract:
    """
    Required-field record for the steps of one visualization kind.

    Attributes:
        sequence_fields: Step fields that must be present and hold a list
        node_keys: Keys every entry of the step's ``nodes`` list must carry
        reference_keys: Node keys that point at other node ids in the same step
    """
    sequence_fields: Tuple[str, ...]
    node_keys: Tuple[str, ...] = ()
    reference_keys: Tuple[str, ...] = ()


STEP_CONTRACTS: Dict[VisualizationKind, StepContract] = {
    VisualizationKind.ARRAY: StepContract(sequence_fields=("state",)),
    VisualizationKind.STACK: StepContract(sequence_fields=("state",)),
    VisualizationKind.QUEUE: StepContract(sequence_fields=("state",)),
    VisualizationKind.TREE: StepContract(
        sequence_fields=("nodes",),
        node_keys=("id", "val"),
        reference_keys=("left", "right", "children"),
    ),
    VisualizationKind.LINKED_LIST: StepContract(
        sequence_fields=("nodes",),
        node_keys=("id", "val"),
        reference_keys=("next",),
    ),
    VisualizationKind.GRAPH: StepContract(sequence_fields=("nodes", "edges")),
    VisualizationKind.RECURSION: StepContract(sequence_fields=("stack",)),
    VisualizationKind.HASHMAP: StepContract(sequence_fields=("entries",)),
}

_missing_contracts = set(VisualizationKind) - set(STEP_CONTRACTS)
if _missing_contracts:
    raise RuntimeError(f"No step contract for kinds: {sorted(k.value for k in _missing_contracts)}")
