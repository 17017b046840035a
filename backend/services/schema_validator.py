"""Structural validation of generated visualization artifacts."""
import json
from typing import Any, Dict, List, Optional

from models.visualization import STEP_CONTRACTS, StepContract, VisualizationKind


class SchemaValidationError(ValueError):
    """Recovered JSON does not satisfy the visualization contract."""

    def __init__(self, message: str, field: str, step_index: Optional[int] = None):
        self.field = field
        self.step_index = step_index
        super().__init__(message)


class SchemaValidator:
    """
    Checks a recovered candidate against the per-kind visualization contract.

    Checks run fail-fast in this order:
    1. Candidate is an object
    2. It has a ``visualization`` object
    3. ``visualization`` has a title, a type and a non-empty ``steps`` list
    4. Every step carries the fields its kind requires (see STEP_CONTRACTS);
       unknown kinds only get the common checks
    5. ``message`` and ``code``, when given, are text
    6. The whole candidate serializes to UTF-8 JSON (no lone surrogates)

    The candidate is never modified.
    """

    REQUIRED_VISUALIZATION_FIELDS = ("title", "type")
    TEXT_FIELDS = ("message", "code")

    def validate(self, candidate: Any) -> Dict[str, Any]:
        """
        Validate a candidate QueryResult.

        Args:
            candidate: Value returned by the response extractor

        Returns:
            The same candidate object

        Raises:
            SchemaValidationError: Naming the first violated field and, for
                step-level problems, the step index
        """
        if not isinstance(candidate, dict):
            raise SchemaValidationError(
                f"Output is not a JSON object (got {type(candidate).__name__})",
                field="<root>"
            )

        viz = candidate.get("visualization")
        if not isinstance(viz, dict):
            raise SchemaValidationError(
                "Missing 'visualization' object in root object",
                field="visualization"
            )

        for field in self.REQUIRED_VISUALIZATION_FIELDS:
            if not viz.get(field):
                raise SchemaValidationError(
                    f"Visualization is missing required field: '{field}'",
                    field=f"visualization.{field}"
                )

        steps = viz.get("steps")
        if not isinstance(steps, list):
            raise SchemaValidationError(
                "Visualization 'steps' field must be a list",
                field="visualization.steps"
            )
        if not steps:
            raise SchemaValidationError(
                "Visualization has no steps",
                field="visualization.steps"
            )

        kind = VisualizationKind.parse(viz["type"])
        contract = STEP_CONTRACTS.get(kind) if kind is not None else None
        for index, step in enumerate(steps):
            if not isinstance(step, dict):
                raise SchemaValidationError(
                    f"Step {index} is not an object",
                    field="visualization.steps",
                    step_index=index
                )
            if contract is not None:
                self._check_step(step, index, kind, contract)

        for field in self.TEXT_FIELDS:
            value = candidate.get(field)
            if value is not None and not isinstance(value, str):
                raise SchemaValidationError(
                    f"'{field}' must be text (got {type(value).__name__})",
                    field=field
                )

        try:
            json.dumps(candidate, ensure_ascii=False).encode("utf-8")
        except (UnicodeEncodeError, ValueError, TypeError) as e:
            raise SchemaValidationError(
                f"Result cannot be serialized as UTF-8 JSON: {e}",
                field="<root>"
            )

        return candidate

    @staticmethod
    def _check_step(
        step: Dict[str, Any],
        index: int,
        kind: VisualizationKind,
        contract: StepContract
    ) -> None:
        for field in contract.sequence_fields:
            if not isinstance(step.get(field), list):
                raise SchemaValidationError(
                    f"Step {index} is missing '{field}' (list) for {kind.value}",
                    field=field,
                    step_index=index
                )

        if not contract.node_keys:
            return

        for node_index, node in enumerate(step["nodes"]):
            if not isinstance(node, dict) or any(key not in node for key in contract.node_keys):
                raise SchemaValidationError(
                    f"Step {index} node {node_index} is missing "
                    + " or ".join(contract.node_keys),
                    field="nodes",
                    step_index=index
                )


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _node_ids(step: Dict[str, Any]) -> set:
    ids = set()
    for node in _as_list(step.get("nodes")):
        if isinstance(node, dict) and "id" in node:
            ids.add(str(node["id"]))
    return ids


def _is_reference(value: Any) -> bool:
    # Linked-list "next" is a boolean flag, not an id
    return value is not None and not isinstance(value, (bool, dict, list))


def find_dangling_references(visualization: Any) -> List[str]:
    """
    List node-id references that do not resolve within their own step.

    Covers tree/linked-list pointer keys and graph edge endpoints. The
    validator does not reject artifacts for these; callers decide what to do
    with the report. Never raises, whatever the input shape.
    """
    if not isinstance(visualization, dict) or not isinstance(visualization.get("steps"), list):
        return []

    kind = VisualizationKind.parse(visualization.get("type"))
    if kind is None:
        return []
    contract = STEP_CONTRACTS[kind]

    problems: List[str] = []
    for index, step in enumerate(visualization["steps"]):
        if not isinstance(step, dict):
            continue
        ids = _node_ids(step)

        if kind is VisualizationKind.GRAPH:
            for edge in _as_list(step.get("edges")):
                if not isinstance(edge, dict):
                    continue
                for end in ("from", "to"):
                    target = edge.get(end)
                    if _is_reference(target) and str(target) not in ids:
                        problems.append(f"step {index}: edge {end} '{target}' has no matching node")
            continue

        for node in _as_list(step.get("nodes")):
            if not isinstance(node, dict):
                continue
            for key in contract.reference_keys:
                targets = node.get(key)
                if not isinstance(targets, list):
                    targets = [targets]
                for target in targets:
                    if _is_reference(target) and str(target) not in ids:
                        problems.append(
                            f"step {index}: node '{node.get('id')}' {key} '{target}' has no matching node"
                        )

    return problems
