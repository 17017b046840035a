"""Unit tests for SchemaValidator."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import copy
import json
import pytest
from services.schema_validator import SchemaValidator, SchemaValidationError, find_dangling_references
from models.visualization import VisualizationKind, STEP_CONTRACTS


@pytest.fixture
def validator():
    """Create SchemaValidator instance."""
    return SchemaValidator()


def _result(viz_type, steps, **extra):
    result = {
        "message": "explanation",
        "code": "class Demo {}",
        "visualization": {"title": "X", "type": viz_type, "steps": steps},
    }
    result.update(extra)
    return result


VALID_STEPS = {
    "array": [{"state": [1, 2, 3]}],
    "stack": [{"state": [1]}],
    "queue": [{"state": []}],
    "tree": [{"nodes": [{"id": "1", "val": 10, "left": None, "right": None}]}],
    "linked-list": [{"nodes": [{"id": "1", "val": 3, "next": False}]}],
    "graph": [{"nodes": [{"id": "A", "val": 1}], "edges": []}],
    "recursion": [{"stack": [{"fn": "fib", "args": {"n": 3}, "val": None}]}],
    "hashmap": [{"entries": [{"key": "a", "val": 1, "hash": 0}]}],
}


class TestRootShape:
    """Checks on the candidate and its visualization object."""

    @pytest.mark.parametrize("candidate", [None, "text", 42, [1, 2]])
    def test_non_object_rejected(self, validator, candidate):
        with pytest.raises(SchemaValidationError, match="not a JSON object") as exc_info:
            validator.validate(candidate)
        assert exc_info.value.field == "<root>"

    def test_missing_visualization(self, validator):
        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate({"message": "hi"})
        assert exc_info.value.field == "visualization"

    def test_visualization_not_object(self, validator):
        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate({"visualization": "array"})
        assert exc_info.value.field == "visualization"

    def test_missing_title(self, validator):
        candidate = _result("array", [{"state": [1]}])
        del candidate["visualization"]["title"]
        with pytest.raises(SchemaValidationError, match="'title'") as exc_info:
            validator.validate(candidate)
        assert exc_info.value.field == "visualization.title"

    def test_empty_type(self, validator):
        with pytest.raises(SchemaValidationError, match="'type'"):
            validator.validate(_result("", [{"state": [1]}]))

    def test_steps_not_list(self, validator):
        with pytest.raises(SchemaValidationError, match="must be a list"):
            validator.validate(_result("array", {"state": [1]}))

    def test_empty_steps_rejected(self, validator):
        with pytest.raises(SchemaValidationError, match="no steps") as exc_info:
            validator.validate(_result("array", []))
        assert exc_info.value.field == "visualization.steps"

    def test_minimal_array_accepted(self, validator):
        candidate = {"visualization": {"title": "X", "type": "array", "steps": [{"state": [1, 2, 3]}]}}
        assert validator.validate(candidate) is candidate


class TestPerKindContracts:
    """Per-step required fields for every visualization kind."""

    def test_every_kind_has_a_contract(self):
        assert set(STEP_CONTRACTS) == set(VisualizationKind)

    @pytest.mark.parametrize("viz_type", sorted(VALID_STEPS))
    def test_valid_steps_accepted(self, validator, viz_type):
        candidate = _result(viz_type, copy.deepcopy(VALID_STEPS[viz_type]))
        assert validator.validate(candidate) is candidate

    @pytest.mark.parametrize("viz_type, field", [
        ("array", "state"),
        ("stack", "state"),
        ("queue", "state"),
        ("tree", "nodes"),
        ("linked-list", "nodes"),
        ("graph", "nodes"),
        ("recursion", "stack"),
        ("hashmap", "entries"),
    ])
    def test_missing_required_field_rejected(self, validator, viz_type, field):
        step = copy.deepcopy(VALID_STEPS[viz_type][0])
        del step[field]
        candidate = _result(viz_type, [copy.deepcopy(VALID_STEPS[viz_type][0]), step])

        with pytest.raises(SchemaValidationError, match=f"Step 1 is missing '{field}'") as exc_info:
            validator.validate(candidate)
        assert exc_info.value.field == field
        assert exc_info.value.step_index == 1

    def test_graph_requires_edges(self, validator):
        candidate = _result("graph", [{"nodes": [{"id": "A", "val": 1}]}])
        with pytest.raises(SchemaValidationError, match="'edges'"):
            validator.validate(candidate)

    def test_required_field_must_be_list(self, validator):
        with pytest.raises(SchemaValidationError, match="'state'"):
            validator.validate(_result("array", [{"state": "1,2,3"}]))

    def test_tree_step_without_nodes_rejected(self, validator):
        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate(_result("tree", [{"state": [1, 2]}]))
        assert exc_info.value.step_index == 0

    @pytest.mark.parametrize("viz_type", ["tree", "linked-list"])
    def test_node_without_val_rejected(self, validator, viz_type):
        candidate = _result(viz_type, [{"nodes": [{"id": "1", "val": 1}, {"id": "2"}]}])
        with pytest.raises(SchemaValidationError, match="node 1 is missing id or val"):
            validator.validate(candidate)

    def test_node_with_null_val_accepted(self, validator):
        candidate = _result("tree", [{"nodes": [{"id": "1", "val": None}]}])
        assert validator.validate(candidate) is candidate

    def test_graph_nodes_need_no_val(self, validator):
        candidate = _result("graph", [{"nodes": [{"id": "A"}], "edges": [{"from": "A", "to": "A"}]}])
        assert validator.validate(candidate) is candidate

    def test_unknown_kind_is_permissive(self, validator):
        candidate = _result("matrix", [{"grid": [[1, 0], [0, 1]]}])
        assert validator.validate(candidate) is candidate

    def test_step_must_be_object(self, validator):
        with pytest.raises(SchemaValidationError, match="Step 0 is not an object"):
            validator.validate(_result("matrix", ["frame"]))


class TestTextFields:
    """message and code must be text when present."""

    def test_missing_message_and_code_accepted(self, validator):
        candidate = {"visualization": {"title": "X", "type": "array", "steps": [{"state": [1]}]}}
        assert validator.validate(candidate) is candidate

    def test_non_text_code_rejected(self, validator):
        with pytest.raises(SchemaValidationError) as exc_info:
            validator.validate(_result("array", [{"state": [1]}], code=["line 1", "line 2"]))
        assert exc_info.value.field == "code"


class TestSerializable:
    """Accepted results must encode as UTF-8 JSON."""

    def test_lone_surrogate_in_message_rejected(self, validator):
        candidate = json.loads(
            '{"message": "\\ud800", "code": "c", '
            '"visualization": {"title": "T", "type": "array", "steps": [{"state": [1]}]}}'
        )
        with pytest.raises(SchemaValidationError, match="UTF-8") as exc_info:
            validator.validate(candidate)
        assert exc_info.value.field == "<root>"

    def test_lone_surrogate_inside_step_rejected(self, validator):
        candidate = _result("array", [{"state": ["\udfff"]}])
        with pytest.raises(SchemaValidationError):
            validator.validate(candidate)

    def test_non_ascii_text_accepted(self, validator):
        candidate = _result("array", [{"state": ["é", "排序"]}], message="Swap → done 🎉")
        assert validator.validate(candidate) is candidate


class TestPurity:
    """Validation never changes its input."""

    def test_candidate_not_mutated(self, validator):
        candidate = _result("tree", copy.deepcopy(VALID_STEPS["tree"]))
        snapshot = copy.deepcopy(candidate)
        validator.validate(candidate)
        assert candidate == snapshot


class TestDanglingReferences:
    """Reporting of unresolved node-id references."""

    def test_tree_with_resolved_pointers(self):
        viz = {"type": "tree", "steps": [{"nodes": [
            {"id": "1", "val": 5, "left": "2", "right": None},
            {"id": "2", "val": 3},
        ]}]}
        assert find_dangling_references(viz) == []

    def test_tree_with_missing_child(self):
        viz = {"type": "tree", "steps": [{"nodes": [{"id": "1", "val": 5, "left": "9"}]}]}
        problems = find_dangling_references(viz)
        assert len(problems) == 1
        assert "left '9'" in problems[0]

    def test_numeric_ids_match_string_references(self):
        viz = {"type": "tree", "steps": [{"nodes": [
            {"id": 1, "val": 5, "left": "2"},
            {"id": 2, "val": 3},
        ]}]}
        assert find_dangling_references(viz) == []

    def test_linked_list_boolean_next_ignored(self):
        viz = {"type": "linked-list", "steps": [{"nodes": [{"id": "1", "val": 1, "next": True}]}]}
        assert find_dangling_references(viz) == []

    def test_graph_edge_to_missing_node(self):
        viz = {"type": "graph", "steps": [
            {"nodes": [{"id": "A"}, {"id": "B"}], "edges": [{"from": "A", "to": "B"}]},
            {"nodes": [{"id": "A"}], "edges": [{"from": "A", "to": "C"}]},
        ]}
        problems = find_dangling_references(viz)
        assert problems == ["step 1: edge to 'C' has no matching node"]

    @pytest.mark.parametrize("viz", [None, "tree", {"type": "tree"}, {"type": "tree", "steps": [{"nodes": 5}]}])
    def test_malformed_input_never_raises(self, viz):
        assert find_dangling_references(viz) == []
