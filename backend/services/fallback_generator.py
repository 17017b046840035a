"""Guaranteed-valid default artifact returned whenever generation fails."""
import copy
from typing import Any, Dict

UNKNOWN_REASON = "Unknown error"

FALLBACK_INTUITION = (
    "# 💡 Intuition\n"
    "Bubble Sort repeatedly walks through the array and swaps adjacent elements "
    "that are in the wrong order. Like a bubble rising to the surface, the largest "
    "unsorted element moves to its final position on every pass."
)

FALLBACK_CODE = """public class BubbleSort {
    public static void sort(int[] arr) {
        int n = arr.length;
        for (int i = 0; i < n - 1; i++) {
            boolean swapped = false;
            for (int j = 0; j < n - 1 - i; j++) {
                if (arr[j] > arr[j + 1]) {
                    int tmp = arr[j];
                    arr[j] = arr[j + 1];
                    arr[j + 1] = tmp;
                    swapped = true;
                }
            }
            if (!swapped) {
                break;
            }
        }
    }
}"""

FALLBACK_VISUALIZATION: Dict[str, Any] = {
    "title": "Fallback Demo: Bubble Sort",
    "type": "array",
    "description": "A canonical example shown because the requested visualization could not be generated.",
    "timeComplexity": "O(N^2)",
    "spaceComplexity": "O(1)",
    "steps": [
        {
            "state": [8, 3, 11, 4, 1, 9, 2, 7],
            "activeIndices": [],
            "description": "Initial array."
        },
        {
            "state": [3, 8, 11, 4, 1, 9, 2, 7],
            "activeIndices": [0, 1],
            "action": "swap",
            "description": "Compare 8 and 3; 8 > 3 so they are swapped."
        }
    ]
}


def _reason_text(reason: Any) -> str:
    try:
        text = str(reason).strip() if reason is not None else ""
    except Exception:
        text = ""
    return text or UNKNOWN_REASON


def build_fallback_result(reason: Any) -> Dict[str, Any]:
    """
    Build the canonical bubble-sort QueryResult for a failed generation.

    The reason is embedded at the top of the message so the end user sees why
    they got the demo instead of their answer. Every call returns a fresh copy,
    identical apart from the reason text.

    Args:
        reason: Human-readable failure description

    Returns:
        QueryResult dict that always passes SchemaValidator
    """
    return {
        "message": f"# ⚠️ System Message\n{_reason_text(reason)}\n\n{FALLBACK_INTUITION}",
        "code": FALLBACK_CODE,
        "visualization": copy.deepcopy(FALLBACK_VISUALIZATION),
    }
