"""
Recover a JSON value from raw LLM output.

Models asked for "only JSON" still wrap it in markdown fences, surround it with
commentary or leave a trailing comma behind. The extractor tries an ordered list
of narrow rewrites for exactly those habits and parses after each one. Anything
else (missing quotes, unbalanced braces) is a hard failure.
"""
import json
import logging
import re
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")


class JSONExtractionError(ValueError):
    """No JSON value could be recovered from the model output."""

    def __init__(self, message: str, snippet: str = ""):
        self.snippet = snippet
        super().__init__(message)


def keep_text(text: str) -> Optional[str]:
    """Identity step: parse the text exactly as received."""
    return text


def unwrap_fence(text: str) -> Optional[str]:
    """Inner text of the first fenced block, or the text itself if there is none."""
    match = _FENCE_PATTERN.search(text)
    return match.group(1) if match else text


def brace_span(text: str) -> Optional[str]:
    """Substring from the first ``{`` to the last ``}``, or None if there is no such span."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def strip_trailing_commas(text: str) -> Optional[str]:
    """Drop commas that directly precede a closing brace or bracket."""
    return _TRAILING_COMMA_PATTERN.sub(r"\1", text)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Non-standard JSON constant: {name}")


# (name, rewrite, parse_after). Each rewrite receives the previous step's candidate.
RecoveryStep = Tuple[str, Callable[[str], Optional[str]], bool]

RECOVERY_STEPS: Tuple[RecoveryStep, ...] = (
    ("strict", keep_text, True),
    ("unwrap_fence", unwrap_fence, False),
    ("brace_span", brace_span, True),
    ("strip_trailing_commas", strip_trailing_commas, True),
)


class ResponseExtractor:
    """Extracts structured JSON from possibly-malformed LLM responses."""

    def __init__(self, steps: Tuple[RecoveryStep, ...] = RECOVERY_STEPS):
        self.steps = steps

    def extract(self, raw: Any) -> Any:
        """
        Recover the JSON value encoded in ``raw``.

        Args:
            raw: Model output. Dicts and lists are returned unchanged; text
                (or UTF-8 bytes) goes through the recovery steps in order.

        Returns:
            The first successfully parsed value

        Raises:
            JSONExtractionError: If no step yields parseable JSON
        """
        if isinstance(raw, (dict, list)):
            return raw

        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")

        if not isinstance(raw, str):
            raise JSONExtractionError(
                f"Expected text or a JSON object, got {type(raw).__name__}",
                snippet=repr(raw)[:SNIPPET_LENGTH]
            )

        candidate: Optional[str] = raw
        for name, rewrite, parse_after in self.steps:
            candidate = rewrite(candidate)
            if candidate is None:
                logger.debug(f"Recovery step '{name}' found nothing to work with")
                break
            if not parse_after:
                continue
            try:
                value = json.loads(candidate, parse_constant=_reject_constant)
            except ValueError as e:
                logger.debug(f"Recovery step '{name}' failed: {e}")
                continue
            if name != "strict":
                logger.warning(f"Recovered JSON from model output via '{name}'")
            return value

        raise JSONExtractionError(
            "Invalid JSON format in model response. Extraction failed.",
            snippet=raw[:SNIPPET_LENGTH]
        )
