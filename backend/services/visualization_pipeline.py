"""
Visualization pipeline for AlgoVision API.

One pass per query: invoke the LLM, extract JSON from its reply, validate the
result against the visualization contract. Any failure along the way resolves
to the fallback artifact, so callers always receive a well-formed QueryResult.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from config import LLM_MODEL, LLM_TEMPERATURE, LLM_MAX_TOKENS
from models.conversation import ConversationTurn
from services.failure_logger import FailureLogger
from services.fallback_generator import build_fallback_result
from services.history_window import HistoryWindow
from services.llm_client import LLMClient, LLMClientError, LLMError, CredentialMissingError
from services.prompt_assembler import PromptAssembler
from services.response_extractor import ResponseExtractor, JSONExtractionError
from services.schema_validator import SchemaValidator, SchemaValidationError, find_dangling_references

logger = logging.getLogger(__name__)

MISSING_CLIENT_REASON = (
    "Groq API key is missing or invalid. Please set GROQ_API_KEY in backend/.env "
    "with a real key from https://console.groq.com/keys"
)


class PipelineStage(str, Enum):
    """States of a single pipeline pass."""
    IDLE = "idle"
    INVOKING = "invoking"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    SUCCESS = "success"
    FALLBACK = "fallback"


@dataclass
class PipelineOutcome:
    """
    Result of one pipeline pass.

    Attributes:
        result: QueryResult dict (generated or fallback)
        stage: Terminal stage, SUCCESS or FALLBACK
        failed_stage: Stage that failed when the fallback was used
        reason: Reason text embedded in the fallback message
    """
    result: Dict[str, Any]
    stage: PipelineStage
    failed_stage: Optional[PipelineStage] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.stage is PipelineStage.SUCCESS


class VisualizationPipeline:
    """Sequences history windowing, generation, extraction and validation."""

    def __init__(
        self,
        llm_client: Optional[LLMClient],
        history_window: Optional[HistoryWindow] = None,
        prompt_assembler: Optional[PromptAssembler] = None,
        extractor: Optional[ResponseExtractor] = None,
        validator: Optional[SchemaValidator] = None,
        failure_logger: Optional[FailureLogger] = None,
        model: str = LLM_MODEL,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS
    ):
        """
        Initialize the pipeline.

        Args:
            llm_client: Shared LLM client, or None when no credential is configured
            history_window: Bounds the history replayed to the model
            prompt_assembler: Builds the message list
            extractor: Recovers JSON from the model reply
            validator: Checks the visualization contract
            failure_logger: Optional JSONL sink for fallback records
            model: Model name passed to the client
            temperature: Sampling temperature
            max_tokens: Maximum completion tokens
        """
        self.llm_client = llm_client
        self.history_window = history_window or HistoryWindow()
        self.prompt_assembler = prompt_assembler or PromptAssembler()
        self.extractor = extractor or ResponseExtractor()
        self.validator = validator or SchemaValidator()
        self.failure_logger = failure_logger
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def process_query(
        self,
        query: str,
        history: Optional[Sequence[ConversationTurn]] = None
    ) -> Dict[str, Any]:
        """Run the pipeline and return only the QueryResult."""
        return self.run(query, history).result

    def run(
        self,
        query: str,
        history: Optional[Sequence[ConversationTurn]] = None
    ) -> PipelineOutcome:
        """
        Process one query end to end.

        Args:
            query: User question
            history: Caller-supplied conversation turns, oldest first

        Returns:
            PipelineOutcome; never raises
        """
        stage = PipelineStage.IDLE
        history_length = 0

        try:
            history = history or []
            history_length = len(history)
            logger.info(f"Processing query: {query[:100]} (history={history_length})")

            # Windowing and prompt assembly failures are attributed to IDLE
            window = self.history_window.apply(history)
            messages = self.prompt_assembler.build_messages(query, window)

            stage = PipelineStage.INVOKING
            raw = self._invoke(messages)

            stage = PipelineStage.EXTRACTING
            candidate = self.extractor.extract(raw)

            stage = PipelineStage.VALIDATING
            result = self.validator.validate(candidate)

        except LLMClientError as e:
            return self._fallback(stage, query, e.error.message, e, history_length)
        except JSONExtractionError as e:
            return self._fallback(stage, query, f"Could not read the model response: {e}", e, history_length)
        except SchemaValidationError as e:
            return self._fallback(stage, query, f"Model response failed validation: {e}", e, history_length)
        except Exception as e:
            return self._fallback(stage, query, f"Unexpected error: {e}", e, history_length)

        dangling = find_dangling_references(result["visualization"])
        if dangling:
            logger.warning(
                f"Visualization has {len(dangling)} unresolved node references: {dangling[:5]}",
                extra={"stage": PipelineStage.VALIDATING.value, "query": query}
            )

        logger.info(
            f"Query processed successfully: type={result['visualization'].get('type')}, "
            f"steps={len(result['visualization']['steps'])}"
        )
        return PipelineOutcome(result=result, stage=PipelineStage.SUCCESS)

    def _invoke(self, messages) -> Any:
        """Call the LLM exactly once and return its raw text."""
        if self.llm_client is None:
            raise CredentialMissingError(LLMError(
                code="CREDENTIAL_MISSING",
                message=MISSING_CLIENT_REASON,
                details={}
            ))

        response = self.llm_client.generate(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=True
        )
        return response.text

    def _fallback(
        self,
        stage: PipelineStage,
        query: str,
        reason: str,
        error: BaseException,
        history_length: int
    ) -> PipelineOutcome:
        """Log the failure and build the fallback outcome."""
        logger.error(
            f"Pipeline failed at {stage.value}: {type(error).__name__}: {error}",
            exc_info=(type(error), error, error.__traceback__),
            extra={
                "stage": stage.value,
                "query": query,
                "error_code": getattr(getattr(error, "error", None), "code", type(error).__name__),
            }
        )

        if self.failure_logger is not None:
            self.failure_logger.log_failure(
                stage=stage.value,
                query=query,
                reason=reason,
                error=error,
                history_length=history_length
            )

        return PipelineOutcome(
            result=build_fallback_result(reason),
            stage=PipelineStage.FALLBACK,
            failed_stage=stage,
            reason=reason
        )
