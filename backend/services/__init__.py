"""Services for AlgoVision API."""
from .history_window import HistoryWindow
from .prompt_assembler import PromptAssembler
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError, CredentialMissingError, TransportError
from .response_extractor import ResponseExtractor, JSONExtractionError
from .schema_validator import SchemaValidator, SchemaValidationError, find_dangling_references
from .fallback_generator import build_fallback_result
from .failure_logger import FailureLogger
from .visualization_pipeline import VisualizationPipeline, PipelineOutcome, PipelineStage

__all__ = ['HistoryWindow', 'PromptAssembler', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'CredentialMissingError', 'TransportError', 'ResponseExtractor', 'JSONExtractionError', 'SchemaValidator', 'SchemaValidationError', 'find_dangling_references', 'build_fallback_result', 'FailureLogger', 'VisualizationPipeline', 'PipelineOutcome', 'PipelineStage']
