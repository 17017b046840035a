"""LLM Client for Groq API integration."""
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from groq import Groq
from groq import (
    RateLimitError,
    AuthenticationError,
    APIError,
    APITimeoutError,
    APIConnectionError,
)
import logging

from config import GROQ_API_KEY, LLM_TIMEOUT_SECONDS, LLM_TEMPERATURE, LLM_MAX_TOKENS

logger = logging.getLogger(__name__)

# Values people leave in .env files instead of a real key
PLACEHOLDER_KEYS = {
    "your_api_key_here",
    "your_groq_api_key_here",
    "YOUR_GROQ_API_KEY_HERE",
}
MIN_KEY_LENGTH = 10


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: Optional[str]
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class CredentialMissingError(LLMClientError):
    """No usable API key, or the provider rejected the one we have."""


class TransportError(LLMClientError):
    """The provider was unreachable, timed out or rejected the request."""


def is_usable_api_key(api_key: Optional[str]) -> bool:
    """Check that a key is present and not an obvious placeholder."""
    if not api_key or api_key in PLACEHOLDER_KEYS:
        return False
    return len(api_key) > MIN_KEY_LENGTH


class LLMClient:
    """Client for interfacing with Groq API for chat completions."""

    def __init__(self, api_key: Optional[str] = None, timeout: float = LLM_TIMEOUT_SECONDS):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            timeout: Upper bound in seconds for a single completion request

        Raises:
            CredentialMissingError: If no usable API key is available
        """
        self.api_key = api_key or GROQ_API_KEY
        if not is_usable_api_key(self.api_key):
            raise CredentialMissingError(LLMError(
                code="CREDENTIAL_MISSING",
                message=(
                    "Groq API key is missing or invalid. Please set GROQ_API_KEY in "
                    "backend/.env with a real key from https://console.groq.com/keys"
                ),
                details={}
            ))

        self.timeout = timeout
        # One request per query: the SDK's own retry loop is disabled
        self.client = Groq(api_key=self.api_key, timeout=timeout, max_retries=0)
        logger.info(f"LLMClient initialized with key ending in ...{self.api_key[-4:]}")

    def generate(
        self,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        json_mode: bool = True
    ) -> LLMResponse:
        """
        Generate a chat completion using Groq API.

        Args:
            model: Model name (e.g. llama-3.3-70b-versatile)
            messages: Role-tagged messages (system, history, current query)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            json_mode: Ask the provider to constrain output to a JSON object

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            CredentialMissingError: The API key was rejected
            TransportError: Any other provider or network failure
        """
        start_time = time.time()

        request: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            logger.debug(f"Generating response with model: {model}, messages={len(messages)}")

            response = self.client.chat.completions.create(**request)

            latency_ms = int((time.time() - start_time) * 1000)

            text = response.choices[0].message.content

            usage = response.usage
            tokens_input = usage.prompt_tokens if usage else 0
            tokens_output = usage.completion_tokens if usage else 0

            logger.info(
                f"Generated response: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return LLMResponse(
                text=text,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except RateLimitError as e:
            raise self._error(
                TransportError,
                "RATE_LIMIT_ERROR",
                "Rate limit exceeded. Please try again in a few moments.",
                model, start_time, e,
                retry_after=60
            )

        except AuthenticationError as e:
            raise self._error(
                CredentialMissingError,
                "AUTHENTICATION_ERROR",
                "Authentication failed. Please check your API key.",
                model, start_time, e
            )

        except APITimeoutError as e:
            raise self._error(
                TransportError,
                "TIMEOUT_ERROR",
                f"Request timed out after {self.timeout:g}s. Please try again.",
                model, start_time, e
            )

        except APIConnectionError as e:
            raise self._error(
                TransportError,
                "CONNECTION_ERROR",
                "Could not reach the Groq API.",
                model, start_time, e
            )

        except APIError as e:
            raise self._error(
                TransportError,
                "API_ERROR",
                f"Groq API error: {str(e)}",
                model, start_time, e
            )

        except Exception as e:
            raise self._error(
                TransportError,
                "UNKNOWN_ERROR",
                f"Unexpected error during generation: {str(e)}",
                model, start_time, e,
                error_type=type(e).__name__
            )

    @staticmethod
    def _error(
        error_class: type,
        code: str,
        message: str,
        model: str,
        start_time: float,
        original: Exception,
        **extra_details: Any
    ) -> LLMClientError:
        """Build a structured client error and log it."""
        latency_ms = int((time.time() - start_time) * 1000)
        details: Dict[str, Any] = {
            "model": model,
            "latency_ms": latency_ms,
            "original_error": str(original),
        }
        details.update(extra_details)
        error = LLMError(code=code, message=message, details=details)
        logger.error(
            f"{code}: model={model}, latency={latency_ms}ms, error={original}",
            exc_info=True,
            extra={"error_code": code, "error_details": details}
        )
        return error_class(error)
