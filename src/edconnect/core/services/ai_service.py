"""
AI Service for EdConnect - the AI tutor pipeline.

Talks to Anthropic's Messages API and implements the two call sites:

- ``get_tutor_response``: redacts student turns, assembles the system prompt,
  returns the reply plus the concepts it discusses.
- ``generate_session_summary``: asks for a strict-JSON assessment of a
  finished session and validates/clamps it, falling back to defaults.
"""

import json
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Protocol

import anthropic
import httpx

from ..exceptions import AIServiceError, ConfigurationError
from ..security_utils import scrub_sensitive_data
from .concept_extraction import ConceptExtractor, get_concept_extractor
from .logging import get_logging_service
from .pii_redaction import PIIRedactor, StudentContext, get_pii_redactor
from .settings_config_service import DEFAULT_MODEL, get_settings_service
from .tutor_prompts import (
    SUMMARY_SYSTEM_PROMPT,
    build_summary_prompt,
    build_system_prompt,
)

TUTOR_FAILURE_MESSAGE = "Failed to get tutor response. Please try again."
FALLBACK_REPLY = (
    "I'm sorry, I couldn't come up with a response. Could you rephrase your question?"
)
DEFAULT_SUMMARY = "Session completed"
DEFAULT_PERFORMANCE_SCORE = 75
TRANSCRIPT_SNIPPET_LENGTH = 200
CHAT_ROLES = ("user", "assistant")


@dataclass
class RuntimeAIConfig:
    """Runtime AI configuration."""

    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    provider: str = "anthropic"
    tutor_max_tokens: int = 8192
    summary_max_tokens: int = 2048
    timeout_seconds: float = 60.0


@dataclass
class AIResponse:
    """AI response data."""

    content: Optional[str]
    tokens_used: int
    model: str
    response_time: float
    timestamp: datetime


@dataclass
class TutorResponse:
    message: str
    concepts_discussed: List[str] = field(default_factory=list)


@dataclass
class SessionSummary:
    summary: str = DEFAULT_SUMMARY
    performance_score: int = DEFAULT_PERFORMANCE_SCORE
    improvement_areas: List[str] = field(default_factory=list)
    strength_areas: List[str] = field(default_factory=list)
    concepts_covered: List[str] = field(default_factory=list)


class LoggerLike(Protocol):
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...


def clamp_performance_score(value: Any) -> int:
    """Coerce a model-supplied score into [1, 100]; unusable values give the default."""
    if value is None or isinstance(value, bool):
        return DEFAULT_PERFORMANCE_SCORE
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PERFORMANCE_SCORE
    return min(100, max(1, score))


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def format_transcript(turns: Iterable[Dict[str, str]]) -> str:
    """Numbered transcript lines with each turn cut to a short snippet."""
    lines = []
    for index, turn in enumerate(turns, start=1):
        content = (turn.get("content") or "")[:TRANSCRIPT_SNIPPET_LENGTH]
        lines.append(f"{index}. {turn.get('role')}: {content}...")
    return "\n".join(lines)


class AIService:
    """
    AI tutor service.

    Every outgoing user turn goes through the PII redactor first; assistant
    turns are sent as they were stored.
    """

    def __init__(
        self,
        config: RuntimeAIConfig,
        logger: LoggerLike,
        redactor: Optional[PIIRedactor] = None,
        concept_extractor: Optional[ConceptExtractor] = None,
    ):
        """Initialize AI service with configuration."""
        self.config = config
        self.logger = logger
        self.model = str(config.model or DEFAULT_MODEL)
        self.redactor = redactor or get_pii_redactor()
        self.concept_extractor = concept_extractor or get_concept_extractor()
        self._http_client: Optional[httpx.Client] = None
        self._client: Any = None
        self._setup_client()

    def _setup_client(self):
        """Create the Anthropic client; without an API key calls fail cleanly."""
        if not self.config.api_key:
            self.logger.warning("Anthropic API key is not configured; AI tutor disabled")
            self._client = None
            return
        timeout = httpx.Timeout(self.config.timeout_seconds, connect=10.0)
        self._http_client = httpx.Client(timeout=timeout)
        self._client = anthropic.Anthropic(
            api_key=self.config.api_key, http_client=self._http_client
        )

    @staticmethod
    def _first_text(response: Any) -> Optional[str]:
        for block in getattr(response, "content", None) or []:
            if getattr(block, "type", None) == "text":
                return getattr(block, "text", None)
        return None

    @staticmethod
    def _tokens_used(response: Any) -> int:
        usage = getattr(response, "usage", None)
        if usage is None:
            return 0
        total = 0
        for attr in ("input_tokens", "output_tokens"):
            value = getattr(usage, attr, 0)
            if isinstance(value, int):
                total += value
        return total

    def _call_ai(
        self,
        messages: List[Dict[str, str]],
        system_prompt: str,
        max_tokens: int,
        operation: str = "call",
    ) -> AIResponse:
        """
        Send one Messages API request.

        Raises:
            AIServiceError: If the client is missing or the call fails
        """
        start_time = time.time()
        logging_service = get_logging_service()

        try:
            if self._client is None:
                raise ConfigurationError("Anthropic API key is not configured")

            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=messages,
            )
            response_time = time.time() - start_time

            ai_response = AIResponse(
                content=self._first_text(response),
                tokens_used=self._tokens_used(response),
                model=self.model,
                response_time=response_time,
                timestamp=datetime.now(timezone.utc),
            )
            self.logger.info(
                f"AI call completed in {response_time:.2f}s, {ai_response.tokens_used} tokens used"
            )
            logging_service.log_ai_operation(
                operation,
                self.config.provider,
                self.model,
                duration_ms=int(response_time * 1000),
                tokens_used=ai_response.tokens_used,
            )
            return ai_response

        except Exception as e:
            error_text = scrub_sensitive_data(str(e))
            self.logger.error(f"AI call failed: {error_text}")
            logging_service.log_ai_operation(
                operation,
                self.config.provider,
                self.model,
                success=False,
                duration_ms=int((time.time() - start_time) * 1000),
                error=error_text,
            )
            raise AIServiceError(f"AI service unavailable: {error_text}") from e

    def prepare_turns(
        self, turns: Iterable[Dict[str, str]], context: Optional[StudentContext] = None
    ) -> List[Dict[str, str]]:
        """Keep user/assistant turns only and redact the user ones."""
        chat_turns = [t for t in turns if t.get("role") in CHAT_ROLES]
        return self.redactor.redact_turns(chat_turns, context)

    def get_tutor_response(
        self,
        turns: List[Dict[str, str]],
        subject: str,
        topic: Optional[str] = None,
        context: Optional[StudentContext] = None,
    ) -> TutorResponse:
        """
        Get the tutor's next reply for a conversation.

        Raises:
            AIServiceError: With a generic, retryable message on any provider failure
        """
        messages = self.prepare_turns(turns, context)
        system_prompt = build_system_prompt(subject, topic)

        try:
            ai_response = self._call_ai(
                messages,
                system_prompt,
                self.config.tutor_max_tokens,
                operation="tutor_response",
            )
        except AIServiceError as e:
            raise AIServiceError(TUTOR_FAILURE_MESSAGE) from e

        message = ai_response.content or FALLBACK_REPLY
        concepts = self.concept_extractor.extract(message, subject)
        return TutorResponse(message=message, concepts_discussed=concepts)

    def generate_session_summary(
        self,
        turns: List[Dict[str, str]],
        subject: str,
        topic: Optional[str] = None,
        context: Optional[StudentContext] = None,
    ) -> SessionSummary:
        """Summarize a session. Never raises; failures yield the default summary."""
        transcript = format_transcript(self.prepare_turns(turns, context))
        prompt = build_summary_prompt(transcript, subject, topic)

        try:
            ai_response = self._call_ai(
                [{"role": "user", "content": prompt}],
                SUMMARY_SYSTEM_PROMPT,
                self.config.summary_max_tokens,
                operation="session_summary",
            )
        except AIServiceError as e:
            self.logger.warning(f"Session summary unavailable, using defaults: {e}")
            return SessionSummary()

        try:
            return self._parse_summary_response(ai_response.content or "")
        except Exception as e:
            self.logger.warning(f"Session summary could not be read, using defaults: {e}")
            return SessionSummary()

    def _parse_summary_response(self, response: str) -> SessionSummary:
        try:
            data = self._parse_json_response(response, "session summary")
        except AIServiceError:
            return SessionSummary()

        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = DEFAULT_SUMMARY

        return SessionSummary(
            summary=summary.strip(),
            performance_score=clamp_performance_score(data.get("performanceScore")),
            improvement_areas=_string_list(data.get("improvementAreas")),
            strength_areas=_string_list(data.get("strengthAreas")),
            concepts_covered=_string_list(data.get("conceptsCovered")),
        )

    def _parse_json_response(
        self, response: str, context: str = "data"
    ) -> Dict[str, Any]:
        """
        Parse a JSON object out of a model reply.

        Accepts bare JSON, fenced code blocks, and JSON surrounded by prose.

        Raises:
            AIServiceError: If no JSON object can be recovered
        """
        try:
            json_str = None

            if "```" in response:
                blocks = re.findall(
                    r"```(?:json)?\s*(.*?)\s*```", response, re.DOTALL | re.IGNORECASE
                )
                for block in blocks:
                    if "{" in block and "}" in block:
                        json_str = block
                        break

            if not json_str:
                json_start = response.find("{")
                json_end = response.rfind("}") + 1
                if json_start != -1 and json_end > json_start:
                    json_str = response[json_start:json_end]

            if not json_str:
                raise ValueError("No valid JSON found in response")

            parsed = json.loads(json_str)
            if not isinstance(parsed, dict):
                raise ValueError("Parsed response was not a JSON object")
            return parsed

        except (ValueError, RecursionError, MemoryError) as e:
            self.logger.error(f"Failed to parse {context} response: {e}")
            raise AIServiceError(f"Failed to parse AI response for {context}: {e}")

    def close(self):
        """Close HTTP client."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def runtime_config_from_settings() -> RuntimeAIConfig:
    defaults = get_settings_service().get_ai_config_defaults()
    return RuntimeAIConfig(
        model=defaults["model"],
        api_key=defaults["api_key"] or None,
        provider=defaults["provider"],
        tutor_max_tokens=defaults["tutor_max_tokens"],
        summary_max_tokens=defaults["summary_max_tokens"],
        timeout_seconds=defaults["timeout_seconds"],
    )


# Global AI service instance
_ai_service: Optional[AIService] = None


def init_ai_service(config: Optional[RuntimeAIConfig] = None) -> AIService:
    """Initialize the global AI service instance."""
    global _ai_service
    from .logging import get_logger

    if _ai_service is not None:
        _ai_service.close()
    _ai_service = AIService(config or runtime_config_from_settings(), get_logger("ai_service"))
    return _ai_service


def reset_ai_service() -> None:
    """Reset the global AI service instance to force re-initialization with fresh config."""
    global _ai_service
    if _ai_service is not None:
        _ai_service.close()
    _ai_service = None


def get_ai_service() -> AIService:
    """Get the global AI service instance."""
    global _ai_service
    if _ai_service is None:
        from .logging import get_logger

        config = runtime_config_from_settings()
        logger = get_logger("ai_service")
        logger.info(f"Initializing AI service: provider={config.provider}, model={config.model}")
        _ai_service = AIService(config, logger)
    return _ai_service
