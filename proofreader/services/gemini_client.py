"""
Gemini API Client
=================
Client for the Google Generative Language API with retry and backoff.

Every public operation returns a result object; failures are turned into
user-facing messages and never raised to the caller.
"""
import time
import requests
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from proofreader.config import config
from proofreader.config.constants import (
    EMPTY_PAIR_MESSAGE,
    EMPTY_PAIR_WORDS_MESSAGE,
    EMPTY_SOURCE_MESSAGE,
    INVALID_API_KEY_MESSAGE,
    MISSING_API_KEY_MESSAGE,
    NO_ISSUES_TEXT,
    NO_RESPONSE_MESSAGE,
    QUOTA_EXCEEDED_MESSAGE,
    SERVICE_UNAVAILABLE_MESSAGE,
    UNREADABLE_BREAKDOWN_MESSAGE
)
from proofreader.models.schemas import AnalysisResult, StructuredResult, TextResult
from proofreader.models.segment import breakdown_from_list, breakdown_from_markdown
from proofreader.utils.logging import get_logger
from proofreader.utils.text_processing import clean_model_response, extract_json, is_blank

RETRYABLE_SERVER_CODES = (500, 503)

_BREAKDOWN_ITEM_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'targetWord': {'type': 'STRING'},
        'sourceEquivalent': {'type': 'STRING'},
        'context': {'type': 'STRING'},
    },
    'required': ['targetWord', 'sourceEquivalent', 'context'],
}

AUDIT_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'feedback': {'type': 'STRING'},
        'wordBreakdown': {'type': 'ARRAY', 'items': _BREAKDOWN_ITEM_SCHEMA},
    },
    'required': ['feedback', 'wordBreakdown'],
}

WORD_BREAKDOWN_SCHEMA = {
    'type': 'ARRAY',
    'items': _BREAKDOWN_ITEM_SCHEMA,
}


@dataclass
class GeminiResponse:
    """Response from a single generateContent call."""
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    attempts: int = 1

    @property
    def is_invalid_key(self) -> bool:
        return self.status_code == 403 or 'API_KEY_INVALID' in (self.error or '')

    @property
    def is_quota_error(self) -> bool:
        error = (self.error or '').lower()
        return self.status_code == 429 or 'quota' in error or 'resource_exhausted' in error

    @property
    def is_server_error(self) -> bool:
        return self.status_code in RETRYABLE_SERVER_CODES


def build_translation_prompt(source_text: str, target_language: str) -> str:
    return (
        f"Translate the following English text into {target_language}. "
        f"Provide ONLY the translation without any explanation or quotes: \"{source_text}\""
    )


def build_audit_prompt(source_text: str, target_text: str, target_language: str,
                       structured: bool = False) -> str:
    prompt = f"""Target Language: {target_language}
English Source: "{source_text}"
Target Translation: "{target_text}"

Task: Compare the English text to the Target text.
Identify:
1) Missing words/sentences
2) Wrong terminology (e.g., if 'Church' was translated as 'Mosque')
3) Meaning contradictions.

Provide the output in a clear bullet-point format. If there are no issues, state "{NO_ISSUES_TEXT}\""""
    if structured:
        prompt += f"""

Return a JSON object with two fields:
- "feedback": the bullet-point review described above
- "wordBreakdown": an array with one entry per {target_language} word or phrase, each with
  "targetWord", "sourceEquivalent" (the matching English words) and "context" (grammatical role or note)"""
    return prompt


def build_word_breakdown_prompt(source_text: str, target_text: str, target_language: str) -> str:
    return f"""Provide a word-by-word or phrase-by-phrase breakdown of this translation from English to {target_language}.

English: "{source_text}"
{target_language}: "{target_text}"

Return a JSON array in {target_language} word order. Each entry has:
- "targetWord": the {target_language} word or phrase
- "sourceEquivalent": the English word or phrase it renders
- "context": its grammatical role or a short note

Do not include any introductory text."""


class GeminiClient:
    """Client for Gemini generateContent calls."""

    def __init__(
        self,
        model: str = None,
        base_url: str = None,
        max_retries: int = None,
        base_delay: float = None,
        structured_output: bool = None,
        sleep: Callable[[float], None] = time.sleep,
        session: requests.Session = None
    ):
        self.model = model or config.gemini.model
        self.base_url = (base_url or config.gemini.base_url).rstrip('/')
        self.max_retries = max_retries if max_retries is not None else config.gemini.max_retries
        self.base_delay = base_delay if base_delay is not None else config.gemini.base_delay
        self.structured_output = (
            structured_output if structured_output is not None else config.gemini.structured_output
        )
        self.sleep = sleep
        self.logger = get_logger().ai_logger
        self.session = session or requests.Session()

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def generate(
        self,
        prompt: str,
        api_key: str,
        response_schema: Dict[str, Any] = None
    ) -> GeminiResponse:
        """
        Send one generateContent request.

        Args:
            prompt: The prompt to send
            api_key: User-supplied API key
            response_schema: When given, ask for JSON matching this schema

        Returns:
            GeminiResponse with the result
        """
        generation_config = {'temperature': config.gemini.temperature}
        if response_schema is not None:
            generation_config['responseMimeType'] = 'application/json'
            generation_config['responseSchema'] = response_schema

        payload = {
            'contents': [{'role': 'user', 'parts': [{'text': prompt}]}],
            'generationConfig': generation_config,
        }

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={'x-goog-api-key': api_key},
                timeout=(config.gemini.connect_timeout, config.gemini.read_timeout)
            )
        except requests.Timeout:
            return GeminiResponse(success=False, error="Request timed out")
        except requests.RequestException as e:
            return GeminiResponse(success=False, error=str(e))

        if response.status_code != 200:
            return GeminiResponse(
                success=False,
                error=self._error_text(response),
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            return GeminiResponse(success=False, error=f"Invalid JSON response: {e}",
                                  status_code=response.status_code)

        return GeminiResponse(
            success=True,
            text=self._response_text(data),
            status_code=response.status_code
        )

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        """Flatten an error body into one string (status, reason and message)."""
        try:
            body = response.json()
        except ValueError:
            return f"{response.status_code} {response.text[:200]}".strip()
        error = body.get('error', {}) if isinstance(body, dict) else body
        if not isinstance(error, dict):
            return f"{response.status_code} {error}"

        reasons = [
            detail.get('reason', '') for detail in error.get('details') or []
            if isinstance(detail, dict)
        ]
        parts = [str(response.status_code), error.get('status', ''), error.get('message', '')]
        parts.extend(reason for reason in reasons if reason)
        return ' '.join(str(part) for part in parts if part)

    @staticmethod
    def _response_text(data: Any) -> str:
        candidates = data.get('candidates') if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return ''
        content = candidates[0].get('content')
        parts = content.get('parts') if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ''
        return ''.join(part.get('text', '') for part in parts if isinstance(part, dict))

    def _generate_with_retry(
        self,
        prompt: str,
        api_key: str,
        response_schema: Dict[str, Any] = None
    ) -> GeminiResponse:
        """
        Call generate() with exponential backoff.

        Quota (429) and server (500/503) errors are retried with a delay of
        base_delay * 2**attempt. An invalid key fails at once. The returned
        response carries a user-facing message in ``error`` on failure.
        """
        if is_blank(api_key):
            return GeminiResponse(success=False, error=MISSING_API_KEY_MESSAGE, attempts=0)

        last: Optional[GeminiResponse] = None
        attempts = 0
        for attempt in range(self.max_retries):
            attempts = attempt + 1
            response = self.generate(prompt, api_key, response_schema)
            if response.success:
                response.attempts = attempts
                return response

            last = response
            if response.is_invalid_key:
                self.logger.error(f"API key rejected: {response.error}")
                return GeminiResponse(success=False, error=INVALID_API_KEY_MESSAGE,
                                      status_code=response.status_code, attempts=attempts)

            if not (response.is_quota_error or response.is_server_error):
                self.logger.error(f"Gemini request failed: {response.error}")
                break

            if attempt < self.max_retries - 1:
                delay = self.base_delay * (2 ** attempt)
                kind = 'Quota' if response.is_quota_error else 'Server'
                self.logger.warning(
                    f"Attempt {attempts} failed ({kind}). Retrying in {delay:.1f}s..."
                )
                self.sleep(delay)

        return GeminiResponse(
            success=False,
            error=self._failure_message(last),
            status_code=last.status_code if last else None,
            attempts=attempts
        )

    @staticmethod
    def _failure_message(response: Optional[GeminiResponse]) -> str:
        if response is None:
            return "Analysis failed: An unknown error occurred."
        if response.is_quota_error:
            return QUOTA_EXCEEDED_MESSAGE
        if response.is_server_error:
            return SERVICE_UNAVAILABLE_MESSAGE
        return f"Analysis failed: {response.error or 'An unknown error occurred'}. Check the logs for details."

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def translate_text(self, source_text: str, target_language: str, api_key: str) -> TextResult:
        """Translate English source text into the target language."""
        if is_blank(source_text):
            return TextResult(EMPTY_SOURCE_MESSAGE, error=True)

        response = self._generate_with_retry(
            build_translation_prompt(source_text, target_language), api_key
        )
        if not response.success:
            return TextResult(response.error, error=True)

        translation = clean_model_response(response.text)
        if not translation:
            return TextResult(NO_RESPONSE_MESSAGE, error=True)
        self.logger.info(f"Translated {len(source_text)} chars into {target_language}")
        return TextResult(translation)

    def analyze_translation(
        self,
        source_text: str,
        target_text: str,
        target_language: str,
        api_key: str,
        structured: bool = None
    ) -> AnalysisResult:
        """
        Audit a translation for omissions, terminology errors and meaning shifts.

        Returns a StructuredResult when structured output is requested and the
        reply parses, otherwise a TextResult.
        """
        if is_blank(source_text) or is_blank(target_text):
            return TextResult(EMPTY_PAIR_MESSAGE, error=True)

        structured = self.structured_output if structured is None else structured
        response = self._generate_with_retry(
            build_audit_prompt(source_text, target_text, target_language, structured),
            api_key,
            AUDIT_SCHEMA if structured else None
        )
        if not response.success:
            return TextResult(response.error, error=True)
        if not response.text or not response.text.strip():
            return TextResult(NO_RESPONSE_MESSAGE)

        if structured:
            data = extract_json(response.text)
            if isinstance(data, dict) and 'feedback' in data:
                breakdown = breakdown_from_list(data.get('wordBreakdown')) or []
                return StructuredResult(feedback=str(data['feedback']), word_breakdown=breakdown)
            self.logger.warning("Structured audit reply was not valid JSON, keeping it as text")

        return TextResult(response.text.strip())

    def analyze_word_by_word(
        self,
        source_text: str,
        target_text: str,
        target_language: str,
        api_key: str
    ) -> AnalysisResult:
        """Produce a word-level alignment between target and source text."""
        if is_blank(source_text) or is_blank(target_text):
            return TextResult(EMPTY_PAIR_WORDS_MESSAGE, error=True)

        response = self._generate_with_retry(
            build_word_breakdown_prompt(source_text, target_text, target_language),
            api_key,
            WORD_BREAKDOWN_SCHEMA
        )
        if not response.success:
            return TextResult(response.error, error=True)

        data = extract_json(response.text or '')
        if isinstance(data, dict):
            data = data.get('wordBreakdown')
        breakdown = breakdown_from_list(data)
        if not breakdown:
            breakdown = breakdown_from_markdown(response.text or '')
        if not breakdown:
            self.logger.warning("Word analysis reply could not be parsed")
            return TextResult(UNREADABLE_BREAKDOWN_MESSAGE, error=True)

        return StructuredResult(feedback=None, word_breakdown=breakdown)

    def close(self):
        """Close the session."""
        self.session.close()
