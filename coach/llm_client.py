"""
Coach LLM Client Interface
==========================

Provider-agnostic LLM interface.
Supports DashScope (Alibaba Bailian, default) and Gemini.

Every client takes an ordered list of {role, content} messages and either
returns text or raises RemoteGenerationError. No retries.
"""

import logging
from functools import lru_cache
from typing import Protocol, Optional, Dict, Any, List
from dataclasses import dataclass

import requests
import google.generativeai as genai

from config import Settings


logger = logging.getLogger(__name__)

Message = Dict[str, str]


class RemoteGenerationError(Exception):
    """Missing credential, transport/HTTP failure or unusable response body."""


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    input_tokens: int
    output_tokens: int
    model: str
    metadata: Optional[Dict[str, Any]] = None


class LLMClient(Protocol):
    """
    Protocol for LLM clients.
    All implementations must provide generate() method.
    """

    model_name: str

    def generate(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 2000
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        ...


def extract_text(data: Any) -> str:
    """
    Pull generated text out of a DashScope response body.

    Order of preference:
    1. output.text (plain text format)
    2. output.choices[0].message.content (message format)
    """
    if not isinstance(data, dict):
        raise RemoteGenerationError("Response body is not a JSON object")

    output = data.get("output")
    if not isinstance(output, dict):
        raise RemoteGenerationError("Response has no output field")

    text = output.get("text")
    if isinstance(text, str) and text.strip():
        return text

    choices = output.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str) and content.strip():
            return content

    raise RemoteGenerationError("Response has neither output.text nor choices content")


class DashScopeClient:
    """DashScope text-generation client (qwen models)."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "qwen-plus",
        base_url: str = Settings.DASHSCOPE_BASE_URL,
        timeout: float = 8.0,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.model_name = model
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 2000
    ) -> LLMResponse:
        """Generate response using DashScope."""
        if not self.api_key:
            raise RemoteGenerationError("DASHSCOPE_API_KEY not configured")

        payload = {
            "model": self.model_name,
            "input": {"messages": messages},
            "parameters": {
                "temperature": temperature,
                "max_tokens": max_tokens,
                "result_format": "message",
            },
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            response = self.session.post(
                self.base_url,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteGenerationError(f"DashScope request failed: {e}") from e

        if not response.ok:
            logger.error(f"DashScope API error: {response.status_code} {response.text[:500]}")
            raise RemoteGenerationError(f"DashScope API failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteGenerationError("DashScope returned invalid JSON") from e

        text = extract_text(data)
        usage = data.get("usage") or {}

        return LLMResponse(
            text=text,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            model=self.model_name,
            metadata={"request_id": data.get("request_id")}
        )


@lru_cache(maxsize=None)
def configure_gemini(api_key: str) -> None:
    """Configure the Gemini SDK once per key; genai keeps it process-wide."""
    genai.configure(api_key=api_key)


class GeminiClient:
    """Gemini LLM client implementation."""

    def __init__(self, api_key: Optional[str], model: str = "gemini-2.5-flash", timeout: float = 8.0):
        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        if api_key:
            configure_gemini(api_key)

    def generate(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 2000
    ) -> LLMResponse:
        """Generate response using Gemini. System messages become the system instruction."""
        if not self.api_key:
            raise RemoteGenerationError("GEMINI_API_KEY not configured")

        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        prompt_parts = [m["content"] for m in messages if m["role"] != "system"]

        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction="\n\n".join(system_parts) or None
        )
        config = genai.GenerationConfig(
            max_output_tokens=max_tokens,
            temperature=temperature
        )

        try:
            response = model.generate_content(
                "\n\n".join(prompt_parts),
                generation_config=config,
                request_options={"timeout": self.timeout}
            )
        except Exception as e:
            raise RemoteGenerationError(f"Gemini request failed: {e}") from e

        # Handle blocked responses or empty candidates
        if not response.candidates or not response.candidates[0].content.parts:
            finish_reason = response.candidates[0].finish_reason if response.candidates else "UNKNOWN"
            raise RemoteGenerationError(f"Gemini returned no content (finish_reason: {finish_reason})")

        input_tokens = 0
        output_tokens = 0
        if hasattr(response, 'usage_metadata'):
            input_tokens = getattr(response.usage_metadata, 'prompt_token_count', 0)
            output_tokens = getattr(response.usage_metadata, 'candidates_token_count', 0)

        text = "".join(part.text for part in response.candidates[0].content.parts if getattr(part, "text", None))
        if not text.strip():
            raise RemoteGenerationError("Gemini returned empty text")

        return LLMResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=self.model_name
        )


class MockLLMClient:
    """Mock LLM client for testing."""

    def __init__(self, text: str = "保持节奏，继续加油！", error: Optional[Exception] = None):
        self.model_name = "mock"
        self.text = text
        self.error = error
        self.last_messages: Optional[List[Message]] = None
        self.last_temperature: Optional[float] = None
        self.calls = 0

    def generate(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 2000
    ) -> LLMResponse:
        """Return mock response, or raise the configured error."""
        self.calls += 1
        self.last_messages = messages
        self.last_temperature = temperature
        if self.error is not None:
            raise self.error
        return LLMResponse(
            text=self.text,
            input_tokens=sum(len(m["content"]) for m in messages) // 4,
            output_tokens=len(self.text) // 4,
            model="mock"
        )


def build_llm_client(settings=Settings, timeout: Optional[float] = None) -> LLMClient:
    """Create the client for the configured provider."""
    timeout = settings.COACH_LLM_TIMEOUT if timeout is None else timeout
    if settings.LLM_PROVIDER == "gemini":
        return GeminiClient(settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL, timeout=timeout)
    return DashScopeClient(
        settings.DASHSCOPE_API_KEY,
        model=settings.COACH_MODEL,
        base_url=settings.DASHSCOPE_BASE_URL,
        timeout=timeout
    )
