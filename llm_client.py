"""
LLM client module: one classification adapter per provider (OpenAI, Anthropic, Gemini)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import requests

from config import (
    ANTHROPIC_URL,
    ANTHROPIC_VERSION,
    CATEGORY_DESCRIPTIONS,
    GEMINI_URL,
    INTENT_CATEGORIES,
    LLM_REQUEST_TIMEOUT,
    MAX_OUTPUT_TOKENS,
    MODELS,
    OPENAI_URL,
)
from cost_accountant import TokenUsage
from exceptions import ClassificationError, ConfigurationError, ParseError, ProviderError
from response_parser import parse_classification

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"

    @classmethod
    def from_setting(cls, value: str) -> "Provider":
        """Resolve the provider named in the settings sheet ('google' means Gemini)."""
        name = str(value or "").strip().lower()
        if name == "google":
            name = cls.GEMINI.value
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(
                f"Invalid model '{value}'. Must be one of: openai, anthropic, google"
            ) from None

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Names used for this provider in the sheet's API key ranges."""
        if self is Provider.GEMINI:
            return ("gemini", "google")
        return (self.value,)


def get_model_version(provider: Provider, tier: str) -> str:
    """Model id for the provider and cost tier ('standard' or 'cheap')."""
    return MODELS[provider.value][tier]


@dataclass
class Classification:
    category: str
    confidence: float
    usage: TokenUsage = field(default_factory=TokenUsage)


def create_classification_prompt(term: str, categories: Sequence[str] = INTENT_CATEGORIES) -> str:
    """Build the prompt asking for exactly one category as a strict JSON object."""
    category_lines = "\n".join(
        f"- {category}: {CATEGORY_DESCRIPTIONS.get(category, category.title())}"
        for category in categories
    )

    rules = []
    if "COMMERCIAL" in categories:
        rules.append("Choose COMMERCIAL for brand+product combinations.")
    if "GEOGRAPHICAL" in categories:
        rules.append("Choose GEOGRAPHICAL for country or broad region mentions, not LOCAL.")
    if "LOCAL" in categories:
        rules.append("Choose LOCAL for city or neighbourhood level locations.")
    if "QUESTION" in categories:
        rules.append("Choose QUESTION for queries phrased with question words.")
    if "OTHER" in categories:
        rules.append("Choose OTHER only when nothing else fits.")
    rules_text = "\n".join(rules)

    return f"""Classify the following search term into exactly one of these categories:
{', '.join(categories)}

{category_lines}

{rules_text}

Search term: "{term}"

Respond with ONLY a JSON object in this EXACT format, with no other text:
{{
  "category": "ONE_OF_THE_CATEGORIES_ABOVE",
  "confidence": 0.XX
}}
where confidence is a number between 0 and 1."""


def _token_count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class ProviderAdapter(ABC):
    """Wraps one HTTP classification call for a provider."""

    provider: Provider

    def __init__(
        self,
        api_key: str,
        model: str,
        categories: Sequence[str] = INTENT_CATEGORIES,
        session: Optional[requests.Session] = None,
        timeout: float = LLM_REQUEST_TIMEOUT,
        strict_categories: bool = True,
    ):
        self.api_key = api_key
        self.model = model
        self.categories = tuple(categories)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.strict_categories = strict_categories

    @abstractmethod
    def build_request(self, prompt: str) -> Dict[str, Any]:
        """Return url, headers, params and json body for the POST."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> str:
        """Generated text from a 2xx response body."""

    @abstractmethod
    def extract_usage(self, data: Dict[str, Any]) -> TokenUsage:
        """Token usage from a 2xx response body; absent fields count as 0."""

    def generate(self, prompt: str) -> Tuple[str, TokenUsage]:
        """
        Send one prompt and return the generated text with its token usage.

        Raises:
            ProviderError: non-2xx HTTP status
            ParseError: 2xx body without the expected shape
        """
        request = self.build_request(prompt)
        response = self.session.post(
            request["url"],
            headers=request.get("headers", {}),
            params=request.get("params"),
            json=request["json"],
            timeout=self.timeout,
        )

        if not 200 <= response.status_code < 300:
            logger.warning(f"{self.provider.value} API request failed with status {response.status_code}")
            raise ProviderError(self.provider.value, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"{self.provider.value} returned a non-JSON body: {e}") from e

        usage = self.extract_usage(data) if isinstance(data, dict) else TokenUsage()
        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ParseError(f"No answer found in the {self.provider.value} response", usage=usage) from e

        return text, usage

    def classify(self, term: str) -> Classification:
        """Classify one search term into the active category set."""
        prompt = create_classification_prompt(term, self.categories)
        text, usage = self.generate(prompt)

        try:
            category, confidence = parse_classification(text, self.categories, strict=self.strict_categories)
        except ClassificationError as e:
            raise type(e)(
                f"Failed to parse {self.provider.value} response: {e}. Response was: {text}",
                usage=usage,
            ) from e

        return Classification(category=category, confidence=confidence, usage=usage)


class OpenAIAdapter(ProviderAdapter):
    provider = Provider.OPENAI

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "url": OPENAI_URL,
            "headers": {"Authorization": f"Bearer {self.api_key}"},
            "json": {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
            },
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]

    def extract_usage(self, data: Dict[str, Any]) -> TokenUsage:
        usage = data.get("usage") or {}
        return TokenUsage(
            _token_count(usage.get("prompt_tokens")),
            _token_count(usage.get("completion_tokens")),
        )


class AnthropicAdapter(ProviderAdapter):
    provider = Provider.ANTHROPIC

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "url": ANTHROPIC_URL,
            "headers": {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            "json": {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": MAX_OUTPUT_TOKENS,
            },
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["content"][0]["text"]

    def extract_usage(self, data: Dict[str, Any]) -> TokenUsage:
        usage = data.get("usage") or {}
        return TokenUsage(
            _token_count(usage.get("input_tokens")),
            _token_count(usage.get("output_tokens")),
        )


class GeminiAdapter(ProviderAdapter):
    provider = Provider.GEMINI

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "url": GEMINI_URL.format(model=self.model),
            "params": {"key": self.api_key},
            "json": {
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"maxOutputTokens": MAX_OUTPUT_TOKENS},
            },
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["candidates"][0]["content"]["parts"][0]["text"]

    def extract_usage(self, data: Dict[str, Any]) -> TokenUsage:
        usage = data.get("usageMetadata") or {}
        return TokenUsage(
            _token_count(usage.get("promptTokenCount")),
            _token_count(usage.get("candidatesTokenCount")),
        )


ADAPTERS = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
    Provider.GEMINI: GeminiAdapter,
}


def get_adapter(provider: Provider, api_key: str, model: str, **kwargs) -> ProviderAdapter:
    """Instantiate the adapter for a provider."""
    return ADAPTERS[provider](api_key, model, **kwargs)
