"""
Token usage accounting and cost estimation
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from config import MODELS

logger = logging.getLogger(__name__)

TOKENS_PER_PRICE_UNIT = 1_000_000


@dataclass(frozen=True)
class TokenUsage:
    """Input/output token counts for one call or a whole run."""

    input_tokens: int = 0
    output_tokens: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            self.input_tokens + other.input_tokens,
            self.output_tokens + other.output_tokens,
        )

    def __radd__(self, other):
        # lets sum() start from 0
        if other == 0:
            return self
        return self.__add__(other)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class CostEstimate:
    input_cost: float = 0.0
    output_cost: float = 0.0

    @property
    def total(self) -> float:
        return self.input_cost + self.output_cost


def total_usage(usages: Iterable[TokenUsage]) -> TokenUsage:
    """Fold per-call usage into run totals."""
    return sum(usages, TokenUsage())


def estimate_cost(provider: str, tier: str, totals: TokenUsage) -> CostEstimate:
    """
    Convert token totals into an estimated cost using the static price table.

    Args:
        provider: Provider key in MODELS (e.g. 'openai')
        tier: 'standard' or 'cheap'
        totals: Accumulated token usage

    Returns:
        CostEstimate; zero when no price is known for the provider/tier pair
    """
    prices = MODELS.get(provider, {}).get("costs", {}).get(tier)
    if not prices:
        logger.warning(f"No cost data for provider={provider} tier={tier}")
        return CostEstimate()

    input_cost = (totals.input_tokens / TOKENS_PER_PRICE_UNIT) * prices["input"]
    output_cost = (totals.output_tokens / TOKENS_PER_PRICE_UNIT) * prices["output"]
    return CostEstimate(input_cost=input_cost, output_cost=output_cost)


class CostAccountant:
    """Running token totals for a single run."""

    def __init__(self):
        self.totals = TokenUsage()

    def reset(self):
        self.totals = TokenUsage()

    def accumulate(self, usage: TokenUsage) -> TokenUsage:
        self.totals = self.totals + usage
        return self.totals

    def estimate(self, provider: str, tier: str) -> CostEstimate:
        estimate = estimate_cost(provider, tier, self.totals)
        logger.info(
            f"Token usage - Input: {self.totals.input_tokens}, Output: {self.totals.output_tokens}"
        )
        logger.info(
            f"Cost breakdown - Input: ${estimate.input_cost:.4f}, Output: ${estimate.output_cost:.4f}, "
            f"Total: ${estimate.total:.4f}"
        )
        return estimate
