"""Tests for token accounting and cost estimation."""

import pytest

from config import MODELS
from cost_accountant import CostAccountant, CostEstimate, TokenUsage, estimate_cost, total_usage


class TestTokenUsage:
    def test_addition(self):
        assert TokenUsage(10, 5) + TokenUsage(20, 15) == TokenUsage(30, 20)

    def test_sum_of_usages(self):
        assert sum([TokenUsage(1, 2), TokenUsage(3, 4)]) == TokenUsage(4, 6)
        assert total_usage([]) == TokenUsage()

    def test_total_tokens(self):
        assert TokenUsage(30, 20).total_tokens == 50


class TestEstimateCost:
    @pytest.mark.parametrize("provider", ["openai", "anthropic", "gemini"])
    @pytest.mark.parametrize("tier", ["standard", "cheap"])
    def test_price_table(self, provider, tier):
        prices = MODELS[provider]["costs"][tier]
        estimate = estimate_cost(provider, tier, TokenUsage(30, 20))

        assert estimate.input_cost == pytest.approx(30 / 1e6 * prices["input"])
        assert estimate.output_cost == pytest.approx(20 / 1e6 * prices["output"])
        assert estimate.total == pytest.approx(estimate.input_cost + estimate.output_cost)

    def test_unknown_pair_is_zero_with_warning(self, caplog):
        estimate = estimate_cost("mistral", "standard", TokenUsage(1000, 1000))
        assert estimate == CostEstimate()
        assert estimate.total == 0
        assert "No cost data" in caplog.text

    def test_unknown_tier(self):
        assert estimate_cost("openai", "premium", TokenUsage(1, 1)).total == 0


class TestCostAccountant:
    def test_accumulates_two_calls(self):
        accountant = CostAccountant()
        accountant.accumulate(TokenUsage(10, 5))
        accountant.accumulate(TokenUsage(20, 15))

        assert accountant.totals == TokenUsage(30, 20)

        prices = MODELS["anthropic"]["costs"]["cheap"]
        assert accountant.estimate("anthropic", "cheap").total == pytest.approx(
            (30 / 1e6) * prices["input"] + (20 / 1e6) * prices["output"]
        )

    def test_reset(self):
        accountant = CostAccountant()
        accountant.accumulate(TokenUsage(10, 5))
        accountant.reset()
        assert accountant.totals == TokenUsage()
