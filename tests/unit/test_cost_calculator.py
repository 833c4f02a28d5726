import pytest

from artifact_worker.analysis.models import TokenUsage
from artifact_worker.metrics.cost import CostCalculator


class TestCostCalculator:
    def test_known_model_price(self) -> None:
        cost = CostCalculator().calculate(
            "gpt-4o-mini", TokenUsage(input_tokens=1_000_000, output_tokens=1_000_000)
        )
        assert cost == pytest.approx(0.75)

    def test_dated_snapshot_uses_base_price(self) -> None:
        calc = CostCalculator()
        usage = TokenUsage(input_tokens=1000, output_tokens=500)
        assert calc.calculate("gpt-4o-mini-2024-07-18", usage) == calc.calculate("gpt-4o-mini", usage)

    def test_cached_tokens_are_discounted(self) -> None:
        cost = CostCalculator().calculate(
            "gpt-4o", TokenUsage(input_tokens=1_000_000, cached_tokens=1_000_000)
        )
        assert cost == pytest.approx(0.25)

    def test_unknown_model_uses_default_price(self) -> None:
        cost = CostCalculator().calculate("mystery", TokenUsage(input_tokens=1_000_000))
        assert cost == pytest.approx(CostCalculator.DEFAULT_PRICE[0])

    def test_zero_usage_costs_nothing(self) -> None:
        assert CostCalculator().calculate("gpt-4o", TokenUsage()) == 0.0
