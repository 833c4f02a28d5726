from typing import ClassVar

from artifact_worker.analysis.models import TokenUsage


class CostCalculator:
    """Estimates USD cost of a provider call from token usage."""

    # (input, output) USD per million tokens
    PRICES: ClassVar[dict[str, tuple[float, float]]] = {
        "gpt-4o": (2.50, 10.00),
        "gpt-4o-mini": (0.15, 0.60),
        "gpt-4.1": (2.00, 8.00),
        "gpt-4.1-mini": (0.40, 1.60),
        "text-embedding-3-small": (0.02, 0.0),
        "text-embedding-3-large": (0.13, 0.0),
    }
    DEFAULT_PRICE: ClassVar[tuple[float, float]] = (2.50, 10.00)
    CACHED_INPUT_RATE = 0.1

    def calculate(self, model: str, usage: TokenUsage) -> float:
        input_price, output_price = self._price_for(model)
        cached = min(usage.cached_tokens, usage.input_tokens)
        uncached = usage.input_tokens - cached
        cost = (
            uncached * input_price
            + cached * input_price * self.CACHED_INPUT_RATE
            + usage.output_tokens * output_price
        )
        return cost / 1_000_000

    def _price_for(self, model: str) -> tuple[float, float]:
        if model in self.PRICES:
            return self.PRICES[model]
        # Dated snapshots such as gpt-4o-mini-2024-07-18
        for name in sorted(self.PRICES, key=len, reverse=True):
            if model.startswith(name):
                return self.PRICES[name]
        return self.DEFAULT_PRICE
