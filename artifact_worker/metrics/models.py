from dataclasses import dataclass, field
from datetime import UTC, datetime

from artifact_worker.analysis.models import TokenUsage


@dataclass(frozen=True)
class AiCallMetrics:
    """One AI provider invocation, successful or not."""

    program_id: str
    job_type: str
    model: str
    duration_ms: int
    success: bool
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost_usd: float = 0.0
    error: str | None = None
    module: str = "artifacts"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the tracker's counters."""

    ai_calls: int
    ai_failures: int
    input_tokens: int
    output_tokens: int
    cost_usd: float
    total_duration_ms: int
    outcomes: dict[str, int]
