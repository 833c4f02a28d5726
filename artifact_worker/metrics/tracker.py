import threading
from collections import Counter

from artifact_worker.analysis.models import TokenUsage
from artifact_worker.database.repositories.ai_usage_repository import AiUsageRepository
from artifact_worker.logging.logger import Log
from artifact_worker.metrics.cost import CostCalculator
from artifact_worker.metrics.models import AiCallMetrics, MetricsSnapshot


class MetricsTracker:
    """Records cost, latency and outcome of AI calls and artifact runs.

    Constructed once per process and shared by the processor, the embeddings
    stage and the runner. Counters are updated under a lock; persistence to
    the usage sink happens outside it and never raises.
    """

    def __init__(
        self,
        cost_calculator: CostCalculator | None = None,
        usage_sink: AiUsageRepository | None = None,
    ) -> None:
        self._cost_calculator = cost_calculator or CostCalculator()
        self._usage_sink = usage_sink
        self._lock = threading.Lock()
        self._ai_calls = 0
        self._ai_failures = 0
        self._input_tokens = 0
        self._output_tokens = 0
        self._cost_usd = 0.0
        self._total_duration_ms = 0
        self._outcomes: Counter[str] = Counter()

    def record_ai_call(
        self,
        *,
        program_id: str,
        job_type: str,
        model: str,
        duration_seconds: float,
        success: bool,
        usage: TokenUsage | None = None,
        error: str | None = None,
    ) -> AiCallMetrics:
        usage = usage or TokenUsage()
        metrics = AiCallMetrics(
            program_id=program_id,
            job_type=job_type,
            model=model,
            duration_ms=int(duration_seconds * 1000),
            success=success,
            usage=usage,
            cost_usd=self._cost_calculator.calculate(model, usage),
            error=error,
        )
        with self._lock:
            self._ai_calls += 1
            if not success:
                self._ai_failures += 1
            self._input_tokens += usage.input_tokens
            self._output_tokens += usage.output_tokens
            self._cost_usd += metrics.cost_usd
            self._total_duration_ms += metrics.duration_ms

        Log.info(
            f"AI call {job_type} model={model} success={success} "
            f"duration_ms={metrics.duration_ms} tokens={usage.total_tokens} "
            f"cost_usd={metrics.cost_usd:.6f}"
        )
        self._persist(metrics)
        return metrics

    def record_outcome(self, outcome: str) -> None:
        """Count an artifact run outcome (claimed, skipped, completed, failed)."""
        with self._lock:
            self._outcomes[outcome] += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                ai_calls=self._ai_calls,
                ai_failures=self._ai_failures,
                input_tokens=self._input_tokens,
                output_tokens=self._output_tokens,
                cost_usd=self._cost_usd,
                total_duration_ms=self._total_duration_ms,
                outcomes=dict(self._outcomes),
            )

    def _persist(self, metrics: AiCallMetrics) -> None:
        if self._usage_sink is None:
            return
        try:
            self._usage_sink.insert(metrics)
        except Exception as exc:
            Log.warning(f"Failed to persist AI usage metrics: {exc}")
