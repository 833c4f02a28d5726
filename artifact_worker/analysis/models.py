from dataclasses import dataclass, field


@dataclass(frozen=True)
class Summary:
    """Executive summary of an artifact."""

    executive_summary: str
    key_takeaways: list[str] = field(default_factory=list)
    sentiment: str | None = None
    priority: int | None = None


@dataclass(frozen=True)
class Topic:
    """A key topic with the model's confidence."""

    name: str
    confidence: float


@dataclass(frozen=True)
class Person:
    """A person mentioned in an artifact."""

    name: str
    role: str | None = None
    organization: str | None = None
    context: str | None = None
    confidence: float = 0.0


@dataclass(frozen=True)
class Fact:
    """A structured fact (date, amount, metric, commitment, deadline...)."""

    type: str
    key: str
    value: str
    numeric_value: float | None = None
    date_value: str | None = None
    unit: str | None = None
    confidence: float = 0.0


@dataclass(frozen=True)
class Insight:
    """A risk, opportunity, anomaly or similar observation."""

    type: str
    title: str
    description: str
    severity: str | None = None
    suggested_action: str | None = None
    impacted_modules: list[str] = field(default_factory=list)
    confidence: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    """Structured metadata produced by one successful analysis."""

    summary: Summary
    document_type: str | None = None
    document_type_confidence: float | None = None
    topics: list[Topic] = field(default_factory=list)
    persons: list[Person] = field(default_factory=list)
    facts: list[Fact] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported by the AI provider."""

    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class ChatCompletion:
    """Provider response reduced to what the analyzer needs."""

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class AnalysisOutcome:
    """Output of the analysis capability."""

    result: AnalysisResult
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class ProgramContext:
    """Program identity fields passed to the analysis prompt."""

    program_id: str
    program_name: str
    program_code: str
    company_name: str = ""
    custom_taxonomy: str = ""
