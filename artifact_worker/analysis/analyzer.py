"""AI-powered artifact analyzer."""

import json
from pathlib import Path

from artifact_worker.analysis.base import BaseAnalyzer
from artifact_worker.analysis.client_base import BaseAnalysisClient
from artifact_worker.analysis.exceptions import AnalysisError
from artifact_worker.analysis.models import AnalysisOutcome, ProgramContext
from artifact_worker.analysis.prompt_loader import (
    load_json_schema,
    load_prompt_template,
)
from artifact_worker.analysis.validator import validate_and_build
from artifact_worker.logging.logger import Log

_TRUNCATION_MARKER = "\n\n[... content truncated ...]"
_DEFAULT_SYSTEM_PROMPT = Path(__file__).parent / "prompts" / "system_prompt.txt"


class Analyzer(BaseAnalyzer):
    """Extracts summary, topics, persons, facts and insights using an AI provider."""

    def __init__(
        self,
        *,
        client: BaseAnalysisClient,
        model: str,
        temperature: float = 0.0,
        max_content_chars: int = 100_000,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._max_content_chars = max_content_chars
        self._prompt_template = load_prompt_template(prompt_template_path)
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = schema_str
        self._json_schema_dict = json.loads(schema_str)
        if system_prompt is None:
            system_prompt = load_prompt_template(_DEFAULT_SYSTEM_PROMPT).strip()
        self._system_prompt = system_prompt

    @property
    def model(self) -> str:
        return self._model

    def analyze(
        self,
        text: str,
        context: ProgramContext,
        filename: str = "",
    ) -> AnalysisOutcome:
        """Analyze extracted artifact text and return the validated result."""
        prompt = self._build_prompt(text, context, filename)
        Log.debug(f"Analysis prompt:\n{prompt}")

        completion = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )
        Log.debug(f"AI raw response:\n{completion.content[:500]}")

        parsed = self._parse_json(completion.content)
        result = validate_and_build(parsed)

        Log.info(
            f"Analysis complete: {len(result.topics)} topics, "
            f"{len(result.persons)} persons, {len(result.facts)} facts, "
            f"{len(result.insights)} insights"
        )
        return AnalysisOutcome(result=result, model=completion.model, usage=completion.usage)

    def _build_prompt(self, text: str, context: ProgramContext, filename: str) -> str:
        if len(text) > self._max_content_chars:
            text = text[: self._max_content_chars] + _TRUNCATION_MARKER
        taxonomy = f"Taxonomy: {context.custom_taxonomy}" if context.custom_taxonomy else ""
        return self._prompt_template.format(
            program_name=context.program_name,
            program_code=context.program_code,
            company_name=context.company_name,
            custom_taxonomy=taxonomy,
            filename=filename,
            artifact_content=text,
            json_schema=self._json_schema,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise AnalysisError("JSON response must be an object")
        return parsed
