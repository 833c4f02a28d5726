"""Example analysis client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseAnalysisClient and register the provider in AnalyzerFactory.
"""

import json
from typing import ClassVar

from artifact_worker.analysis.client_base import BaseAnalysisClient
from artifact_worker.analysis.models import ChatCompletion


class ExampleClientAdapter(BaseAnalysisClient):
    """Example adapter that returns a fixed valid analysis JSON.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "document_type": "other",
        "document_type_confidence": 0.0,
        "summary": "No analysis performed (example provider).",
        "key_takeaways": [],
        "sentiment": "neutral",
        "priority": None,
        "key_topics": [],
        "persons_mentioned": [],
        "facts": [],
        "insights": [],
    }

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> ChatCompletion:
        _ = temperature, system_prompt, user_prompt, json_schema
        return ChatCompletion(content=json.dumps(self.DEFAULT_RESPONSE), model=model)
