from unittest.mock import MagicMock, patch

import openai
import pytest

from artifact_worker.extraction.exceptions import OcrProviderError
from artifact_worker.extraction.vision_client import OpenAIVisionClientAdapter


def _make_adapter(mock_client: MagicMock) -> OpenAIVisionClientAdapter:
    with patch(
        "artifact_worker.extraction.vision_client.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIVisionClientAdapter(api_key="k", model="gpt-4o", timeout_seconds=30)


class TestOpenAIVisionClientAdapter:
    def test_sends_image_as_data_url(self) -> None:
        mock_client = MagicMock()
        choice = MagicMock()
        choice.message.content = "Whiteboard notes"
        mock_client.chat.completions.create.return_value = MagicMock(choices=[choice])

        text = _make_adapter(mock_client).extract_text(b"\x89PNG", "image/png")

        assert text == "Whiteboard notes"
        content = mock_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert content[0]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_api_error_raises_ocr_provider_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="server error",
            request=MagicMock(),
            body=None,
        )
        with pytest.raises(OcrProviderError, match="API error"):
            _make_adapter(mock_client).extract_text(b"\x89PNG", "image/png")

    def test_no_choices_raises(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = MagicMock(choices=[])
        with pytest.raises(OcrProviderError, match="no choices"):
            _make_adapter(mock_client).extract_text(b"\x89PNG", "image/png")
