import base64
from abc import ABC, abstractmethod

import httpx
import openai

from artifact_worker.extraction.exceptions import OcrProviderError

OCR_INSTRUCTION = (
    "Please extract all text from this document. Preserve the structure and "
    "formatting as much as possible. Return ONLY the extracted text content, "
    "without any commentary or explanation."
)


class BaseVisionClient(ABC):
    """Contract for vision-capable AI clients used for OCR."""

    @abstractmethod
    def extract_text(self, image_bytes: bytes, media_type: str) -> str:
        """Return the text visible in the image."""


class OpenAIVisionClientAdapter(BaseVisionClient):
    """Vision OCR built on the OpenAI-compatible chat API with image input."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def extract_text(self, image_bytes: bytes, media_type: str) -> str:
        data_url = (
            f"data:{media_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        )
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                max_tokens=4096,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "image_url", "image_url": {"url": data_url}},
                            {"type": "text", "text": OCR_INSTRUCTION},
                        ],
                    }
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise OcrProviderError(f"Vision provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise OcrProviderError(f"Vision provider API error: {exc}") from exc

        if not response.choices:
            raise OcrProviderError("Vision provider returned no choices")
        return response.choices[0].message.content or ""
