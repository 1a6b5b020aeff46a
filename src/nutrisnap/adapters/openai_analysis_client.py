"""OpenAI Responses API client for food image analysis."""

import json
from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from nutrisnap.errors import AnalysisError, StageTimeoutError
from nutrisnap.services.analysis import (
    ANALYSIS_PROMPT,
    ANALYSIS_SCHEMA,
    AnalysisClient,
    to_data_url,
)


@dataclass
class OpenAIAnalysisClient(AnalysisClient):
    """Analysis client backed by OpenAI structured outputs."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIAnalysisClient":
        """Create an OpenAI analysis client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def analyze(self, image_base64: str, mime_type: str) -> dict[str, object]:
        """Call the Responses API and return the parsed JSON output."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": ANALYSIS_PROMPT},
                        {
                            "type": "input_image",
                            "image_url": to_data_url(image_base64, mime_type),
                        },
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "food_analysis",
                    "strict": True,
                    "schema": ANALYSIS_SCHEMA,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except openai.APITimeoutError as exc:
            raise StageTimeoutError("OpenAI analysis timed out") from exc
        except openai.OpenAIError as exc:
            raise AnalysisError(f"OpenAI analysis failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise AnalysisError("OpenAI returned an empty response")
        try:
            return json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise AnalysisError("OpenAI returned invalid JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
