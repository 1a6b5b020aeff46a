"""Analysis client calling a Supabase Edge Function."""

import asyncio
import json
from dataclasses import dataclass

import httpx
from supabase import Client

from nutrisnap.errors import AnalysisError, StageTimeoutError
from nutrisnap.services.analysis import AnalysisClient


@dataclass
class SupabaseFunctionAnalysisClient(AnalysisClient):
    """Invokes the analyze-food edge function with a base64 image."""

    client: Client
    function_name: str = "analyze-food"

    async def analyze(self, image_base64: str, mime_type: str) -> dict[str, object]:
        """Return the edge function's nutrition estimate."""
        return await asyncio.to_thread(self._invoke, image_base64)

    def _invoke(self, image_base64: str) -> dict[str, object]:
        try:
            payload = self.client.functions.invoke(
                self.function_name,
                invoke_options={
                    "body": {"imageBase64": image_base64},
                    "responseType": "json",
                },
            )
        except httpx.TimeoutException as exc:
            raise StageTimeoutError(f"{self.function_name} timed out") from exc
        except Exception as exc:
            raise AnalysisError(f"{self.function_name} failed: {exc}") from exc
        if isinstance(payload, bytes | str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise AnalysisError(
                    f"{self.function_name} returned invalid JSON"
                ) from exc
        if not isinstance(payload, dict):
            raise AnalysisError(f"{self.function_name} returned no analysis")
        if payload.get("error"):
            raise AnalysisError(f"{self.function_name} error: {payload['error']}")
        return payload
