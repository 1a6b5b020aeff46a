"""Food analysis contract, request schema and response validation."""

import base64
from typing import Protocol

import pydantic

from nutrisnap.domain.analysis import FoodAnalysis
from nutrisnap.errors import AnalysisError

_NUTRIENT_SCHEMA: dict[str, object] = {"type": "number", "minimum": 0.0}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "foodName": {"type": "string"},
        "nutrition": {
            "type": "object",
            "properties": {
                "calories": _NUTRIENT_SCHEMA,
                "protein": _NUTRIENT_SCHEMA,
                "carbohydrates": _NUTRIENT_SCHEMA,
                "fats": _NUTRIENT_SCHEMA,
                "sugar": _NUTRIENT_SCHEMA,
                "sodium": _NUTRIENT_SCHEMA,
            },
            "required": [
                "calories",
                "protein",
                "carbohydrates",
                "fats",
                "sugar",
                "sodium",
            ],
            "additionalProperties": False,
        },
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "servingSize": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["foodName", "nutrition", "confidence", "servingSize"],
    "additionalProperties": False,
}

ANALYSIS_PROMPT = (
    "Identify the food in the image and estimate the nutrition of the pictured "
    "portion. Give calories in kcal, protein, carbohydrates, fats and sugar in "
    "grams, and sodium in milligrams. Include a confidence between 0 and 1 and "
    "a short serving size description such as '1 bowl (250g)'."
)

# MIME type -> file extension for accepted uploads.
IMAGE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/gif": "gif",
}


class AnalysisClient(Protocol):
    """Interface for remote food image analysis."""

    async def analyze(self, image_base64: str, mime_type: str) -> dict[str, object]:
        """Return the raw nutrition estimate for a base64 encoded image."""


def encode_image(image_bytes: bytes) -> str:
    """Encode image bytes as base64 text for transmission."""
    return base64.b64encode(image_bytes).decode("utf-8")


def to_data_url(image_base64: str, mime_type: str) -> str:
    """Wrap base64 image data in a data URL."""
    return f"data:{mime_type};base64,{image_base64}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[4:12] in {b"ftypheic", b"ftypheix", b"ftypmif1"}:
        return "image/heic"
    return "image/jpeg"


def parse_analysis(raw: object) -> FoodAnalysis:
    """Validate a raw analysis payload."""
    if not isinstance(raw, dict):
        raise AnalysisError("Analysis response is not a JSON object")
    try:
        return FoodAnalysis.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise AnalysisError(f"Malformed analysis response: {exc}") from exc
