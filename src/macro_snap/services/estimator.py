"""Meal estimation through an LLM, returning analyses or typed failures."""

import asyncio
import base64
import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from macro_snap.domain.errors import (
    EstimatorCallError,
    EstimatorError,
    EstimatorParseError,
    NoInputError,
)
from macro_snap.domain.meals import MealAnalysis

_logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```json|```")

ANALYZE_FAILED_MESSAGE = "Failed to analyze the image. Please try again."
RECALCULATE_FAILED_MESSAGE = "Failed to recalculate macros."
NO_IMAGE_MESSAGE = "No image uploaded"

INSTRUCTIONS = """\
CRITICAL INSTRUCTIONS:
1. THE NATURAL UNIT RULE: Choose the most logical, human-friendly base unit.
   - For discrete items (bread, eggs, fruits): Use "1 slice", "1 large egg", \
"1 medium apple".
   - For liquids (tea, milk): Use "1 cup" or "100ml".
   - For bulk/amorphous foods (rice, bhurji, sabzi, halwa, dal): You MUST use \
exactly "100g".
2. NUTRITIONAL FACT-CHECK: Consider hydration. Cooked foods (rice, dal, halwa) \
weigh more but have LESS protein per 100g than raw ingredients. Calibrate \
baseProtein for the COOKED state.
3. ACCURATE MACROS: Report exact protein and calorie values as they exist in \
standard nutritional databases. Do not arbitrarily force values to 0 unless \
the food genuinely has ~0g (like plain sugar, jam, or water). Factor in \
standard recipe ingredients (e.g., ghee and nuts in Sooji Halwa).
4. Determine the QUANTITY based on the user's text. If not specified, default \
to 1.
5. Return ONLY a JSON object. No markdown.
"""

_STRUCTURE = """\
Structure exactly like this:
{{
  "mealName": "{meal_name}",
  "items": [
    {{
      "name": "string",
      "unit": "{unit}",
      "quantity": number,
      "baseProtein": number,
      "baseCalories": number
    }}
  ],
  "totalProtein": number,
  "totalCalories": number,
  "confidence": "High" | "Medium" | "Low"
}}
"""

IMAGE_STRUCTURE = _STRUCTURE.format(
    meal_name="string", unit="string (e.g., '100g', '1 slice', '1 cup')"
)
RECALCULATION_STRUCTURE = _STRUCTURE.format(meal_name="Corrected Meal", unit="string")

_ROLE = "You are a strict, highly accurate sports nutritionist."

EstimateResult = MealAnalysis | EstimatorError


class EstimatorClient(Protocol):
    """Interface for the LLM call behind the estimator."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None = None,
    ) -> str:
        """Return the raw text response for a prompt and optional image."""


@dataclass
class EstimatorService:
    """Builds estimator prompts and turns responses into meal analyses.

    Neither operation raises: failures come back as ``EstimatorError``
    values so callers can leave their state untouched.
    """

    client: EstimatorClient
    model: str
    reasoning_effort: str | None
    store: bool
    timeout_seconds: float | None = 60.0
    retry_attempts: int = 0
    retry_delay_seconds: float = 0.5

    async def analyze_image(
        self,
        image_bytes: bytes | None,
        mime_type: str | None = None,
        context: str | None = None,
    ) -> EstimateResult:
        """Estimate the items in a meal photo."""
        if not image_bytes:
            return NoInputError(NO_IMAGE_MESSAGE)
        return await self._estimate(
            build_image_prompt(context),
            image_data_url=_to_data_url(image_bytes, mime_type),
            action="analyze",
            failure_message=ANALYZE_FAILED_MESSAGE,
        )

    async def recalculate(self, queries: Sequence[str]) -> EstimateResult:
        """Re-estimate a corrected list of items such as ``"2x Egg"``."""
        return await self._estimate(
            build_recalculation_prompt(queries),
            image_data_url=None,
            action="recalculate",
            failure_message=RECALCULATE_FAILED_MESSAGE,
        )

    async def _estimate(
        self,
        prompt: str,
        *,
        image_data_url: str | None,
        action: str,
        failure_message: str,
    ) -> EstimateResult:
        response = await self._call_with_retry(
            prompt,
            image_data_url=image_data_url,
            action=action,
            failure_message=failure_message,
        )
        if isinstance(response, EstimatorError):
            return response
        return parse_meal_analysis(response, failure_message)

    async def _call_with_retry(
        self,
        prompt: str,
        *,
        image_data_url: str | None,
        action: str,
        failure_message: str,
    ) -> str | EstimatorCallError:
        """Call the client, retrying transport failures a bounded number of times."""
        attempt = 0
        while True:
            try:
                text = await asyncio.wait_for(
                    self.client.complete(
                        model=self.model,
                        reasoning_effort=self.reasoning_effort,
                        store=self.store,
                        prompt=prompt,
                        image_data_url=image_data_url,
                    ),
                    timeout=self.timeout_seconds,
                )
            except Exception as exc:  # noqa: BLE001
                attempt += 1
                if attempt > self.retry_attempts:
                    _logger.exception(
                        "Estimator %s failed after %s attempt(s)", action, attempt
                    )
                    return EstimatorCallError(failure_message, detail=_describe(exc))
                _logger.warning(
                    "Estimator %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _describe(exc),
                )
                await asyncio.sleep(self.retry_delay_seconds)
                continue
            if not text or not text.strip():
                _logger.warning("Estimator %s returned an empty response", action)
                return EstimatorCallError(failure_message, detail="empty response")
            return text


def build_image_prompt(context: str | None) -> str:
    """Build the prompt sent alongside a meal photo."""
    lines = [_ROLE, "Analyze this food image."]
    if context and context.strip():
        lines.append(f'USER CONTEXT: "{context.strip()}"')
    return "\n".join(lines) + "\n\n" + INSTRUCTIONS + "\n" + IMAGE_STRUCTURE


def build_recalculation_prompt(queries: Sequence[str]) -> str:
    """Build the prompt for re-estimating a user-corrected item list."""
    return (
        f"{_ROLE}\n"
        "The user has corrected a list of food items they ate.\n\n"
        "Here is the exact list of items:\n"
        f"{json.dumps(list(queries))}\n\n"
        f"{INSTRUCTIONS}\n{RECALCULATION_STRUCTURE}"
    )


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers around a JSON payload."""
    return _CODE_FENCE.sub("", text).strip()


def parse_meal_analysis(
    text: str, failure_message: str = ANALYZE_FAILED_MESSAGE
) -> MealAnalysis | EstimatorParseError:
    """Parse an estimator response into a meal analysis."""
    cleaned = strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        _logger.warning("Estimator returned invalid JSON: %s", exc)
        return EstimatorParseError(failure_message, detail=f"invalid JSON: {exc}")
    if not isinstance(payload, dict):
        _logger.warning("Estimator returned %s instead of an object", type(payload))
        return EstimatorParseError(failure_message, detail="expected a JSON object")
    try:
        return MealAnalysis.model_validate(payload)
    except ValidationError as exc:
        _logger.warning("Estimator response has an unexpected shape: %s", exc)
        return EstimatorParseError(failure_message, detail=str(exc))


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out"
    return f"{type(exc).__name__}: {exc}"


def _to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    resolved = mime_type if mime_type and mime_type.startswith("image/") else None
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved or _detect_mime_type(image_bytes)};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
