"""
gemini_client.py - PairingAnalyzer.

Sends one pairing photo to Gemini with a fixed sommelier prompt and parses
the JSON annotation it returns. One request per call, no retries.
"""
import asyncio
import json
import logging
import re

import google.generativeai as genai

from pairup.core.exceptions import (
    AnalysisConfigurationError,
    AnalysisParseError,
    AnalysisServiceError,
    AnalysisTimeoutError,
)
from pairup.schemas.analysis import PairingAnalysis

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {"", "your_gemini_api_key_here"}
REQUIRED_FIELDS = ("food_name", "beverage_type", "flavor_principle", "review_text")
SNIPPET_LENGTH = 100

_FENCE_RE = re.compile(r"```(?:json)?\n?")

SYSTEM_PROMPT = """You are a friendly but knowledgeable sommelier and food pairing expert.

IMPORTANT - STRICT INVENTORY CHECK:
First, carefully examine the image to determine what is ACTUALLY visible:
- Is there FOOD in the image? (meals, snacks, dishes, ingredients)
- Is there a BEVERAGE in the image? (drinks, bottles, cans, glasses with liquid)

DO NOT hallucinate or assume items exist if they are not clearly visible in the photo.

Analyze the image and return a JSON object with exactly these fields:

1. food_name:
   - If food IS visible: A short, descriptive name (e.g., "Grilled Salmon", "Margherita Pizza")
   - If NO food is visible: Return "None detected"

2. beverage_type:
   - If a beverage IS visible, identify it as EXACTLY one of: "Wine", "Beer", "Spirits", "Cocktails", "Non-Alcoholic"
   - If NO beverage is visible: Return "None detected"
   - If only food is visible (no beverage), suggest the best pairing type from the list above

3. flavor_principle: Must be EXACTLY one of these values:
   - "Acid + Umami"
   - "Sweet + Spicy"
   - "Fat + Tannin"
   - "Bitter + Sweet"
   - "Effervescence + Fried"
   - "Complement"
   - "Contrast"
   Choose the flavor principle that best describes the pairing (actual or suggested).

4. review_text: A 3-4 sentence grounded analysis in a friendly sommelier tone.
   - If BOTH food and beverage are visible: Explain how their flavors interact.
   - If ONLY FOOD is visible: Describe the food's flavor profile and suggest what beverage would pair well with it.
   - If ONLY BEVERAGE is visible: Describe the beverage's characteristics and suggest what foods would complement it.
   - NEVER pretend a pairing exists in the photo if it doesn't. Be honest about what you see.

5. beverage_brand: If a beverage brand/logo is visible (e.g., "Duvel", "Heineken"), return it. Otherwise return null.

6. food_brand: If a food brand/logo is visible (e.g., "Doritos", "Lay's"), return it. Otherwise return null.

Return ONLY valid JSON, no markdown, no explanation.

Example with both items:
{"food_name":"Grilled Ribeye Steak","beverage_type":"Wine","flavor_principle":"Fat + Tannin","review_text":"This beautifully marbled ribeye is calling for a bold red wine. The rich fat content and savory char will be perfectly balanced by the tannins in a Cabernet Sauvignon or Malbec.","beverage_brand":null,"food_brand":null}

Example with only beverage:
{"food_name":"None detected","beverage_type":"Beer","flavor_principle":"Bitter + Sweet","review_text":"This golden Belgian ale has complex fruity esters and a dry finish. It would pair wonderfully with creamy cheeses, mussels, or crispy frites. The carbonation cuts through rich, fatty foods beautifully.","beverage_brand":"Duvel","food_brand":null}"""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _optional_text(value) -> str | None:
    # brands sometimes come back as numbers ("1664")
    if value is None or value == "":
        return None
    return str(value)


def parse_analysis(text: str) -> PairingAnalysis:
    """
    Parse raw model output into a PairingAnalysis.

    Raises:
        AnalysisParseError: if the text is not a JSON object or any
            required field is missing or empty.
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        raise AnalysisParseError(
            f"Failed to parse AI response: {text[:SNIPPET_LENGTH]}...", text
        )

    if not isinstance(data, dict):
        raise AnalysisParseError(
            f"Failed to parse AI response: {text[:SNIPPET_LENGTH]}...", text
        )

    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise AnalysisParseError(
            f"AI response missing required fields ({', '.join(missing)}). "
            f"Got: {cleaned[:SNIPPET_LENGTH]}",
            text,
        )

    return PairingAnalysis(
        food_name=str(data["food_name"]),
        beverage_type=str(data["beverage_type"]),
        flavor_principle=str(data["flavor_principle"]),
        review_text=str(data["review_text"]),
        beverage_brand=_optional_text(data.get("beverage_brand")),
        food_brand=_optional_text(data.get("food_brand")),
    )


class PairingAnalyzer:
    """Wrapper around the Gemini multimodal API for pairing photos."""

    def __init__(self, api_key: str | None, model_name: str) -> None:
        self._api_key = api_key
        self._model_name = model_name
        if self.configured:
            # SDK configuration is process-wide; set it once, not per request
            genai.configure(api_key=api_key)

    @property
    def configured(self) -> bool:
        return (self._api_key or "") not in PLACEHOLDER_KEYS

    def _generate(self, image_bytes: bytes, mime_type: str) -> str:
        model = genai.GenerativeModel(model_name=self._model_name)
        resp = model.generate_content(
            [SYSTEM_PROMPT, {"mime_type": mime_type, "data": image_bytes}]
        )
        return resp.text

    async def analyze(
        self,
        image_bytes: bytes,
        mime_type: str,
        timeout: float,
    ) -> PairingAnalysis:
        """
        Annotate one pairing photo.

        Raises:
            AnalysisConfigurationError: no API key (checked before any I/O).
            AnalysisTimeoutError: the call took longer than `timeout` seconds.
            AnalysisServiceError: Gemini rejected or failed the request.
            AnalysisParseError: the reply was not the expected JSON.

        On timeout the executor thread is not cancelled; the Gemini call
        runs to completion in the background and its result is discarded.
        """
        if not self.configured:
            raise AnalysisConfigurationError(
                "Gemini API key not configured. Set GEMINI_API_KEY in .env"
            )

        logger.info(
            "Analyzing pairing image (%s, %.2f MB)",
            mime_type,
            len(image_bytes) / 1024 / 1024,
        )

        loop = asyncio.get_running_loop()
        try:
            text = await asyncio.wait_for(
                loop.run_in_executor(None, self._generate, image_bytes, mime_type),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Gemini analysis timed out after %ss (call left running)",
                timeout,
            )
            raise AnalysisTimeoutError(f"Analysis timed out after {timeout:g} seconds")
        except Exception as e:
            logger.error("Gemini analysis error: %s: %s", type(e).__name__, e)
            raise AnalysisServiceError(f"Failed to analyze image: {e}") from e

        logger.debug("Gemini raw response: %s", text)

        try:
            return parse_analysis(text)
        except AnalysisParseError:
            logger.error("Unparseable Gemini response: %s", text[:500])
            raise
