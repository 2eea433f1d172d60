"""Gemini vision client for chart analysis.

Sends a chart screenshot plus the analyst prompt to the Gemini
generateContent endpoint and normalizes whatever comes back. Any failure
degrades to a synthetic analysis flagged with "API Error".
"""

import base64
import logging
import random
from typing import Any, Optional

import httpx

from chartjournal.analysis.images import is_remote_url, split_data_url
from chartjournal.analysis.normalizer import (
    extract_candidate_text,
    generate_fallback_analysis,
    parse_analysis_text,
)
from chartjournal.analysis.prompts import build_analysis_prompt
from chartjournal.config import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL, DEFAULT_TIMEOUT
from chartjournal.models import AnalysisOutcome

logger = logging.getLogger(__name__)


API_ERROR_MESSAGE = "API Error"

GENERATION_CONFIG = {
    "temperature": 0.2,
    "topK": 32,
    "topP": 0.95,
}


class AnalysisAPIError(Exception):
    """Raised when the analysis service cannot be reached or rejects a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GeminiClient:
    """Minimal client for the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Gemini API key, sent in the x-goog-api-key header.
            model: Model name.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            client: Optional HTTP client to reuse.
        """
        if not api_key:
            raise ValueError("A Gemini API key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    @staticmethod
    def build_request_body(prompt: str, image_base64: str, mime_type: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": image_base64}},
                    ]
                }
            ],
            "generationConfig": GENERATION_CONFIG,
        }

    def _post(self, body: dict[str, Any]) -> httpx.Response:
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        if self._client is not None:
            return self._client.post(self.endpoint, json=body, headers=headers, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.endpoint, json=body, headers=headers)

    def generate(self, prompt: str, image_base64: str, mime_type: str = "image/png") -> dict:
        """Call generateContent with a prompt and an inline image.

        Returns:
            The decoded response envelope.

        Raises:
            AnalysisAPIError: On transport errors, non-2xx responses, or
                a body that is not a JSON object.
        """
        logger.debug("Requesting chart analysis from %s", self.model)

        try:
            response = self._post(self.build_request_body(prompt, image_base64, mime_type))
        except httpx.HTTPError as e:
            raise AnalysisAPIError(f"Request to {self.model} failed: {e}") from e

        if not response.is_success:
            raise AnalysisAPIError(
                f"{self.model} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            envelope = response.json()
        except (ValueError, RecursionError) as e:
            raise AnalysisAPIError(f"{self.model} returned a non-JSON body") from e

        if not isinstance(envelope, dict):
            raise AnalysisAPIError(f"{self.model} returned an unexpected body")
        return envelope


def _resolve_image(image: str, client: Optional[httpx.Client], timeout: float) -> tuple[str, str]:
    """Get (mime_type, base64 payload) for a data URI, base64 string or URL."""
    if not is_remote_url(image):
        return split_data_url(image)

    try:
        if client is not None:
            response = client.get(image, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
                response = owned.get(image)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise AnalysisAPIError(f"Could not download chart image: {e}") from e

    mime_type = response.headers.get("content-type", "image/png").split(";")[0].strip()
    return mime_type, base64.b64encode(response.content).decode("ascii")


def _fallback(current_price: Optional[float], rng: Optional[random.Random]) -> AnalysisOutcome:
    return AnalysisOutcome(
        analysis=generate_fallback_analysis(current_price, rng),
        used_fallback=True,
        error=API_ERROR_MESSAGE,
    )


def analyze_chart(
    image: str,
    symbol: str,
    api_key: Optional[str],
    current_price: Optional[float] = None,
    model: str = DEFAULT_GEMINI_MODEL,
    base_url: str = DEFAULT_GEMINI_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisOutcome:
    """Analyze a chart screenshot.

    Args:
        image: Data URI, bare base64, or http(s) URL of the chart.
        symbol: Symbol shown on the chart.
        api_key: Gemini API key. Without one the fallback is used.
        current_price: Known current price used to anchor levels.
        model: Gemini model name.
        base_url: API base URL.
        timeout: Request timeout in seconds.
        client: Optional HTTP client to reuse.
        rng: Random source for the fallback analysis.

    Returns:
        AnalysisOutcome. Never raises for service failures.
    """
    if not api_key:
        logger.warning("No Gemini API key configured, using fallback analysis")
        return _fallback(current_price, rng)

    prompt = build_analysis_prompt(symbol, current_price)

    try:
        mime_type, payload = _resolve_image(image, client, timeout)
        gemini = GeminiClient(api_key, model=model, base_url=base_url, timeout=timeout, client=client)
        envelope = gemini.generate(prompt, payload, mime_type)
    except AnalysisAPIError as e:
        logger.warning("Chart analysis failed: %s", e)
        return _fallback(current_price, rng)

    text = extract_candidate_text(envelope)
    if text is None:
        logger.warning("Chart analysis returned no candidates")
        return _fallback(current_price, rng)

    analysis, used_fallback = parse_analysis_text(text, current_price, rng)
    return AnalysisOutcome(
        analysis=analysis,
        used_fallback=used_fallback,
        error=API_ERROR_MESSAGE if used_fallback else None,
    )
