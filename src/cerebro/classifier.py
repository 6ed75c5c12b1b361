"""
Classifier client for Cerebro.

Sends raw capture text to the classify-entry function endpoint. Two
transports carry the same contract:
- managed: the user's session token, as the hosted functions client does it
- direct: a plain POST authenticated with the public anon key

If both fail the caller gets no classification instead of an exception.
"""

import logging
import time
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ValidationError

from cerebro.config import load_config
from cerebro.errors import ClassifierError
from cerebro.models import ClassificationResult, Session

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION_NAME = "classify-entry"
DEFAULT_TIMEOUT = 30.0


class ClassifierOutcome(BaseModel):
    """What a classification attempt produced and over which transport."""

    result: ClassificationResult | None
    transport: Literal["managed", "direct", "unavailable"]
    error: str | None = None
    processing_time_ms: int = 0


def parse_classification(payload: Any, transport: str) -> ClassificationResult:
    """Validate a decoded response body, raising ClassifierError if unusable."""
    if not isinstance(payload, dict):
        raise ClassifierError(
            f"Expected a JSON object, got {type(payload).__name__}", transport=transport
        )

    # The function reports its own failures as {"error": "..."}
    if payload.get("error"):
        raise ClassifierError(f"Classifier error: {payload['error']}", transport=transport)

    try:
        return ClassificationResult.model_validate(payload)
    except ValidationError as e:
        raise ClassifierError(
            f"Malformed classification: {e.error_count()} validation errors",
            transport=transport,
        ) from e


class Classifier:
    """Client for the classification function, with a direct-HTTP fallback."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or load_config()
        classifier_config = self.config.get("classifier", {})

        functions_url = (classifier_config.get("functions_url") or "").rstrip("/")
        function_name = classifier_config.get("function_name") or DEFAULT_FUNCTION_NAME
        self.endpoint = f"{functions_url}/functions/v1/{function_name}" if functions_url else None
        self.anon_key = classifier_config.get("anon_key")
        self.timeout = float(classifier_config.get("timeout") or DEFAULT_TIMEOUT)

    def classify(self, text: str, session: Session | None = None) -> ClassificationResult | None:
        """Classify text. Returns None when the classifier is unavailable."""
        return self.invoke(text, session).result

    def invoke(self, text: str, session: Session | None = None) -> ClassifierOutcome:
        """
        Classify text, reporting which transport answered.

        Never raises: transport errors, HTTP errors and malformed bodies all
        end in an "unavailable" outcome carrying the error message.
        """
        start_time = time.time()

        if not self.endpoint:
            logger.error("Classifier endpoint not configured; set CEREBRO_FUNCTIONS_URL")
            return ClassifierOutcome(
                result=None,
                transport="unavailable",
                error="Classifier endpoint not configured",
            )

        try:
            result = self._invoke_managed(text, session)
            transport = "managed"
        except ClassifierError as primary_error:
            logger.warning("Managed invocation failed, trying direct call: %s", primary_error)
            try:
                result = self._invoke_direct(text)
                transport = "direct"
            except ClassifierError as fallback_error:
                logger.error("Direct classifier call failed: %s", fallback_error)
                return ClassifierOutcome(
                    result=None,
                    transport="unavailable",
                    error=f"{primary_error} (fallback: {fallback_error})",
                    processing_time_ms=int((time.time() - start_time) * 1000),
                )

        return ClassifierOutcome(
            result=result,
            transport=transport,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )

    def _invoke_managed(self, text: str, session: Session | None) -> ClassificationResult:
        """Call the function the way the hosted client does: session token first."""
        token = (session.access_token if session else None) or self.anon_key
        if not token:
            raise ClassifierError("No session token or anon key", transport="managed")

        headers = {"Authorization": f"Bearer {token}"}
        if self.anon_key:
            headers["apikey"] = self.anon_key
        return self._post(text, headers, transport="managed")

    def _invoke_direct(self, text: str) -> ClassificationResult:
        """Plain POST with the public anon key."""
        if not self.anon_key:
            raise ClassifierError("No anon key for fallback", transport="direct")

        headers = {"Authorization": f"Bearer {self.anon_key}"}
        return self._post(text, headers, transport="direct")

    def _post(self, text: str, headers: dict[str, str], transport: str) -> ClassificationResult:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.endpoint,
                    headers={**headers, "Content-Type": "application/json"},
                    json={"content": text},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ClassifierError(
                f"HTTP error {e.response.status_code}", transport=transport
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ClassifierError(f"{type(e).__name__}: {e}", transport=transport) from e
        except ValueError as e:
            # Body was not JSON
            raise ClassifierError(f"Unparseable response: {e}", transport=transport) from e

        return parse_classification(payload, transport)


def classify_text(text: str, session: Session | None = None) -> ClassificationResult | None:
    """Convenience function to classify a single text."""
    classifier = Classifier()
    return classifier.classify(text, session)
