"""
Capture pipeline for Cerebro.

One linear pass per capture: authenticate, classify, normalize, route.
Classifier trouble degrades the result; storage trouble fails the capture.
"""

import json
import logging
from datetime import date

from cerebro.classifier import Classifier
from cerebro.db import Database
from cerebro.errors import AuthenticationError
from cerebro.models import CaptureResult, Session
from cerebro.normalizer import normalize
from cerebro.router import Router

logger = logging.getLogger(__name__)


def capture(
    text: str,
    session: Session | None,
    classifier: Classifier,
    db: Database,
    today: date | None = None,
) -> CaptureResult:
    """
    Classify and persist a single capture for the given user.

    Raises:
        AuthenticationError: no session; checked before any network call.
        ValueError: empty text.
        PersistenceError: storage rejected the row.
    """
    if session is None or not session.user_id:
        raise AuthenticationError("User not authenticated")

    text = text.strip()
    if not text:
        raise ValueError("Empty capture")

    outcome = classifier.invoke(text, session)
    if outcome.result is None:
        logger.warning("Classifier unavailable, saving with defaults: %s", outcome.error)

    normalized = normalize(text, outcome.result)
    result = Router(db).route(normalized, session, today)

    db.log_classification(
        record_id=result.record["id"],
        raw_input=text,
        classifier_output=json.dumps(outcome.result.model_dump()) if outcome.result else None,
        transport=outcome.transport,
        processing_time_ms=outcome.processing_time_ms,
        status="classified" if outcome.result else "fallback",
        routed_to="goals" if result.kind == "goal" else "entries",
        error=outcome.error,
    )

    return result
