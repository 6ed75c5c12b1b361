"""Tests for the classifier client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from cerebro.classifier import Classifier, parse_classification
from cerebro.errors import ClassifierError
from cerebro.models import Session

VALID_RESPONSE = {
    "category_slug": "work",
    "entry_type": "task",
    "status": "pending",
    "metadata": {"summary": "Enviar relatório", "priority": "high"},
}

ENDPOINT = "https://project.example.co/functions/v1/classify-entry"


def _response(payload=None, status_code=200, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        request = httpx.Request("POST", ENDPOINT)
        error_response = httpx.Response(status_code, request=request)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error", request=request, response=error_response
        )
    return response


@pytest.fixture
def mock_client():
    """Patch httpx.Client inside the classifier module."""
    with patch("cerebro.classifier.httpx.Client") as mock_client_class:
        client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = client
        yield client


class TestParseClassification:
    """Response body validation."""

    def test_valid_payload(self):
        result = parse_classification(VALID_RESPONSE, "managed")

        assert result.entry_type == "task"
        assert result.metadata.priority == "high"

    def test_error_body(self):
        with pytest.raises(ClassifierError, match="quota exceeded"):
            parse_classification({"error": "quota exceeded"}, "managed")

    def test_non_object(self):
        with pytest.raises(ClassifierError) as exc_info:
            parse_classification(["task"], "direct")
        assert exc_info.value.transport == "direct"

    def test_missing_entry_type(self):
        with pytest.raises(ClassifierError, match="Malformed"):
            parse_classification({"category_slug": "work"}, "managed")


class TestClassifier:
    """Managed call with direct fallback."""

    def test_endpoint_from_config(self, classifier_config):
        classifier = Classifier(config=classifier_config)

        assert classifier.endpoint == ENDPOINT
        assert classifier.timeout == 5.0

    def test_managed_success(self, mock_client, classifier_config, session):
        mock_client.post.return_value = _response(VALID_RESPONSE)

        outcome = Classifier(config=classifier_config).invoke("enviar relatório", session)

        assert outcome.transport == "managed"
        assert outcome.result.category_slug == "work"
        assert outcome.error is None
        mock_client.post.assert_called_once()
        args, kwargs = mock_client.post.call_args
        assert args[0] == ENDPOINT
        assert kwargs["json"] == {"content": "enviar relatório"}
        assert kwargs["headers"]["Authorization"] == "Bearer session-token"
        assert kwargs["headers"]["apikey"] == "anon-key"

    def test_managed_without_session_token_uses_anon_key(self, mock_client, classifier_config):
        mock_client.post.return_value = _response(VALID_RESPONSE)

        Classifier(config=classifier_config).invoke("texto", Session(user_id="u"))

        headers = mock_client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer anon-key"

    def test_falls_back_to_direct(self, mock_client, classifier_config, session):
        mock_client.post.side_effect = [
            httpx.ConnectError("Connection refused"),
            _response(VALID_RESPONSE),
        ]

        outcome = Classifier(config=classifier_config).invoke("texto", session)

        assert outcome.transport == "direct"
        assert outcome.result.entry_type == "task"
        assert mock_client.post.call_count == 2
        direct_headers = mock_client.post.call_args_list[1].kwargs["headers"]
        assert direct_headers["Authorization"] == "Bearer anon-key"

    def test_http_error_falls_back(self, mock_client, classifier_config, session):
        mock_client.post.side_effect = [
            _response(status_code=500),
            _response(VALID_RESPONSE),
        ]

        outcome = Classifier(config=classifier_config).invoke("texto", session)

        assert outcome.transport == "direct"

    def test_malformed_managed_body_falls_back(self, mock_client, classifier_config, session):
        mock_client.post.side_effect = [
            _response({"category_slug": "work"}),
            _response(VALID_RESPONSE),
        ]

        outcome = Classifier(config=classifier_config).invoke("texto", session)

        assert outcome.transport == "direct"

    def test_both_fail(self, mock_client, classifier_config, session):
        mock_client.post.side_effect = [
            httpx.ConnectError("Connection refused"),
            _response(status_code=503),
        ]

        classifier = Classifier(config=classifier_config)
        outcome = classifier.invoke("texto", session)

        assert outcome.result is None
        assert outcome.transport == "unavailable"
        assert "Connection refused" in outcome.error
        assert "HTTP error 503" in outcome.error

    def test_error_body_and_bad_json(self, mock_client, classifier_config, session):
        mock_client.post.side_effect = [
            _response({"error": "LLM timeout"}),
            _response(json_error=ValueError("Expecting value")),
        ]

        result = Classifier(config=classifier_config).classify("texto", session)

        assert result is None

    def test_no_anon_key_skips_direct(self, mock_client, classifier_config, session):
        classifier_config["classifier"]["anon_key"] = None
        mock_client.post.side_effect = httpx.ReadTimeout("timed out")

        outcome = Classifier(config=classifier_config).invoke("texto", session)

        assert outcome.result is None
        assert mock_client.post.call_count == 1
        assert "No anon key" in outcome.error

    def test_invalid_url_is_unavailable(self, session):
        config = {"classifier": {"functions_url": "https://project.example.co:abc", "anon_key": "k"}}

        outcome = Classifier(config=config).invoke("comprar leite", session)

        assert outcome.result is None
        assert outcome.transport == "unavailable"
        assert "InvalidURL" in outcome.error

    def test_unconfigured_endpoint(self, mock_client, session):
        outcome = Classifier(config={"classifier": {}}).invoke("texto", session)

        assert outcome.result is None
        assert outcome.transport == "unavailable"
        mock_client.post.assert_not_called()
