"""Tests for EmailGatewayClient against a mocked gateway."""

import hashlib
import hmac
import json

import pytest
import responses

from clients.email_client import EmailGatewayClient, EmailGatewayError

GATEWAY_URL = "https://gateway.example.com/send"
SUBJECT = "Message from Deseret Peak Window Cleaning"


@pytest.fixture
def gateway():
    return EmailGatewayClient(GATEWAY_URL, "test-api-key", "test-hmac-secret")


@pytest.fixture
def accepting():
    with responses.RequestsMock() as mock:
        mock.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)
        yield mock


@pytest.mark.parametrize("blank", ["gateway_url", "api_key", "hmac_secret"])
def test_blank_credentials_are_refused(blank):
    credentials = {"gateway_url": GATEWAY_URL, "api_key": "k", "hmac_secret": "s"}
    credentials[blank] = ""

    with pytest.raises(ValueError, match=blank):
        EmailGatewayClient(**credentials)


def test_built_from_vault_mapping():
    gateway = EmailGatewayClient.from_config({"gateway_url": GATEWAY_URL, "api_key": "k", "hmac_secret": "s"})

    assert (gateway.gateway_url, gateway.api_key, gateway.hmac_secret) == (GATEWAY_URL, "k", "s")


class TestAcceptedMessages:

    def test_posts_the_message_fields(self, gateway, accepting):
        gateway.send_email("jane@example.com", SUBJECT, "See you Saturday")

        assert json.loads(accepting.calls[0].request.body) == {
            "email": "jane@example.com",
            "subject": SUBJECT,
            "body": "See you Saturday",
        }

    def test_signature_covers_the_body_bytes(self, gateway, accepting):
        gateway.send_email("jane@example.com", SUBJECT, "Body")

        sent = accepting.calls[0].request
        assert sent.headers["X-API-Key"] == "test-api-key"
        assert sent.headers["X-Signature"] == hmac.new(b"test-hmac-secret", sent.body, hashlib.sha256).hexdigest()


class TestRejectedMessages:

    @pytest.mark.parametrize("status, answer, reason", [
        (500, {"success": False, "message": "Internal error"}, "Internal error"),
        (200, {"success": False, "message": "Invalid email"}, "Invalid email"),
        (200, {"success": False}, "no reason given"),
    ])
    @responses.activate
    def test_refusal_carries_the_reason(self, gateway, status, answer, reason):
        responses.add(responses.POST, GATEWAY_URL, json=answer, status=status)

        with pytest.raises(EmailGatewayError, match=reason):
            gateway.send_email("jane@example.com", SUBJECT, "Body")

    @responses.activate
    def test_unreachable_gateway(self, gateway):
        responses.add(responses.POST, GATEWAY_URL, body=ConnectionError("Network unreachable"))

        with pytest.raises(EmailGatewayError, match="Connection failed"):
            gateway.send_email("jane@example.com", SUBJECT, "Body")

    @responses.activate
    def test_non_json_answer(self, gateway):
        responses.add(responses.POST, GATEWAY_URL, body="<html>bad gateway</html>", status=200)

        with pytest.raises(EmailGatewayError, match="Invalid response"):
            gateway.send_email("jane@example.com", SUBJECT, "Body")
