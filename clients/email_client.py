"""
HTTP email gateway used for messages on the email channel.

Each POST carries compact JSON plus two headers: X-API-Key, and
X-Signature, the hex HMAC-SHA256 of the body bytes under the shared secret.
The gateway answers {"success": bool, "message": str}.
"""

import hashlib
import hmac
import json
import logging
from typing import Mapping

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """The gateway was unreachable, answered garbage, or refused the message."""


class EmailGatewayClient:
    """Delivers plain-text customer email."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: float = 10):
        """
        Args:
            gateway_url: Endpoint that accepts the POST
            api_key: Sent as X-API-Key
            hmac_secret: Signs every body
            timeout: Seconds before the request is abandoned

        Raises:
            ValueError: If any credential is empty
        """
        credentials = {"gateway_url": gateway_url, "api_key": api_key, "hmac_secret": hmac_secret}
        missing = [name for name, value in credentials.items() if not value]
        if missing:
            raise ValueError(f"Email gateway is missing {', '.join(missing)}")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> "EmailGatewayClient":
        """Build from the mapping returned by clients.vault_client.get_email_config()."""
        return cls(config["gateway_url"], config["api_key"], config["hmac_secret"])

    def sign(self, body: bytes) -> str:
        return hmac.new(self.hmac_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Send one plain-text email.

        Raises:
            EmailGatewayError: The message was not accepted
        """
        self._deliver({"email": to, "subject": subject, "body": body})
        logger.info(f"Email to {to} accepted by gateway: {subject}")

    def _deliver(self, payload: dict) -> None:
        encoded = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        try:
            response = requests.post(
                self.gateway_url,
                data=encoded,
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self.api_key,
                    "X-Signature": self.sign(encoded),
                },
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Could not reach email gateway at {self.gateway_url}: {e}")
            raise EmailGatewayError(f"Connection failed: {e}") from e

        self._raise_for_rejection(response)

    @staticmethod
    def _raise_for_rejection(response: requests.Response) -> None:
        try:
            answer = response.json()
        except ValueError:
            logger.error(f"Email gateway answered {response.status_code} with non-JSON body: {response.text[:200]}")
            raise EmailGatewayError("Invalid response from gateway")

        if response.ok and answer.get("success"):
            return

        reason = answer.get("message") or "no reason given"
        logger.error(f"Email gateway refused message ({response.status_code}): {reason}")
        raise EmailGatewayError(f"Gateway error: {reason}")
