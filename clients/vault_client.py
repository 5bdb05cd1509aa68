"""
Secrets for the console, read from HashiCorp Vault.

The process logs in once with AppRole credentials taken from the
environment and refuses to start if any are missing. Secrets live in KV v2
under 'window_console/'; each secret path is fetched once per process.
"""

import logging
import os
from typing import Dict

import hvac
from hvac.exceptions import Forbidden, InvalidPath, InvalidRequest, Unauthorized

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "window_console"

_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, Dict[str, str]] = {}


class VaultError(Exception):
    """Secrets could not be loaded. The console cannot run without them."""


class VaultClient:
    """AppRole-authenticated reader for the console's KV secrets."""

    def __init__(self, vault_addr: str | None = None, vault_namespace: str | None = None):
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        if not self.vault_addr:
            raise VaultError("Set VAULT_ADDR to the Vault server URL")

        role_id, secret_id = os.getenv("VAULT_ROLE_ID"), os.getenv("VAULT_SECRET_ID")
        if not (role_id and secret_id):
            raise VaultError("Both VAULT_ROLE_ID and VAULT_SECRET_ID must be set")

        options = {"url": self.vault_addr}
        if self.vault_namespace:
            options["namespace"] = self.vault_namespace
        self.client = hvac.Client(**options)
        self._login(role_id, secret_id)

        logger.info(f"Authenticated to Vault at {self.vault_addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            login = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except (Unauthorized, Forbidden, InvalidRequest) as e:
            logger.error(f"Vault rejected AppRole login: {e}")
            raise VaultError(f"AppRole authentication failed: {e}") from e

        self.client.token = login["auth"]["client_token"]
        if not self.client.is_authenticated():
            raise VaultError("Vault token did not authenticate after AppRole login")

    def read(self, path: str) -> Dict[str, str]:
        """
        Every field of the secret at window_console/<path>.

        Raises:
            VaultError: The path does not exist or this role may not read it
        """
        full_path = f"{_SECRET_PREFIX}/{path}"
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath as e:
            logger.error(f"No secret at {full_path}")
            raise VaultError(f"Secret '{full_path}' not found in Vault") from e
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Role may not read {full_path}: {e}")
            raise VaultError(f"Access denied to secret '{full_path}': {e}") from e

        return response["data"]["data"]

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of a secret, e.g. get_secret('database', 'url').

        Raises:
            VaultError: See read()
            KeyError: The secret has no such field
        """
        data = self.read(path)
        if field not in data:
            raise KeyError(f"Field '{field}' not found in '{_SECRET_PREFIX}/{path}' (has: {', '.join(data)})")
        return data[field]


def _client() -> VaultClient:
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


def _secret(path: str, *fields: str) -> Dict[str, str]:
    if path not in _secret_cache:
        _secret_cache[path] = _client().read(path)
    data = _secret_cache[path]
    missing = [field for field in fields if field not in data]
    if missing:
        raise KeyError(f"Field(s) {', '.join(missing)} not found in '{_SECRET_PREFIX}/{path}'")
    return {field: data[field] for field in fields}


def get_database_url() -> str:
    """PostgreSQL URL for the entity store."""
    return _secret("database", "url")["url"]


def get_email_config() -> Dict[str, str]:
    """gateway_url, api_key and hmac_secret for EmailGatewayClient.from_config()."""
    return _secret("email", "gateway_url", "api_key", "hmac_secret")
