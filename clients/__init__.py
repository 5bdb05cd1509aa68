"""Adapters for the services the console talks to: Vault, PostgreSQL, the email gateway."""

from clients.email_client import EmailGatewayClient, EmailGatewayError
from clients.postgres_client import PostgresClient
from clients.vault_client import VaultClient, VaultError, get_database_url, get_email_config
