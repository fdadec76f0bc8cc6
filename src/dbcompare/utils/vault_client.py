"""
HashiCorp Vault client for fetching connection strings

Connection strings for the old and new databases carry credentials, so they
can be kept in a Vault KV v2 secret instead of the YAML configuration:

    vault kv put secret/database/dbcompare oldDB="DRIVER=..." newDB="DRIVER=..."
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_SECRET_PATH = "secret/database/dbcompare"

_SAFE_PATH = re.compile(r"^[a-zA-Z0-9/_-]+$")


class VaultClient:
    """
    HashiCorp Vault client using the KV v2 secrets engine
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        timeout: float = 10.0,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: VAULT_ADDR env var)
            vault_token: Vault authentication token (default: VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")
        self.headers = {"X-Vault-Token": self.vault_token}
        if namespace:
            self.headers["X-Vault-Namespace"] = namespace

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch secret data from the KV v2 engine

        Args:
            secret_path: Path to secret (e.g., "secret/database/dbcompare")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or the secret is missing/empty
            requests.RequestException: If the Vault request fails
        """
        if not secret_path or ".." in secret_path or not _SAFE_PATH.match(secret_path):
            raise ValueError(f"Invalid secret_path: {secret_path!r}")

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            mount, _, rest = secret_path.partition("/")
            secret_path = f"{mount}/data/{rest}" if rest else f"{mount}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"
        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_connection_strings(
        self,
        secret_path: str = DEFAULT_SECRET_PATH,
        names: tuple[str, ...] = ("oldDB", "newDB"),
    ) -> dict[str, str]:
        """
        Fetch named connection strings from a secret

        Args:
            secret_path: Path to the secret holding the connection strings
            names: Keys that must be present

        Returns:
            Mapping of name to connection string

        Raises:
            ValueError: If any requested key is missing
        """
        secret_data = self.get_secret(secret_path)

        missing = [name for name in names if not secret_data.get(name)]
        if missing:
            raise ValueError(
                f"Missing connection string(s) in {secret_path}: {', '.join(missing)}"
            )

        logger.info(f"Fetched {len(names)} connection string(s) from Vault")
        return {name: secret_data[name] for name in names}
