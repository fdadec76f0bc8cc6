"""
Configuration loading.

Settings come from, in increasing order of precedence:

1. a YAML file (``dbcompare.yml`` by default)
2. environment variables (``DBCOMPARE_*``)
3. HashiCorp Vault, for the two connection strings (opt-in)
4. explicit overrides, usually command-line flags

Example ``dbcompare.yml``::

    connections:
      oldDB: "DRIVER={ODBC Driver 18 for SQL Server};SERVER=old;DATABASE=app;..."
      newDB: "DRIVER={ODBC Driver 18 for SQL Server};SERVER=new;DATABASE=app;..."
    exclude_tables:
      - "staging.%"
      - "%.tmp_%"
    log_dir: logs
    hash_mode: server

``connections`` may also be a list of ``{name, connectionString}`` entries
and ``exclude_tables`` a list of ``{name}`` entries.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from dbcompare.compare.fingerprint import DEFAULT_FETCH_SIZE, HASHERS
from dbcompare.compare.patterns import ExclusionPattern, compile_patterns
from dbcompare.errors import ConfigurationError
from dbcompare.utils.vault_client import DEFAULT_SECRET_PATH, VaultClient

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "dbcompare.yml"

OLD_DB = "oldDB"
NEW_DB = "newDB"

ENV_OVERRIDES = {
    "DBCOMPARE_OLD_DB": "old_db",
    "DBCOMPARE_NEW_DB": "new_db",
    "DBCOMPARE_LOG_DIR": "log_dir",
    "DBCOMPARE_STORAGE_DIR": "storage_dir",
    "DBCOMPARE_HASH_MODE": "hash_mode",
}


@dataclass(frozen=True)
class CompareSettings:
    """Validated settings for one comparison run."""

    old_db: str
    new_db: str
    exclude_tables: tuple[str, ...] = ()
    log_dir: Path = Path(".")
    storage_dir: Path | None = None
    hash_mode: str = "server"
    fetch_size: int = DEFAULT_FETCH_SIZE
    max_workers: int = 1
    exclusions: tuple[ExclusionPattern, ...] = field(default=(), repr=False, compare=False)

    def run_log_path(self, now: datetime | None = None) -> Path:
        """Return ``<log_dir>/compare_log_<YYYYmmdd_HHMMSS>.txt`` for a run starting ``now``."""
        now = now or datetime.now()
        return Path(self.log_dir) / f"compare_log_{now:%Y%m%d_%H%M%S}.txt"


def read_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML configuration file

    Raises:
        ConfigurationError: If the file is unreadable, malformed, or not a mapping
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data


def parse_connections(raw: Any) -> dict[str, str]:
    """Normalize the ``connections`` section to a name -> connection string mapping."""
    if raw is None:
        return {}

    if isinstance(raw, Mapping):
        return {str(k): v for k, v in raw.items()}

    if isinstance(raw, list):
        connections = {}
        for entry in raw:
            if not isinstance(entry, Mapping) or "name" not in entry:
                raise ConfigurationError(f"Malformed connection entry: {entry!r}")
            connections[str(entry["name"])] = entry.get("connectionString")
        return connections

    raise ConfigurationError("'connections' must be a mapping or a list of entries")


def parse_exclusions(raw: Any) -> tuple[str, ...]:
    """Normalize the ``exclude_tables`` section to a tuple of wildcard strings."""
    if raw is None:
        return ()

    if not isinstance(raw, list):
        raise ConfigurationError("'exclude_tables' must be a list")

    patterns = []
    for entry in raw:
        if isinstance(entry, Mapping):
            entry = entry.get("name")
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigurationError(f"Malformed exclusion entry: {entry!r}")
        patterns.append(entry.strip())
    return tuple(patterns)


def _default(value: Any, default: Any) -> Any:
    return default if value is None else value


def _positive_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{name}' must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigurationError(f"'{name}' must be >= 1, got {number}")
    return number


def load_settings(
    config_file: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    use_vault: bool = False,
    vault_secret_path: str = DEFAULT_SECRET_PATH,
    environ: Mapping[str, str] | None = None,
) -> CompareSettings:
    """
    Load and validate settings

    Args:
        config_file: YAML file; when None, ``dbcompare.yml`` is used if present
        overrides: Values that win over every other source (None values ignored).
            ``exclude_tables`` overrides are appended to the configured list.
        use_vault: Fetch ``oldDB`` / ``newDB`` from Vault
        vault_secret_path: Secret holding the connection strings
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Validated CompareSettings

    Raises:
        ConfigurationError: If anything required is missing or malformed
    """
    environ = os.environ if environ is None else environ
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    if config_file is None and Path(DEFAULT_CONFIG_FILE).is_file():
        config_file = DEFAULT_CONFIG_FILE

    data = read_config_file(config_file) if config_file else {}
    if config_file:
        logger.info(f"Loaded configuration from {config_file}")

    connections = parse_connections(data.get("connections"))
    values: dict[str, Any] = {
        "old_db": connections.get(OLD_DB),
        "new_db": connections.get(NEW_DB),
        "log_dir": data.get("log_dir"),
        "storage_dir": data.get("storage_dir"),
        "hash_mode": data.get("hash_mode"),
        "fetch_size": data.get("fetch_size"),
        "max_workers": data.get("max_workers"),
    }
    exclude_tables = parse_exclusions(data.get("exclude_tables"))

    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[key] = environ[env_name]

    if use_vault:
        try:
            secrets = VaultClient().get_connection_strings(vault_secret_path, (OLD_DB, NEW_DB))
        except Exception as e:
            raise ConfigurationError(f"Failed to fetch connection strings from Vault: {e}") from e
        values["old_db"] = secrets[OLD_DB]
        values["new_db"] = secrets[NEW_DB]

    extra_exclusions = overrides.pop("exclude_tables", ())
    exclude_tables += parse_exclusions(list(extra_exclusions))
    values.update(overrides)

    for key, name in (("old_db", OLD_DB), ("new_db", NEW_DB)):
        if not isinstance(values[key], str) or not values[key].strip():
            raise ConfigurationError(f"Missing connection string for '{name}'")

    hash_mode = str(values["hash_mode"] or "server").lower()
    if hash_mode not in HASHERS:
        raise ConfigurationError(
            f"Unknown hash_mode {hash_mode!r} (expected one of {sorted(HASHERS)})"
        )

    try:
        exclusions = tuple(compile_patterns(exclude_tables))
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    return CompareSettings(
        old_db=values["old_db"],
        new_db=values["new_db"],
        exclude_tables=exclude_tables,
        log_dir=Path(values["log_dir"] or "."),
        storage_dir=Path(values["storage_dir"]) if values["storage_dir"] else None,
        hash_mode=hash_mode,
        fetch_size=_positive_int("fetch_size", _default(values["fetch_size"], DEFAULT_FETCH_SIZE)),
        max_workers=_positive_int("max_workers", _default(values["max_workers"], 1)),
        exclusions=exclusions,
    )
