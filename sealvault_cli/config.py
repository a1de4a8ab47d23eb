"""
SealVault CLI Configuration Management.

Handles loading, saving, and validating configuration from various sources:
- Default values
- Configuration file (TOML)
- ``.env.public`` and ``.env`` in the working directory
- Environment variables
"""

from __future__ import annotations

import json
import logging
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List

import tomli_w
from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "sealvault"
DEFAULT_CONFIG_FILE = "config.toml"

# Relative to the working directory, like the results of the upload scripts
DEFAULT_OUTPUT_DIR = Path("tmp") / "walrus"
DEFAULT_SECRET_KEY_PATH = Path("secret-key.txt")

# Loaded in order; later files override earlier ones
ENV_FILES = (".env.public", ".env")

ENV_PREFIX = "SEALVAULT_"

# Unprefixed names accepted for compatibility with existing .env files
LEGACY_ENV_NAMES = {
    "PRIVATE_KEY": ("wallet", "private_key"),
    "PACKAGE_ID": ("seal", "package_id"),
    "WALRUS_PUBLISHER_URL": ("walrus", "publisher_url"),
    "WALRUS_AGGREGATOR_URL": ("walrus", "aggregator_urls"),
}


@dataclass
class ValidationIssue:
    """Validation finding for configuration."""
    field: str
    message: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.field}: {self.message}"


@dataclass
class SuiConfig:
    """Sui network settings.

    ``network_mode`` selects a preset (full node, Walrus endpoints, Seal key
    servers, explorer). The override fields replace single preset values.
    """

    network_mode: str = "testnet"
    fullnode_url_override: Optional[str] = None
    explorer_url_override: Optional[str] = None
    gas_budget: int = 10_000_000

    @property
    def is_mainnet(self) -> bool:
        return self.network_mode.lower() in ("mainnet", "main", "production", "prod")

    @property
    def is_testnet(self) -> bool:
        return not self.is_mainnet


@dataclass
class SealConfig:
    """Seal threshold-encryption settings."""

    package_id: Optional[str] = None
    threshold: int = 2
    # Empty means "use the network preset"
    key_server_ids: list[str] = field(default_factory=list)
    verify_key_servers: bool = False
    session_ttl_min: int = 10
    private_data_module: str = "private_data"
    allowlist_module: str = "allowlist"


@dataclass
class WalrusConfig:
    """Walrus blob storage settings."""

    publisher_url: Optional[str] = None
    aggregator_urls: list[str] = field(default_factory=list)
    epochs: int = 1
    request_timeout: float = 10.0


@dataclass
class WalletConfig:
    """Signing key. Prefer keeping this in ``.env`` rather than the config file."""

    private_key: Optional[str] = None


@dataclass
class JSRuntimeConfig:
    """Configuration for the JavaScript runtime bridge."""

    runtime: Optional[str] = None  # Auto-detect if None
    services_path: Optional[Path] = None
    startup_timeout: float = 30.0
    request_timeout: float = 60.0
    max_retries: int = 3
    debug: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[Path] = None


@dataclass
class SealVaultConfig:
    """Main configuration container for SealVault CLI."""

    config_dir: Path = DEFAULT_CONFIG_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    secret_key_path: Path = DEFAULT_SECRET_KEY_PATH

    sui: SuiConfig = field(default_factory=SuiConfig)
    seal: SealConfig = field(default_factory=SealConfig)
    walrus: WalrusConfig = field(default_factory=WalrusConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    js_runtime: JSRuntimeConfig = field(default_factory=JSRuntimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTIONS = ("sui", "seal", "walrus", "wallet", "js_runtime", "logging")


def load_env_files(directory: Optional[Path] = None) -> dict[str, str]:
    """
    Load ``.env.public`` then ``.env`` into the process environment.

    Values from ``.env`` override ``.env.public``; variables already set in
    the process environment win over both.

    Returns:
        The merged file values that were found
    """
    directory = directory or Path.cwd()
    values: dict[str, str] = {}
    for name in ENV_FILES:
        path = directory / name
        if path.is_file():
            file_values = dotenv_values(path)
            values.update({k: v for k, v in file_values.items() if v is not None})
            logger.debug(f"Loaded {len(file_values)} variable(s) from {path}")

    for key, value in values.items():
        os.environ.setdefault(key, value)
    return values


def load_config(
    config_path: Optional[Path] = None,
    env_prefix: str = ENV_PREFIX,
    env_dir: Optional[Path] = None,
    load_dotenv_files: bool = True,
) -> SealVaultConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including values from .env files)
    2. Config file
    3. Default values

    Args:
        config_path: Path to config file (default: ~/.config/sealvault/config.toml)
        env_prefix: Prefix for environment variables
        env_dir: Directory holding .env files (default: working directory)
        load_dotenv_files: Whether to read .env.public and .env

    Returns:
        Loaded configuration
    """
    config = SealVaultConfig()

    if load_dotenv_files:
        load_env_files(env_dir)

    if config_path is None:
        env_config_dir = os.environ.get(f"{env_prefix}CONFIG_DIR")
        if env_config_dir:
            config_path = Path(env_config_dir) / DEFAULT_CONFIG_FILE
        else:
            config_path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE

    if config_path.exists():
        config = _load_from_file(config_path, config)

    config = _load_from_env(config, env_prefix)

    return config


def _load_from_file(path: Path, config: SealVaultConfig) -> SealVaultConfig:
    """Load configuration from a TOML file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return config

    for section in _SECTIONS:
        if section not in data:
            continue
        section_obj = getattr(config, section)
        for key, value in data[section].items():
            if not hasattr(section_obj, key):
                logger.warning(f"Ignoring unknown config key {section}.{key}")
                continue
            # TOML has no null; an empty string clears an optional value
            if value == "":
                value = None
            if key in ("services_path", "file") and value is not None:
                value = Path(value)
            setattr(section_obj, key, value)

    for key in ("config_dir", "output_dir", "secret_key_path"):
        if key in data:
            setattr(config, key, Path(data[key]))

    return config


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def _load_from_env(config: SealVaultConfig, prefix: str) -> SealVaultConfig:
    """Load configuration from environment variables."""

    # Unprefixed names first so the prefixed ones take precedence
    for name, (section, key) in LEGACY_ENV_NAMES.items():
        if env_val := os.environ.get(name):
            section_obj = getattr(config, section)
            if key == "aggregator_urls":
                section_obj.aggregator_urls = _split_list(env_val)
            else:
                setattr(section_obj, key, env_val)

    # Sui
    if env_val := os.environ.get(f"{prefix}NETWORK_MODE"):
        config.sui.network_mode = env_val
    if env_val := os.environ.get(f"{prefix}FULLNODE_URL"):
        config.sui.fullnode_url_override = env_val
    if env_val := os.environ.get(f"{prefix}GAS_BUDGET"):
        config.sui.gas_budget = int(env_val)

    # Seal
    if env_val := os.environ.get(f"{prefix}PACKAGE_ID"):
        config.seal.package_id = env_val
    if env_val := os.environ.get(f"{prefix}THRESHOLD"):
        config.seal.threshold = int(env_val)
    if env_val := os.environ.get(f"{prefix}KEY_SERVERS"):
        config.seal.key_server_ids = _split_list(env_val)
    if env_val := os.environ.get(f"{prefix}VERIFY_KEY_SERVERS"):
        config.seal.verify_key_servers = _as_bool(env_val)
    if env_val := os.environ.get(f"{prefix}SESSION_TTL_MIN"):
        config.seal.session_ttl_min = int(env_val)

    # Walrus
    if env_val := os.environ.get(f"{prefix}WALRUS_PUBLISHER_URL"):
        config.walrus.publisher_url = env_val
    if env_val := os.environ.get(f"{prefix}WALRUS_AGGREGATOR_URL"):
        config.walrus.aggregator_urls = _split_list(env_val)
    if env_val := os.environ.get(f"{prefix}EPOCHS"):
        config.walrus.epochs = int(env_val)

    # Wallet
    if env_val := os.environ.get(f"{prefix}PRIVATE_KEY"):
        config.wallet.private_key = env_val

    # Logging
    if env_val := os.environ.get(f"{prefix}LOG_LEVEL"):
        config.logging.level = env_val.upper()

    # JS Runtime
    if env_val := os.environ.get(f"{prefix}JS_RUNTIME"):
        config.js_runtime.runtime = env_val
    if env_val := os.environ.get(f"{prefix}JS_SERVICES_PATH"):
        config.js_runtime.services_path = Path(env_val)
    if env_val := os.environ.get(f"{prefix}JS_DEBUG"):
        config.js_runtime.debug = _as_bool(env_val)

    # Paths
    if env_val := os.environ.get(f"{prefix}CONFIG_DIR"):
        config.config_dir = Path(env_val)
    if env_val := os.environ.get(f"{prefix}OUTPUT_DIR"):
        config.output_dir = Path(env_val)
    if env_val := os.environ.get(f"{prefix}SECRET_KEY_PATH"):
        config.secret_key_path = Path(env_val)

    return config


def _toml_ready(values: dict[str, Any]) -> dict[str, Any]:
    """Drop None values and stringify paths for TOML output."""
    result: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, Path):
            value = str(value)
        result[key] = value
    return result


def save_config(config: SealVaultConfig, path: Optional[Path] = None) -> None:
    """
    Save configuration to a TOML file.

    The private key is never written; keep it in ``.env``.

    Args:
        config: Configuration to save
        path: Path to save to (default: config.config_dir / config.toml)
    """
    if path is None:
        path = config.config_dir / DEFAULT_CONFIG_FILE

    path.parent.mkdir(parents=True, exist_ok=True)

    document: dict[str, Any] = {
        "config_dir": str(config.config_dir),
        "output_dir": str(config.output_dir),
        "secret_key_path": str(config.secret_key_path),
    }
    for section in _SECTIONS:
        if section == "wallet":
            continue
        document[section] = _toml_ready(dict(vars(getattr(config, section))))

    with open(path, "wb") as f:
        tomli_w.dump(document, f)


def set_config_value(section: str, key: str, value: Any, config_path: Optional[Path] = None) -> None:
    """
    Set a single configuration value and persist to file.

    Args:
        section: Configuration section (e.g., 'seal', 'walrus', 'sui')
        key: Configuration key within the section
        value: Value to set (converted to the type of the current value)
        config_path: Path to config file (default: DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE)
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE

    config = load_config(config_path, load_dotenv_files=False)

    if section not in _SECTIONS:
        raise ValueError(f"Unknown configuration section: {section}")
    if section == "wallet":
        raise ValueError("wallet settings are read from the environment, not the config file")
    section_obj = getattr(config, section)

    if not hasattr(section_obj, key):
        raise ValueError(f"Unknown configuration key: {section}.{key}")

    current_value = getattr(section_obj, key)

    if isinstance(current_value, bool):
        converted_value: Any = _as_bool(str(value))
    elif isinstance(current_value, int):
        converted_value = int(value)
    elif isinstance(current_value, float):
        converted_value = float(value)
    elif isinstance(current_value, list):
        converted_value = _split_list(str(value))
    elif isinstance(current_value, Path):
        converted_value = Path(value)
    else:
        converted_value = value or None

    setattr(section_obj, key, converted_value)
    save_config(config, config_path)


def _validate_url(url: str) -> bool:
    """Validate a URL format."""
    url_pattern = r"^https?://[^\s/$.?#].[^\s]*$"
    return bool(re.match(url_pattern, url))


def validate_config(config: Optional[SealVaultConfig] = None) -> List[ValidationIssue]:
    """
    Validate configuration and return list of issues.

    Args:
        config: Configuration to validate (default: loaded from file)

    Returns:
        List of validation issues (empty if valid)
    """
    # Imported here to keep config importable without the service layer
    from sealvault_cli.identity.binder import is_valid_sui_address
    from sealvault_cli.services.network import resolve_network
    from sealvault_cli.services.wallet import load_wallet
    from sealvault_cli.cli.error_handler import ConfigurationError

    if config is None:
        config = load_config()

    issues: List[ValidationIssue] = []

    if not config.wallet.private_key:
        issues.append(ValidationIssue(
            field="wallet.private_key",
            message="PRIVATE_KEY environment variable missing",
            severity="error",
        ))
    else:
        try:
            load_wallet(config.wallet.private_key)
        except ConfigurationError as e:
            issues.append(ValidationIssue(
                field="wallet.private_key",
                message=e.message,
                severity="error",
            ))

    if not config.seal.package_id:
        issues.append(ValidationIssue(
            field="seal.package_id",
            message="PACKAGE_ID environment variable missing",
            severity="error",
        ))
    elif not is_valid_sui_address(config.seal.package_id):
        issues.append(ValidationIssue(
            field="seal.package_id",
            message=f"Not a Sui object id: {config.seal.package_id}",
            severity="error",
        ))

    try:
        network = resolve_network(config)
    except ValueError as e:
        issues.append(ValidationIssue(field="sui.network_mode", message=str(e), severity="error"))
        return issues

    if not network.key_server_ids:
        issues.append(ValidationIssue(
            field="seal.key_server_ids",
            message=f"No Seal key servers configured for {network.mode.value}",
            severity="error",
        ))
    else:
        for server_id in network.key_server_ids:
            if not is_valid_sui_address(server_id):
                issues.append(ValidationIssue(
                    field="seal.key_server_ids",
                    message=f"Not a Sui object id: {server_id}",
                    severity="error",
                ))

    if config.seal.threshold < 1:
        issues.append(ValidationIssue(
            field="seal.threshold",
            message="Threshold must be at least 1",
            severity="error",
        ))
    elif network.key_server_ids and config.seal.threshold > len(network.key_server_ids):
        issues.append(ValidationIssue(
            field="seal.threshold",
            message=(
                f"Threshold {config.seal.threshold} exceeds the "
                f"{len(network.key_server_ids)} configured key server(s)"
            ),
            severity="error",
        ))

    if config.seal.session_ttl_min < 1:
        issues.append(ValidationIssue(
            field="seal.session_ttl_min",
            message="Session key TTL must be at least one minute",
            severity="error",
        ))

    if config.walrus.epochs < 1:
        issues.append(ValidationIssue(
            field="walrus.epochs",
            message="Blobs must be stored for at least one epoch",
            severity="error",
        ))

    if not network.walrus_publisher_url:
        issues.append(ValidationIssue(
            field="walrus.publisher_url",
            message=f"No Walrus publisher for {network.mode.value}; uploads will fail",
            severity="warning",
        ))

    for name, url in (
        ("sui.fullnode_url_override", network.fullnode_url),
        ("walrus.publisher_url", network.walrus_publisher_url),
        *(("walrus.aggregator_urls", u) for u in network.walrus_aggregator_urls),
    ):
        if url and not _validate_url(url):
            issues.append(ValidationIssue(
                field=name,
                message=f"Invalid URL format: {url}",
                severity="error",
            ))

    if config.output_dir.exists() and not os.access(config.output_dir, os.W_OK):
        issues.append(ValidationIssue(
            field="output_dir",
            message=f"Output directory is not writable: {config.output_dir}",
            severity="error",
        ))

    return issues


def _config_to_dict(config: SealVaultConfig, mask_secrets: bool = True) -> dict[str, Any]:
    """
    Convert configuration to dictionary.

    Args:
        config: Configuration to convert
        mask_secrets: If True, mask the private key

    Returns:
        Dictionary representation of config
    """
    def mask_value(key: str, value: Any) -> Any:
        if isinstance(value, Path):
            return str(value)
        if not mask_secrets:
            return value
        sensitive_keys = {"private_key", "password", "secret", "token"}
        if value and any(sk in key.lower() for sk in sensitive_keys) and key != "secret_key_path":
            if isinstance(value, str) and len(value) > 12:
                return value[:12] + "****"
            return "****"
        return value

    result: dict[str, Any] = {
        "config_dir": str(config.config_dir),
        "output_dir": str(config.output_dir),
        "secret_key_path": str(config.secret_key_path),
    }
    for section in _SECTIONS:
        values = vars(getattr(config, section))
        result[section] = {key: mask_value(key, value) for key, value in values.items()}
    result["sui"]["is_mainnet"] = config.sui.is_mainnet
    return result



def export_config_json(config: SealVaultConfig, mask_secrets: bool = True) -> str:
    """Export configuration as JSON string."""
    config_dict = _config_to_dict(config, mask_secrets)
    return json.dumps(config_dict, indent=2)
