"""Configuration management for the YAML config file."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .auth import cms_url_for, id_url_for
from .paths import get_data_dir

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = get_data_dir() / "config"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"

VALID_ENVIRONMENTS = ("staging", "production")
DEFAULT_ACCOUNT_ID = 197472

_DEFAULT_CREDENTIALS_SECRET = (
    "# PRX OAuth2 client credentials. Environment variables take over when these are blank.\n"
    "PRX_CLIENT_ID=\n"
    "PRX_CLIENT_SECRET=\n"
)

_DEFAULT_CONFIG_TEMPLATE = """# Auto-generated default configuration for prx-sync
prx:
  environment: "production"
  account_id: 197472
  client_id_env: "PRX_CLIENT_ID"
  client_secret_env: "PRX_CLIENT_SECRET"
  credentials_file: "secrets/prx_credentials.env"
  timeout: 30

sync:
  per_page: 10
  stories_per_run: 50
  interval_hours: 3
  max_errors: 100

storage:
  database: "content.db"
  media_dir: "media"
"""


def _write_template(path: Path, content: str) -> None:
    """Write templated YAML content to disk with a trailing newline."""
    path.write_text(content.strip() + "\n", encoding="utf-8")


def _load_env_file(path: Path) -> Dict[str, str]:
    """Parse KEY=VALUE lines, ignoring blanks and comments."""
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, val = line.split('=', 1)
            val = val.strip().strip('"').strip("'")
            if val:
                values[key.strip()] = val
    return values


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class ConfigManager:
    """Manages loading and validation of the YAML configuration file."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the manager and ensure a baseline config file exists."""
        path = Path(config_path or DEFAULT_CONFIG_PATH).expanduser()
        if not path.is_absolute():
            path = path.resolve()
        self.config_path = str(path)
        self.base_dir = str(path.parent)
        self._config = None
        self._ensure_default_config()

    def load_config(self) -> Dict[str, Any]:
        """Load the main configuration file."""
        if self._config is None:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self._config = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {self.config_path}")
            except Exception as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                raise

        return self._config

    def _ensure_default_config(self) -> None:
        """Create the default config and secrets placeholder if they are missing."""
        config_file = Path(self.config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        if not config_file.exists():
            _write_template(config_file, _DEFAULT_CONFIG_TEMPLATE)
            logger.info("Created default config.yaml at %s", config_file)

        secrets_dir = Path(self.base_dir) / "secrets"
        if not secrets_dir.exists():
            secrets_dir.mkdir(parents=True, exist_ok=True)
            target = secrets_dir / "prx_credentials.env"
            try:
                target.write_text(_DEFAULT_CREDENTIALS_SECRET, encoding="utf-8")
            except OSError as exc:
                logger.warning("Failed to create placeholder secret %s: %s", target, exc)

    def get_section(self, name: str) -> Dict[str, Any]:
        """Return a top-level section as a dict (empty when absent)."""
        section = self.load_config().get(name)
        return section if isinstance(section, dict) else {}

    def get_environment(self) -> str:
        env = str(self.get_section('prx').get('environment') or 'production').lower()
        return env if env in VALID_ENVIRONMENTS else 'production'

    def get_id_url(self) -> str:
        return id_url_for(self.get_environment())

    def get_cms_url(self) -> str:
        return cms_url_for(self.get_environment())

    def get_account_id(self) -> int:
        return int(self.get_section('prx').get('account_id') or DEFAULT_ACCOUNT_ID)

    def get_timeout(self) -> int:
        return int(self.get_section('prx').get('timeout') or 30)

    def get_sync_setting(self, key: str, default: Any = None) -> Any:
        value = self.get_section('sync').get(key)
        return default if value is None else value

    def resolve_credentials(self) -> Tuple[str, str]:
        """Resolve the PRX client id/secret from the credentials file or environment.

        The credentials file (relative paths resolve against the config
        directory) wins; environment variables fill in what it leaves blank.
        Missing values come back as empty strings.
        """
        prx_cfg = self.get_section('prx')
        id_env = prx_cfg.get('client_id_env') or 'PRX_CLIENT_ID'
        secret_env = prx_cfg.get('client_secret_env') or 'PRX_CLIENT_SECRET'

        file_values: Dict[str, str] = {}
        creds_file = str(prx_cfg.get('credentials_file') or '').strip()
        if creds_file:
            creds_path = Path(creds_file).expanduser()
            if not creds_path.is_absolute():
                creds_path = Path(self.base_dir) / creds_path
            try:
                file_values = _load_env_file(creds_path)
            except OSError as exc:
                logger.warning("Could not read credentials file %s: %s", creds_path, exc)

        client_id = file_values.get(id_env) or os.environ.get(id_env, '')
        client_secret = file_values.get(secret_env) or os.environ.get(secret_env, '')
        return client_id, client_secret

    def validate_config(self) -> bool:
        """Validate the configuration file."""
        try:
            config = self.load_config()

            for section in ('prx', 'storage'):
                if not isinstance(config.get(section), dict):
                    logger.error(f"Missing required section '{section}' in main config")
                    return False

            prx_cfg = config['prx']
            env = prx_cfg.get('environment', 'production')
            if str(env).lower() not in VALID_ENVIRONMENTS:
                logger.error(f"prx.environment must be one of {VALID_ENVIRONMENTS}, got '{env}'")
                return False
            if 'account_id' in prx_cfg and not _is_positive_int(prx_cfg.get('account_id')):
                logger.error("prx.account_id must be a positive integer")
                return False

            sync_cfg = config.get('sync') or {}
            if not isinstance(sync_cfg, dict):
                logger.error("'sync' must be a mapping")
                return False
            for key in ('per_page', 'stories_per_run', 'max_errors'):
                if key in sync_cfg and not _is_positive_int(sync_cfg[key]):
                    logger.error(f"sync.{key} must be a positive integer")
                    return False
            interval = sync_cfg.get('interval_hours')
            if interval is not None and (
                isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0
            ):
                logger.error("sync.interval_hours must be a positive number")
                return False

            storage_cfg = config['storage']
            for key in ('database', 'media_dir'):
                value = storage_cfg.get(key)
                if not isinstance(value, str) or not value.strip():
                    logger.error(f"storage.{key} must be a non-empty string")
                    return False

            logger.info("Configuration validation passed")
            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_ACCOUNT_ID",
]
