"""
Command context for shared initialization across CLI commands.

Builds the config, repository, HTTP session and API client once so every
command wires the sync pipeline the same way.
"""

from __future__ import annotations

import logging
from typing import Optional

from .api_client import ApiClient
from .auth import TokenProvider
from .config import ConfigManager
from .http_client import HTTPClient
from .paths import resolve_data_dir, resolve_data_file
from .repository import SQLiteContentRepository


logger = logging.getLogger(__name__)


class CommandContext:
    """Encapsulates shared initialization logic for CLI commands.

    Example:
        ```python
        with CommandContext(config_path) as ctx:
            data = ctx.api_client.test_connection()
        ```
    """

    def __init__(self, config_path: Optional[str] = None, with_repository: bool = True):
        """Initialize command context with config, HTTP session and API client.

        Args:
            config_path: Path to main config file (None = use default)
            with_repository: Also open the content repository (not needed for test-auth)

        Raises:
            ValueError: If configuration is invalid
        """
        self.config_manager = ConfigManager(config_path)

        if not self.config_manager.validate_config():
            raise ValueError("Invalid configuration. Run 'prx-sync status' for details.")

        self.config = self.config_manager.load_config()
        self.http = HTTPClient(timeout=self.config_manager.get_timeout())

        client_id, client_secret = self.config_manager.resolve_credentials()
        self.token_provider = TokenProvider(
            client_id,
            client_secret,
            id_base_url=self.config_manager.get_id_url(),
            http=self.http,
        )
        self.api_client = ApiClient(self.token_provider, self.config_manager.get_cms_url(), http=self.http)

        self.repository: Optional[SQLiteContentRepository] = None
        if with_repository:
            storage = self.config_manager.get_section('storage')
            self.repository = SQLiteContentRepository(
                str(resolve_data_file(storage['database'], ensure_parent=True)),
                str(resolve_data_dir(storage['media_dir'], ensure_exists=True)),
            )

        logger.debug(f"CommandContext initialized with config from {self.config_manager.config_path}")

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes the HTTP session."""
        self.close()
