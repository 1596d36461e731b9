"""
Test-auth command implementation.
Obtains a token and checks the ``/authorization`` resource.
"""

import logging
from typing import Any, Dict, Optional

from ..core.command_context import CommandContext

logger = logging.getLogger(__name__)


def run(config_path: Optional[str]) -> Dict[str, Any]:
    """Authenticate against PRX and return the authorization payload.

    Raises:
        AuthError: Token could not be obtained
        RequestFailed / ApiError: The authorization request failed
        InvalidAuthResponse: The payload is not an authorization resource
    """
    logger.info("Testing PRX API authentication...")
    with CommandContext(config_path, with_repository=False) as ctx:
        data = ctx.api_client.test_connection()
    logger.info("Authentication successful")
    return data


def summarize_authorization(data: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce an authorization payload to id plus the link relations it offers."""
    links = data.get('_links') if isinstance(data, dict) else None
    return {
        'id': data.get('id') if isinstance(data, dict) else None,
        'links': sorted(links.keys()) if isinstance(links, dict) else [],
    }
