"""
Nextcloud Admin - client for the Nextcloud OCS provisioning API.

Usage:
    from nextcloud_admin import NextcloudAPIClient, NextcloudConfig

    config = NextcloudConfig("admin", "secret", "https://cloud.example.com")
    with NextcloudAPIClient(config) as client:
        ocs = client.list_users(search="jane")
        print(ocs.data.users)
"""

__version__ = "1.0.0"

from .config import NextcloudConfig, get_config
from .exceptions import NextcloudError, TransportError, DecodeError, ValidationError
from .models import OCS, Meta, Data, Quota, UserRequest
from .api import NextcloudAPIClient, get_client

__all__ = [
    "__version__",
    "NextcloudConfig",
    "get_config",
    "NextcloudError",
    "TransportError",
    "DecodeError",
    "ValidationError",
    "OCS",
    "Meta",
    "Data",
    "Quota",
    "UserRequest",
    "NextcloudAPIClient",
    "get_client",
]
