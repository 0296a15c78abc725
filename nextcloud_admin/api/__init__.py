"""
Nextcloud OCS API Client Package.

Structure:
    - client.py: Main NextcloudAPIClient facade
    - _http.py: Base HTTP client with session, auth and envelope decoding
    - users.py: User provisioning
    - groups.py: Group management

Usage:
    from nextcloud_admin.api import NextcloudAPIClient

    client = NextcloudAPIClient(config)

    # Domain-specific
    ocs = client.users.list(search="jane")

    # Flat methods
    ocs = client.add_user_simple("jane@example.com")
"""

from .client import NextcloudAPIClient, get_client
from ._http import HTTPClient
from .users import UsersAPI
from .groups import GroupsAPI

__all__ = [
    # Main client
    "NextcloudAPIClient",
    "get_client",
    # HTTP layer
    "HTTPClient",
    # Domain APIs
    "UsersAPI",
    "GroupsAPI",
]
