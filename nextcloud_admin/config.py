"""
Configuration for the Nextcloud Admin client.

The configuration is an immutable (username, password, server URL) triple.
Nothing is persisted: the CLI and embedding applications supply the values
directly or through environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

# OCS API root and endpoint routes below it
API_ROOT = "/ocs/v1.php"
ROUTES = {
    "users": f"{API_ROOT}/cloud/users",
    "groups": f"{API_ROOT}/cloud/groups",
}

# Total request timeout in seconds
REQUEST_TIMEOUT = 10

ENV_SERVER_URL = "NEXTCLOUD_URL"
ENV_USERNAME = "NEXTCLOUD_USERNAME"
ENV_PASSWORD = "NEXTCLOUD_PASSWORD"


@dataclass(frozen=True)
class NextcloudConfig:
    """Credentials and server location for the OCS API."""
    
    username: str
    password: str
    server_url: str
    
    def __post_init__(self):
        object.__setattr__(self, "server_url", (self.server_url or "").rstrip("/"))
    
    def is_configured(self) -> bool:
        """Check that every field is set."""
        return bool(self.username and self.password and self.server_url)
    
    def __repr__(self) -> str:
        return (
            f"NextcloudConfig(username={self.username!r}, password='***', "
            f"server_url={self.server_url!r})"
        )


def get_config(
    username: Optional[str] = None,
    password: Optional[str] = None,
    server_url: Optional[str] = None,
) -> NextcloudConfig:
    """
    Build a configuration, filling missing values from the environment.
    
    Args:
        username: Admin username (default: $NEXTCLOUD_USERNAME)
        password: Admin password or app password (default: $NEXTCLOUD_PASSWORD)
        server_url: Server base URL (default: $NEXTCLOUD_URL)
    
    Returns:
        NextcloudConfig instance
    """
    return NextcloudConfig(
        username=username or os.environ.get(ENV_USERNAME, ""),
        password=password or os.environ.get(ENV_PASSWORD, ""),
        server_url=server_url or os.environ.get(ENV_SERVER_URL, ""),
    )
