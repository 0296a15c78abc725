"""
Nextcloud API Client - Main facade for all provisioning operations.

This module gives flat access to every endpoint while organizing the
implementation into domain-specific modules.
"""

from typing import Optional

from ..config import NextcloudConfig
from ..models import OCS, UserRequest
from ._http import HTTPClient
from .users import UsersAPI
from .groups import GroupsAPI


class NextcloudAPIClient:
    """
    Client for the Nextcloud OCS provisioning API.
    
    This is a facade that provides both:
    - Domain-specific sub-clients (client.users, client.groups)
    - Flat methods (client.list_users(), client.add_user(), etc.)
    
    Usage:
        with NextcloudAPIClient(config) as client:
            ocs = client.users.list(search="jane")
            ocs = client.add_user_simple("jane@example.com")
    
    Methods return the parsed envelope whatever the server decided; only
    transport, decode and validation problems raise.
    """
    
    def __init__(self, config: Optional[NextcloudConfig] = None):
        """
        Initialize the API client.
        
        Args:
            config: Optional configuration. Built from the environment if not provided.
        """
        self._http = HTTPClient(config)
        
        # Domain-specific API modules
        self.users = UsersAPI(self._http)
        self.groups = GroupsAPI(self._http)
    
    @property
    def config(self) -> NextcloudConfig:
        """Get the configuration."""
        return self._http.config
    
    # ========== User Methods ==========
    
    def list_users(self, search: Optional[str] = None) -> OCS:
        """Search for users, or list all of them."""
        return self.users.list(search)
    
    def get_user(self, user_id: str) -> OCS:
        """Get a user's profile."""
        return self.users.get(user_id)
    
    def get_user_groups(self, user_id: str) -> OCS:
        """Get a user's group memberships."""
        return self.users.get_groups(user_id)
    
    def get_user_subadmin_groups(self, user_id: str) -> OCS:
        """Get the groups a user administers."""
        return self.users.get_subadmin_groups(user_id)
    
    def add_user(self, user: UserRequest) -> OCS:
        """Create a user."""
        return self.users.add(user)
    
    def add_user_simple(self, email: str) -> OCS:
        """Create a user named after the local part of an email address."""
        return self.users.add_simple(email)
    
    def delete_user(self, user_id: str) -> OCS:
        """Delete a user."""
        return self.users.delete(user_id)
    
    def add_user_to_group(self, user_id: str, group_id: str) -> OCS:
        """Add a user to a group."""
        return self.users.add_to_group(user_id, group_id)
    
    def remove_user_from_group(self, user_id: str, group_id: str) -> OCS:
        """Remove a user from a group."""
        return self.users.remove_from_group(user_id, group_id)
    
    def resend_welcome_email(self, user_id: str) -> OCS:
        """Resend a user's welcome email."""
        return self.users.resend_welcome_email(user_id)
    
    def disable_user(self, user_id: str) -> OCS:
        """Disable a user account."""
        return self.users.disable(user_id)
    
    def enable_user(self, user_id: str) -> OCS:
        """Enable a user account."""
        return self.users.enable(user_id)
    
    # ========== Group Methods ==========
    
    def list_groups(self, search: Optional[str] = None) -> OCS:
        """Search for groups, or list all of them."""
        return self.groups.list(search)
    
    def add_group(self, group_id: str) -> OCS:
        """Create a group."""
        return self.groups.add(group_id)
    
    def delete_group(self, group_id: str) -> OCS:
        """Delete a group."""
        return self.groups.delete(group_id)
    
    def get_group_members(self, group_id: str) -> OCS:
        """List the members of a group."""
        return self.groups.members(group_id)
    
    # ========== Context Manager ==========
    
    def close(self) -> None:
        """Close the HTTP session."""
        self._http.close()
    
    def __enter__(self) -> "NextcloudAPIClient":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def get_client(config: Optional[NextcloudConfig] = None) -> NextcloudAPIClient:
    """
    Get an API client instance.
    
    Args:
        config: Optional configuration
    
    Returns:
        NextcloudAPIClient instance
    """
    return NextcloudAPIClient(config)
