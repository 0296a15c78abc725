"""
Users API - User provisioning operations.
"""

from typing import Optional
from urllib.parse import quote

from ..config import ROUTES
from ..exceptions import ValidationError
from ..models import OCS, UserRequest
from ..utils import is_valid_email
from ._http import HTTPClient


def user_path(user_id: str, action: str = "") -> str:
    """Build the path for a single user, optionally with a sub-resource."""
    path = f"{ROUTES['users']}/{quote(user_id, safe='')}"
    return f"{path}/{action}" if action else path


class UsersAPI:
    """
    API for user provisioning operations.
    
    Handles:
    - Listing, creating and deleting users
    - Group membership
    - Welcome email and account enable/disable
    
    Every method returns the OCS envelope as received. Check ``ocs.ok`` or
    ``ocs.meta.statuscode`` to learn whether the server accepted the call.
    """
    
    def __init__(self, http: HTTPClient):
        """
        Initialize Users API.
        
        Args:
            http: HTTP client instance
        """
        self._http = http
    
    def list(self, search: Optional[str] = None) -> OCS:
        """
        List user ids, optionally filtered.
        
        Args:
            search: Search string; all users are listed when omitted. An empty
                string is still sent as ``?search=``
        
        Returns:
            Envelope with ``data.users`` populated
        """
        params = {"search": search} if search is not None else None
        return self._http.call("users.list", "GET", ROUTES["users"], params=params)
    
    def get(self, user_id: str) -> OCS:
        """Get a user's profile and quota."""
        return self._http.call("users.get", "GET", user_path(user_id))
    
    def get_groups(self, user_id: str) -> OCS:
        """Get the groups a user belongs to (``data.groups``)."""
        return self._http.call("users.get_groups", "GET", user_path(user_id, "groups"))
    
    def get_subadmin_groups(self, user_id: str) -> OCS:
        """Get the groups a user administers (``data.elements``)."""
        return self._http.call(
            "users.get_subadmin_groups", "GET", user_path(user_id, "subadmins")
        )
    
    def add(self, user: UserRequest) -> OCS:
        """
        Create a user.
        
        Args:
            user: User fields; empty ones are not sent

        Raises:
            ValidationError: If ``user.user_id`` is empty (nothing is sent)
        """
        if not user.user_id:
            raise ValidationError("user id is required", "users.add")

        return self._http.call("users.add", "POST", ROUTES["users"], data=user.to_form())
    
    def add_simple(self, email: str) -> OCS:
        """
        Create a user from an email address alone.
        
        The user id is the part of the address before ``@``.
        
        Args:
            email: Email address of the new user
        
        Raises:
            ValidationError: If the address is malformed (nothing is sent)
        """
        if not is_valid_email(email):
            raise ValidationError(f"email '{email}' is not valid", "users.add_simple")
        
        user = UserRequest(user_id=email.split("@")[0], email=email)
        return self._http.call("users.add_simple", "POST", ROUTES["users"], data=user.to_form())
    
    def delete(self, user_id: str) -> OCS:
        """Delete a user."""
        return self._http.call("users.delete", "DELETE", user_path(user_id))
    
    def add_to_group(self, user_id: str, group_id: str) -> OCS:
        """Add a user to a group."""
        return self._http.call(
            "users.add_to_group",
            "POST",
            user_path(user_id, "groups"),
            data=[("groupid", group_id)],
        )
    
    def remove_from_group(self, user_id: str, group_id: str) -> OCS:
        """Remove a user from a group."""
        return self._http.call(
            "users.remove_from_group",
            "DELETE",
            user_path(user_id, "groups"),
            data=[("groupid", group_id)],
        )
    
    def resend_welcome_email(self, user_id: str) -> OCS:
        """Resend the welcome email with the password setup link."""
        return self._http.call("users.resend_welcome_email", "POST", user_path(user_id, "welcome"))
    
    def disable(self, user_id: str) -> OCS:
        """Disable a user account."""
        return self._http.call("users.disable", "PUT", user_path(user_id, "disable"))
    
    def enable(self, user_id: str) -> OCS:
        """Enable a user account."""
        return self._http.call("users.enable", "PUT", user_path(user_id, "enable"))
