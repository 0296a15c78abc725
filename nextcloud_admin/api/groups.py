"""
Groups API - Group management operations.
"""

from typing import Optional
from urllib.parse import quote

from ..config import ROUTES
from ..models import OCS
from ._http import HTTPClient


class GroupsAPI:
    """
    API for group management operations.
    
    Handles:
    - Group listing and search
    - Group creation and deletion
    - Member listing
    """
    
    def __init__(self, http: HTTPClient):
        """
        Initialize Groups API.
        
        Args:
            http: HTTP client instance
        """
        self._http = http
    
    def _path(self, group_id: str) -> str:
        return f"{ROUTES['groups']}/{quote(group_id, safe='')}"
    
    def list(self, search: Optional[str] = None) -> OCS:
        """List group ids (``data.groups``), filtered when ``search`` is given (even empty)."""
        params = {"search": search} if search is not None else None
        return self._http.call("groups.list", "GET", ROUTES["groups"], params=params)
    
    def add(self, group_id: str) -> OCS:
        """Create a group."""
        return self._http.call("groups.add", "POST", ROUTES["groups"], data=[("groupid", group_id)])
    
    def delete(self, group_id: str) -> OCS:
        """Delete a group."""
        return self._http.call("groups.delete", "DELETE", self._path(group_id))
    
    def members(self, group_id: str) -> OCS:
        """List the user ids in a group (``data.users``)."""
        return self._http.call("groups.members", "GET", self._path(group_id))
