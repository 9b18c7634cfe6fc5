"""
Shared services for the Haunted Places API.
"""

from .admin_auth import require_admin

__all__ = [
    "require_admin",
]
