"""
capshield.stdlib.access — ownership governance and capability roles.
"""

from __future__ import annotations

from .ownable import Ownership
from .roles import ALL_ROLES, Role, RoleRegistry, to_role

__all__ = ["Ownership", "Role", "ALL_ROLES", "RoleRegistry", "to_role"]
