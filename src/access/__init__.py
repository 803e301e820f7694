"""
Access Control Module
=====================

Bounded Context for identity, permissions and custom roles.

Responsibilities:
- Resolve whether an account holds a namespaced permission key
- Manage the permission catalog and category-homogeneous custom roles
- Manage company and admin sub-accounts and their role assignments
- Resolve bearer tokens into accounts with their effective permissions
"""

__version__ = "1.0.0"
