"""
Administration Module
=====================

Bounded Context for platform configuration.

Responsibilities:
- Load platform defaults from YAML with hot-reload
- Persist admin overrides as system settings
- Hand out a cached, immutable configuration snapshot to other modules
- Admin settings and audit log API
"""

__version__ = "1.0.0"
