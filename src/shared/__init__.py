"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (access, programs,
sla, audit, administration).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure (logging, middleware)

DO NOT add business logic from a bounded context to the shared kernel.
"""

__version__ = "1.0.0"
