"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Inventory (resource views)
- Persistence (storage)
- Formatting (output)
"""

__all__ = []
