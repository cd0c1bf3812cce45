"""
Inventory Adapters - Resource Lookups

This package contains read-only views of the resources being metered.
"""

from showback.adapters.inventory.static import StaticResource, load_resources

__all__ = ["StaticResource", "load_resources"]
