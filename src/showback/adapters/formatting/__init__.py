"""
Formatting Adapters - Report Formatting

This package contains text formatting adapters for show-back reports.
"""

from showback.adapters.formatting.formatter import (
    format_money,
    pool_summary,
    report,
)

__all__ = [
    "format_money",
    "pool_summary",
    "report",
]
