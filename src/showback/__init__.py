"""
Showback - Resource Consumption Rating Engine

Meters infrastructure resource consumption over time, groups it into
billing pools with a strict OPEN → PROCESSING → CLOSED lifecycle and
computes a charge per consumption event against configurable rate plans.
"""

__version__ = "1.0.0"
