"""
Usage Kernel

Shared foundation for the usage accounting engine:
- Immutable occupancy, asset and rate value objects
- Injectable clocks (the engine never reads wall time)
- Typed exceptions with machine-readable codes
- Structured JSON logging
- SQLAlchemy persistence adapter and read-only selectors
"""

__version__ = "0.1.0"
