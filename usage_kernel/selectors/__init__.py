"""Read-only selectors for the usage kernel."""

from usage_kernel.selectors.base import BaseSelector
from usage_kernel.selectors.usage_selector import ReportInputs, UsageSelector

__all__ = [
    "BaseSelector",
    "ReportInputs",
    "UsageSelector",
]
