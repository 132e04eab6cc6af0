"""Kernel service infrastructure."""

from usage_kernel.services.base import BaseService

__all__ = ["BaseService"]
