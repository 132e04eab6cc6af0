"""ORM models for the usage kernel."""

from usage_kernel.models.asset import AssetCategoryRateModel, AssetModel
from usage_kernel.models.project import ProjectModel, TestProjectModel
from usage_kernel.models.usage_log import UsageLogModel

__all__ = [
    "AssetModel",
    "AssetCategoryRateModel",
    "ProjectModel",
    "TestProjectModel",
    "UsageLogModel",
]
