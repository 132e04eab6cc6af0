"""
Module: usage_kernel.models.project
Responsibility: ORM persistence for project and test-project display names.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from usage_kernel.db.base import Base


class ProjectModel(Base):
    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class TestProjectModel(Base):
    __tablename__ = "test_projects"
    __test__ = False

    name: Mapped[str] = mapped_column(String(255), nullable=False)
