"""
Project Configuration Domain Model

Pure Python dataclass representing one tenant document store.
No infrastructure dependencies, domain layer only.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProjectSettings:
    """Immutable configuration for a single tenant store.

    Attributes:
        alias: Project identifier used by ProjectConfig (e.g. "project_one")
        url: SQLAlchemy URL of the backing store
        display_name: Human readable name (e.g. "Project One")
        read_only: If True, every write is refused with PermissionDenied
    """

    alias: str
    url: str
    display_name: str = ""
    read_only: bool = False


PROJECT_ONE = "project_one"
PROJECT_TWO = "project_two"
DEFAULT_PROJECT = PROJECT_ONE
