"""Project module - routing files to per-project analysis sessions.

This module provides:
- ConfigLocator: nearest-ancestor tsconfig.json lookup
- ArtifactRegistry: parsed artifacts shared by every session
- SessionHost: per-project file tracking and content versions
- Session: one analysis session per configuration root
- Workspace: the facade callers construct
"""

from tsplane.project.host import ProjectVersion, SessionHost, TrackedFile, content_version
from tsplane.project.locator import ConfigLocator
from tsplane.project.registry import ArtifactRegistry, RegistryStats
from tsplane.project.session import RefreshResult, Session
from tsplane.project.workspace import Workspace

__all__ = [
    "ArtifactRegistry",
    "ConfigLocator",
    "ProjectVersion",
    "RefreshResult",
    "RegistryStats",
    "Session",
    "SessionHost",
    "TrackedFile",
    "Workspace",
    "content_version",
]
