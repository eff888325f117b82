from .user import User
from .organization import Organization
from .project import Project

__all__ = ["User", "Organization", "Project"]
