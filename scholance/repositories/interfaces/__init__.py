from .project import IProjectRepository
from .user import IUserRepository
from .organization import IOrganizationRepository

__all__ = ["IProjectRepository", "IUserRepository", "IOrganizationRepository"]
