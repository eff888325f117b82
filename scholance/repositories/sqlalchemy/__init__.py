from .sqlalchemy_project_repository import SqlalchemyProjectRepository
from .sqlalchemy_user_repository import SqlalchemyUserRepository
from .sqlalchemy_organization_repository import SqlalchemyOrganizationRepository

__all__ = ["SqlalchemyProjectRepository", "SqlalchemyUserRepository", "SqlalchemyOrganizationRepository"]
