from site_intelligence.repositories.project_repo import ProjectRepository
from site_intelligence.repositories.site_repo import SiteRepository

__all__ = ["ProjectRepository", "SiteRepository"]
