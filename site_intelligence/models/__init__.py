from site_intelligence.models.site import Site
from site_intelligence.models.site_project import SiteProject

__all__ = ["Site", "SiteProject"]
