from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from site_intelligence.models.site import Site
from site_intelligence.repositories.base import CRUDBase
from site_intelligence.schemas.site import SiteRecord, SiteStatus
from site_intelligence.utils.geo_utils import BoundingBox


class SiteRepository(CRUDBase[Site]):
    def __init__(self, db: Session):
        super().__init__(Site, db)

    def get_record(self, site_id: str) -> Optional[SiteRecord]:
        """Get a site as a record schema"""
        site = self.get(site_id)
        return site.to_schema() if site else None

    def get_records(self, site_ids: Sequence[str]) -> List[SiteRecord]:
        """Get sites by ID, in the order requested; unknown IDs are dropped"""
        if not site_ids:
            return []
        sites = {
            site.id: site
            for site in self.db.query(self.model).filter(self.model.id.in_(list(site_ids))).all()
        }
        return [sites[site_id].to_schema() for site_id in site_ids if site_id in sites]

    def get_active(self, region: Optional[str] = None) -> List[SiteRecord]:
        """Get sites that are not completed, optionally within one region"""
        query = self.db.query(self.model).filter(self.model.status != SiteStatus.COMPLETED.value)
        if region:
            query = query.filter(self.model.region == region)
        return [site.to_schema() for site in query.order_by(self.model.id).all()]

    def find_in_bounding_box(self, box: BoundingBox, exclude_id: Optional[str] = None) -> List[SiteRecord]:
        """Coarse location prefilter ahead of exact distance checks"""
        query = self.db.query(self.model).filter(
            self.model.latitude.between(box.south, box.north),
            self.model.longitude.between(box.west, box.east),
        )
        if exclude_id:
            query = query.filter(self.model.id != exclude_id)
        return [site.to_schema() for site in query.all()]
