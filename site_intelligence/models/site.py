"""
Site model for surveyed and installed solar sites.
"""
from sqlalchemy import Column, Float, Index, String
from sqlalchemy.orm import relationship

from site_intelligence.models.base import Base, TimestampMixin
from site_intelligence.schemas.site import SiteRecord


class Site(TimestampMixin, Base):
    """Site master data with location and lifecycle status."""

    __tablename__ = "sites"

    id = Column(String(64), primary_key=True)
    site_code = Column(String(50), unique=True, index=True)
    name = Column(String(255))
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    status = Column(String(30), nullable=False, default="planning", index=True)
    region = Column(String(100), index=True)
    priority = Column(String(20), nullable=False, default="medium")

    project = relationship("SiteProject", back_populates="site", uselist=False)

    __table_args__ = (
        Index("idx_site_location", "latitude", "longitude"),
    )

    def to_schema(self) -> SiteRecord:
        return SiteRecord(
            id=self.id,
            site_code=self.site_code,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            status=self.status or "planning",
            region=self.region,
            priority=self.priority or "medium",
        )

    def __repr__(self):
        return f"<Site(id='{self.id}', code='{self.site_code}', status='{self.status}')>"
