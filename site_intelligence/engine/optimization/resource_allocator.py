"""
Resource Allocation Analysis Module
Analyzes team and equipment allocation across geographically clustered sites.
Features:
- Star clustering of active sites by proximity
- Phase-aware skill gap and over/under-allocation detection
- Equipment utilization and idle-equipment sharing opportunities
- Resource transfer suggestions from nearly complete sites to new sites
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from site_intelligence.config.logging import log_performance
from site_intelligence.schemas.analytics import ResourceAnalysis
from site_intelligence.schemas.site import ProjectRecord, SiteRecord, WorkStatus
from site_intelligence.utils.geo_utils import GeoUtils

logger = logging.getLogger(__name__)

# Highest priority first
PHASE_PRIORITY = ["commissioning", "construction", "procurement", "design", "planning"]

ROLE_REQUIREMENTS: Dict[str, List[str]] = {
    "planning": ["Project Manager", "Site Surveyor", "Planner"],
    "design": ["Design Engineer", "Electrical Engineer", "Structural Engineer"],
    "procurement": ["Procurement Specialist", "Logistics Coordinator"],
    "construction": [
        "Construction Manager",
        "Electrical Technician",
        "Installer",
        "Safety Officer",
    ],
    "commissioning": [
        "Commissioning Engineer",
        "Quality Control",
        "Electrical Engineer",
    ],
}


@dataclass
class ResourceAllocationConfig:
    """Configuration for resource allocation analysis"""
    max_distance_km: float = 100.0
    max_people_per_role: int = 2
    low_utilization_percent: float = 60.0
    min_idle_units_to_share: int = 2
    nearly_complete_progress: float = 85.0
    default_utilization: float = 50.0
    transfer_penalty_weight: float = 20.0


@dataclass
class ClusterSite:
    site: SiteRecord
    record: ProjectRecord
    phase: str

    @property
    def name(self) -> str:
        return self.site.display_name

    @property
    def progress(self) -> float:
        progress = self.record.project_progress
        return progress.overall_completion if progress else 0.0


@dataclass
class TeamAllocation:
    overallocated: List[str] = field(default_factory=list)
    underallocated: List[str] = field(default_factory=list)
    skill_gaps: List[str] = field(default_factory=list)


@dataclass
class EquipmentUsage:
    utilization_by_type: Dict[str, float] = field(default_factory=dict)
    sharing_opportunities: List[str] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ResourceAllocationAnalyzer:
    """Cross-site team and equipment allocation analysis per proximity cluster."""

    def __init__(self, config: ResourceAllocationConfig = None):
        self.config = config or ResourceAllocationConfig()

    @log_performance("site_intelligence.engine.performance")
    def analyze(self, sites: List[SiteRecord], records: Dict[str, ProjectRecord],
                max_distance_km: Optional[float] = None) -> ResourceAnalysis:
        """
        Analyze allocation across the given active sites.

        records maps site id to its project record; sites without one are
        ignored inside their cluster.
        """
        max_distance_km = max_distance_km or self.config.max_distance_km
        site_by_id = {site.id: site for site in sites}

        clusters = GeoUtils.cluster_locations([site.to_location() for site in sites], max_distance_km)

        overallocated: List[str] = []
        underallocated: List[str] = []
        skill_gaps: List[str] = []
        transfer_suggestions: List[str] = []
        utilization_samples: Dict[str, List[float]] = defaultdict(list)
        analyzed_clusters = 0

        for cluster in clusters:
            if len(cluster.site_ids) < 2:
                continue

            cluster_sites = [
                ClusterSite(
                    site=site_by_id[site_id],
                    record=records[site_id],
                    phase=self.determine_phase(records[site_id]),
                )
                for site_id in cluster.site_ids
                if site_id in records
            ]
            if len(cluster_sites) < 2:
                continue

            analyzed_clusters += 1
            team_allocation = self.analyze_team_allocation(cluster_sites)
            equipment_usage = self.analyze_equipment_usage(cluster_sites)

            transfer_suggestions.extend(
                self.generate_transfer_suggestions(cluster_sites, equipment_usage)
            )
            overallocated.extend(team_allocation.overallocated)
            underallocated.extend(team_allocation.underallocated)
            skill_gaps.extend(team_allocation.skill_gaps)

            for equipment_type, utilization in equipment_usage.utilization_by_type.items():
                utilization_samples[equipment_type].append(utilization)

        equipment_utilization = {
            equipment_type: round(sum(samples) / len(samples), 2)
            for equipment_type, samples in utilization_samples.items()
        }
        transfer_suggestions = self._unique(transfer_suggestions)

        analysis = ResourceAnalysis(
            overallocated_resources=self._unique(overallocated),
            underallocated_resources=self._unique(underallocated),
            resource_transfer_suggestions=transfer_suggestions,
            equipment_utilization=equipment_utilization,
            skill_gaps=self._unique(skill_gaps),
            overall_efficiency=self.calculate_overall_efficiency(
                equipment_utilization, len(transfer_suggestions), len(sites)
            ),
        )

        logger.info(
            f"Resource analysis over {len(sites)} sites in {len(clusters)} clusters "
            f"({analyzed_clusters} analyzed): efficiency {analysis.overall_efficiency}"
        )
        return analysis

    @staticmethod
    def determine_phase(record: ProjectRecord) -> str:
        """Dominant active phase from in-progress milestones, planning by default."""
        active_phases = {
            (m.phase or "").lower()
            for m in record.milestones
            if m.status == WorkStatus.IN_PROGRESS
        }
        for phase in PHASE_PRIORITY:
            if phase in active_phases:
                return phase
        return "planning"

    def analyze_team_allocation(self, cluster_sites: List[ClusterSite]) -> TeamAllocation:
        result = TeamAllocation()

        for cluster_site in cluster_sites:
            team = cluster_site.record.team
            available_roles = {member.role for member in team}

            if not team:
                result.underallocated.append(
                    f"{cluster_site.name} has no team members assigned for {cluster_site.phase} phase"
                )

            for role in ROLE_REQUIREMENTS[cluster_site.phase]:
                if role not in available_roles:
                    result.skill_gaps.append(
                        f"{cluster_site.name} is missing {role} required for {cluster_site.phase} phase"
                    )

            role_counts: Dict[str, int] = defaultdict(int)
            for member in team:
                role_counts[member.role] += 1

            for role, count in role_counts.items():
                if count > self.config.max_people_per_role:
                    result.overallocated.append(
                        f"{cluster_site.name} has {count} people with role {role}"
                    )

        return result

    def analyze_equipment_usage(self, cluster_sites: List[ClusterSite]) -> EquipmentUsage:
        result = EquipmentUsage()

        # type -> site id -> [total, idle]
        counts: Dict[str, Dict[str, List[int]]] = defaultdict(dict)
        in_use_by_type: Dict[str, int] = defaultdict(int)
        names = {cs.site.id: cs.name for cs in cluster_sites}

        for cluster_site in cluster_sites:
            for item in cluster_site.record.equipment:
                site_counts = counts[item.type].setdefault(cluster_site.site.id, [0, 0])
                site_counts[0] += 1
                if item.status == "in-use":
                    in_use_by_type[item.type] += 1
                else:
                    site_counts[1] += 1

        for equipment_type, by_site in counts.items():
            total = sum(c[0] for c in by_site.values())
            utilization = in_use_by_type[equipment_type] / total * 100 if total > 0 else 0
            result.utilization_by_type[equipment_type] = _round_half_up(utilization)

            if utilization < self.config.low_utilization_percent and total >= 2:
                for site_id, (_, idle) in by_site.items():
                    if idle >= self.config.min_idle_units_to_share:
                        result.sharing_opportunities.append(
                            f"{names[site_id]} has {idle} idle {equipment_type} equipment "
                            f"that could be shared"
                        )

        return result

    def generate_transfer_suggestions(self, cluster_sites: List[ClusterSite],
                                      equipment_usage: EquipmentUsage) -> List[str]:
        suggestions = []

        nearly_complete = [
            cs for cs in cluster_sites
            if cs.phase == "commissioning"
            or (cs.phase == "construction" and cs.progress >= self.config.nearly_complete_progress)
        ]
        new_sites = [cs for cs in cluster_sites if cs.phase in ("planning", "design")]
        high_priority = [cs for cs in new_sites if cs.site.priority == "high"]
        targets = high_priority or new_sites

        if targets:
            target = targets[0]
            label = " (high priority)" if target.site.priority == "high" else ""
            for donor in nearly_complete:
                suggestions.append(
                    f"Consider transferring resources from {donor.name} "
                    f"({_round_half_up(donor.progress)}% complete) to {target.name}{label}"
                )

        suggestions.extend(equipment_usage.sharing_opportunities)
        return suggestions

    def calculate_overall_efficiency(self, equipment_utilization: Dict[str, float],
                                     transfer_suggestion_count: int, total_sites: int) -> int:
        values = list(equipment_utilization.values())
        average_utilization = (
            sum(values) / len(values) if values else self.config.default_utilization
        )

        optimization_ratio = transfer_suggestion_count / total_sites if total_sites > 0 else 0
        efficiency = average_utilization - optimization_ratio * self.config.transfer_penalty_weight

        return _round_half_up(min(100.0, max(0.0, efficiency)))

    @staticmethod
    def _unique(items: List[str]) -> List[str]:
        return list(dict.fromkeys(items))
