"""
Quality Anomaly Detection Module
Rule-based detection of installation quality risks for a single site:
- Unusually rapid progress between closely spaced progress reports
- Recurring task issue types and a high share of tasks with issues
- Deviations of as-built installation parameters from the design
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from site_intelligence.config.logging import log_performance
from site_intelligence.schemas.analytics import QualityAnalysis
from site_intelligence.schemas.base import RiskLevel, raise_risk
from site_intelligence.schemas.site import InstallationParameters, ProgressPoint, ProjectRecord, Task
from site_intelligence.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

ISSUE_TYPE_CHECKS = {
    "electrical": "Perform comprehensive electrical safety inspection",
    "structural": "Review structural integrity and mounting specifications",
    "water ingress": "Check all weather sealing and roof penetrations",
    "leak": "Check all weather sealing and roof penetrations",
}


@dataclass
class QualityAnomalyConfig:
    """Configuration for quality anomaly detection"""
    max_progress_gap_days: float = 7.0
    max_daily_progress_rate: float = 3.0
    recurring_issue_count: int = 3
    high_risk_issue_count: int = 5
    issue_rate_percent: float = 25.0
    max_tilt_deviation: float = 5.0
    max_azimuth_deviation: float = 10.0
    high_risk_deviation_count: int = 3


class _Findings:
    def __init__(self):
        self.issues: List[str] = []
        self.checks: List[str] = []
        self.components: List[str] = []
        self.risk_level = RiskLevel.LOW

    def add(self, issue: str, check: str, minimum_risk: RiskLevel):
        self.issues.append(issue)
        self.checks.append(check)
        self.risk_level = raise_risk(self.risk_level, minimum_risk)


class QualityAnomalyDetector:
    """Flags progress, issue and parameter patterns that suggest quality problems."""

    def __init__(self, config: QualityAnomalyConfig = None):
        self.config = config or QualityAnomalyConfig()

    @log_performance("site_intelligence.engine.performance")
    def detect(self, record: ProjectRecord) -> QualityAnalysis:
        findings = _Findings()

        if record.project_progress:
            self.check_progress_rate(record.project_progress.progress_history, findings)
            self.check_task_issues(record.tasks, findings)

        self.check_parameters(record.design_parameters, record.actual_parameters, findings)

        if not findings.issues:
            findings.issues.append("No significant quality issues detected based on available data")
            findings.checks.append("Continue regular quality assurance checks as per standard protocol")

        analysis = QualityAnalysis(
            potential_issues=findings.issues,
            recommended_checks=list(dict.fromkeys(findings.checks)),
            risk_level=findings.risk_level,
            affected_components=findings.components,
        )

        logger.info(
            f"Quality analysis for site {record.site_id}: risk {analysis.risk_level.value}, "
            f"{len(analysis.potential_issues)} findings"
        )
        return analysis

    def check_progress_rate(self, history: List[ProgressPoint], findings: _Findings):
        for previous, current in zip(history, history[1:]):
            days = DateUtils.days_between(previous.date, current.date)
            if days <= 0 or days > self.config.max_progress_gap_days:
                continue

            progress_diff = current.value - previous.value
            if progress_diff / days > self.config.max_daily_progress_rate:
                findings.add(
                    f"Unusually rapid progress detected between "
                    f"{DateUtils.format_for_display(previous.date)} and "
                    f"{DateUtils.format_for_display(current.date)} "
                    f"({progress_diff:.1f}% in {days:.1f} days)",
                    "Perform detailed quality inspection on recently completed work",
                    RiskLevel.MEDIUM,
                )

    def check_task_issues(self, tasks: List[Task], findings: _Findings):
        counts: Dict[str, int] = defaultdict(int)
        components: Dict[str, List[str]] = defaultdict(list)
        tasks_with_issues = 0

        for task in tasks:
            if task.issues:
                tasks_with_issues += 1
            for issue in task.issues:
                counts[issue.type] += 1
                if issue.component and issue.component not in components[issue.type]:
                    components[issue.type].append(issue.component)

        for issue_type, count in counts.items():
            if count < self.config.recurring_issue_count:
                continue

            check = ISSUE_TYPE_CHECKS.get(
                issue_type.lower(),
                f'Review all instances of "{issue_type}" issues for systematic problems',
            )
            minimum = RiskLevel.HIGH if count >= self.config.high_risk_issue_count else RiskLevel.MEDIUM
            findings.add(f'Recurring "{issue_type}" issues detected ({count} occurrences)', check, minimum)

            for component in components[issue_type]:
                if component not in findings.components:
                    findings.components.append(component)

        issue_rate = tasks_with_issues / len(tasks) * 100 if tasks else 0
        if issue_rate >= self.config.issue_rate_percent:
            findings.add(
                f"High issue rate detected ({issue_rate:.1f}% of tasks affected)",
                "Consider comprehensive project review with quality assurance team",
                RiskLevel.MEDIUM,
            )

    def check_parameters(self, design: Optional[InstallationParameters],
                         actual: Optional[InstallationParameters], findings: _Findings):
        if design is None or actual is None:
            return

        deviations = []

        if design.panel_tilt is not None and actual.panel_tilt is not None:
            tilt_deviation = abs(design.panel_tilt - actual.panel_tilt)
            if tilt_deviation > self.config.max_tilt_deviation:
                deviations.append(f"Panel tilt deviation of {tilt_deviation:.1f} degrees")

        if design.azimuth is not None and actual.azimuth is not None:
            azimuth_deviation = abs(design.azimuth - actual.azimuth)
            if azimuth_deviation > self.config.max_azimuth_deviation:
                deviations.append(f"Azimuth deviation of {azimuth_deviation:.1f} degrees")

        if design.string_config and actual.string_config and design.string_config != actual.string_config:
            deviations.append("String configuration differs from design specifications")

        if deviations:
            minimum = (
                RiskLevel.HIGH if len(deviations) >= self.config.high_risk_deviation_count
                else RiskLevel.MEDIUM
            )
            findings.add(
                f"Installation parameter deviations detected: {', '.join(deviations)}",
                "Verify that parameter deviations are within acceptable performance tolerances",
                minimum,
            )
