"""
Process Intelligence Engine.

Runs the full analysis pipeline over one event log and combines the
results into a single report:

1. Variants - variant ranking, happy path, rework, clusters
2. Model - heuristic-miner process discovery
3. Conformance - replay against the curated SAP reference model, the
   catalog reference path, or the discovered model
4. Performance - cycle times, bottlenecks, SLA compliance, trends
5. Social - handovers, workload, segregation of duties
6. KPIs - every KPI category, fed by the phases above

Each phase is isolated: a library error in one phase is logged and
recorded in ``report.errors`` and the remaining phases still run. The
report adds prioritized recommendations and an executive summary.

Example Usage:
    from process_mining.intelligence import ProcessIntelligenceEngine

    report = ProcessIntelligenceEngine().analyze(log, process_id="O2C")
    print(report.get_summary())
    for finding in report.get_critical_findings():
        print(finding["title"], "-", finding["description"])
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import DEFAULT_CONFIG
from .cancellation import CancellationToken
from .catalog import get_process_config
from .conformance import ConformanceChecker, ReferenceModel, get_reference_model
from .discovery import HeuristicMiner, HeuristicMinerConfig
from .errors import InvalidInputError, NotFoundError, OperationCancelledError, ProcessMiningError
from .eventlog import EventLog
from .eventlog.timestamps import format_iso
from .kpi import KPIEngine
from .performance import PerformanceAnalyzer
from .social import SocialNetworkMiner
from .stats import format_duration
from .variants import VariantAnalyzer

PHASES = ("variants", "model", "conformance", "performance", "social", "kpis")
SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# Recommendation thresholds
VARIANT_COUNT_MEDIUM = 20
VARIANT_COUNT_HIGH = 50
REWORK_RATE_MEDIUM = 15.0
REWORK_RATE_HIGH = 30.0
MIN_FITNESS = 0.8
TARGET_FITNESS = 0.9
MIN_CONFORMANCE_RATE = 50.0


@dataclass
class ProcessIntelligenceReport:
    """
    Combined result of one pipeline run.

    Attributes:
        process_id: Catalog process id, None for custom logs
        reference_model: Model the conformance phase replayed against
        log_summary: EventLog.get_summary() of the input
        phases: phase name -> result object; skipped or failed phases
            are absent
        recommendations: Findings sorted high -> medium -> low
        executive_summary: One-page overview of scope and findings
        errors: {phase, error, kind} for every phase that failed
        phase_durations: phase name -> wall time in ms
        duration_ms: Total wall time in ms
        timestamp: ISO time the run finished
    """
    process_id: Optional[str]
    reference_model: Optional[ReferenceModel]
    log_summary: Dict[str, Any]
    phases: Dict[str, Any]
    recommendations: List[Dict[str, Any]] = field(default_factory=list)
    executive_summary: Dict[str, Any] = field(default_factory=dict)
    errors: List[Dict[str, str]] = field(default_factory=list)
    phase_durations: Dict[str, int] = field(default_factory=dict)
    duration_ms: int = 0
    timestamp: str = ""

    def get_phase(self, name: str) -> Any:
        if name not in PHASES:
            raise InvalidInputError(f"Unknown phase {name!r}; expected one of {PHASES}")
        return self.phases.get(name)

    def get_completed_phases(self) -> List[str]:
        return [name for name in PHASES if self.phases.get(name) is not None]

    def get_critical_findings(self) -> List[Dict[str, Any]]:
        return [r for r in self.recommendations if r["severity"] == "high"]

    def get_summary(self) -> Dict[str, Any]:
        """Compact figures for dashboards."""
        variants = self.phases.get("variants")
        conformance = self.phases.get("conformance")
        performance = self.phases.get("performance")
        social = self.phases.get("social")
        return {
            "processId": self.process_id,
            "referenceModel": self.reference_model.name if self.reference_model else None,
            "cases": self.log_summary["cases"],
            "events": self.log_summary["events"],
            "variantCount": variants.total_variant_count if variants else None,
            "fitness": conformance.fitness if conformance else None,
            "precision": conformance.precision if conformance else None,
            "conformanceRate": conformance.conformance_rate if conformance else None,
            "bottleneckCount": len(performance.bottlenecks) if performance else 0,
            "sodViolations": social.sod_violations["totalViolations"] if social else 0,
            "recommendationCount": len(self.recommendations),
            "highSeverityCount": len(self.get_critical_findings()),
            "errorCount": len(self.errors),
            "durationMs": self.duration_ms,
        }

    def to_dict(self) -> Dict[str, Any]:
        report = {
            "log": self.log_summary,
            "process": self.process_id,
            "referenceModel": self.reference_model.to_dict() if self.reference_model else None,
        }
        for name in PHASES:
            result = self.phases.get(name)
            report[name] = result.to_dict() if result is not None else None
        report.update({
            "summary": self.get_summary(),
            "recommendations": self.recommendations,
            "executiveSummary": self.executive_summary,
            "errors": self.errors,
            "phaseDurations": self.phase_durations,
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp,
        })
        return report


class ProcessIntelligenceEngine:
    """
    Orchestrates every analyzer over an event log.

    Example:
        engine = ProcessIntelligenceEngine(config={"cluster_threshold": 0.2})
        report = engine.analyze(log, process_id="P2P", skip=["social"])
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sod_rules: Optional[Iterable[Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        self.sod_rules = list(sod_rules) if sod_rules else None
        self.logger = logger or logging.getLogger(__name__)

        self.miner = HeuristicMiner(HeuristicMinerConfig.from_dict(self.config))
        self.variant_analyzer = VariantAnalyzer(
            max_variants=self.config["max_variants"],
            cluster_threshold=self.config["cluster_threshold"],
        )
        self.performance_analyzer = PerformanceAnalyzer(
            retain_raw=self.config["retain_raw"],
            trend_threshold_ratio=self.config["trend_threshold_ratio"],
        )
        self.social_miner = SocialNetworkMiner()
        self.kpi_engine = KPIEngine(confidence_level=self.config["confidence_level"])

    def analyze(
        self,
        event_log: EventLog,
        process_id: Optional[str] = None,
        process_config: Optional[Dict[str, Any]] = None,
        reference_model: Optional[ReferenceModel] = None,
        sla_targets: Optional[Dict[str, Dict[str, Any]]] = None,
        sod_rules: Optional[Iterable[Any]] = None,
        skip: Iterable[str] = (),
        on_progress: Optional[Callable[[str, Any], None]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessIntelligenceReport:
        """
        Run the pipeline.

        Args:
            event_log: Log to analyze
            process_id: Catalog process id (e.g. 'O2C'); selects the
                curated reference model, its SLA targets and the
                process KPIs
            process_config: Catalog configuration to use instead of the
                one looked up by ``process_id`` (e.g. an S/4-adapted one)
            reference_model: Overrides the model resolved from the process
            sla_targets: Overrides the reference model's SLA targets
            sod_rules: Overrides the engine's SoD rules
            skip: Phase names to leave out
            on_progress: Called with (phase, result) after each phase
            cancel_token: Token polled by every analyzer; cancellation
                aborts the whole run

        Returns:
            ProcessIntelligenceReport

        Raises:
            InvalidInputError: Bad log or unknown phase names
            NotFoundError: Unknown process_id
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("ProcessIntelligenceEngine.analyze expects an EventLog")
        skip = set(skip)
        unknown = skip - set(PHASES)
        if unknown:
            raise InvalidInputError(f"Unknown phases to skip: {sorted(unknown)}; expected {PHASES}")
        if process_config is None and process_id:
            process_config = get_process_config(process_id)
        if process_config:
            process_id = process_config["id"]

        started = time.perf_counter()
        self.logger.info(
            f"Starting process intelligence analysis: {event_log.get_case_count()} cases, "
            f"{event_log.get_event_count()} events"
        )

        reference = reference_model or self._resolve_reference_model(process_id, process_config)
        if sla_targets is None:
            sla_targets = dict(reference.sla_targets) if reference else {}
        rules = sod_rules if sod_rules is not None else self.sod_rules

        report = ProcessIntelligenceReport(
            process_id=process_id,
            reference_model=reference,
            log_summary=event_log.get_summary(),
            phases={},
        )

        def run(name: str, step: Callable[[], Any]) -> None:
            if name in skip:
                self.logger.debug(f"Skipping phase {name}")
                return
            phase_started = time.perf_counter()
            try:
                result = step()
            except OperationCancelledError:
                raise
            except ProcessMiningError as e:
                self.logger.error(f"Phase {name} failed: {e}")
                report.errors.append({"phase": name, "error": str(e), "kind": e.kind})
                return
            finally:
                report.phase_durations[name] = int((time.perf_counter() - phase_started) * 1000)
            if result is None:
                return
            report.phases[name] = result
            if on_progress:
                on_progress(name, result)

        run("variants", lambda: self.variant_analyzer.analyze(event_log, cancel_token))
        run("model", lambda: self.miner.analyze(event_log, cancel_token))
        run("conformance", lambda: self._check_conformance(report, event_log, cancel_token))
        run("performance", lambda: self.performance_analyzer.analyze(event_log, sla_targets, cancel_token))
        run("social", lambda: self.social_miner.analyze(event_log, rules, cancel_token))
        run("kpis", lambda: self.kpi_engine.calculate(
            event_log,
            variant_result=report.phases.get("variants"),
            performance_result=report.phases.get("performance"),
            social_result=report.phases.get("social"),
            conformance_result=report.phases.get("conformance"),
            process_config=process_config,
        ))

        report.recommendations = generate_recommendations(report.phases)
        report.executive_summary = build_executive_summary(event_log, report.phases, process_id)
        report.duration_ms = int((time.perf_counter() - started) * 1000)
        report.timestamp = format_iso(datetime.now(timezone.utc))

        self.logger.info(
            f"Process intelligence analysis complete in {report.duration_ms}ms: "
            f"{len(report.get_completed_phases())} phases, {len(report.recommendations)} recommendations, "
            f"{len(report.errors)} errors"
        )
        return report

    def _resolve_reference_model(
        self, process_id: Optional[str], process_config: Optional[Dict[str, Any]]
    ) -> Optional[ReferenceModel]:
        """Curated model of the process, extended with the catalog's reference path."""
        reference = None
        if process_id:
            try:
                reference = get_reference_model(process_id)
            except NotFoundError:
                self.logger.warning(f"No reference model for process {process_id!r}")
        path = (process_config or {}).get("referenceActivities")
        if path:
            if reference is None:
                reference = ReferenceModel.from_sequence(process_config["name"], path)
            else:
                reference = reference.with_sequence(path)
        return reference

    def _check_conformance(
        self,
        report: ProcessIntelligenceReport,
        event_log: EventLog,
        cancel_token: Optional[CancellationToken],
    ):
        if report.reference_model is None:
            model = report.phases.get("model")
            if model is None or model.is_empty():
                self.logger.info("No reference model and no discovered model; conformance not checked")
                return None
            report.reference_model = ReferenceModel.from_process_model(model)
        return ConformanceChecker(report.reference_model).check_log(event_log, cancel_token)


def generate_recommendations(phases: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Actionable findings derived from the phase results.

    Each recommendation is {category, severity, title, description,
    evidence}; the list is sorted by severity, high first.
    """
    recommendations = []

    variants = phases.get("variants")
    if variants:
        total = variants.total_variant_count
        if total > VARIANT_COUNT_MEDIUM:
            top = f"{round(variants.variants[0].frequency)}%" if variants.variants else "?"
            recommendations.append({
                "category": "standardization",
                "severity": "high" if total > VARIANT_COUNT_HIGH else "medium",
                "title": "High process variation detected",
                "description": (
                    f"{total} unique variants found. The top variant covers only {top} of cases. "
                    f"Consider standardizing the process."
                ),
                "evidence": f"{total} variants across {variants.total_case_count} cases",
            })

        rate = variants.rework["reworkRate"]
        if rate > REWORK_RATE_MEDIUM:
            top_activities = ", ".join(r["activity"] for r in variants.rework["reworkByActivity"][:3])
            recommendations.append({
                "category": "quality",
                "severity": "high" if rate > REWORK_RATE_HIGH else "medium",
                "title": "Significant rework detected",
                "description": (
                    f"{round(rate)}% of cases contain rework (repeated activities). "
                    f"Top rework activities: {top_activities}."
                ),
                "evidence": f"Rework rate: {round(rate)}%",
            })

    conformance = phases.get("conformance")
    if conformance:
        stats = conformance.deviation_stats
        if conformance.fitness < MIN_FITNESS:
            top_type = next(iter(stats["byType"]), "none")
            recommendations.append({
                "category": "compliance",
                "severity": "high",
                "title": "Low process fitness",
                "description": (
                    f"Process fitness is {conformance.fitness} (target: >={TARGET_FITNESS}). "
                    f"{stats['totalDeviations']} deviations detected across {stats['casesWithDeviations']} "
                    f"cases. Top deviation type: {top_type}."
                ),
                "evidence": f"Fitness: {conformance.fitness}, Deviations: {stats['totalDeviations']}",
            })
        if conformance.conformance_rate < MIN_CONFORMANCE_RATE:
            recommendations.append({
                "category": "compliance",
                "severity": "high",
                "title": "Majority of cases non-conformant",
                "description": (
                    f"Only {conformance.conformance_rate}% of cases are fully conformant "
                    f"with the reference model."
                ),
                "evidence": f"{conformance.fully_conformant_cases}/{conformance.total_cases} conformant",
            })

    performance = phases.get("performance")
    if performance:
        if performance.bottlenecks:
            top = performance.bottlenecks[0]
            median = top.get("medianWaitMs", top.get("medianServiceMs"))
            recommendations.append({
                "category": "efficiency",
                "severity": "medium",
                "title": "Bottleneck identified",
                "description": (
                    f"Top bottleneck: {top['location']}. Median time: {format_duration(median)}. "
                    f"Impact score: {top['impact']}."
                ),
                "evidence": f"Bottleneck impact: {top['impact']}",
            })
        breached = [s for s in performance.sla_compliance if s["status"] == "breached"]
        if breached:
            recommendations.append({
                "category": "sla",
                "severity": "high",
                "title": "SLA breaches detected",
                "description": f"{len(breached)} SLA target(s) breached. Immediate attention required.",
                "evidence": ", ".join(s["sla"] for s in breached),
            })

    social = phases.get("social")
    if social:
        sod = social.sod_violations
        if sod["totalViolations"] > 0:
            recommendations.append({
                "category": "compliance",
                "severity": "high",
                "title": "Segregation of duties violations",
                "description": (
                    f"{sod['totalViolations']} SoD violations found across {sod['rulesViolated']} rules. "
                    f"This is an audit risk."
                ),
                "evidence": (
                    f"{sod['totalViolations']} violations in {sod['rulesViolated']}/{sod['rulesChecked']} rules"
                ),
            })
        workload = social.resource_utilization["workloadDistribution"]
        if not workload["isBalanced"]:
            recommendations.append({
                "category": "resource",
                "severity": "medium",
                "title": "Unbalanced workload distribution",
                "description": (
                    f"Workload coefficient of variation: {workload['coefficientOfVariation']}. "
                    f"Work is not evenly distributed across resources."
                ),
                "evidence": f"CV: {workload['coefficientOfVariation']}",
            })

    recommendations.sort(key=lambda r: SEVERITY_ORDER.get(r["severity"], 2))
    return recommendations


def build_executive_summary(
    event_log: EventLog, phases: Dict[str, Any], process_id: Optional[str] = None
) -> Dict[str, Any]:
    """One-page overview of the analysis scope and headline findings."""
    summary = {
        "process": process_id or "Custom",
        "scope": {
            "cases": event_log.get_case_count(),
            "events": event_log.get_event_count(),
            "activities": len(event_log.get_activity_set()),
            "resources": len(event_log.get_resource_set()),
            "timeRange": event_log.get_time_range(),
        },
        "findings": {},
    }
    findings = summary["findings"]

    variants = phases.get("variants")
    if variants:
        findings["variants"] = {
            "total": variants.total_variant_count,
            "happyPathCoverage": round(variants.happy_path["frequency"]) if variants.happy_path else None,
            "reworkRate": round(variants.rework["reworkRate"]),
        }

    model = phases.get("model")
    if model:
        findings["discoveredModel"] = {
            "activities": len(model.activities),
            "edges": len(model.edges),
            "loops": len(model.loops_l1) + len(model.loops_l2),
        }

    conformance = phases.get("conformance")
    if conformance:
        findings["conformance"] = {
            "fitness": conformance.fitness,
            "precision": conformance.precision,
            "conformanceRate": conformance.conformance_rate,
        }

    performance = phases.get("performance")
    if performance:
        stats = performance.case_durations["stats"]
        findings["performance"] = {
            "bottleneckCount": len(performance.bottlenecks),
            "topBottleneck": performance.bottlenecks[0]["location"] if performance.bottlenecks else None,
            "medianCycleTimeMs": stats["median"],
            "p90CycleTimeMs": stats["p90"],
        }

    social = phases.get("social")
    if social:
        findings["organization"] = {
            "resourceCount": social.resource_count,
            "workloadBalanced": social.resource_utilization["workloadDistribution"]["isBalanced"],
            "sodViolations": social.sod_violations["totalViolations"],
            "mostCentralResource": (
                social.centrality_metrics[0]["resource"] if social.centrality_metrics else None
            ),
        }

    kpis = phases.get("kpis")
    if kpis:
        findings["kpiHighlights"] = kpis.get_summary()

    return summary
