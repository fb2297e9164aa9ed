"""
Tests for the process intelligence pipeline.

Tests cover:
- Reference model and SLA resolution per process
- Per-phase error isolation, skipping and progress callbacks
- Recommendation thresholds and ordering
- Summary, critical findings and executive summary
"""

import json
from datetime import datetime
from types import SimpleNamespace

import pytest

from process_mining.cancellation import CancellationToken
from process_mining.catalog import adapt_config_for_s4, get_process_config
from process_mining.conformance import ReferenceModel
from process_mining.errors import InvalidInputError, NotFoundError, OperationCancelledError
from process_mining.intelligence import (
    PHASES,
    SEVERITY_ORDER,
    ProcessIntelligenceEngine,
    generate_recommendations,
)
from process_mining.stats import convert_for_json

from conftest import UTC, build_log, sequence

BASE = datetime(2025, 5, 5, 8, 0, tzinfo=UTC)


@pytest.fixture
def engine():
    return ProcessIntelligenceEngine()


@pytest.fixture
def sod_log():
    """PO-1 is created and approved by the same user."""
    acts = ["Create Purchase Order", "Approve Purchase Order", "Goods Receipt"]
    return build_log({
        "PO-1": sequence(acts, BASE, resources=["USER_SMITH", "USER_SMITH", "USER_WH"]),
        "PO-2": sequence(acts, BASE, resources=["USER_JONES", "USER_LEE", "USER_WH"]),
    })


def variants_stub(total=5, top_frequency=50.0, rework_rate=0.0, rework_by_activity=()):
    return SimpleNamespace(
        total_variant_count=total,
        total_case_count=100,
        variants=[SimpleNamespace(frequency=top_frequency)],
        rework={"reworkRate": rework_rate, "reworkByActivity": list(rework_by_activity)},
    )


def conformance_stub(fitness=1.0, conformance_rate=100.0):
    return SimpleNamespace(
        fitness=fitness,
        conformance_rate=conformance_rate,
        fully_conformant_cases=int(conformance_rate),
        total_cases=100,
        deviation_stats={"totalDeviations": 7, "casesWithDeviations": 5, "byType": {"skip": 4, "insert": 3}},
    )


class TestPipeline:
    """End-to-end runs."""

    def test_all_phases_complete(self, engine, o2c_log):
        """Every phase produces a result for a well-formed log."""
        report = engine.analyze(o2c_log, process_id="O2C")
        assert report.get_completed_phases() == list(PHASES)
        assert report.errors == []
        assert set(report.phase_durations) == set(PHASES)
        assert report.process_id == "O2C"
        assert report.log_summary["cases"] == 3
        assert report.timestamp.endswith("Z")

    def test_curated_model_with_catalog_path(self, engine, o2c_log):
        """A process id selects the curated model extended with the catalog path."""
        report = engine.analyze(o2c_log, process_id="o2c")
        assert report.process_id == "O2C"
        reference = report.reference_model
        assert reference.process_id == "O2C"
        assert reference.has_activity("Clear Invoice")
        assert reference.end_activities >= {"Clear Invoice", "Payment Received"}
        labels = {s["sla"] for s in report.get_phase("performance").sla_compliance}
        assert labels == set(reference.sla_targets)

    def test_explicit_sla_targets_override(self, engine, o2c_log):
        """Caller SLA targets replace the model's."""
        sla = {"__case_duration__": {"target": 30, "unit": "days"}}
        report = engine.analyze(o2c_log, process_id="O2C", sla_targets=sla)
        assert [s["sla"] for s in report.get_phase("performance").sla_compliance] == ["Case Duration"]

    def test_process_config_sets_process_id(self, engine, o2c_log):
        """An adapted config stands in for the catalog lookup."""
        config = adapt_config_for_s4(get_process_config("O2C"))
        report = engine.analyze(o2c_log, process_config=config)
        assert report.process_id == "O2C"
        assert report.get_phase("kpis").process

    def test_discovered_model_fallback(self, engine, xor_log):
        """Without a process the discovered model is the reference."""
        report = engine.analyze(xor_log)
        assert report.reference_model.name == "Discovered model"
        assert report.get_phase("conformance") is not None
        assert report.executive_summary["process"] == "Custom"

    def test_explicit_reference_model(self, engine, xor_log):
        """A caller-supplied model overrides the resolved one."""
        model = ReferenceModel.from_sequence("ABD", ["A", "B", "D"])
        report = engine.analyze(xor_log, reference_model=model)
        conformance = report.get_phase("conformance")
        assert conformance.model_name == "ABD"
        assert conformance.conformance_rate == 50.0
        assert all(r["title"] != "Majority of cases non-conformant" for r in report.recommendations)

    def test_empty_log(self, engine, empty_log):
        """Empty logs have no conformance phase and no errors."""
        report = engine.analyze(empty_log)
        assert "conformance" not in report.get_completed_phases()
        assert report.errors == []
        assert "conformance" not in report.executive_summary["findings"]
        assert report.get_summary()["fitness"] is None

    def test_to_dict_is_json_ready(self, engine, o2c_log):
        """The serialized report survives json.dumps."""
        data = engine.analyze(o2c_log, process_id="O2C").to_dict()
        text = json.dumps(convert_for_json(data))
        assert json.loads(text)["referenceModel"]["id"] == "O2C"
        assert data["summary"]["recommendationCount"] == len(data["recommendations"])


class TestPhaseControl:
    """Error isolation, skipping, progress and cancellation."""

    def test_failed_phase_is_isolated(self, engine, o2c_log):
        """A failing phase is recorded and the others still run."""
        report = engine.analyze(o2c_log, sla_targets={"A → B": {"target": "soon"}})
        assert [e["phase"] for e in report.errors] == ["performance"]
        assert report.errors[0]["kind"] == "invalid-input"
        assert "performance" not in report.get_completed_phases()
        assert "kpis" in report.get_completed_phases()
        assert report.get_summary()["errorCount"] == 1
        assert report.get_summary()["bottleneckCount"] == 0

    def test_skip(self, engine, o2c_log):
        """Skipped phases are absent and untimed."""
        report = engine.analyze(o2c_log, skip=["social", "model"])
        assert report.get_phase("social") is None
        assert "model" not in report.phase_durations
        assert "organization" not in report.executive_summary["findings"]

    def test_unknown_skip(self, engine, o2c_log):
        """Unknown phase names are rejected up front."""
        with pytest.raises(InvalidInputError):
            engine.analyze(o2c_log, skip=["everything"])

    def test_unknown_phase_lookup(self, engine, o2c_log):
        """get_phase only knows pipeline phases."""
        report = engine.analyze(o2c_log)
        with pytest.raises(InvalidInputError):
            report.get_phase("bogus")

    def test_progress_callback(self, engine, o2c_log):
        """The callback sees each completed phase in order."""
        seen = []
        report = engine.analyze(o2c_log, on_progress=lambda name, result: seen.append(name))
        assert seen == report.get_completed_phases()

    def test_cancellation_aborts_run(self, engine, o2c_log):
        """Cancellation is not swallowed by phase isolation."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            engine.analyze(o2c_log, cancel_token=token)

    def test_unknown_process(self, engine, o2c_log):
        """Unknown process ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.analyze(o2c_log, process_id="XYZ")

    def test_rejects_non_log(self, engine):
        """Only EventLogs are accepted."""
        with pytest.raises(InvalidInputError):
            engine.analyze([])


class TestRecommendations:
    """Thresholds and ordering of findings."""

    def test_high_variation(self, engine):
        """More than 20 variants is a standardization finding."""
        log = build_log({f"C{i}": sequence(["A", f"X{i}", "B"], BASE) for i in range(25)})
        report = engine.analyze(log, skip=["social"])
        finding = next(r for r in report.recommendations if r["category"] == "standardization")
        assert finding["severity"] == "medium"
        assert "covers only 4%" in finding["description"]

    def test_variation_severity(self):
        """More than 50 variants is high severity; 20 is none."""
        assert generate_recommendations({"variants": variants_stub(total=51)})[0]["severity"] == "high"
        assert generate_recommendations({"variants": variants_stub(total=20)}) == []

    def test_rework(self, engine, p2p_variant_log):
        """A 27% rework rate is a medium quality finding naming the activity."""
        report = engine.analyze(p2p_variant_log)
        finding = next(r for r in report.recommendations if r["category"] == "quality")
        assert finding["severity"] == "medium"
        assert "Goods Receipt" in finding["description"]

    def test_rework_severity(self):
        """Above 30% rework is high severity; 15% exactly is none."""
        high = generate_recommendations({"variants": variants_stub(
            rework_rate=35.0, rework_by_activity=[{"activity": "Pick", "reworkCount": 3}],
        )})
        assert [(r["category"], r["severity"]) for r in high] == [("quality", "high")]
        assert "Top rework activities: Pick." in high[0]["description"]
        assert generate_recommendations({"variants": variants_stub(rework_rate=15.0)}) == []

    def test_conformance_thresholds(self):
        """Fitness below 0.8 and conformance below 50% are both high."""
        findings = generate_recommendations({"conformance": conformance_stub(0.79, 40.0)})
        assert [r["title"] for r in findings] == ["Low process fitness", "Majority of cases non-conformant"]
        assert all(r["severity"] == "high" for r in findings)
        assert "Top deviation type: skip." in findings[0]["description"]
        assert generate_recommendations({"conformance": conformance_stub(0.8, 50.0)}) == []

    def test_sla_breach(self, engine, o2c_log):
        """Breached SLAs are a high finding naming the targets."""
        sla = {"Create Sales Order → Credit Check": {"target": 1, "unit": "minutes"}}
        report = engine.analyze(o2c_log, sla_targets=sla)
        finding = next(r for r in report.recommendations if r["category"] == "sla")
        assert finding["severity"] == "high"
        assert finding["evidence"] == "Create Sales Order → Credit Check"

    def test_bottleneck(self, engine, o2c_log):
        """The top bottleneck is reported with its median time."""
        report = engine.analyze(o2c_log)
        finding = next(r for r in report.recommendations if r["category"] == "efficiency")
        top = report.get_phase("performance").bottlenecks[0]
        assert top["location"] in finding["description"]
        assert finding["severity"] == "medium"

    def test_sod_violation_is_critical(self, engine, sod_log):
        """SoD violations are high severity and appear among critical findings."""
        report = engine.analyze(sod_log, process_id="P2P")
        titles = [r["title"] for r in report.get_critical_findings()]
        assert "Segregation of duties violations" in titles
        assert report.get_summary()["sodViolations"] == 1
        assert report.get_summary()["highSeverityCount"] == len(titles)

    def test_sorted_by_severity(self, engine, sod_log):
        """High findings come before medium ones."""
        report = engine.analyze(sod_log, process_id="P2P")
        order = [SEVERITY_ORDER[r["severity"]] for r in report.recommendations]
        assert order == sorted(order)
        assert all(r["severity"] == "high" for r in report.get_critical_findings())


class TestExecutiveSummary:
    """Executive summary contents."""

    def test_scope_and_findings(self, engine, o2c_log):
        """Scope counts the log; findings cover each completed phase."""
        summary = engine.analyze(o2c_log, process_id="O2C").executive_summary
        assert summary["process"] == "O2C"
        assert summary["scope"]["cases"] == 3
        assert summary["scope"]["events"] == 20
        assert summary["scope"]["resources"] == 7
        assert set(summary["findings"]) == {
            "variants", "discoveredModel", "conformance", "performance", "organization", "kpiHighlights",
        }
        assert summary["findings"]["variants"]["total"] == 2
        assert summary["findings"]["organization"]["sodViolations"] == 0
