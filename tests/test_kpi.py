"""
Tests for the KPI engine.

Tests cover:
- Time, quality, volume, conformance and resource KPIs
- Optional analyzer inputs
- Catalog process KPIs (transition, ratio and composite)
"""

from datetime import datetime

import pytest

from process_mining.catalog import get_process_config
from process_mining.conformance import ConformanceChecker, ReferenceModel
from process_mining.errors import InvalidInputError
from process_mining.kpi import KPIEngine, is_automated_resource
from process_mining.performance import PerformanceAnalyzer
from process_mining.social import SocialNetworkMiner
from process_mining.variants import VariantAnalyzer

from conftest import O2C_HAPPY, UTC, build_log, sequence


class TestAutomation:
    """Technical user detection."""

    @pytest.mark.parametrize("resource", [None, "", "SYSTEM", "batch", "RFC_USER", "WF-BATCH", "wf-batch01"])
    def test_automated(self, resource):
        """Missing users and technical users count as automated."""
        assert is_automated_resource(resource)

    @pytest.mark.parametrize("resource", ["USER_A", "BATCH_JOB", "SYSTEMS"])
    def test_human(self, resource):
        """Everything else is a person."""
        assert not is_automated_resource(resource)


class TestCoreKPIs:
    """KPIs computed from the log alone."""

    def test_quality(self, o2c_log):
        """One of three cases repeats the credit check."""
        quality = KPIEngine().calculate(o2c_log).quality
        assert quality["reworkRate"]["value"] == 33.33
        assert quality["firstTimeRightRate"]["value"] == 66.67
        assert quality["straightThroughRate"]["value"] == 66.67
        assert quality["selfLoopRate"]["value"] == 0.0
        assert quality["happyPathRate"]["value"] is None
        assert quality["variantCount"]["value"] == 2

    def test_time(self, o2c_log):
        """Cycle time, touch time and activities per case."""
        time = KPIEngine().calculate(o2c_log).time
        assert time["cycleTime"]["count"] == 3
        assert time["cycleTime"]["ci"]["lower"] <= time["cycleTime"]["value"] <= time["cycleTime"]["ci"]["upper"]
        assert time["touchTime"]["value"] == time["cycleTime"]["value"]
        assert time["activitiesPerCase"]["value"] == 6.67
        assert time["topBottleneck"] is None

    def test_volume(self, o2c_log):
        """Counts and work in progress."""
        volume = KPIEngine().calculate(o2c_log).volume
        assert volume["caseCount"]["value"] == 3
        assert volume["eventCount"]["value"] == 20
        assert volume["activityTypes"]["value"] == 7
        assert volume["avgWorkInProgress"]["value"] == 1
        assert volume["throughput"] is None

    def test_resource(self, o2c_log):
        """Resources, handovers and automation."""
        resource = KPIEngine().calculate(o2c_log).resource
        assert resource["resourceCount"]["value"] == 7
        assert resource["avgHandoversPerCase"]["value"] == 5.67
        assert resource["automationRate"]["value"] == 20.0
        assert resource["sodViolations"] is None
        assert resource["workloadBalance"] is None

    def test_conformance_without_result(self, o2c_log):
        """Conformance KPIs need a conformance result."""
        conformance = KPIEngine().calculate(o2c_log).conformance
        assert conformance == {"fitness": None, "precision": None, "conformanceRate": None,
                               "avgDeviationsPerCase": None}

    def test_empty_log(self, empty_log):
        """Empty logs give zero-valued KPIs."""
        report = KPIEngine().calculate(empty_log)
        assert report.time["cycleTime"]["value"] == 0
        assert report.time["cycleTime"]["ci"] is None
        assert report.quality["reworkRate"]["value"] == 0.0
        assert report.quality["firstTimeRightRate"]["value"] == 100.0
        assert report.volume["avgWorkInProgress"]["value"] == 0


class TestWithAnalyzerResults:
    """KPIs fed by the other analyzers."""

    def test_all_inputs(self, o2c_log):
        """Every optional KPI is filled in when its input is given."""
        variants = VariantAnalyzer().analyze(o2c_log)
        performance = PerformanceAnalyzer().analyze(o2c_log)
        social = SocialNetworkMiner().analyze(o2c_log)
        conformance = ConformanceChecker(ReferenceModel.from_sequence("O2C", O2C_HAPPY)).check_log(o2c_log)

        report = KPIEngine().calculate(
            o2c_log,
            variant_result=variants,
            performance_result=performance,
            social_result=social,
            conformance_result=conformance,
        )
        assert report.quality["happyPathRate"]["value"] == 66.67
        assert report.time["topBottleneck"]["value"] == performance.bottlenecks[0]["location"]
        assert report.volume["throughput"]["value"] == performance.throughput["arrivalRatePerDay"]
        assert report.resource["sodViolations"]["value"] == 0
        assert report.conformance["fitness"]["value"] == conformance.fitness
        assert report.conformance["conformanceRate"]["value"] == 66.67

    def test_flat_list_skips_missing(self, o2c_log):
        """get_all_kpis only lists computed KPIs."""
        kpis = KPIEngine().calculate(o2c_log).get_all_kpis()
        keys = {(k["category"], k["key"]) for k in kpis}
        assert ("Quality", "reworkRate") in keys
        assert ("Conformance", "fitness") not in keys
        assert ("Time", "topBottleneck") not in keys


class TestProcessKPIs:
    """Catalog process KPIs."""

    def test_o2c(self, o2c_log):
        """Transition, ratio and unsupported ratio KPIs for O2C."""
        process = KPIEngine().calculate(o2c_log, process_config=get_process_config("O2C")).process

        order_to_delivery = process["Order to Delivery Time"]
        assert order_to_delivery["count"] == 3
        assert order_to_delivery["targetOriginal"] == 5
        assert order_to_delivery["targetUnit"] == "days"
        assert order_to_delivery["target"] == 5 * 24 * 3600 * 1000
        assert order_to_delivery["compliance"] == 100.0

        # "Payment Received" does not occur in the sample log
        dso = process["Days Sales Outstanding"]
        assert dso["count"] == 0
        assert dso["compliance"] is None

        perfect = process["Perfect Order Rate"]
        assert perfect["value"] == 66.67
        assert perfect["target"] == 95.0

        assert process["On-Time Delivery Rate"]["value"] is None

    def test_reversal_ratio(self):
        """Reversed journal entries are counted per case."""
        base = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)
        log = build_log({
            "JE-1": sequence(["Create Journal Entry", "Post Journal Entry"], base),
            "JE-2": sequence(["Create Journal Entry", "Post Journal Entry", "Reverse Journal Entry"], base),
        })
        config = {"kpis": {"Reversal Rate": {"type": "ratio", "numerator": "reversed_entries",
                                             "denominator": "total_entries", "target": 0.05}}}
        kpi = KPIEngine().calculate(log, process_config=config).process["Reversal Rate"]
        assert kpi["value"] == 50.0
        assert kpi["target"] == 5.0

    def test_transition_uses_next_target_after_source(self):
        """The interval ends at the first target after the first source."""
        base = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)
        log = build_log({"C1": sequence(["B", "A", "X", "B", "B"], base)})
        config = {"kpis": {"A to B": {"from": "A", "to": "B", "unit": "hours", "target": 1}}}
        kpi = KPIEngine().calculate(log, process_config=config).process["A to B"]
        assert kpi["value"] == 2 * 3600 * 1000
        assert kpi["compliance"] == 0.0

    def test_composite(self, o2c_log):
        """Composite KPIs are declared but not measured."""
        config = {"kpis": {"Health": {"type": "composite", "components": ["a", "b"], "target": 0.8}}}
        kpi = KPIEngine().calculate(o2c_log, process_config=config).process["Health"]
        assert kpi["value"] is None
        assert kpi["target"] == 80
        assert kpi["components"] == ["a", "b"]


class TestValidation:
    """Argument validation and serialization."""

    def test_confidence_level(self):
        """Levels outside (0, 1) are rejected."""
        with pytest.raises(InvalidInputError):
            KPIEngine(confidence_level=1.5)

    def test_rejects_non_log(self):
        """Only EventLogs are measured."""
        with pytest.raises(InvalidInputError):
            KPIEngine().calculate({})

    def test_to_dict(self, o2c_log):
        """Serialized report carries all six categories."""
        data = KPIEngine().calculate(o2c_log).to_dict()
        assert set(data) == {"caseCount", "eventCount", "time", "quality", "volume",
                             "conformance", "resource", "process"}
        assert KPIEngine().calculate(o2c_log).get_summary()["reworkRate"] == 33.33
