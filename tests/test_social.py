"""
Tests for organizational mining.

Tests cover:
- Handover of work and working-together pairs
- Utilization and workload balance
- Activity-resource matrix
- Segregation-of-duties checks
- Centrality
"""

from datetime import datetime

import pytest

from process_mining.errors import InvalidInputError
from process_mining.social import DEFAULT_SOD_RULES, SocialNetworkMiner, SoDRule

from conftest import UTC, build_log, sequence

BASE = datetime(2025, 2, 3, 9, 0, tzinfo=UTC)


@pytest.fixture
def chain_log():
    """One case handed u1 -> u2 -> u2 -> u3."""
    return build_log({
        "C1": sequence(["A", "B", "C", "D"], BASE, resources=["u1", "u2", "u2", "u3"]),
    })


@pytest.fixture
def sod_log():
    """PO-1 is created and approved by the same user; PO-2 is not."""
    acts = ["Create Purchase Order", "Approve Purchase Order", "Goods Receipt"]
    return build_log({
        "PO-1": sequence(acts, BASE, resources=["USER_SMITH", "USER_SMITH", "USER_WH"]),
        "PO-2": sequence(acts, BASE, resources=["USER_JONES", "USER_LEE", "USER_WH"]),
    })


class TestHandover:
    """Handover of work."""

    def test_chain(self, chain_log):
        """Consecutive events by one resource are not a handover."""
        handover = SocialNetworkMiner().analyze(chain_log).handover_matrix
        assert handover["totalHandovers"] == 2
        assert handover["uniquePairs"] == 2
        pairs = {(e["from"], e["to"]) for e in handover["entries"]}
        assert pairs == {("u1", "u2"), ("u2", "u3")}

    def test_sorted_by_count(self, o2c_log):
        """Entries are ordered by count, highest first."""
        entries = SocialNetworkMiner().analyze(o2c_log).handover_matrix["entries"]
        counts = [e["count"] for e in entries]
        assert counts == sorted(counts, reverse=True)
        top = entries[0]
        assert top["count"] == 3

    def test_missing_resources_skipped(self):
        """Events without a resource break the handover chain."""
        log = build_log({"C1": sequence(["A", "B", "C"], BASE, resources=["u1", None, "u2"])})
        assert SocialNetworkMiner().analyze(log).handover_matrix["totalHandovers"] == 0


class TestWorkingTogether:
    """Resources sharing cases."""

    def test_pairs(self, chain_log):
        """Three resources on one case form three pairs."""
        together = SocialNetworkMiner().analyze(chain_log).working_together
        assert together["totalPairs"] == 3
        assert together["casesWithMultipleResources"] == 1
        assert {"resourceA": "u1", "resourceB": "u2", "sharedCases": 1} in together["entries"]


class TestUtilization:
    """Utilization and workload balance."""

    def test_resources(self, chain_log):
        """Per-resource counts, busiest first."""
        utilization = SocialNetworkMiner().analyze(chain_log).resource_utilization
        assert utilization["totalResources"] == 3
        busiest = utilization["resources"][0]
        assert busiest["resource"] == "u2"
        assert busiest["eventCount"] == 2
        assert busiest["uniqueActivities"] == 2
        assert busiest["avgEventsPerCase"] == 2.0

    def test_workload_balance(self, chain_log):
        """Event counts 1, 2, 1 have a coefficient of variation of 0.35."""
        workload = SocialNetworkMiner().analyze(chain_log).resource_utilization["workloadDistribution"]
        assert workload["coefficientOfVariation"] == 0.35
        assert workload["isBalanced"] is True

    def test_unbalanced(self):
        """One resource doing nearly everything is unbalanced."""
        log = build_log({"C1": sequence(["A"] * 9 + ["B"], BASE, resources=["u1"] * 9 + ["u2"])})
        workload = SocialNetworkMiner().analyze(log).resource_utilization["workloadDistribution"]
        assert workload["isBalanced"] is False


class TestActivityResourceMatrix:
    """Who performs which activity."""

    def test_primary_resource(self, o2c_log):
        """Credit checks all run as BATCH."""
        matrix = SocialNetworkMiner().analyze(o2c_log).activity_resource_matrix
        credit = next(e for e in matrix if e["activity"] == "Credit Check")
        assert credit["totalExecutions"] == 4
        assert credit["primaryResource"] == "BATCH"
        assert credit["primaryResourceShare"] == 100
        assert matrix[0]["activity"] == "Credit Check"

    def test_shared_activity(self, o2c_log):
        """Sales orders are split between two users."""
        matrix = SocialNetworkMiner().analyze(o2c_log).activity_resource_matrix
        create = next(e for e in matrix if e["activity"] == "Create Sales Order")
        assert create["resourceCount"] == 2
        assert create["primaryResource"] == "USER_A"
        assert create["primaryResourceShare"] == 67


class TestSegregationOfDuties:
    """SoD checks."""

    def test_default_rules_detect_violation(self, sod_log):
        """One case violates the create/approve PO rule."""
        sod = SocialNetworkMiner().analyze(sod_log).sod_violations
        assert sod["rulesChecked"] == len(DEFAULT_SOD_RULES)
        assert sod["totalViolations"] == 1
        assert sod["rulesViolated"] == 1
        po_rule = next(r for r in sod["rules"] if r["rule"] == "Create PO / Approve PO")
        assert po_rule["status"] == "violation"
        assert po_rule["violatingCases"] == [{"caseId": "PO-1", "resources": ["USER_SMITH"]}]

    def test_custom_rules(self, sod_log):
        """Rules can be passed as dicts."""
        sod = SocialNetworkMiner().analyze(
            sod_log, sod_rules=[{"name": "GR / PO", "activities": ["Goods Receipt", "Create Purchase Order"]}]
        ).sod_violations
        assert sod["rulesChecked"] == 1
        assert sod["totalViolations"] == 0
        assert sod["rules"][0]["status"] == "compliant"

    def test_case_counted_once(self):
        """Repeated conflicts in one case count once."""
        acts = ["Create Purchase Order", "Approve Purchase Order"] * 2
        log = build_log({"PO-1": sequence(acts, BASE, resources=["u1"] * 4)})
        rule = SoDRule("PO", ("Create Purchase Order", "Approve Purchase Order"))
        sod = SocialNetworkMiner().analyze(log, sod_rules=[rule]).sod_violations
        assert sod["rules"][0]["violationCount"] == 1

    def test_rule_validation(self):
        """Rules need a name and two distinct activities."""
        with pytest.raises(InvalidInputError):
            SoDRule("", ("A", "B"))
        with pytest.raises(InvalidInputError):
            SoDRule("same", ("A", "A"))
        with pytest.raises(InvalidInputError):
            SoDRule.coerce(["A", "B"])


class TestCentrality:
    """Handover centrality."""

    def test_middle_resource_most_central(self, chain_log):
        """u2 both receives and hands over work."""
        result = SocialNetworkMiner().analyze(chain_log)
        centrality = result.centrality_metrics
        assert centrality[0]["resource"] == "u2"
        assert centrality[0]["centralityScore"] == 1.0
        assert centrality[0]["totalDegree"] == 2
        scores = {row["resource"]: row["centralityScore"] for row in centrality}
        assert scores["u1"] == 0.5
        assert result.get_summary()["mostCentralResource"] == "u2"


class TestEdgeCases:
    """Empty input and serialization."""

    def test_empty_log(self, empty_log):
        """Empty logs give empty results."""
        result = SocialNetworkMiner().analyze(empty_log)
        assert result.handover_matrix["totalHandovers"] == 0
        assert result.centrality_metrics == []
        assert result.get_summary()["mostCentralResource"] is None
        assert result.sod_violations["totalViolations"] == 0

    def test_rejects_non_log(self):
        """Only EventLogs are analyzed."""
        with pytest.raises(InvalidInputError):
            SocialNetworkMiner().analyze("log")

    def test_to_dict(self, sod_log):
        """Serialized output carries the summary."""
        data = SocialNetworkMiner().analyze(sod_log).to_dict()
        assert data["summary"]["sodViolations"] == 1
        assert data["summary"]["resourceCount"] == 4
