"""
Tests for the heuristic miner.

Tests cover:
- Sequential and exclusive-choice logs
- Dependency bounds and edge filtering
- Length-1 and length-2 loops
- Config parsing and model immutability
"""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from process_mining.cancellation import CancellationToken
from process_mining.discovery import HeuristicMiner, HeuristicMinerConfig
from process_mining.errors import InvalidInputError, OperationCancelledError

from conftest import UTC, build_log, sequence


BASE = datetime(2025, 5, 1, 8, 0, tzinfo=UTC)


def log_of(*variants):
    """Build a log from (activities, repeat) pairs."""
    cases = {}
    n = 0
    for activities, repeat in variants:
        for _ in range(repeat):
            cases[f"C{n}"] = sequence(activities, BASE)
            n += 1
    return build_log(cases)


class TestSequentialLog:
    """A strictly sequential log gives a chain."""

    def test_chain(self, sequential_p2p_log):
        """Four edges, each with frequency 20 and dependency 0.952."""
        model = HeuristicMiner().analyze(sequential_p2p_log)
        assert [(e.source, e.target) for e in model.edges] == [
            ("CREATE_PO", "APPROVE_PO"),
            ("APPROVE_PO", "GR"),
            ("GR", "IR"),
            ("IR", "PAYMENT"),
        ]
        for edge in model.edges:
            assert edge.frequency == 20
            assert edge.dependency == 0.952
        assert dict(model.start_activities) == {"CREATE_PO": 20}
        assert dict(model.end_activities) == {"PAYMENT": 20}
        assert model.gateways == ()
        assert model.loops_l1 == ()

    def test_activities_in_first_seen_order(self, sequential_p2p_log):
        """Activities keep their first-seen order."""
        model = HeuristicMiner().mine(sequential_p2p_log)
        assert model.activities == ("CREATE_PO", "APPROVE_PO", "GR", "IR", "PAYMENT")

    def test_summary_and_text(self, sequential_p2p_log):
        """Summary counts and a readable description."""
        model = HeuristicMiner().analyze(sequential_p2p_log)
        assert model.get_summary() == {
            "activityCount": 5, "edgeCount": 4, "gatewayCount": 0,
            "loopCount": 0, "caseCount": 20, "eventCount": 100,
        }
        assert "CREATE_PO -> APPROVE_PO" in model.to_text()


class TestExclusiveChoice:
    """A-B-D / A-C-D gives an exclusive split and join."""

    def test_xor_split_and_join(self, xor_log):
        """The split at A and the join at D are xor with branches B and C."""
        model = HeuristicMiner().analyze(xor_log)
        assert model.get_successors("A") == ["B", "C"]
        splits = model.get_xor_splits()
        assert len(splits) == 1
        assert splits[0].activity == "A"
        assert splits[0].branches == ("B", "C")
        assert splits[0].branch_frequencies == (10, 10)
        joins = [g for g in model.gateways if g.gateway_type == "join"]
        assert len(joins) == 1
        assert joins[0].activity == "D"
        assert joins[0].type == "xor"
        assert model.get_and_splits() == []

    def test_edge_dependency(self, xor_log):
        """A -> B has dependency 10 / 11."""
        model = HeuristicMiner().analyze(xor_log)
        assert model.get_edge("A", "B").dependency == 0.909
        assert model.get_directly_follows_count("A", "B") == 10


class TestParallelism:
    """Both branch orders in every case give an and-split."""

    def test_and_split(self):
        """B and C co-occur in every case."""
        log = log_of((["A", "B", "C", "D"], 5), (["A", "C", "B", "D"], 5))
        model = HeuristicMiner().analyze(log)
        # B<->C cancel out, so only A->B and A->C leave A
        splits = [g for g in model.gateways if g.gateway_type == "split" and g.activity == "A"]
        assert len(splits) == 1
        assert splits[0].type == "and"


class TestDependencyMatrix:
    """Dependency values and edge filtering."""

    def test_bounds(self, p2p_variant_log):
        """Off-diagonal values lie in [-1, 1], the diagonal in [0, 1)."""
        model = HeuristicMiner().analyze(p2p_variant_log)
        for a, row in model.dep_matrix.items():
            for b, value in row.items():
                if a == b:
                    assert 0 <= value < 1
                else:
                    assert -1 <= value <= 1

    def test_edges_meet_min_frequency(self, p2p_variant_log):
        """Every kept edge meets the frequency floor."""
        model = HeuristicMiner({"min_frequency": 3}).analyze(p2p_variant_log)
        assert model.edges
        assert all(e.frequency >= 3 for e in model.edges)

    def test_noise_filtered(self):
        """A rare reversed pair does not become an edge."""
        log = log_of((["A", "B"], 10), (["B", "A"], 1))
        model = HeuristicMiner().analyze(log)
        assert model.has_transition("A", "B")
        assert not model.has_transition("B", "A")

    def test_edge_order(self, xor_log):
        """Edges are grouped by source in first-seen order."""
        model = HeuristicMiner().analyze(xor_log)
        assert [(e.source, e.target) for e in model.edges] == [
            ("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"),
        ]


class TestLoops:
    """Length-1 and length-2 loop detection."""

    def test_self_loop(self):
        """B B three times gives dependency 0.75."""
        model = HeuristicMiner().analyze(log_of((["A", "B", "B", "C"], 3)))
        assert model.get_self_loop_activities() == ["B"]
        loop = model.loops_l1[0]
        assert loop.frequency == 3
        assert loop.dependency == 0.75

    def test_self_loop_below_threshold(self):
        """A single repetition stays below a stricter threshold."""
        model = HeuristicMiner({"loop_length_one_threshold": 0.6}).analyze(log_of((["A", "B", "B", "C"], 1)))
        assert model.loops_l1 == ()

    def test_length_two_loop_one_entry_per_pair(self):
        """A-B-A and B-A-B collapse into one loop entry."""
        model = HeuristicMiner().analyze(log_of((["A", "B", "A", "B"], 2)))
        assert len(model.loops_l2) == 1
        loop = model.loops_l2[0]
        assert set(loop.activities) == {"A", "B"}
        assert loop.frequency == 2
        assert loop.reverse_frequency == 2
        assert loop.dependency == 0.8


class TestEdgeCases:
    """Empty input, validation, config and immutability."""

    def test_empty_log(self, empty_log):
        """Empty logs give an empty model."""
        model = HeuristicMiner().analyze(empty_log)
        assert model.is_empty()
        assert model.edges == ()
        assert model.to_dict()["stats"]["caseCount"] == 0

    def test_single_event_traces(self):
        """Single-event traces give activities but no edges."""
        model = HeuristicMiner().analyze(log_of((["A"], 3)))
        assert model.activities == ("A",)
        assert model.edges == ()

    def test_rejects_non_log(self):
        """Only EventLogs are mined."""
        with pytest.raises(InvalidInputError):
            HeuristicMiner().analyze([])

    def test_rejects_bad_config(self):
        """Config must be a dict or HeuristicMinerConfig."""
        with pytest.raises(InvalidInputError):
            HeuristicMiner("strict")

    def test_config_from_dict(self):
        """camelCase and snake_case keys are accepted; unknown keys are ignored."""
        config = HeuristicMinerConfig.from_dict({
            "dependencyThreshold": 0.9, "min_frequency": 2, "colour": "red",
        })
        assert config.dependency_threshold == 0.9
        assert config.min_frequency == 2
        assert config.and_threshold == 0.1

    def test_model_is_frozen(self, xor_log):
        """Models and their matrices cannot be mutated."""
        model = HeuristicMiner().analyze(xor_log)
        with pytest.raises(FrozenInstanceError):
            model.edges = ()
        with pytest.raises(TypeError):
            model.df_matrix["A"]["B"] = 99

    def test_cancellation(self, xor_log):
        """A cancelled token stops mining."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            HeuristicMiner().analyze(xor_log, cancel_token=token)
