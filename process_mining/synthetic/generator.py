"""
Synthetic SAP Event Log Generator.

Builds event logs that look like extracts from an SAP system, for demos
and tests of the analyzers:

- Cases follow the catalog process's reference activities
- A share of cases repeats a step (rework) or skips a step
- Step durations are exponentially distributed per step, so the log has
  a realistic long tail
- Resources are SAP-style user ids (USER001, ...) with a small pool of
  technical users (BATCH_JOB, RFC_USER) on automatable steps
- A small share of cases lets one user perform conflicting activities so
  the segregation-of-duties check has something to find

Generation is deterministic for a given seed (numpy Generator plus a
seeded Faker instance).

Usage:
    generator = SyntheticLogGenerator(seed=42)
    log = generator.generate("P2P", num_cases=500)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np
from faker import Faker

from ..catalog import get_process_config
from ..errors import InvalidInputError
from ..eventlog import Event, EventLog, Trace
from ..social import DEFAULT_SOD_RULES

logger = logging.getLogger(__name__)

CASE_PREFIXES = {
    "O2C": "SO",
    "P2P": "PO",
    "R2R": "JE",
    "A2R": "AS",
    "H2R": "PN",
    "P2M": "PRD",
    "M2S": "PM",
}

# Business partner attribute carried by each case
PARTNER_ATTRIBUTES = {
    "O2C": "customer",
    "P2P": "vendor",
}

TECHNICAL_USERS = ["BATCH_JOB", "RFC_USER", "SYSTEM"]

# Steps that SAP typically runs in background jobs
AUTOMATED_STEPS = {
    "Credit Check",
    "Three-Way Match",
    "Payment Sent",
    "Payment Received",
    "Send Invoice",
    "Run Depreciation",
    "Process Payroll",
}

REGIONS = ["US", "DE", "GB", "FR", "JP", "BR"]


@dataclass
class GeneratorConfig:
    """Knobs for synthetic log generation."""

    # Random seed for reproducibility
    seed: int = 42

    num_cases: int = 100
    num_users: int = 12
    start_date: str = "2025-01-01"
    end_date: str = "2025-06-30"

    # Deviation probabilities per case
    rework_probability: float = 0.15
    skip_probability: float = 0.10
    sod_violation_probability: float = 0.05
    automation_probability: float = 0.6

    # Mean hours between consecutive steps
    mean_step_hours: float = 18.0

    def validate(self) -> None:
        for name in ("rework_probability", "skip_probability",
                     "sod_violation_probability", "automation_probability"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise InvalidInputError(f"{name} must be between 0 and 1, got {value}")
        if self.num_cases < 0:
            raise InvalidInputError("num_cases must not be negative")
        if self.num_users < 2:
            raise InvalidInputError("num_users must be at least 2")
        if self.mean_step_hours <= 0:
            raise InvalidInputError("mean_step_hours must be positive")


class SyntheticLogGenerator:
    """
    Generate synthetic event logs for catalog processes.

    Example:
        generator = SyntheticLogGenerator(seed=7, rework_probability=0.3)
        log = generator.generate("O2C", num_cases=50)
        print(generator.stats)
    """

    def __init__(self, seed: int = 42, logger: Optional[logging.Logger] = None, **options: Any):
        self.config = GeneratorConfig(seed=seed, **options)
        self.config.validate()
        self.logger = logger or logging.getLogger(__name__)

        self.start_date = datetime.strptime(self.config.start_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        self.end_date = datetime.strptime(self.config.end_date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        if self.end_date <= self.start_date:
            raise InvalidInputError("end_date must be after start_date")
        self.date_range_seconds = int((self.end_date - self.start_date).total_seconds())

        self.rng = np.random.default_rng(seed)
        self.faker = Faker()
        self.faker.seed_instance(seed)

        self.users = [f"USER{i + 1:03d}" for i in range(self.config.num_users)]
        self.user_names = {user: self.faker.name() for user in self.users}
        self.partners = [self.faker.company() for _ in range(max(5, self.config.num_users))]

        self.stats = {
            "cases": 0,
            "events": 0,
            "rework_cases": 0,
            "skip_cases": 0,
            "sod_violation_cases": 0,
        }

    def _random_start(self) -> datetime:
        offset = int(self.rng.integers(0, self.date_range_seconds))
        return self.start_date + timedelta(seconds=offset)

    def _step_gap(self) -> timedelta:
        hours = float(self.rng.exponential(self.config.mean_step_hours))
        # Whole seconds, at least one minute apart
        return timedelta(seconds=max(60, int(hours * 3600)))

    def _pick_user(self) -> str:
        return str(self.rng.choice(self.users))

    def _build_path(self, reference: List[str]) -> List[str]:
        """Reference path with optional skip and rework applied."""
        path = list(reference)

        if len(path) > 2 and self.rng.random() < self.config.skip_probability:
            # Never skip the first or last step
            del path[int(self.rng.integers(1, len(path) - 1))]
            self.stats["skip_cases"] += 1

        if len(path) > 1 and self.rng.random() < self.config.rework_probability:
            index = int(self.rng.integers(1, len(path)))
            path.insert(index + 1, path[index])
            self.stats["rework_cases"] += 1

        return path

    def _conflicting_pair(self, reference: List[str]) -> Optional[List[str]]:
        for rule in DEFAULT_SOD_RULES:
            if all(a in reference for a in rule.activities):
                return list(rule.activities)
        return None

    def generate(self, process_id: str, num_cases: Optional[int] = None) -> EventLog:
        """
        Generate an event log for a catalog process.

        Args:
            process_id: Catalog process id (O2C, P2P, ...)
            num_cases: Number of cases (defaults to the configured count)

        Returns:
            EventLog named after the process
        """
        config = get_process_config(process_id)
        reference = list(config.get("referenceActivities") or [])
        if len(reference) < 2:
            raise InvalidInputError(f"Process {config['id']} has no usable reference path")
        count = self.config.num_cases if num_cases is None else num_cases
        if count < 0:
            raise InvalidInputError("num_cases must not be negative")

        tcodes = {}
        for tcode, activity in (config.get("tcodeMap") or {}).items():
            tcodes.setdefault(activity, tcode)
        conflict = self._conflicting_pair(reference)
        prefix = CASE_PREFIXES.get(config["id"], config["id"])
        partner_key = PARTNER_ATTRIBUTES.get(config["id"], "company")

        self.logger.info(f"Generating {count} synthetic {config['id']} cases")
        log = EventLog(config["name"], attributes={"process": config["id"], "synthetic": True})

        for i in range(count):
            case_id = f"{prefix}-{i + 1:06d}"
            trace = Trace(case_id, attributes={
                partner_key: str(self.rng.choice(self.partners)),
                "region": str(self.rng.choice(REGIONS)),
                "amount": round(float(self.rng.lognormal(8, 1)), 2),
            })

            path = self._build_path(reference)
            violating = conflict is not None and self.rng.random() < self.config.sod_violation_probability
            shared_user = self._pick_user() if violating else None
            if violating:
                self.stats["sod_violation_cases"] += 1

            timestamp = self._random_start()
            for step, activity in enumerate(path):
                if step > 0:
                    timestamp += self._step_gap()
                if shared_user and activity in conflict:
                    resource = shared_user
                elif activity in AUTOMATED_STEPS and self.rng.random() < self.config.automation_probability:
                    resource = str(self.rng.choice(TECHNICAL_USERS))
                else:
                    resource = self._pick_user()
                    # Keep conflicting steps apart unless a violation is planted
                    if conflict and activity == conflict[1]:
                        first = next((e.resource for e in trace.events if e.activity == conflict[0]), None)
                        while resource == first:
                            resource = self._pick_user()

                attributes = {}
                if activity in tcodes:
                    attributes["tcode"] = tcodes[activity]
                if resource in self.user_names:
                    attributes["userName"] = self.user_names[resource]
                trace.add_event(Event(activity, timestamp, resource=resource, attributes=attributes))

            log.add_trace(trace)
            self.stats["cases"] += 1
            self.stats["events"] += len(trace)

        self.logger.debug(f"Generation stats: {self.stats}")
        return log
