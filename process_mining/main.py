"""
Main CLI entry point for the SAP Process Mining Core.

Usage:
    process-mining analyze --input o2c.xes --process O2C --output report.json
    process-mining export --input o2c.csv --output o2c.xes
    process-mining generate --process P2P --cases 500 --output p2p.json
    process-mining catalog [PROCESS_ID] [--s4]
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import click

from . import DEFAULT_CONFIG, __version__
from .catalog import adapt_config_for_s4, get_all_process_ids, get_process_config
from .errors import ProcessMiningError
from .eventlog import EventLog
from .intelligence import PHASES, ProcessIntelligenceEngine
from .stats import convert_for_json
from .synthetic import SyntheticLogGenerator

logger = logging.getLogger(__name__)

FORMATS = ["json", "csv", "xes"]


def detect_format(path: Path, explicit: Optional[str]) -> str:
    """Format from --format, else from the file extension."""
    if explicit:
        return explicit
    suffix = path.suffix.lower().lstrip(".")
    if suffix in FORMATS:
        return suffix
    raise click.BadParameter(f"Cannot infer format of {path}; pass --format")


def load_log(path: Path, fmt: str) -> EventLog:
    text = path.read_text(encoding="utf-8")
    if fmt == "json":
        return EventLog.from_json(text)
    if fmt == "csv":
        return EventLog.from_csv(text, name=path.stem)
    return EventLog.from_xes(text)


def dump_log(log: EventLog, fmt: str) -> str:
    if fmt == "json":
        return log.to_json_string()
    if fmt == "csv":
        return log.to_csv()
    return log.to_xes()


def write_output(payload: Any, output: Optional[str]) -> None:
    text = payload if isinstance(payload, str) else json.dumps(convert_for_json(payload), indent=2, default=str)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Saved to {output}", err=True)
    else:
        click.echo(text)


def run_analysis(
    log: EventLog,
    process_config: Optional[Dict[str, Any]] = None,
    sla_targets: Optional[Dict[str, Dict[str, Any]]] = None,
    config: Optional[Dict[str, Any]] = None,
    skip: Sequence[str] = (),
) -> Dict[str, Any]:
    """Run every analyzer on a log and assemble the JSON report."""
    engine = ProcessIntelligenceEngine(config or DEFAULT_CONFIG)
    report = engine.analyze(log, process_config=process_config, sla_targets=sla_targets, skip=skip)
    for error in report.errors:
        click.echo(f"Warning: {error['phase']} phase failed: {error['error']}", err=True)
    return report.to_dict()


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              default='WARNING', help='Logging verbosity')
@click.pass_context
def cli(ctx, log_level: str):
    """SAP Process Mining

    Discovers process models and measures variants, performance,
    organizational behavior, conformance and KPIs of SAP event logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['config'] = dict(DEFAULT_CONFIG)


@cli.command()
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Event log file (JSON, CSV or XES)')
@click.option('--format', '-f', 'input_format', type=click.Choice(FORMATS), default=None,
              help='Input format (default: from file extension)')
@click.option('--process', '-p', 'process_id', default=None,
              help='Process id for the reference model, SLA targets and KPIs (e.g. O2C)')
@click.option('--sla', 'sla_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='JSON file of SLA targets')
@click.option('--s4', is_flag=True, help='Adapt the process config for S/4HANA')
@click.option('--skip', 'skip', multiple=True, type=click.Choice(PHASES),
              help='Analysis phase to leave out (repeatable)')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Report file (default: stdout)')
@click.pass_context
def analyze(ctx, input_path: str, input_format: Optional[str], process_id: Optional[str],
            sla_path: Optional[str], s4: bool, skip: Sequence[str], output: Optional[str]):
    """Run the full analysis on an event log and emit a JSON report."""
    path = Path(input_path)
    try:
        log = load_log(path, detect_format(path, input_format))
        process_config = get_process_config(process_id) if process_id else None
        if process_config and s4:
            process_config = adapt_config_for_s4(process_config)
        sla_targets = json.loads(Path(sla_path).read_text(encoding="utf-8")) if sla_path else None
        click.echo(f"Analyzing {log.get_case_count()} cases, {log.get_event_count()} events...", err=True)
        report = run_analysis(log, process_config, sla_targets, ctx.obj['config'], skip)
    except (ProcessMiningError, json.JSONDecodeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    write_output(report, output)


@cli.command()
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Event log file')
@click.option('--from', 'input_format', type=click.Choice(FORMATS), default=None,
              help='Input format (default: from file extension)')
@click.option('--to', 'output_format', type=click.Choice(FORMATS), default=None,
              help='Output format (default: from output extension)')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
def export(input_path: str, input_format: Optional[str], output_format: Optional[str],
           output: Optional[str]):
    """Convert an event log between JSON, CSV and XES."""
    path = Path(input_path)
    if output_format is None:
        if output is None:
            raise click.UsageError("Pass --to when writing to stdout")
        output_format = detect_format(Path(output), None)
    try:
        log = load_log(path, detect_format(path, input_format))
    except ProcessMiningError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Converted {log.get_case_count()} cases to {output_format}", err=True)
    write_output(dump_log(log, output_format), output)


@cli.command()
@click.option('--process', '-p', 'process_id', default='O2C', help='Catalog process id')
@click.option('--cases', '-n', default=100, type=int, help='Number of cases')
@click.option('--seed', default=DEFAULT_CONFIG['random_seed'], type=int, help='Random seed for reproducibility')
@click.option('--rework', default=0.15, type=float, help='Rework probability per case')
@click.option('--skip', default=0.10, type=float, help='Skip probability per case')
@click.option('--format', '-f', 'output_format', type=click.Choice(FORMATS), default=None,
              help='Output format (default: from output extension, else json)')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
def generate(process_id: str, cases: int, seed: int, rework: float, skip: float,
             output_format: Optional[str], output: Optional[str]):
    """Generate a synthetic SAP event log."""
    if output_format is None:
        output_format = detect_format(Path(output), None) if output else "json"
    try:
        generator = SyntheticLogGenerator(seed=seed, rework_probability=rework, skip_probability=skip)
        log = generator.generate(process_id, num_cases=cases)
    except ProcessMiningError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Generated {log.get_case_count()} cases, {log.get_event_count()} events", err=True)
    write_output(dump_log(log, output_format), output)


@cli.command()
@click.argument('process_id', required=False)
@click.option('--s4', is_flag=True, help='Show the S/4HANA-adapted configuration')
def catalog(process_id: Optional[str], s4: bool):
    """List catalog processes, or print one process configuration."""
    if not process_id:
        for pid in get_all_process_ids():
            config = get_process_config(pid)
            click.echo(f"{pid:<5} {config['name']}")
        return

    try:
        config = get_process_config(process_id)
    except ProcessMiningError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    write_output(adapt_config_for_s4(config) if s4 else config, None)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
