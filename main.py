#!/usr/bin/env python3
"""Agency Core - eleven-stage agent pipeline.

Usage:
    python main.py run --prompt "Create a hello world function"       # run the pipeline
    python main.py run --prompt "..." --mock --verbose                # offline stub provider
    python main.py run --prompt "..." --live                          # really run allowlisted commands
    python main.py show <run_id>                                      # print a stored run
    python main.py portfolio
    python main.py lessons
    python main.py analyze
    python main.py list-agents
"""

import argparse
import json
import logging
import sys

from config.defaults import DEFAULTS
from core.errors import AgencyError, PipelineError
from core.memory import MemoryStore
from core.orchestrator import Orchestrator
from core.permissions import LEVEL_TITLES
from utils.analyst import analyze_portfolio
from utils.llm import create_provider
from utils.mock_llm import MockProvider


def _print_artifact(artifact, verbose=False):
    gk = artifact.gatekeeper
    card = gk.scorecard
    print(f"Run:       {artifact.run_id}")
    print(f"Request:   {artifact.request}")
    print(f"Domain:    {artifact.observer.domain}")
    print(f"Keywords:  {', '.join(artifact.observer.keywords)}")
    print(f"Plan:      {len(artifact.guide.plan)} step(s), {artifact.guide.estimated_complexity} complexity")
    print(f"Safe:      {'yes' if artifact.safety_guard.safe else 'NO'}")
    print(f"Actions:   {len(artifact.implementor.actions)} proposed, {len(artifact.implementor.blocked)} blocked")
    print(
        f"Score:     {gk.total_score}/25  (correctness {card.correctness}, "
        f"verification {card.verification}, safety {card.safety}, "
        f"clarity {card.clarity}, autonomy {card.autonomy})"
    )
    print(f"Decision:  lessons {'approved' if gk.decision.approve_lesson else 'rejected'}"
          f"{', promote to L' + str(gk.decision.new_level) if gk.decision.promote else ''}"
          f"{', clone allowed' if gk.decision.allow_clone else ''}")
    print(f"Feedback:  {gk.feedback}")

    if not verbose:
        return
    if artifact.safety_guard.risks:
        print("\nRisks:")
        for risk in artifact.safety_guard.risks:
            print(f"  - {risk}")
    if artifact.implementor.blocked:
        print("\nBlocked:")
        for entry in artifact.implementor.blocked:
            print(f"  - {entry}")
    print("\nExecuted:")
    for record in artifact.tool_runner.executed_commands:
        print(f"  [{'ok' if record.success else 'FAIL'}] {record.command}")
    for skipped in artifact.tool_runner.skipped_commands:
        print(f"  [skip] {skipped}")
    if gk.improvements:
        print("\nImprovements for next run:")
        for note in gk.improvements:
            print(f"  - {note}")


def cmd_run(args):
    """Run the full pipeline once."""
    llm = create_provider(force="mock" if args.mock else None)
    orchestrator = Orchestrator(llm=llm, tool_runner_mock_mode=not args.live)
    orchestrator.initialize()

    try:
        artifact = orchestrator.run(args.prompt)
    except PipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(artifact.model_dump_json(indent=2))
    else:
        print(f"Provider:  {llm.name}")
        _print_artifact(artifact, verbose=args.verbose)


def cmd_show(args):
    artifact = MemoryStore(DEFAULTS["memory_dir"]).load_run_artifact(args.run_id)
    if artifact is None:
        print(f"No run found with id {args.run_id}", file=sys.stderr)
        sys.exit(1)
    _print_artifact(artifact, verbose=True)


def cmd_portfolio(args):
    entries = MemoryStore(DEFAULTS["memory_dir"]).list_portfolio()
    if not entries:
        print("No runs recorded yet.")
        return
    for entry in entries:
        print(f"  {entry.total_score:2d}/25  {entry.run_id}  {entry.request[:60]}")


def cmd_lessons(args):
    lessons = MemoryStore(DEFAULTS["memory_dir"]).list_lessons()
    if not lessons:
        print("No approved lessons yet.")
        return
    for lesson in lessons:
        print(f"  {lesson.title}  [{', '.join(lesson.tags)}]  ({lesson.source})")


def cmd_analyze(args):
    report = analyze_portfolio(MemoryStore(DEFAULTS["memory_dir"]))
    if not report.total_runs:
        print("No runs recorded yet.")
        return
    print(f"Runs:    {report.total_runs}")
    print(f"Average: {report.average_total_score}/25  (best {report.best_score}, worst {report.worst_score})")
    if not report.weaknesses:
        print("No weak dimensions.")
        return
    print("\nWeaknesses:")
    for w in report.weaknesses:
        print(f"  {w.dimension:12s} {w.average_score}/5  -> {w.likely_cause}")
        print(f"               {w.suggestion}")


def cmd_list_agents(args):
    orchestrator = Orchestrator(llm=MockProvider())
    print("Pipeline stages:")
    for i, (name, desc) in enumerate(orchestrator.describe_agents(), 1):
        print(f"  {i:2d}. {name:16s} - {desc}")
    print("\nPermission levels:")
    for level, title in LEVEL_TITLES.items():
        print(f"  L{level}  {title}")


def main():
    parser = argparse.ArgumentParser(
        prog="agencycore",
        description="Eleven-stage agent pipeline with safety gating and feedback",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run the pipeline on a request")
    run_parser.add_argument("--prompt", required=True, help="Natural language request")
    run_parser.add_argument("--mock", action="store_true",
                            help="Use the deterministic offline provider")
    run_parser.add_argument("--live", action="store_true",
                            help="Execute allowlisted commands instead of mock-executing")
    run_parser.add_argument("--verbose", action="store_true",
                            help="Show risks, blocked actions and stage logs")
    run_parser.add_argument("--json", action="store_true",
                            help="Print the full run artifact as JSON")

    show_parser = subparsers.add_parser("show", help="Show a stored run")
    show_parser.add_argument("run_id")

    subparsers.add_parser("portfolio", help="List scored runs")
    subparsers.add_parser("lessons", help="List approved lessons")
    subparsers.add_parser("analyze", help="Find the weakest scorecard dimensions")
    subparsers.add_parser("list-agents", help="List pipeline stages")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "run": cmd_run,
        "show": cmd_show,
        "portfolio": cmd_portfolio,
        "lessons": cmd_lessons,
        "analyze": cmd_analyze,
        "list-agents": cmd_list_agents,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except AgencyError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
