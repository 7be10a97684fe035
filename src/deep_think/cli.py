"""Command-line interface for deep-think.

Provides subcommands for running a refinement (``deep``) or multi-agent
(``ultra``) session, generating clarifying questions only, and showing
framework information.  Heavy imports happen inside the handlers so that
``deep-think info`` stays fast.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    deep-think = "deep_think.cli:main"

Usage examples::

    deep-think run "Prove that sqrt(2) is irrational" --model gpt-4.1
    deep-think run "Design a cache" --mode ultra --max-agents 3 --json
    deep-think run "..." --stage verification=o3 --stage summary=gpt-4.1-mini
    deep-think run "..." --config settings.yaml --sse
    deep-think ask "Plan my migration to Postgres"
    deep-think info
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

DEFAULT_MODEL = "gpt-4.1"


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="deep-think",
        description="Deep Think -- iterative solve/verify/correct reasoning over chat models.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- shared options ----------------------------------------------------
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "problem",
        nargs="?",
        default=None,
        help="Problem statement.  Use '-' to read it from stdin.",
    )
    common.add_argument(
        "--model",
        type=str,
        default=None,
        help=f"Default thinking model. (default: {DEFAULT_MODEL})",
    )
    common.add_argument(
        "--stage",
        action="append",
        default=[],
        metavar="STAGE=MODEL",
        help="Per-stage model override, e.g. verification=o3.  Repeatable.",
    )
    common.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or YAML file with deep_think / ultra_think / model_stages / search sections.",
    )
    common.add_argument(
        "--web-search",
        action="store_true",
        default=False,
        help="Enable the model's built-in web search where supported.",
    )

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        parents=[common],
        help="Run a deep-think or ultra-think session.",
        description="Solve a problem with the refinement loop or the multi-agent mode.",
    )
    run_parser.add_argument(
        "--mode",
        choices=["deep", "ultra"],
        default="deep",
        help="Single-track refinement or multi-agent. (default: deep)",
    )
    run_parser.add_argument("--max-iterations", type=int, default=None)
    run_parser.add_argument("--required-successes", type=int, default=None)
    run_parser.add_argument("--max-errors", type=int, default=None)
    run_parser.add_argument(
        "--max-agents",
        type=int,
        default=None,
        help="Cap on the number of agents in ultra mode.",
    )
    run_parser.add_argument(
        "--plan",
        action="store_true",
        default=False,
        help="Generate a thinking plan before exploring (deep mode).",
    )
    run_parser.add_argument(
        "--ask",
        action="store_true",
        default=False,
        help="Generate clarifying questions first.",
    )
    run_parser.add_argument(
        "--interactive",
        action="store_true",
        default=False,
        help="With --ask, stop after the questions and wait for --answers.",
    )
    run_parser.add_argument(
        "--answers",
        type=str,
        default=None,
        help="Answers to previously generated questions.",
    )
    run_parser.add_argument(
        "--context",
        type=str,
        default=None,
        help="File with reference material folded into the system prompt.",
    )
    output = run_parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the result as JSON instead of a table.",
    )
    output.add_argument(
        "--sse",
        action="store_true",
        default=False,
        help="Print the run as a server-sent-events stream.",
    )

    # -- ask ---------------------------------------------------------------
    subparsers.add_parser(
        "ask",
        parents=[common],
        help="Generate clarifying questions only.",
        description="Ask the questions model what it needs to know about a problem.",
    )

    # -- info --------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version, model families and pipeline stages.",
        description="Display version, registered model families and dependency status.",
    )

    return parser


# =========================================================================
# Option building
# =========================================================================

def _read_problem(value: str | None) -> str | None:
    if value == "-":
        return sys.stdin.read().strip()
    return value


def _load_config_file(path: str) -> dict[str, Any]:
    from deep_think.infrastructure.config import read_config_sections

    # JSON documents parse as YAML
    return read_config_sections(Path(path).read_text(encoding="utf-8"))


def _parse_stage_overrides(pairs: list[str]) -> dict[str, str]:
    from deep_think.domain.enums import Stage

    known = {s.value: s for s in Stage}
    known.update({s.name.lower(): s for s in Stage})
    overrides: dict[str, str] = {}
    for pair in pairs:
        name, sep, model = pair.partition("=")
        if not sep or not model:
            raise ValueError(f"--stage expects STAGE=MODEL, got {pair!r}")
        stage = known.get(name.strip())
        if stage is None:
            raise ValueError(
                f"Unknown stage {name!r}. Known stages: {', '.join(s.value for s in Stage)}"
            )
        overrides[stage.value] = model.strip()
    return overrides


def _build_options(args: argparse.Namespace, ultra: bool) -> Any:
    """Merge config file sections and command-line flags into run options."""
    from deep_think.infrastructure.config import DeepThinkOptions, UltraThinkOptions

    cls = UltraThinkOptions if ultra else DeepThinkOptions
    sections = _load_config_file(args.config) if args.config else {}

    data: dict[str, Any] = {}
    base = sections.get("ultra_think" if ultra else "deep_think")
    if isinstance(base, dict):
        data.update(base)
    for key in ("model_stages", "search"):
        if isinstance(sections.get(key), dict):
            data[key] = dict(sections[key])

    problem = _read_problem(args.problem)
    if problem:
        data["problem_statement"] = problem
    if args.model:
        data["thinking_model"] = args.model
    data.setdefault("problem_statement", "")
    data.setdefault("thinking_model", DEFAULT_MODEL)

    stages = _parse_stage_overrides(args.stage)
    if stages:
        data["model_stages"] = {**data.get("model_stages", {}), **stages}
    if args.web_search:
        data["search"] = {**data.get("search", {}), "enabled": True}

    flag_map = {
        "max_iterations": getattr(args, "max_iterations", None),
        "required_successful_verifications": getattr(args, "required_successes", None),
        "max_errors_before_give_up": getattr(args, "max_errors", None),
        "user_answers": getattr(args, "answers", None),
    }
    if ultra:
        flag_map["max_agents"] = getattr(args, "max_agents", None)
    data.update({k: v for k, v in flag_map.items() if v is not None})

    if getattr(args, "ask", False):
        data["enable_ask_questions"] = True
    if getattr(args, "interactive", False):
        data["enable_interactive_mode"] = True
    if getattr(args, "plan", False):
        data["enable_planning"] = True
    context = getattr(args, "context", None)
    if context:
        data["knowledge_context"] = Path(context).read_text(encoding="utf-8")

    return cls.from_dict(data)


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_run(args: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand."""
    from deep_think.infrastructure.event_bus import ProgressEmitter
    from deep_think.infrastructure.llm.factory import ChatModelFactory
    from deep_think.infrastructure.serialization import to_json
    from deep_think.presentation.console import ConsoleDashboard
    from deep_think.services.orchestrator import MultiAgentOrchestrator
    from deep_think.services.refinement import RefinementEngine
    from deep_think.services.streaming import format_sse, stream_run

    ultra = args.mode == "ultra"
    options = _build_options(args, ultra)
    factory = ChatModelFactory()
    emitter = ProgressEmitter()
    if ultra:
        engine: Any = MultiAgentOrchestrator(options, model_factory=factory, emitter=emitter)
    else:
        engine = RefinementEngine(options, model_factory=factory, emitter=emitter)

    if args.sse:
        async def _stream() -> bool:
            completed = False
            async for name, payload in stream_run(
                engine.run,
                emitter,
                mode="ultra-think" if ultra else "deep-think",
                max_agents=getattr(options, "max_agents", None),
            ):
                sys.stdout.write(format_sse((name, payload)))
                sys.stdout.flush()
                completed = completed or name == "result"
            return completed

        # A run that raised ends its stream with an error and no result
        return 0 if asyncio.run(_stream()) else 1

    dashboard = ConsoleDashboard(verbose=args.verbose > 0)
    if not args.json:
        emitter.subscribe_all(dashboard.on_event)

    result = asyncio.run(engine.run())

    if args.json:
        print(to_json(result))
    elif ultra:
        dashboard.print_ultra_result(result)
    else:
        dashboard.print_deep_result(result)
    return 0


def _cmd_ask(args: argparse.Namespace) -> int:
    """Handle the ``ask`` subcommand."""
    from deep_think.infrastructure.llm.factory import ChatModelFactory
    from deep_think.services.refinement import RefinementEngine

    options = _build_options(args, ultra=False)
    engine = RefinementEngine(options, model_factory=ChatModelFactory())
    print(asyncio.run(engine.ask_questions()))
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from importlib.metadata import PackageNotFoundError, version

    from deep_think import __version__
    from deep_think.domain.enums import Stage
    from deep_think.infrastructure.llm.factory import ChatModelFactory

    print(f"Deep Think v{__version__}")
    print()

    backends = {
        "langchain-core": "Chat model abstraction (required)",
        "langgraph": "Refinement loop graph (required)",
        "langchain-openai": "OpenAI and OpenRouter models",
        "langchain-anthropic": "Anthropic models",
        "rich": "Console output",
    }
    print("Dependencies:")
    for dist, desc in backends.items():
        try:
            print(f"  [installed] {dist} {version(dist)} -- {desc}")
        except PackageNotFoundError:
            print(f"  [missing]   {dist} -- {desc}")
    print()

    print("Model families:")
    for name in ChatModelFactory().registered_families:
        print(f"  - {name}")
    print()

    print("Pipeline stages (override with --stage STAGE=MODEL):")
    for stage in Stage:
        print(f"  - {stage.value}")
    return 0


# =========================================================================
# Main entry point
# =========================================================================

def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from deep_think import __version__
        print(f"deep-think {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.verbose)

    handlers: dict[str, Any] = {
        "run": _cmd_run,
        "ask": _cmd_ask,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
