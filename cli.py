#!/usr/bin/env python3
"""
Command-line interface for the event bus and notifier.

Usage:
    python cli.py [command] [options]

Commands:
    demo        Emit sample events and show what the notifier does with them
    test        Run pytest over tests/
    serve       Serve the notifier HTTP API with uvicorn

Examples:
    python cli.py demo notifications
    python cli.py demo backpressure
    python cli.py serve --port 9000 --reload
"""

import argparse
import subprocess
import sys
from typing import Optional

DEMO_SCENARIOS = ("notifications", "chat", "backpressure", "all")


def run_demo(scenario: str) -> None:
    """Run one demo scenario, or every one of them for "all"."""
    from notifier.demo import run_backpressure_demo, run_chat_demo, run_notifications_demo

    demos = {
        "notifications": run_notifications_demo,
        "chat": run_chat_demo,
        "backpressure": run_backpressure_demo,
    }
    selected = list(demos.values()) if scenario == "all" else [demos[scenario]]
    for demo in selected:
        demo()


def run_tests(pytest_args: list[str]) -> int:
    """Run pytest in a child process and return its exit code."""
    return subprocess.run([sys.executable, "-m", "pytest", *pytest_args]).returncode


def serve(host: str, port: int, reload: bool) -> None:
    """Serve api.main:app until interrupted."""
    import uvicorn

    print(f"Notifier API on http://{host}:{port} (docs at /docs)")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bazaar-notifier",
        description="Event bus and notifier tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo chat
  %(prog)s demo
  %(prog)s test -k backpressure
  %(prog)s serve --reload
        """,
    )
    commands = parser.add_subparsers(dest="command")

    demo = commands.add_parser("demo", help="Emit sample events through a live notifier")
    demo.add_argument("scenario", nargs="?", default="all", choices=DEMO_SCENARIOS)

    test = commands.add_parser("test", help="Run pytest")
    test.add_argument("pytest_args", nargs="*", help="Passed through to pytest")

    server = commands.add_parser("serve", help="Serve the HTTP API")
    server.add_argument("--host", default="127.0.0.1")
    server.add_argument("--port", type=int, default=8000)
    server.add_argument("--reload", action="store_true", help="Restart on code changes")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    # Everything after "test" belongs to pytest, options included
    if argv[:1] == ["test"]:
        sys.exit(run_tests(argv[1:]))

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "demo":
        run_demo(args.scenario)
    elif args.command == "serve":
        serve(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
