#!/usr/bin/env python3
"""
ciact - Run a GitHub Actions workflow locally with act.

With a CHOICE (short code or workflow filename) the workflow runs straight
away. Without one, an interactive menu lists every workflow along with the
live status of its latest run on the current branch.
"""

import argparse
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ciact import __version__
from ciact.catalog import WorkflowCatalog, workflows_dir
from ciact.config import Settings, load_settings, show_config
from ciact.dispatch import Dispatcher
from ciact.errors import RunnerError, SelectionError
from ciact.gitctx import RepoContext
from ciact.log import setup_logging
from ciact.menu import LiveMenu, bold, red, terminal_for, yellow
from ciact.poller import PollSupervisor
from ciact.status import StatusClient


def _sigterm_handler(signum, frame):
    # SystemExit unwinds through the menu's cleanup
    raise SystemExit(128 + signum)


def run(choice: Optional[str], repo_path: Path, settings: Settings,
        stdin=None, stdout=None) -> int:
    """Resolve, optionally show the menu, and run the chosen workflow."""
    stdout = stdout if stdout is not None else sys.stdout
    catalog = WorkflowCatalog.discover(workflows_dir(repo_path), settings.exclusions)
    context = RepoContext.resolve(repo_path, settings.token)
    client = StatusClient(settings.api_url, settings.request_timeout)
    dispatcher = Dispatcher(catalog, context, client, runner=settings.runner, out=stdout)

    if choice and choice.strip():
        return dispatcher.run(dispatcher.resolve(choice.strip()))

    for line in context.header_lines():
        print(line, file=stdout)
    print(file=stdout)
    if not catalog.entries:
        print(yellow(f"No workflows in {catalog.directory}", stdout), file=stdout)

    menu = LiveMenu(catalog, terminal_for(stdout), stdin, runner=settings.runner)
    supervisor = PollSupervisor(
        catalog.entries, context, client,
        poll_interval=settings.poll_interval,
        startup_delay=settings.startup_delay,
    )
    answer = menu.run(supervisor, branch=context.branch, grace=settings.grace_period)

    file = dispatcher.resolve_menu_input(answer)
    if file is None:
        print("ciact: quit", file=stdout)
        return 0
    return dispatcher.run(file)


def main(argv=None) -> int:
    """Main entry point for ciact CLI."""
    parser = argparse.ArgumentParser(
        prog="ciact",
        description="Run GitHub Actions workflows locally with act, with live run status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ciact                     # Interactive menu with live GHA status
  ciact bui                 # Run the workflow whose short code is 'bui'
  ciact build               # Run build.yml (or build.yaml)
  ciact lockfile.yml        # Run a workflow by filename
  ciact -r ~/myproject      # Use a different repository

Environment:
  CI_ACT_POLL_INTERVAL      Seconds between status polls (default: 5)
  GITHUB_TOKEN / GH_TOKEN   Token for authenticated API calls
  GITHUB_API_URL            API base URL (GitHub Enterprise)
        """
    )

    parser.add_argument(
        'choice',
        nargs='?',
        help='Short code or workflow filename (omit for the interactive menu)'
    )

    parser.add_argument(
        '-r', '--repo',
        type=str,
        default=None,
        help='Path to git repository (default: current directory)'
    )

    parser.add_argument(
        '--interval',
        type=float,
        default=None,
        help='Seconds between status polls (overrides CI_ACT_POLL_INTERVAL)'
    )

    parser.add_argument(
        '--runner',
        type=str,
        default=None,
        help="Workflow runner command (default: act)"
    )

    parser.add_argument(
        '--show-config',
        action='store_true',
        help='Show the effective configuration and exit'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Mirror log output to stderr'
    )

    parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'ciact {__version__}'
    )

    args = parser.parse_args(argv)

    settings = load_settings()
    if args.interval is not None:
        if args.interval <= 0:
            parser.error("--interval must be positive")
        settings = replace(settings, poll_interval=args.interval)
    if args.runner:
        settings = replace(settings, runner=args.runner)
    if args.debug:
        settings = replace(settings, debug=True)

    setup_logging(debug=settings.debug)

    if args.show_config:
        show_config(settings)
        return 0

    repo_path = Path(args.repo).resolve() if args.repo else Path.cwd()

    previous = signal.signal(signal.SIGTERM, _sigterm_handler)
    try:
        return run(args.choice, repo_path, settings)
    except SelectionError as e:
        print(red(f"❌  ciact aborted: {e}", sys.stderr), file=sys.stderr)
        return 1
    except RunnerError as e:
        print(red(f"❌  ciact runner failed: {e}", sys.stderr), file=sys.stderr)
        if e.returncode == 127:
            print(yellow(f"   Is {bold(settings.runner, sys.stderr)} installed? See https://nektosact.com",
                         sys.stderr),
                  file=sys.stderr)
        return e.returncode or 1
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        return 130
    finally:
        signal.signal(signal.SIGTERM, previous)


if __name__ == "__main__":
    sys.exit(main())
