"""
Command-line interface for flowsplit.

Usage:
    flowsplit split                      # Split flows.json into the source tree
    flowsplit split --flows other.json   # Split a specific monolith file
    flowsplit rebuild                    # Rebuild flows.json from the source tree
    flowsplit extract                    # Extract functions/templates only
    flowsplit restore                    # Fold edited files back into the tree only
    flowsplit reload                     # Same as POST /flow-splitter/reload
    flowsplit serve --port 5002          # Run the HTTP control surface
    flowsplit --version                  # Show version

All commands act on --user-dir (default: current directory).
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import SplitterError
from .flowset.codec import DocumentCodec
from .sync.host import FlowsStartedEvent, LocalFlowHost
from .sync.service import SplitterService

logger = logging.getLogger(__name__)


def build_service(args: argparse.Namespace) -> SplitterService:
    host = LocalFlowHost(user_dir=Path(args.user_dir).resolve(), flow_file=args.flow_file)
    return SplitterService(host=host)


def cmd_split(args: argparse.Namespace) -> int:
    """Split the monolithic flows file into the source tree."""
    service = build_service(args)
    try:
        project, cfg = service.load()
    except SplitterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    flows_path = Path(args.flows) if args.flows else cfg.monolith_path(project)
    if not flows_path.exists():
        print(f"Error: flows file not found: {flows_path}", file=sys.stderr)
        return 2

    try:
        codec = DocumentCodec("json")
        flows = codec.node_list(codec.read(flows_path))
    except (OSError, ValueError) as e:
        print(f"Error: cannot read {flows_path}: {e}", file=sys.stderr)
        return 1

    if not flows:
        print(f"Error: {flows_path} contains no nodes", file=sys.stderr)
        return 2

    logger.debug("Splitting %d nodes from %s", len(flows), flows_path)
    ok = service.on_flows_started(FlowsStartedEvent(flows=flows))
    return 0 if ok else 1


def cmd_rebuild(args: argparse.Namespace) -> int:
    """Rebuild the monolithic flows file from the source tree."""
    ok = build_service(args).on_flows_started(FlowsStartedEvent())
    return 0 if ok else 1


def cmd_extract(args: argparse.Namespace) -> int:
    """Extract functions/templates from the existing tree files."""
    service = build_service(args)
    try:
        project, cfg = service.load()
    except SplitterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    reports = service.extract_all(cfg, project)
    total = sum(r.count for r in reports)
    warnings = sum(len(r.warnings) for r in reports)
    print(f"Extracted {total} functions/templates from {len(reports)} entities")
    return 1 if warnings else 0


def cmd_restore(args: argparse.Namespace) -> int:
    """Fold edited side files back into the tree files."""
    service = build_service(args)
    try:
        project, cfg = service.load()
    except SplitterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    changed = service.restore_all(cfg, project)
    print(f"Restored {changed} fields")
    return 0


def cmd_reload(args: argparse.Namespace) -> int:
    """Restore and rebuild, reporting the result as JSON."""
    result = build_service(args).manual_reload()
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP control surface."""
    import uvicorn

    from .api.server import create_app

    app = create_app(build_service(args))
    print(f"Starting flow splitter API at http://{args.host}:{args.port}")
    print("    POST   /flow-splitter/reload         - Restore and reload flows")
    print("    POST   /flow-splitter/flows-started  - Deliver a flows-started event")
    print("    GET    /flow-splitter/health         - Health check")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="flowsplit",
        description="Sync a monolithic flows file with an editable source tree",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"flowsplit {__version__}",
    )
    parser.add_argument(
        "--user-dir",
        default=".",
        help="Runtime user directory (default: current directory)",
    )
    parser.add_argument(
        "--flow-file",
        default="flows.json",
        help="Monolithic flows filename (default: flows.json)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    split_parser = subparsers.add_parser("split", help="Split flows into the source tree")
    split_parser.add_argument(
        "--flows",
        type=str,
        help="Monolith file to split (default: <project>/<flow-file>)",
    )
    subparsers.add_parser("rebuild", help="Rebuild flows from the source tree")
    subparsers.add_parser("extract", help="Extract functions/templates only")
    subparsers.add_parser("restore", help="Restore functions/templates only")
    subparsers.add_parser("reload", help="Restore and rebuild, print JSON result")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=5002, help="Port to bind to")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "split": cmd_split,
        "rebuild": cmd_rebuild,
        "extract": cmd_extract,
        "restore": cmd_restore,
        "reload": cmd_reload,
        "serve": cmd_serve,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
