"""
Planner CLI — State bootstrap and server management commands.

Commands:
- planner init        — Write the first-run state file
- planner run         — Load state and serve the HTTP API
- planner show        — Print departments, plans, templates and users
- planner prune-logs  — Apply log retention to the event log directory
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from planner.engine.config import ServerConfig, load_server_config
from planner.engine.errors import ConfigError, PersistenceError

logger = logging.getLogger("planner.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="planner",
        description="Planner Server — department strategic plan store",
    )
    parser.add_argument(
        "--config", default=None, help="Path to planner.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # planner init
    init_parser = subparsers.add_parser("init", help="Write the first-run state file")
    init_parser.add_argument("--state", help="State file path (default: state.path from config)")
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing state file"
    )

    # planner run
    run_parser = subparsers.add_parser("run", help="Serve the HTTP API")
    run_parser.add_argument("--state", help="State file path (default: state.path from config)")
    run_parser.add_argument("--host", help="Host to bind (default: api.host from config)")
    run_parser.add_argument("--port", type=int, help="Port to bind (default: api.port from config)")

    # planner show
    show_parser = subparsers.add_parser("show", help="Print a summary of the state file")
    show_parser.add_argument("--state", help="State file path (default: state.path from config)")

    # planner prune-logs
    subparsers.add_parser("prune-logs", help="Delete and compress old event logs")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_server_config(args.config)
    except ConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init":
        return cmd_init(args, config)
    elif args.command == "run":
        return cmd_run(args, config)
    elif args.command == "show":
        return cmd_show(args, config)
    elif args.command == "prune-logs":
        return cmd_prune_logs(args, config)
    parser.print_help()
    return 0


def _state_path(args: argparse.Namespace, config: ServerConfig) -> Path:
    return Path(args.state or config.state.path)


def cmd_init(args: argparse.Namespace, config: ServerConfig) -> int:
    """Write the bootstrap state: default department, admin/user accounts, Centre plan, templates."""
    from planner.engine.bootstrap import default_state
    from planner.engine.persistence import save_state

    path = _state_path(args, config)
    if path.exists() and not args.force:
        print(f"[ERROR] {path} already exists. Use --force to overwrite.")
        return 1

    try:
        save_state(default_state(), path)
    except PersistenceError as e:
        print(f"[ERROR] {e.message}")
        return 1

    print(f"[OK] Wrote initial state to {path}")
    print("  Accounts: admin (administrator), user")
    print("  Change the default passwords before exposing the server.")
    return 0


def cmd_run(args: argparse.Namespace, config: ServerConfig) -> int:
    """Load state, serve the API with uvicorn, save on shutdown."""
    import uvicorn

    from planner.engine.api import create_app
    from planner.engine.logging import init_logging, log, log_system_event, shutdown_logging
    from planner.engine.server import PlannerServer

    path = _state_path(args, config)
    try:
        server = PlannerServer.load(str(path), config=config)
    except PersistenceError as e:
        print(f"[ERROR] {e.message}")
        print("  Run 'planner init' to create a state file.")
        return 1

    queue_config = config.logging.async_queue
    init_logging(
        log_dir=config.logging.directory,
        flush_interval_ms=queue_config.flush_interval_ms,
        flush_batch_size=queue_config.flush_batch_size,
        max_queue_size=queue_config.max_queue_size,
    )

    host = args.host or config.api.host
    port = args.port or config.api.port
    log(log_system_event("server_started", details={"host": host, "port": port}))
    print(f"Starting Planner Server on http://{host}:{port}")
    print(f"Health check: http://{host}:{port}/health")

    exit_code = 0
    try:
        uvicorn.run(create_app(server), host=host, port=port, log_level=config.logging.level.lower())
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        if config.state.save_on_shutdown:
            try:
                saved = server.save()
                print(f"[OK] Saved state to {saved}")
            except PersistenceError as e:
                logger.error(f"Shutdown save failed: {e!r}")
                print(f"[ERROR] {e.message}")
                exit_code = 1
        log(log_system_event("server_stopped"))
        shutdown_logging()
    return exit_code


def cmd_show(args: argparse.Namespace, config: ServerConfig) -> int:
    """Print the state file summary. Passwords and tokens are never shown."""
    from planner.engine.server import PlannerServer

    path = _state_path(args, config)
    try:
        server = PlannerServer.load(str(path), config=config)
    except PersistenceError as e:
        print(f"[ERROR] {e.message}")
        return 1

    summary = server.summary()
    print(f"State file: {path}")
    print("Departments:")
    for name, years in sorted(summary["departments"].items()):
        plans = ", ".join(years) if years else "(no plans)"
        print(f"  {name}: {plans}")
    print(f"Templates: {', '.join(summary['templates']) or '(none)'}")
    print("Users:")
    for user in summary["users"]:
        role = "admin" if user["is_admin"] else "user"
        print(f"  {user['username']} [{role}] in {user['department']}")
    print(f"Sessions: {summary['sessions']}")
    return 0


def cmd_prune_logs(args: argparse.Namespace, config: ServerConfig) -> int:
    from planner.engine.logging import LogRetentionManager

    retention = config.logging.retention
    manager = LogRetentionManager(
        log_dir=config.logging.directory,
        retention_days={
            "execution": retention.execution_days,
            "security": retention.security_days,
        },
        compress_after_days=config.logging.compress_after_days,
    )
    result = manager.cleanup()
    print(f"[OK] Deleted {result['deleted']} and compressed {result['compressed']} log files")
    return 0


if __name__ == "__main__":
    sys.exit(main())
