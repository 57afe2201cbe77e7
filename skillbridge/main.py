"""Main entry point for the SkillBridge service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

import uvicorn

from skillbridge.api import build_services, create_app
from skillbridge.auth import AuthService
from skillbridge.config.environment import EnvironmentConfig
from skillbridge.config.exceptions import ConfigurationError
from skillbridge.config.loader import load_config, validate_config_file
from skillbridge.config.models import AppConfig
from skillbridge.domain.models import Role
from skillbridge.logging import get_logger
from skillbridge.logging.config import configure_logging
from skillbridge.notifications import NotificationService
from skillbridge.persistence import PersistenceError, RecordNotFoundError, close_database, init_database
from skillbridge.scheduler import MaintenanceTasks, SchedulerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SkillBridge - membership-gated freelance job marketplace service"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    parser.set_defaults(host=None, port=None, no_scheduler=False)

    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API with background maintenance (default)")
    serve.add_argument("--host", default=None, help="Bind address (default from config)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default from config)")
    serve.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Do not start background maintenance jobs",
    )

    commands.add_parser("maintenance", help="Run every maintenance job once and exit")

    grant = commands.add_parser("grant-admin", help="Give an existing account the admin role")
    grant.add_argument("email", help="Email of the account to promote")

    validate = commands.add_parser("validate-config", help="Validate a configuration file and exit")
    validate.add_argument("path", type=Path, nargs="?", default=Path("config.yaml"))

    return parser


def run_serve(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    services = build_services(app_config, env_config)
    app = create_app(services)

    scheduler_service = None
    if app_config.scheduler.enabled and not args.no_scheduler:
        scheduler_service = SchedulerService(shutdown_event=threading.Event())
        for job in MaintenanceTasks(services.auth).scheduled_jobs(app_config):
            scheduler_service.add_job(job)
        scheduler_service.start()

    host = args.host or app_config.api.host
    port = args.port or app_config.api.port
    logger.info(
        f"Serving API on http://{host}:{port}",
        extra={"event": "service.serving", "host": host, "port": port},
    )

    try:
        # uvicorn installs its own SIGINT/SIGTERM handlers and returns on shutdown
        uvicorn.run(app, host=host, port=port, log_config=None)
    finally:
        if scheduler_service is not None:
            scheduler_service.shutdown(wait=False)
    return 0


def run_maintenance(app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    auth_service = AuthService(app_config, NotificationService(env_config, app_config.email))
    results = MaintenanceTasks(auth_service).run_all()
    logger.info(
        "Maintenance run completed",
        extra={"event": "service.maintenance.completed", **results},
    )
    for name, count in results.items():
        print(f"{name}: {count}")
    return 0


def run_grant_admin(email: str, app_config: AppConfig) -> int:
    try:
        granted = AuthService(app_config).grant_role(email, Role.ADMIN)
    except RecordNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Granted admin to {email}" if granted else f"{email} is already an admin")
    return 0


def main(argv=None) -> int:
    """
    Main entry point for the SkillBridge service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)
    command = args.command or "serve"

    if command == "validate-config":
        return 0 if validate_config_file(args.path) else 1

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "SkillBridge starting",
            extra={
                "event": "service.starting",
                "command": command,
                "log_level": env_config.log_level,
                "uploads_enabled": env_config.uploads_enabled,
                "smtp_enabled": env_config.smtp_enabled,
            },
        )

        init_database(env_config.database_url)

        try:
            if command == "maintenance":
                return run_maintenance(app_config, env_config)
            if command == "grant-admin":
                return run_grant_admin(args.email, app_config)
            return run_serve(args, app_config, env_config)
        finally:
            close_database()
            logger.info(
                "SkillBridge stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except PersistenceError as e:
        print(f"Database error: {e}", file=sys.stderr)
        logger.error(
            f"Database error: {e}",
            extra={"event": "service.database.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
