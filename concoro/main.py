"""Main entry point for the Concoro deadline notifier."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from concoro.config.environment import EnvironmentConfig
from concoro.config.exceptions import ConfigurationError
from concoro.config.loader import load_config, validate_config_file
from concoro.config.models import AppConfig
from concoro.logging import get_logger
from concoro.logging.config import configure_logging
from concoro.notifications.brevo_client import BrevoClient
from concoro.notifications.service import DigestService
from concoro.persistence.database import close_database, get_session, init_database
from concoro.persistence.exceptions import RecordNotFoundError
from concoro.persistence.repositories import NotificationRepository, UserProfileRepository
from concoro.pipeline import NotificationPipeline
from concoro.profiles import ProfileWebhookNotifier
from concoro.scheduler import SchedulerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_pipeline(app_config: AppConfig, env_config: EnvironmentConfig) -> NotificationPipeline:
    """Wire the Brevo client, digest service and pipeline together."""
    brevo_client = BrevoClient(env_config.brevo_api_key, email_config=app_config.email)
    digest_service = DigestService(
        brevo_client,
        notifications_config=app_config.notifications,
        email_config=app_config.email,
        links_config=app_config.links,
    )
    return NotificationPipeline(app_config=app_config, digest_service=digest_service)


def run_profile_updated(
    user_id: str, app_config: AppConfig, env_config: EnvironmentConfig
) -> int:
    """Fire the profile webhook for a stored profile. Returns an exit code."""
    with get_session() as session:
        profile = UserProfileRepository(session).get(user_id)

    if profile is None:
        logger.warning(
            f"User profile {user_id} not found",
            extra={"event": "profile_webhook.profile_missing", "user_id": user_id},
        )
        return 1

    notifier = ProfileWebhookNotifier(env_config.profile_webhook_url, config=app_config.profile_webhook)
    result = notifier.on_profile_written(user_id, profile.as_document())
    return 1 if result.error else 0


def run_list_notifications(user_id: str) -> int:
    """Print a user's notifications, newest first, with the unread count."""
    with get_session() as session:
        repo = NotificationRepository(session)
        notifications = repo.list_for_user(user_id)
        unread = repo.count_unread(user_id)

    print(f"{user_id}: {len(notifications)} notifications, {unread} unread")
    for notification in notifications:
        marker = " " if notification.is_read else "*"
        print(
            f"{marker} {notification.id}  {notification.concorso_id}  "
            f"{notification.days_left}d  scadenza {notification.scadenza.isoformat()}"
        )
    return 0


def run_mark_read(user_id: str, notification_id: Optional[str] = None) -> int:
    """Mark one notification, or all of a user's notifications, as read."""
    try:
        with get_session() as session:
            repo = NotificationRepository(session)
            if notification_id:
                repo.mark_as_read(user_id, notification_id)
                marked = 1
            else:
                marked = repo.mark_all_as_read(user_id)
    except RecordNotFoundError as e:
        logger.warning(
            str(e),
            extra={"event": "notifications.mark_read.not_found", "user_id": user_id},
        )
        return 1

    logger.info(
        f"Marked {marked} notifications as read",
        extra={"event": "notifications.mark_read.completed", "user_id": user_id, "marked": marked},
    )
    return 0


def main() -> int:
    """
    Main entry point for the Concoro notifier.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="Concoro notifier - deadline notifications and email digests for saved concorsi"
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
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--run-now",
        action="store_true",
        help="Run the daily batch once and exit",
    )
    mode.add_argument(
        "--saved-item",
        metavar="ID",
        help="Evaluate one newly saved item and exit (no email)",
    )
    mode.add_argument(
        "--profile-updated",
        metavar="USER_ID",
        help="Send a stored profile to the matching webhook and exit",
    )
    mode.add_argument(
        "--notifications",
        metavar="USER_ID",
        help="List a user's notifications and unread count, then exit",
    )
    mode.add_argument(
        "--mark-read",
        metavar="USER_ID",
        help="Mark a user's notifications as read and exit",
    )
    mode.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )

    parser.add_argument(
        "--notification-id",
        metavar="ID",
        default=None,
        help="With --mark-read, mark only this notification",
    )

    args = parser.parse_args()

    if args.notification_id and not args.mark_read:
        parser.error("--notification-id requires --mark-read")

    if args.validate_config:
        return 0 if validate_config_file(args.config or Path("config.yaml")) else 1

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Concoro notifier starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "email_configured": env_config.email_configured,
            },
        )

        init_database(env_config.database_url)

        if args.profile_updated:
            exit_code = run_profile_updated(args.profile_updated, app_config, env_config)
            close_database()
            return exit_code

        if args.notifications:
            exit_code = run_list_notifications(args.notifications)
            close_database()
            return exit_code

        if args.mark_read:
            exit_code = run_mark_read(args.mark_read, args.notification_id)
            close_database()
            return exit_code

        pipeline = build_pipeline(app_config, env_config)

        if args.saved_item:
            result = pipeline.on_saved_item_id(args.saved_item)
            logger.info(
                f"Saved item processed: {result.notifications_created} notifications created",
                extra={
                    "event": "service.saved_item.completed",
                    "success": result.success,
                    "reason": result.reason,
                },
            )
            close_database()
            return 0 if result.success else 1

        if args.run_now:
            logger.info("Executing daily batch now", extra={"event": "service.run_now.starting"})
            batch = pipeline.run_daily_batch()
            logger.info(
                f"Daily batch completed: {batch.users_processed} users, "
                f"{batch.notifications_created} notifications, "
                f"{batch.emails_sent} emails sent",
                extra={
                    "event": "service.run_now.completed",
                    "duration_seconds": batch.total_duration_seconds,
                    "had_errors": batch.had_errors,
                },
            )
            close_database()
            logger.info(
                "Concoro notifier stopped",
                extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
            )
            return 1 if batch.had_errors else 0

        # Daemon mode
        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(
            batch_callable=pipeline.run_daily_batch,
            schedule=app_config.schedule,
            shutdown_event=shutdown_event,
        )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)
            close_database()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info("Scheduler started. Press Ctrl+C to stop", extra={"event": "service.daemon_mode.started"})

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down", extra={"event": "service.keyboard_interrupt"})
            scheduler_service.shutdown(wait=False)
            close_database()

        logger.info(
            "Concoro notifier stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            exc_info=True,
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
        )
        close_database()
        return 1


if __name__ == "__main__":
    sys.exit(main())
