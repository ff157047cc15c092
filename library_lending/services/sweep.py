"""Overdue sweep job for an external scheduler (cron, k8s CronJob, ...)"""

import logging
import sys

from library_lending.config import settings
from library_lending.domain.exceptions import LendingError
from library_lending.domain.models import LendingPolicy
from library_lending.infrastructure.database.session import SessionLocal
from library_lending.infrastructure.observability.logging import setup_logging
from library_lending.services.lending import LendingService

logger = logging.getLogger(__name__)


def run_overdue_sweep() -> int:
    """Run one sweep in its own session and return the number of loans updated"""
    db = SessionLocal()
    try:
        service = LendingService(db, LendingPolicy.from_settings(settings), request_id="overdue-sweep")
        return service.sweep()
    finally:
        db.close()


def main() -> int:
    """Console entry point; exit status 1 tells the scheduler to retry"""
    setup_logging(settings.log_level)
    logger.info("Starting overdue sweep", extra={"step": "overdue_sweep_start"})
    try:
        updated = run_overdue_sweep()
    except LendingError as e:
        logger.error(f"Overdue sweep failed: {e.message}", extra={"reason": e.reason, "retryable": e.retryable})
        return 1
    logger.info("Overdue sweep finished", extra={"step": "overdue_sweep_finish", "updated": updated})
    return 0


if __name__ == "__main__":
    sys.exit(main())
