import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import structlog

from venue_booking.db.engine import engine
from venue_booking.logging_config import setup_logging
from venue_booking.services.bookings import sweep_expired_holds

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Cancel every on_hold booking whose hold deadline has passed.

    Meant to run from cron; availability checks also expire holds lazily.
    """
    logger.info("hold_sweep_started")

    try:
        count = sweep_expired_holds(engine)
        logger.info("hold_sweep_completed", cancelled=count)
    except Exception:
        logger.exception("hold_sweep_failed")
        raise


if __name__ == "__main__":
    main()
