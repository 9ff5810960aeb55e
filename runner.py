import argparse
import logging
import sys
from apscheduler.schedulers.blocking import BlockingScheduler
from enrollment_lifecycle import create_app
from enrollment_lifecycle.utils.scheduler import create_scheduler, run_session_archival_job

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def run_once(app):
    report = run_session_archival_job(app)

    if report is None:
        return 1
    if report['failed_session_ids']:
        logger.warning(f"Sessions left for the next run: {report['failed_session_ids']}")
        return 1
    return 0


def main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Archive class sessions whose scheduled time has passed.')
    parser.add_argument('--once', action='store_true', help='run the archival job a single time and exit')
    args = parser.parse_args(argv)

    app = app or create_app()

    if args.once:
        return run_once(app)

    scheduler = create_scheduler(app, BlockingScheduler)

    logger.info("=" * 50)
    logger.info("Session archival worker running, press Ctrl+C to stop")
    logger.info("=" * 50)

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Stopping session archival worker...")

    return 0


if __name__ == '__main__':
    sys.exit(main())
