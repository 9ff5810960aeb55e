#!/usr/bin/env python3
"""
Recount sessions.enrolled_count from the live enrollments table.

Usage: python recount_enrollments.py [--dry-run]
"""
import argparse
import logging
import sys
from enrollment_lifecycle import create_app, db
from enrollment_lifecycle.utils.counters import find_enrolled_count_drift, sync_enrolled_counts


def main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Fix drifted enrolled_count values.')
    parser.add_argument('--dry-run', action='store_true', help='only report drifted sessions')
    args = parser.parse_args(argv)

    app = app or create_app()

    with app.app_context():
        try:
            drift = find_enrolled_count_drift()

            for row in drift:
                print(f"   - session {row['session_id']}: stored {row['stored']}, actual {row['actual']}")

            if not drift:
                print("✅ All enrolled counts are accurate")
                return 0

            if args.dry_run:
                print(f"🔍 {len(drift)} session(s) would be recounted")
                return 0

            sync_enrolled_counts(row['session_id'] for row in drift)
            db.session.commit()
            print(f"✅ Recounted {len(drift)} session(s)")
            return 0
        except Exception as e:
            db.session.rollback()
            print(f"❌ Error recounting enrollments: {str(e)}", file=sys.stderr)
            return 1


if __name__ == '__main__':
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=logging.INFO
    )
    sys.exit(main())
