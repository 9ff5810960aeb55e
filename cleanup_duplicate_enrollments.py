#!/usr/bin/env python3
"""
Remove duplicate enrollments (same user, same session) and restore the
unique index on enrollments (user_id, session_id).

Usage: python cleanup_duplicate_enrollments.py [--no-backup]
"""
import argparse
import logging
import sys
from enrollment_lifecycle import create_app
from enrollment_lifecycle.utils.backup import BackupManager
from enrollment_lifecycle.utils.duplicates import resolve_duplicate_enrollments


def main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Collapse duplicate live enrollments into one row each.')
    parser.add_argument('--no-backup', action='store_true', help='skip the database backup taken before cleaning')
    args = parser.parse_args(argv)

    app = app or create_app()

    with app.app_context():
        try:
            print("Starting duplicate enrollment cleanup...")

            if not args.no_backup:
                backup_file = BackupManager.create_data_backup('before_duplicate_cleanup')
                if backup_file:
                    print(f"Backup saved to {backup_file}")

            report = resolve_duplicate_enrollments()
        except Exception as e:
            print(f"❌ Error during cleanup: {str(e)}", file=sys.stderr)
            return 1

        print(f"Found {report['groups']} user-session combination(s) with duplicates")
        for detail in report['details']:
            print(
                f"  user_id={detail['user_id']}, session_id={detail['session_id']}: "
                f"kept {detail['kept_id']} ({detail['kept_status']}), deleted {detail['deleted_ids']}"
            )

        print(f"✅ Deleted {report['deleted']} duplicate enrollment(s)")
        print(f"   Decremented enrolled_count {report['decremented']} time(s)")

        if report['index_created']:
            print("✅ Unique index added")
        else:
            print("⚠️  Unique index already exists, skipping")

        if report['remaining_duplicates']:
            print(f"⚠️  {report['remaining_duplicates']} duplicate combination(s) still exist")
            return 1

        print("✅ Verification passed: no duplicate enrollments found")
        return 0


if __name__ == '__main__':
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=logging.INFO
    )
    sys.exit(main())
