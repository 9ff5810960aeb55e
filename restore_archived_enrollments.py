#!/usr/bin/env python3
"""
Restore enrollments that were moved to historical_enrollments while their
session had not actually ended.

Usage: python restore_archived_enrollments.py [--dry-run] [--no-backup]
"""
import argparse
import logging
import sys
from enrollment_lifecycle import create_app
from enrollment_lifecycle.utils.backup import BackupManager
from enrollment_lifecycle.utils.restoration import restore_incorrectly_archived_enrollments


def print_report(report):
    print(f"📊 Checked {report['checked']} historical enrollment(s)")
    print(f"   {report['matched']} belong to sessions that have not ended")

    for entry in report['enrollments']:
        line = (
            f"   - historical {entry['historical_id']} (original {entry['original_id'] or 'N/A'}, "
            f"user {entry['user_id']}, session {entry['session_id']}, {entry['status']}, {entry['reason']})"
        )
        if entry.get('already_live'):
            line += " already live"
        elif entry.get('would_restore'):
            line += " [DRY RUN] would restore"
        elif entry.get('restored_id'):
            line += f" → restored as {entry['restored_id']}"
        print(line)

    print(f"✅ Restored: {report['restored']} enrollment(s)")
    print(f"   Skipped: {report['skipped']} enrollment(s)")


def main(argv=None, app=None):
    parser = argparse.ArgumentParser(description='Restore incorrectly archived enrollments.')
    parser.add_argument('--dry-run', action='store_true', help='show what would be restored without changing anything')
    parser.add_argument('--no-backup', action='store_true', help='skip the database backup taken before restoring')
    args = parser.parse_args(argv)

    if args.dry_run:
        print("🔍 DRY RUN MODE - no changes will be made")

    app = app or create_app()

    with app.app_context():
        try:
            if not args.dry_run and not args.no_backup:
                backup_file = BackupManager.create_data_backup('before_restore')
                if backup_file:
                    print(f"Backup saved to {backup_file}")

            report = restore_incorrectly_archived_enrollments(dry_run=args.dry_run)
        except Exception as e:
            print(f"❌ Error restoring enrollments: {str(e)}", file=sys.stderr)
            return 1

        print_report(report)
        return 0


if __name__ == '__main__':
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=logging.INFO
    )
    sys.exit(main())
