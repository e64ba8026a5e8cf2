#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Field Report Submission Script
==============================

PURPOSE:
    Submits a field report (title, village, notes, captured-on time and one or
    more photos) to SharePoint: the photos land in a YYYY/MM folder tree of a
    document library and exactly one list item is created that links to them.

SYNOPSIS:
    field-report submit [--title T] [--village V] [--notes N]
                        [--captured-on YYYY-MM-DDTHH:MM] PHOTO [PHOTO ...]
    field-report diagnose
    field-report choices

CONFIGURATION:
    Read from environment variables, or from a .env file in the working
    directory (full list in field_report_sync/config.py ENV_VARIABLES):

    AZURE_TENANT_ID, AZURE_CLIENT_ID
        Entra ID tenant and app registration. Add AZURE_CLIENT_SECRET to use
        the client credentials flow instead of interactive sign-in.

    SP_SITE_HOSTNAME, SP_SITE_PATH
        `Example`: 'contoso.sharepoint.com' and '/sites/fieldwork'

    SP_LIST, SP_DRIVE
        List display name (or GUID) and document library name (or drive GUID).

    SP_FOLDER_PATH
        Base folder for photos inside the library; YYYY/MM is appended.

    OPERATIONAL_TIME_ZONE
        Calendar used for folders and the captured-on time.
        Default: 'Pacific/Auckland'

    DEBUG
        Set to 'true' for verbose request-level output.

EXIT CODES:
    0 = success, 1 = configuration, resolution, network or write failure
"""

import argparse
import sys

from field_report_sync.config import parse_config
from field_report_sync.exceptions import ReportSyncError
from field_report_sync.file_handler import ReportFile
from field_report_sync.monitoring import print_rate_limiting_summary, submission_stats
from field_report_sync.session import ReportSession
from field_report_sync.submission import ReportSubmission, submit_report
from field_report_sync.diagnostics import run_diagnostics
from field_report_sync.utils import format_datetime_local, is_debug_enabled, now_in_zone


def build_parser():
    parser = argparse.ArgumentParser(prog="field-report", description="Submit field reports to SharePoint")
    parser.add_argument("--env-file", help="dotenv file to load (default: search from the working directory)")
    commands = parser.add_subparsers(dest="command", required=True)

    submit = commands.add_parser("submit", help="Upload photos and create the report list item")
    submit.add_argument("--title", default="", help="Report title (one of the category options)")
    submit.add_argument("--village", default="", help="Location tag")
    submit.add_argument("--notes", default="", help="Free-text notes")
    submit.add_argument("--captured-on", default="", help="Local time YYYY-MM-DDTHH:MM (default: now)")
    submit.add_argument("photos", nargs="+", help="Photo files to attach")

    commands.add_parser("diagnose", help="Check configuration, connectivity and column resolution")
    commands.add_parser("choices", help="Show the village and category choices configured on the list")
    return parser


def print_report(report):
    """Print a diagnostics report, one key per line."""
    print("\n" + "="*60)
    print("[=] DIAGNOSTICS")
    print("="*60)
    for key, value in report.items():
        print(f"{key:<22} {value}")
    print("="*60)


def run_submit(session, args):
    files = [ReportFile.from_path(path) for path in args.photos]
    captured_on = args.captured_on or format_datetime_local(now_in_zone(session.config.time_zone),
                                                            session.config.time_zone)
    report = ReportSubmission(
        title=args.title,
        location=args.village,
        notes=args.notes,
        captured_on=captured_on,
        files=files
    )
    result = submit_report(session, report)
    print(f"[✓] Submitted successfully (list item {result.item_id})")
    for url in result.photo_urls:
        print(f"  → {url}")
    return 0


def run_choices(session):
    primed = session.start_priming().result()
    if not primed:
        print("[!] Could not load choices from the list")
        return 1
    print(f"Village choices:  {', '.join(session.cache.get('location_choices') or []) or '<free text>'}")
    print(f"Category options: {', '.join(session.cache.get('title_choices') or []) or '<free text>'}")
    return 0


def main(argv=None):
    """
    Main execution function.

    Process:
        1. Parse command-line arguments and load configuration
        2. Open a session (token provider + Graph client + cache)
        3. Run the requested command
        4. Print summary statistics
        5. Exit with appropriate code
    """
    args = build_parser().parse_args(argv)

    try:
        config = parse_config(args.env_file)
    except ReportSyncError as e:
        print(f"[Error] {e}")
        return 1

    session = ReportSession(config)
    try:
        if args.command == "diagnose":
            report = run_diagnostics(session)
            print_report(report)
            exit_code = 1 if 'error' in report else 0
        elif args.command == "choices":
            exit_code = run_choices(session)
        else:
            exit_code = run_submit(session, args)
    except ReportSyncError as e:
        print(f"[Error] {args.command} failed: {e}")
        exit_code = 1
    except OSError as e:
        print(f"[Error] Could not read photo: {e}")
        exit_code = 1
    finally:
        session.close()

    if args.command == "submit":
        submission_stats.print_summary()
    if is_debug_enabled():
        print_rate_limiting_summary()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
