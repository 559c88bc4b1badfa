#!/usr/bin/env python3
"""Print the weekly alert schedule and DST status for the configured timezone.

Handy before a DST weekend to see which UTC cron the alert needs.

Usage:
    python scripts/schedule_status.py [--timezone America/New_York] [--at 2024-03-10T12:00:00+00:00] [--validate "0 14 * * 1"]

Exit codes:
  - 0: ok (and --validate matched, when given)
  - 1: --validate did not match the expected expression
  - 2: a DST transition is within 24 hours
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from datetime import datetime, timezone

from stockroom.services.scheduling.dst import (
    evaluate_schedule_freshness,
    get_schedule_description,
    validate_schedule_against_expected,
)
from stockroom.settings import load_settings


def _parse_at(value: str) -> datetime:
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show weekly alert schedule and DST status")
    parser.add_argument("--timezone", help="IANA timezone (default: ALERT_TIMEZONE)")
    parser.add_argument("--at", type=_parse_at, help="Evaluate at this ISO instant instead of now")
    parser.add_argument("--validate", help="Compare a deployed UTC cron expression")
    args = parser.parse_args(argv)

    config = load_settings().schedule
    if args.timezone:
        config = replace(config, timezone=args.timezone)
    now = args.at or datetime.now(timezone.utc)

    description = get_schedule_description(now=now, config=config)
    verdict = evaluate_schedule_freshness(now=now, config=config)
    print(json.dumps(description, indent=2, default=str))

    exit_code = 0
    if args.validate:
        result = validate_schedule_against_expected(args.validate.strip(), now=now, config=config)
        print(("OK: " if result.is_valid else "MISMATCH: ") + result.message)
        if not result.is_valid:
            exit_code = 1

    if verdict.needs_update:
        print(f"WARNING: {verdict.reason}; use '{verdict.recommended_schedule_expression}'")
        exit_code = exit_code or 2
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
