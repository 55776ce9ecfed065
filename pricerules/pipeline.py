"""High-level orchestration for checking test bookings against price rule files.

Usage patterns:

1. One-off check of two bookings against a rule export:
   pricerules rules.xml --booking 2025-06-07:7 --booking 2025-07-12:14

2. Several season files merged into one rule set, report regenerated every morning
   with today's date as booking creation date:
   pricerules rules_2025.xml rules_2026.xml --booking 2025-06-07:7 --html --schedule-at 07:00
"""
import argparse
import logging
import time
from datetime import date
from pathlib import Path
from typing import Sequence

import schedule
from tqdm import tqdm

from pricerules.config import settings
from pricerules.dates import parse_date
from pricerules.errors import MalformedInputError
from pricerules.evaluation.evaluator import evaluate_booking, highlighted_rule_ids
from pricerules.logging_config import setup_logging
from pricerules.models import BookingMatch, BookingRequest, PriceRule
from pricerules.parsing.rules import merge_rule_batches, parse_rules, rule_year_span
from pricerules.report import render_report


def load_rules(paths: Sequence[Path]) -> list[PriceRule]:
    """Parse every rule file; several files are merged into one batch.

    A file that cannot be read or parsed is skipped like a failing season fetch;
    the last error is raised only when no file could be loaded.
    """
    batches = []
    last_error: Exception | None = None
    for path in paths:
        try:
            batches.append(parse_rules(Path(path).read_bytes()))
        except (OSError, MalformedInputError) as e:
            logging.warning(f"Failed to load rules from {path}: {e}")
            last_error = e
    if not batches and last_error is not None:
        raise last_error
    rules = batches[0] if len(batches) == 1 else merge_rule_batches(batches)
    logging.info(f"Loaded {len(rules)} rules from {len(batches)} file(s), years {rule_year_span(rules)}")
    return rules


def parse_booking_arg(text: str, reference_date: date) -> BookingRequest:
    """Read "YYYY-MM-DD:NIGHTS"; a missing or unreadable part is left empty."""
    arrival, _, nights = text.partition(':')
    try:
        stay_length = int(nights) if nights.strip() else None
    except ValueError:
        logging.warning(f"Ignoring length of stay {nights!r} in booking {text!r}")
        stay_length = None
    return BookingRequest(
        arrival_date=arrival.strip() or None,
        stay_length=stay_length,
        reference_date=reference_date,
    )


def run_check(
        rule_files: Sequence[Path],
        bookings: Sequence[str],
        reference_date: date | None = None,
        html_output: Path | None = None,
        strict: bool = False,
) -> list[BookingMatch]:
    if reference_date is None:
        reference_date = date.today()
    rules = load_rules(rule_files)
    requests = [parse_booking_arg(text, reference_date) for text in bookings]

    results = []
    for idx, booking in enumerate(tqdm(requests, desc='Evaluating bookings', leave=False)):
        if strict:
            booking.require_complete(idx)
        result = evaluate_booking(rules, booking, booking_index=idx, skip_errors=not strict)
        if result.incomplete:
            logging.info(f"Booking {idx + 1}: enter start date and length")
        elif result.rule_ids:
            logging.info(f"Booking {idx + 1} ({booking.arrival_date}, {booking.stay_length} nights): "
                         f"allowed by rule(s) {', '.join(map(str, result.rule_ids))}")
        else:
            logging.info(f"Booking {idx + 1} ({booking.arrival_date}, {booking.stay_length} nights): "
                         f"not allowed by any rule")
        results.append(result)
    logging.info(f"Highlighted rules: {highlighted_rule_ids(results)}")

    if html_output is not None:
        html = render_report(rules, results, reference_date)
        html_output.write_text(html, encoding="utf-8")
        logging.info(f"Report written to {html_output}")
    return results


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Check test bookings against accommodation price rules")
    p.add_argument("rules", nargs="+", type=Path, help="XML rule files (several seasons are merged)")
    p.add_argument("--booking", action="append", default=[], metavar="YYYY-MM-DD:NIGHTS",
                   help="Test booking, may be given several times")
    p.add_argument("--reference-date", help="Booking creation date YYYY-MM-DD (default: today)")
    p.add_argument("--html", nargs="?", const=settings.output_html, type=Path, default=None,
                   help=f"Write an HTML report (default path {settings.output_html})")
    p.add_argument("--strict", action="store_true",
                   help="Fail on incomplete bookings and unparsable dates instead of skipping them")
    p.add_argument("--log-level", default=None, help=f"Default from LOG_LEVEL ({settings.log_level})")
    p.add_argument(
        "--schedule-at",
        metavar="HH:MM",
        default=None,
        help="Re-run the check every day at the given time with that day as booking creation date. "
             "Without this flag the check runs once and exits.",
    )
    return p


def main_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    def _run() -> None:
        reference = parse_date(args.reference_date) if args.reference_date else None
        run_check(args.rules, args.booking, reference_date=reference, html_output=args.html, strict=args.strict)

    if args.schedule_at:
        def _scheduled() -> None:
            try:
                _run()
            except Exception:  # noqa: BLE001
                logging.exception("Rule check failed")

        logging.info(f"Scheduler started – rule check will run every day at {args.schedule_at}")
        _scheduled()
        schedule.every().day.at(args.schedule_at).do(_scheduled)
        while True:
            schedule.run_pending()
            time.sleep(1)
    try:
        _run()
    except Exception:  # noqa: BLE001
        logging.exception("Rule check failed")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main_cli())
