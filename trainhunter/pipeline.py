"""High-level orchestration: validate a search request, run the matching trip search
under an overall retry/timeout guard, render the outcome and optionally mail it.

Usage patterns:

1. One-off search printed as a table:
   trainhunter --from 8011160 --to 8000261 --start-date 2025-08-15 --end-date 2025-08-22

2. Daily 4-night trip hunt mailed as HTML:
   trainhunter --from 8011160 --to 8000261 --trip-type multi-day --nights 4 \
       --start-date 2025-09-01 --end-date 2025-09-30 --output html --email --schedule-at 07:30
"""
import argparse
import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Sequence

import schedule

from .config import Settings, settings as default_settings
from .emailer import send_report
from .errors import ConfigurationError, NetworkError, SearchError, ValidationError, format_error
from .logging_config import setup_logging
from .models import ArrivalConstraint, DeparturePreference, SearchOutcome, TimePreference, TripPreferences, TripType
from .providers import DbRestProvider, JourneyProvider
from .report import OUTPUT_FORMATS, Route, render, save_report
from .resilience import with_retry, with_timeout
from .search import FixedReturnSearch, FlexibleDurationSearch, OneWaySearch, SameDayReturnSearch
from .time_preferences import parse_time_to_minutes

EXIT_OK, EXIT_INVALID, EXIT_NETWORK, EXIT_SEARCH, EXIT_UNEXPECTED = 0, 1, 2, 3, 4


@dataclass(slots=True)
class SearchRequest:
    trip_type: TripType
    origin_id: str
    destination_id: str
    start_date: date
    end_date: date
    return_date: date | None = None
    nights: int | None = None
    return_origin_id: str | None = None
    preferences: TripPreferences = field(default_factory=TripPreferences)


def validate_search_request(request: SearchRequest) -> None:
    errors = []
    if not request.origin_id:
        errors.append("Departure station is required")
    if not request.destination_id:
        errors.append("Destination station is required")
    if request.origin_id and request.origin_id == request.destination_id:
        errors.append("Departure and destination stations cannot be the same")
    if request.return_origin_id is not None and request.return_origin_id == request.origin_id:
        errors.append("Return departure station cannot be the same as the departure station")
    if not request.start_date:
        errors.append("Start date is required")
    elif request.end_date and request.end_date < request.start_date:
        errors.append("End date cannot be before start date")
    if request.trip_type is TripType.MULTI_DAY:
        if request.return_date is None and request.nights is None:
            errors.append("Return date or number of nights is required for multi-day trips")
        if request.return_date is not None and request.nights is not None:
            errors.append("Use either a return date or a number of nights, not both")
        if request.nights is not None and request.nights < 1:
            errors.append("Number of nights must be at least 1")
        last_outbound = request.end_date or request.start_date
        if request.return_date is not None and last_outbound and request.return_date < last_outbound:
            errors.append("Return date cannot be before the last outbound date")
    if errors:
        raise ValidationError("Search validation failed:\n  - " + "\n  - ".join(errors))


def _search_call(provider: JourneyProvider, request: SearchRequest, settings: Settings):
    prefs = request.preferences
    if request.trip_type is TripType.SAME_DAY:
        searcher = SameDayReturnSearch(provider, settings)
        return "Same-day trip search", lambda: searcher.search(
            request.origin_id, request.destination_id, request.start_date, request.end_date,
            prefs, request.return_origin_id)
    if request.trip_type is TripType.ONE_WAY:
        searcher = OneWaySearch(provider, settings)
        return "One-way trip search", lambda: searcher.search(
            request.origin_id, request.destination_id, request.start_date, request.end_date, prefs.outbound)
    if request.nights is not None:
        searcher = FlexibleDurationSearch(provider, settings)
        return f"{request.nights}-night trip search", lambda: searcher.search(
            request.origin_id, request.destination_id, request.start_date, request.end_date,
            request.nights, prefs, request.return_origin_id)
    searcher = FixedReturnSearch(provider, settings)
    return "Multi-day trip search", lambda: searcher.search(
        request.origin_id, request.destination_id, request.start_date, request.end_date,
        request.return_date, prefs, request.return_origin_id)


async def run_search(provider: JourneyProvider, request: SearchRequest,
                     settings: Settings | None = None) -> SearchOutcome:
    settings = settings or default_settings
    validate_search_request(request)
    context, operation = _search_call(provider, request, settings)
    return await with_timeout(
        with_retry(operation, settings.retry_attempts, settings.retry_base_delay, context),
        settings.search_timeout,
        context,
    )


# ---------------- argument parsing -----------------
def parse_date_arg(value: str) -> date:
    value = value.strip()
    for date_format in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            return datetime.strptime(value, date_format).date()
        except ValueError:
            continue
    try:
        # MM-DD means the current year
        return datetime.strptime(f"{date.today().year}-{value}", "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Date '{value}' must be YYYY-MM-DD, DD.MM.YYYY or MM-DD") from None


def parse_time_preference(value: str) -> TimePreference:
    """Band name ("morning"), start time ("09:30") or window ("22:00-04:00")."""
    value = value.strip().lower()
    try:
        return TimePreference(departure=DeparturePreference(value))
    except ValueError:
        pass
    start, _, end = value.partition("-")
    if parse_time_to_minutes(start) is None or (end and parse_time_to_minutes(end) is None):
        raise argparse.ArgumentTypeError(f"Invalid time preference '{value}'")
    return TimePreference(departure=DeparturePreference.CUSTOM, custom_start=start, custom_end=end or None)


def _time_arg(value: str) -> str:
    if parse_time_to_minutes(value) is None:
        raise argparse.ArgumentTypeError(f"Time '{value}' must be HH:MM")
    return value


def _with_arrival(preference: TimePreference | None, before: str | None, after: str | None) -> TimePreference | None:
    if before is None and after is None:
        return preference
    preference = preference or TimePreference()
    if before and after:
        return replace(preference, arrival_constraint=ArrivalConstraint.BETWEEN, arrival_time=after,
                       arrival_time_end=before)
    if before:
        return replace(preference, arrival_constraint=ArrivalConstraint.BEFORE, arrival_time=before)
    return replace(preference, arrival_constraint=ArrivalConstraint.AFTER, arrival_time=after)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Hunt for the cheapest train fares across a date range")
    p.add_argument("--from", dest="origin", required=True, help="Departure station id")
    p.add_argument("--to", dest="destination", required=True, help="Destination station id")
    p.add_argument("--return-from", dest="return_origin", help="Station id the return journey starts from")
    p.add_argument("--trip-type", choices=[t.value for t in TripType], default=TripType.SAME_DAY.value)
    p.add_argument("--start-date", type=parse_date_arg, required=True)
    p.add_argument("--end-date", type=parse_date_arg, help="Last date to search (defaults to start date)")
    # Multi-day specific
    p.add_argument("--return-date", type=parse_date_arg, help="Fixed return date (multi-day)")
    p.add_argument("--nights", type=int, help="Stay length in nights (multi-day, flexible)")
    # Time preferences
    p.add_argument("--outbound-time", type=parse_time_preference,
                   help="early|morning|afternoon|evening|late|any, HH:MM or HH:MM-HH:MM")
    p.add_argument("--return-time", type=parse_time_preference)
    p.add_argument("--arrive-before", type=_time_arg, help="Outbound arrival no later than HH:MM")
    p.add_argument("--arrive-after", type=_time_arg, help="Outbound arrival no earlier than HH:MM")
    # Execution
    p.add_argument("--concurrency", type=int, help="Dates searched in parallel (1-8)")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    # Output
    p.add_argument("--output", choices=OUTPUT_FORMATS, default="table")
    p.add_argument("--max-results", type=int, help="Rows shown in the console table (1-50, default 10)")
    p.add_argument("--output-file", help="Write the report to this file instead of stdout")
    p.add_argument("--email", action="store_true", help="Mail the HTML report if credentials are configured")
    # Misc
    p.add_argument("--log-level", type=str.upper, choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO")
    p.add_argument("--verbose", action="store_true")
    p.add_argument(
        "--schedule-at",
        metavar="HH:MM",
        default=None,
        help="Run the search every day at the given time (e.g. 07:30). "
             "Without this flag the search runs once and exits.",
    )
    return p


def request_from_args(args: argparse.Namespace) -> SearchRequest:
    outbound = _with_arrival(args.outbound_time, args.arrive_before, args.arrive_after)
    return SearchRequest(
        trip_type=TripType(args.trip_type),
        origin_id=args.origin,
        destination_id=args.destination,
        start_date=args.start_date,
        end_date=args.end_date or args.start_date,
        return_date=args.return_date,
        nights=args.nights,
        return_origin_id=args.return_origin,
        preferences=TripPreferences(outbound=outbound, back=args.return_time),
    )


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    base = base or default_settings
    overrides = {}
    if args.concurrency is not None:
        overrides["max_concurrency"] = args.concurrency
    if args.max_results is not None:
        overrides["max_results"] = args.max_results
    if args.no_progress:
        overrides["use_progress_bars"] = False
    result = replace(base, **overrides)
    if errors := result.validate():
        raise ConfigurationError("Invalid settings: " + "; ".join(errors))
    return result


async def _search_and_report(request: SearchRequest, settings: Settings, output: str,
                             output_file: str | None, email: bool) -> SearchOutcome:
    async with DbRestProvider(settings.provider_url, settings.provider_timeout) as provider:
        outcome = await run_search(provider, request, settings)

    route = Route(request.origin_id, request.destination_id, request.return_origin_id)
    content = render(outcome, request.trip_type, route, output, settings.max_results)
    if output_file:
        path = save_report(content, output_file, output)
        logging.info(f"Report written to {path}")
    else:
        sys.stdout.write(content if content.endswith("\n") else content + "\n")

    if email:
        html = content if output == "html" else render(outcome, request.trip_type, route, "html")
        send_report(f"Train deals {request.origin_id} -> {request.destination_id}", html, settings)
    return outcome


def _exit_code(error: Exception) -> int:
    if isinstance(error, (ValidationError, ConfigurationError)):
        return EXIT_INVALID
    if isinstance(error, NetworkError):
        return EXIT_NETWORK
    if isinstance(error, SearchError):
        return EXIT_SEARCH
    return EXIT_UNEXPECTED


def main_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, verbose=args.verbose)

    try:
        settings = settings_from_args(args)
        request = request_from_args(args)
    except (ValidationError, ConfigurationError) as e:
        logging.error(format_error(e, args.verbose))
        return EXIT_INVALID

    # scheduled runs always write to a file
    output_file = args.output_file or (str(settings.output_path) if args.schedule_at else None)

    def _run() -> int:
        try:
            asyncio.run(_search_and_report(request, settings, args.output, output_file, args.email))
        except Exception as e:  # noqa: BLE001
            logging.error(format_error(e, args.verbose), exc_info=args.verbose)
            return _exit_code(e)
        return EXIT_OK

    if args.schedule_at:
        logging.info(f"Scheduler started – search will run every day at {args.schedule_at}")
        if (code := _run()) == EXIT_INVALID:
            return code
        schedule.every().day.at(args.schedule_at).do(_run)
        while True:
            try:
                schedule.run_pending()
            except Exception:  # noqa: BLE001
                logging.exception("Scheduler error:")
                time.sleep(60 * 60)
            time.sleep(1)
    return _run()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main_cli())
