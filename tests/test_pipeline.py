import argparse
import asyncio
import json
from dataclasses import replace
from datetime import date

import pytest

from conftest import FakeProvider, make_journey
from trainhunter import pipeline
from trainhunter.errors import NetworkError, SearchError, ValidationError
from trainhunter.models import ArrivalConstraint, DeparturePreference, OneWayResult, TripType
from trainhunter.pipeline import SearchRequest, parse_date_arg, parse_time_preference, run_search

DAY = date(2025, 8, 15)


def routes() -> dict:
    back = date(2025, 8, 18)
    return {
        ("A", "B", DAY): [make_journey(DAY, "07:00", "09:00", 19.9, "ICE 587")],
        ("B", "A", DAY): [make_journey(DAY, "19:00", "21:00", 24.9, "ICE 1006")],
        ("B", "A", back): [make_journey(back, "17:00", "19:00", 29.9, "ICE 1008")],
    }


def test_run_search_dispatches_on_trip_type(fast_settings, sleeps):
    provider = FakeProvider(routes())

    one_way = asyncio.run(run_search(provider, SearchRequest(TripType.ONE_WAY, "A", "B", DAY, DAY), fast_settings))
    assert isinstance(one_way.results[0], OneWayResult)

    same_day = asyncio.run(run_search(provider, SearchRequest(TripType.SAME_DAY, "A", "B", DAY, DAY),
                                      fast_settings))
    assert same_day.results[0].total_price == pytest.approx(44.8)

    flexible = asyncio.run(run_search(provider, SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, DAY, nights=3),
                                      fast_settings))
    assert flexible.results[0].nights == 3
    assert flexible.results[0].back.train_name == "ICE 1008"

    fixed = asyncio.run(run_search(provider, SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, DAY,
                                                           return_date=date(2025, 8, 18)), fast_settings))
    assert fixed.results[0].nights is None
    assert fixed.results[0].total_price == pytest.approx(49.8)


@pytest.mark.parametrize("request_", [
    SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, DAY),
    SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, DAY, return_date=DAY, nights=2),
    SearchRequest(TripType.ONE_WAY, "A", "A", DAY, DAY),
    SearchRequest(TripType.SAME_DAY, "A", "B", DAY, date(2025, 8, 1)),
    SearchRequest(TripType.SAME_DAY, "A", "B", DAY, DAY, return_origin_id="A"),
    SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, date(2025, 8, 18), return_date=date(2025, 8, 16)),
    SearchRequest(TripType.MULTI_DAY, "A", "B", DAY, DAY, nights=2, return_origin_id="A"),
])
def test_run_search_rejects_invalid_requests(fast_settings, request_):
    provider = FakeProvider(routes())
    with pytest.raises(ValidationError):
        asyncio.run(run_search(provider, request_, fast_settings))
    assert provider.queries == []


def test_run_search_times_out(fast_settings):
    settings = replace(fast_settings, search_timeout=0.05)
    provider = FakeProvider(routes(), delay=1)

    with pytest.raises(NetworkError, match="One-way trip search timed out after 0.05s"):
        asyncio.run(run_search(provider, SearchRequest(TripType.ONE_WAY, "A", "B", DAY, DAY), settings))


def test_parse_date_arg_formats():
    assert parse_date_arg("2025-08-15") == DAY
    assert parse_date_arg("15.08.2025") == DAY
    assert parse_date_arg("08-15") == date(date.today().year, 8, 15)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_date_arg("next friday")


def test_parse_time_preference():
    assert parse_time_preference("Morning").departure is DeparturePreference.MORNING
    custom = parse_time_preference("22:00-04:00")
    assert (custom.departure, custom.custom_start, custom.custom_end) == (DeparturePreference.CUSTOM, "22:00", "04:00")
    assert parse_time_preference("09:30").custom_end is None
    with pytest.raises(argparse.ArgumentTypeError):
        parse_time_preference("25:00")


def test_request_from_args_builds_arrival_window():
    args = pipeline.build_arg_parser().parse_args([
        "--from", "A", "--to", "B", "--start-date", "2025-08-15", "--outbound-time", "early",
        "--arrive-after", "08:00", "--arrive-before", "10:00", "--return-time", "evening",
    ])
    request = pipeline.request_from_args(args)

    assert request.trip_type is TripType.SAME_DAY
    assert request.end_date == DAY
    outbound = request.preferences.outbound
    assert outbound.departure is DeparturePreference.EARLY
    assert (outbound.arrival_constraint, outbound.arrival_time, outbound.arrival_time_end) == (
        ArrivalConstraint.BETWEEN, "08:00", "10:00")
    assert request.preferences.back.departure is DeparturePreference.EVENING


def test_main_cli_prints_json_report(monkeypatch, capsys):
    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider(routes()))

    code = pipeline.main_cli(["--from", "A", "--to", "B", "--trip-type", "one-way", "--start-date", "2025-08-15",
                              "--output", "json", "--no-progress"])

    assert code == pipeline.EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["metadata"]["trip_type"] == "one-way"
    assert data["results"][0]["journey"]["train_name"] == "ICE 587"


def test_main_cli_writes_file_and_mails_html(monkeypatch, tmp_path):
    sent = []
    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider(routes()))
    monkeypatch.setattr(pipeline, "send_report", lambda subject, body, settings: sent.append((subject, body)))

    code = pipeline.main_cli(["--from", "A", "--to", "B", "--start-date", "2025-08-15", "--output", "csv",
                              "--output-file", str(tmp_path / "deals"), "--email", "--no-progress"])

    assert code == pipeline.EXIT_OK
    assert (tmp_path / "deals.csv").read_text(encoding="utf-8").startswith("Date,")
    [(subject, body)] = sent
    assert subject == "Train deals A -> B"
    assert "ICE 1006" in body


def test_main_cli_exit_codes(monkeypatch):
    assert pipeline.main_cli(["--from", "A", "--to", "A", "--start-date", "2025-08-15"]) == pipeline.EXIT_INVALID
    assert pipeline.main_cli(["--from", "A", "--to", "B", "--start-date", "2025-08-15",
                              "--concurrency", "20"]) == pipeline.EXIT_INVALID

    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider())
    for error, expected in ((NetworkError("down"), pipeline.EXIT_NETWORK),
                            (SearchError("nothing"), pipeline.EXIT_SEARCH),
                            (RuntimeError("bug"), pipeline.EXIT_UNEXPECTED)):
        async def failing(*args, _error=error, **kwargs):
            raise _error

        monkeypatch.setattr(pipeline, "run_search", failing)
        code = pipeline.main_cli(["--from", "A", "--to", "B", "--start-date", "2025-08-15", "--no-progress"])
        assert code == expected


def test_main_cli_validates_the_request_once(monkeypatch):
    calls = []
    original = pipeline.validate_search_request

    def counting(request):
        calls.append(request)
        return original(request)

    monkeypatch.setattr(pipeline, "validate_search_request", counting)
    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider(routes()))

    code = pipeline.main_cli(["--from", "A", "--to", "B", "--start-date", "2025-08-15", "--no-progress"])

    assert code == pipeline.EXIT_OK
    assert len(calls) == 1


def test_scheduled_run_with_invalid_request_exits(monkeypatch):
    def no_scheduling():  # pragma: no cover
        raise AssertionError("scheduler must not start")

    monkeypatch.setattr(pipeline.schedule, "every", no_scheduling)
    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider(routes()))

    code = pipeline.main_cli(["--from", "A", "--to", "B", "--return-from", "A", "--start-date", "2025-08-15",
                              "--schedule-at", "07:30", "--output-file", "unused", "--no-progress"])

    assert code == pipeline.EXIT_INVALID


def test_main_cli_caps_table_rows(monkeypatch, capsys):
    week = {("A", "B", date(2025, 8, d)): [make_journey(date(2025, 8, d), "07:00", "09:00", 10.0 + d, "ICE 587")]
            for d in range(15, 20)}
    monkeypatch.setattr(pipeline, "DbRestProvider", lambda *args, **kwargs: FakeProvider(week))

    code = pipeline.main_cli(["--from", "A", "--to", "B", "--trip-type", "one-way", "--start-date", "2025-08-15",
                              "--end-date", "2025-08-19", "--max-results", "2", "--no-progress"])

    out = capsys.readouterr().out
    assert code == pipeline.EXIT_OK
    assert "2025-08-15" in out and "2025-08-16" in out
    assert "2025-08-17" not in out
    assert "Showing the 2 cheapest of 5 results" in out
    assert pipeline.main_cli(["--from", "A", "--to", "B", "--start-date", "2025-08-15",
                              "--max-results", "0"]) == pipeline.EXIT_INVALID
