"""Rendering of search outcomes: HTML (Jinja2), JSON, CSV and a plain console table."""

import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import JourneyRecord, OneWayResult, SearchOutcome, SearchResult, TripType

OUTPUT_FORMATS = ("table", "json", "csv", "html")
_EXTENSIONS = {"json": ".json", "csv": ".csv", "table": ".txt", "html": ".html"}
_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True, slots=True)
class Route:
    origin: str
    destination: str
    return_origin: str | None = None


def _sorted(results: Sequence[SearchResult]) -> list[SearchResult]:
    return sorted(results, key=lambda r: r.total_price)


def _hhmm(moment: datetime | None) -> str:
    return moment.strftime("%H:%M") if moment else "N/A"


def _journey_dict(record: JourneyRecord) -> dict:
    return {
        "train_name": record.train_name,
        "departure": record.departure.isoformat() if record.departure else None,
        "arrival": record.arrival.isoformat() if record.arrival else None,
        "transfers": record.transfers,
        "price": record.price,
        "currency": record.currency,
        "all_trains": list(record.all_trains),
    }


def _result_dict(result: SearchResult, trip_type: TripType) -> dict:
    if isinstance(result, OneWayResult):
        return {
            "date": result.date.isoformat(),
            "price": result.total_price,
            "currency": result.journey.currency,
            "journey": _journey_dict(result.journey),
        }
    data = {
        "total_price": result.total_price,
        "currency": result.outbound.currency,
        "outbound": _journey_dict(result.outbound),
        "return": _journey_dict(result.back),
    }
    if trip_type is TripType.SAME_DAY:
        data["date"] = result.date.isoformat()
    else:
        data["outbound_date"] = result.outbound_date.isoformat()
        data["return_date"] = result.back_date.isoformat()
        if result.nights is not None:
            data["nights"] = result.nights
    return data


def render_json(outcome: SearchOutcome, trip_type: TripType, route: Route) -> str:
    payload = {
        "metadata": {
            "search_time": datetime.now().isoformat(timespec="seconds"),
            "trip_type": trip_type.value,
            "route": {
                "departure": route.origin,
                "destination": route.destination,
                "return_departure": route.return_origin,
            },
            "result_count": outcome.success_count,
            "failure_count": outcome.failure_count,
        },
        "results": [_result_dict(r, trip_type) for r in _sorted(outcome.results)],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _record_columns(record: JourneyRecord) -> list:
    return [record.train_name, _hhmm(record.departure), _hhmm(record.arrival), record.transfers,
            f"{record.price:.2f}"]


def render_csv(outcome: SearchOutcome, trip_type: TripType) -> str:
    if not outcome.results:
        return "No results found.\n"
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    leg_headers = ["Train", "Departure", "Arrival", "Transfers", "Price"]
    if trip_type is TripType.ONE_WAY:
        writer.writerow(["Date", *leg_headers])
        for r in _sorted(outcome.results):
            writer.writerow([r.date.isoformat(), *_record_columns(r.journey)])
        return buffer.getvalue()

    pair_headers = [f"Outbound {h}" for h in leg_headers] + [f"Return {h}" for h in leg_headers] + ["Total Price"]
    date_headers = ["Date"] if trip_type is TripType.SAME_DAY else ["Outbound Date", "Return Date"]
    writer.writerow([*date_headers, *pair_headers])
    for r in _sorted(outcome.results):
        dates = [r.date.isoformat()] if trip_type is TripType.SAME_DAY else [r.outbound_date.isoformat(),
                                                                            r.back_date.isoformat()]
        writer.writerow([*dates, *_record_columns(r.outbound), *_record_columns(r.back), f"{r.total_price:.2f}"])
    return buffer.getvalue()


def _table_row(result: SearchResult) -> list[str]:
    if isinstance(result, OneWayResult):
        j = result.journey
        return [result.date.strftime("%Y-%m-%d (%a)"), f"{_hhmm(j.departure)}-{_hhmm(j.arrival)}", j.train_name,
                str(j.transfers), f"{result.total_price:.2f} {j.currency}"]
    o, b = result.outbound, result.back
    days = result.outbound_date.strftime("%Y-%m-%d (%a)")
    if result.back_date != result.outbound_date:
        days += f" -> {result.back_date:%Y-%m-%d (%a)}"
    return [days, f"{_hhmm(o.departure)}-{_hhmm(o.arrival)} / {_hhmm(b.departure)}-{_hhmm(b.arrival)}",
            f"{o.train_name} / {b.train_name}", f"{o.transfers}/{b.transfers}",
            f"{result.total_price:.2f} {o.currency}"]


def render_table(outcome: SearchOutcome, trip_type: TripType, route: Route, max_results: int = 10) -> str:
    title = f"{trip_type.value}: {route.origin} -> {route.destination}"
    if not outcome.results:
        return f"{title}\nNo results found.\n"
    header = ["Date", "Times", "Trains", "Transfers", "Price"]
    shown = _sorted(outcome.results)[:max_results]
    rows = [header] + [_table_row(r) for r in shown]
    widths = [max(len(row[i]) for row in rows) for i in range(len(header))]
    lines = [title]
    for index, row in enumerate(rows):
        lines.append(" | ".join(cell.ljust(width) for cell, width in zip(row, widths)))
        if index == 0:
            lines.append("-+-".join("-" * width for width in widths))
    if len(shown) < outcome.success_count:
        lines.append(f"Showing the {len(shown)} cheapest of {outcome.success_count} results")
    if outcome.failure_count:
        lines.append(f"{outcome.failure_count} date(s) without results: "
                     + ", ".join(str(f) for f in outcome.failures))
    return "\n".join(lines) + "\n"


def render_html(outcome: SearchOutcome, trip_type: TripType, route: Route) -> str:
    results = _sorted(outcome.results)
    trips = []
    for r in results:
        if isinstance(r, OneWayResult):
            trips.append({'date': r.date.strftime("%Y-%m-%d (%A)"), 'total_price': r.total_price,
                          'legs': [r.journey]})
        else:
            label = r.outbound_date.strftime("%Y-%m-%d (%A)")
            if r.back_date != r.outbound_date:
                label += f" → {r.back_date:%Y-%m-%d (%A)}"
            trips.append({'date': label, 'total_price': r.total_price, 'legs': [r.outbound, r.back]})

    env = Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)),
                      autoescape=select_autoescape(['html', 'xml', 'html.j2']))
    env.filters['hhmm'] = _hhmm
    tpl = env.get_template('deals.html.j2')
    rendered = tpl.render(
        route=route,
        trip_type=trip_type.value,
        trips=trips,
        lowest=results[0].total_price if results else None,
        failures=[str(f) for f in outcome.failures],
        generated_at=datetime.now().strftime("%d.%m.%Y %H:%M"),
    )
    soup = BeautifulSoup(rendered, 'lxml')
    return soup.prettify()


def render(outcome: SearchOutcome, trip_type: TripType, route: Route, fmt: str, max_results: int = 10) -> str:
    if fmt == "json":
        return render_json(outcome, trip_type, route)
    if fmt == "csv":
        return render_csv(outcome, trip_type)
    if fmt == "html":
        return render_html(outcome, trip_type, route)
    return render_table(outcome, trip_type, route, max_results)


def save_report(content: str, path: str | Path, fmt: str) -> Path:
    path = Path(path)
    ext = _EXTENSIONS.get(fmt)
    if ext and not path.suffix:
        path = path.with_suffix(ext)
    path.write_text(content, encoding="utf-8")
    return path
