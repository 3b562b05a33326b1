from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from motolog.config import settings
from motolog.core.errors import EstimationFailure, RideError
from motolog.core.metrics import summarize
from motolog.core.models import MAINTENANCE_CATEGORIES, VEHICLE_CLASSES, MaintenanceRecord, Ride, UserPreferences
from motolog.core.tracker import RideState, RideTracker
from motolog.export import write_rides_csv
from motolog.formatting import CURRENCIES, format_duration, format_money, format_timestamp
from motolog.providers.combined import build_estimator
from motolog.providers.location import ReplayLocationProvider
from motolog.services import default_preferences
from motolog.store import LocalStore
from motolog.track_io import load_track

console = Console()


def _open_store(args: argparse.Namespace) -> LocalStore:
    path = Path(args.data) if args.data else settings.data_path
    return LocalStore(path, defaults=default_preferences())


def _ride_table(rides: List[Ride], currency: str, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Bike")
    table.add_column("Km", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Avg km/h", justify="right")
    table.add_column("Fuel", justify="right")
    table.add_column("Maint.", justify="right")
    table.add_column("Places")
    table.add_column("Notes")
    table.add_column("Id")
    for r in rides:
        table.add_row(
            format_timestamp(r.start_time),
            r.vehicle_class,
            f"{r.distance_km:.2f}",
            format_duration(r.duration_ms),
            f"{r.avg_speed_kmh:.1f}",
            format_money(r.estimated_fuel_cost, currency),
            format_money(r.estimated_maintenance_cost, currency),
            ", ".join(r.places_visited),
            r.notes or "",
            r.id[:8],
        )
    return table


def _print_invalid(e: ValidationError) -> None:
    for err in e.errors():
        field = ".".join(str(p) for p in err["loc"])
        console.print(f"[red]Invalid {field}:[/red] {err['msg']}")


def _find_ride_id(store: LocalStore, prefix: str) -> Optional[str]:
    matches = [r.id for r in store.rides() if r.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


# ---- commands ----

def cmd_replay(args: argparse.Namespace) -> int:
    store = _open_store(args)
    points, summary = load_track(args.track)
    console.print(f"Loaded {summary.rows_parsed} sample(s) from {args.track} ({summary.rows_skipped} skipped)")

    try:
        estimator = build_estimator(args.estimator)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 2

    provider = ReplayLocationProvider(points, fail_after=args.fail_after)
    tracker = RideTracker(provider=provider, estimator=estimator, store=store)

    try:
        tracker.start()
        provider.run()
        tracker.stop()
    except EstimationFailure as e:
        console.print(f"[red]Estimation failed, ride dropped:[/red] {e}")
        return 1
    except RideError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
        return 1

    if tracker.state != RideState.PENDING_REVIEW:
        if isinstance(tracker.last_error, EstimationFailure):
            console.print(f"[red]Estimation failed, ride dropped:[/red] {tracker.last_error}")
            return 1
        console.print("[yellow]Not enough data for a ride (need at least 2 samples); nothing saved.[/yellow]")
        return 0

    currency = store.preferences().currency_code
    console.print(_ride_table([tracker.draft], currency, "Ride summary"))

    if args.discard:
        tracker.discard()
        console.print("Ride discarded.")
        return 0

    ride = tracker.commit(args.notes)
    console.print(f"Saved ride {ride.id}")
    return 0


def cmd_rides(args: argparse.Namespace) -> int:
    store = _open_store(args)
    currency = store.preferences().currency_code
    console.print(_ride_table(store.rides(), currency, "Ride history"))
    return 0


def cmd_summary(args: argparse.Namespace) -> int:
    store = _open_store(args)
    currency = store.preferences().currency_code
    s = summarize(store.rides(), store.maintenance())

    table = Table(title="Expenses")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Rides", str(s.ride_count))
    table.add_row("Distance", f"{s.total_distance_km:.1f} km")
    table.add_row("Riding time", format_duration(s.total_duration_ms))
    table.add_row("Average speed", f"{s.average_speed_kmh:.1f} km/h")
    table.add_row("Fuel (est.)", format_money(s.total_fuel_cost, currency))
    table.add_row("Maintenance (est.)", format_money(s.total_maintenance_estimated, currency))
    table.add_row("Maintenance (logged)", format_money(s.total_maintenance_logged, currency))
    table.add_row("Total", format_money(s.total_cost, currency))
    console.print(table)
    return 0


def cmd_delete_ride(args: argparse.Namespace) -> int:
    store = _open_store(args)
    ride_id = _find_ride_id(store, args.ride_id)
    if ride_id is None or not store.delete_ride(ride_id):
        console.print(f"[red]No unique ride matches '{args.ride_id}'[/red]")
        return 1
    console.print(f"Deleted ride {ride_id}")
    return 0


def cmd_maintenance(args: argparse.Namespace) -> int:
    store = _open_store(args)
    currency = store.preferences().currency_code

    if args.action == "add":
        try:
            record = MaintenanceRecord(category=args.category, cost=args.cost, description=args.description or "")
        except ValidationError as e:
            _print_invalid(e)
            return 1
        store.insert_maintenance(record)
        console.print(f"Logged {record.category} ({format_money(record.cost, currency)}) as {record.id}")
        return 0

    if args.action == "delete":
        if not args.record_id:
            console.print("[red]maintenance delete needs --id[/red]")
            return 1
        matches = [m.id for m in store.maintenance() if m.id.startswith(args.record_id)]
        if len(matches) != 1 or not store.delete_maintenance(matches[0]):
            console.print(f"[red]No unique maintenance record matches '{args.record_id}'[/red]")
            return 1
        console.print(f"Deleted maintenance record {matches[0]}")
        return 0

    table = Table(title="Maintenance log")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Cost", justify="right")
    table.add_column("Description")
    table.add_column("Id")
    for m in store.maintenance():
        table.add_row(format_timestamp(m.date), m.category, format_money(m.cost, currency), m.description, m.id[:8])
    console.print(table)
    return 0


def cmd_prefs(args: argparse.Namespace) -> int:
    store = _open_store(args)
    prefs = store.preferences()

    if args.action == "set":
        updates = {}
        if args.currency:
            code = args.currency.upper()
            if code not in CURRENCIES:
                console.print(f"[red]Unsupported currency: {code}[/red]")
                return 1
            updates["currency_code"] = code
        if args.fuel_price is not None:
            updates["fuel_price"] = args.fuel_price
        if args.vehicle_class:
            updates["vehicle_class"] = args.vehicle_class
        try:
            prefs = UserPreferences.model_validate({**prefs.model_dump(), **updates})
        except ValidationError as e:
            _print_invalid(e)
            return 1
        store.save_preferences(prefs)

    console.print(f"Currency:      {prefs.currency_code}")
    console.print(f"Fuel price:    {format_money(prefs.fuel_price, prefs.currency_code)} / L")
    console.print(f"Vehicle class: {prefs.vehicle_class}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    store = _open_store(args)
    n = write_rides_csv(args.out, store.rides(), store.preferences().currency_code)
    console.print(f"Exported {n} ride(s) to {Path(args.out).resolve()}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        console.print("[yellow]Refusing to clear without --yes[/yellow]")
        return 1
    _open_store(args).clear()
    console.print("All rides and maintenance records removed.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="motolog")
    ap.add_argument("--data", default=None, help="Path to the JSON store (default: MOTOLOG_DATA_PATH)")
    ap.add_argument("--debug", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("replay", help="Replay a recorded track as a ride")
    p.add_argument("track", help="CSV or JSON track file")
    p.add_argument("--notes", default=None)
    p.add_argument("--discard", action="store_true", help="Review only, do not save")
    p.add_argument("--estimator", default=None, help="local | remote | nominatim")
    p.add_argument("--fail-after", type=int, default=None, help="Simulate a location error after N samples")
    p.set_defaults(func=cmd_replay)

    sub.add_parser("rides", help="List ride history").set_defaults(func=cmd_rides)
    sub.add_parser("summary", help="Show expense totals").set_defaults(func=cmd_summary)

    p = sub.add_parser("delete-ride", help="Delete a ride by id (or unique id prefix)")
    p.add_argument("ride_id")
    p.set_defaults(func=cmd_delete_ride)

    p = sub.add_parser("maintenance", help="Maintenance log")
    p.add_argument("action", choices=["list", "add", "delete"], nargs="?", default="list")
    p.add_argument("--category", choices=MAINTENANCE_CATEGORIES, default="Oil Change")
    p.add_argument("--cost", type=float, default=0.0)
    p.add_argument("--description", default="")
    p.add_argument("--id", dest="record_id", default=None)
    p.set_defaults(func=cmd_maintenance)

    p = sub.add_parser("prefs", help="Show or change preferences")
    p.add_argument("action", choices=["show", "set"], nargs="?", default="show")
    p.add_argument("--currency", default=None)
    p.add_argument("--fuel-price", type=float, default=None)
    p.add_argument("--vehicle-class", choices=VEHICLE_CLASSES, default=None)
    p.set_defaults(func=cmd_prefs)

    p = sub.add_parser("export", help="Export rides to CSV")
    p.add_argument("out")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("clear", help="Remove all rides and maintenance records")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=cmd_clear)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level,
        format="%(asctime)s [motolog] %(levelname)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
