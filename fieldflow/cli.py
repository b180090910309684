"""CLI for FieldFlow — inspect and manage stored work orders."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime, timedelta, timezone

from fieldflow.errors import FieldFlowError


async def _open_store(on_corrupt: str | None = None):
    from fieldflow.config import get_settings
    from fieldflow.db.backends import SqlSlotBackend
    from fieldflow.db.engine import async_session_factory, create_tables
    from fieldflow.db.store import WorkOrderStore
    from fieldflow.services.calendar import get_calendar_tz

    settings = get_settings()
    await create_tables()
    backend = SqlSlotBackend(async_session_factory, settings.storage.slot)
    return await WorkOrderStore.open(
        backend,
        tz=get_calendar_tz(settings.calendar.timezone),
        on_corrupt=on_corrupt or settings.storage.on_corrupt,
    )


def _print_order(order) -> None:
    deadline = order.deadline.isoformat() if order.deadline else "-"
    print(f"{order.id}  {order.status:<10} {order.urgency:<6} due {deadline:<25} "
          f"{order.customer_details.name}: {order.job_description}")


async def cmd_list(args):
    """List stored work orders, newest first."""
    store = await _open_store()
    orders = sorted(reversed(store.list()), key=lambda o: o.created_at, reverse=True)
    if args.status:
        orders = [o for o in orders if o.status.lower() == args.status.lower()]
    if not orders:
        print("No work orders.")
        return
    for order in orders:
        _print_order(order)


async def cmd_due(args):
    """Work orders whose deadline falls on a day."""
    store = await _open_store()
    day = date.fromisoformat(args.date)
    orders = store.find_by_deadline_day(day)
    print(f"{len(orders)} work order(s) due {day.isoformat()}")
    for order in orders:
        _print_order(order)


def _parse_part(text: str):
    from fieldflow.schemas.work_order import PartCost

    try:
        name, cost, quantity = text.rsplit(":", 2)
        return PartCost(part_name=name, cost=float(cost), quantity=int(quantity))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected NAME:COST:QUANTITY, got {text!r}")


async def cmd_total(args):
    """Compute an invoice total locally, no AI involved."""
    from fieldflow.services.invoice import compute_invoice_total, compute_subtotal, format_currency

    total = compute_invoice_total(args.part, args.labor, args.tax)
    print(f"Subtotal: {format_currency(compute_subtotal(args.part, args.labor))}")
    print(f"Total:    {format_currency(total)}")


async def cmd_seed(args):
    """Add a handful of demo work orders."""
    from fieldflow.schemas.work_order import CustomerInfo, WorkOrderForm
    from fieldflow.services.lifecycle import create_work_order

    store = await _open_store()
    if len(store) and not args.force:
        print(f"Store already holds {len(store)} work order(s), skipping seed (use --force).")
        return

    today = datetime.now(timezone.utc).replace(hour=15, minute=0, second=0, microsecond=0)
    demo = [
        WorkOrderForm(
            customer_details=CustomerInfo(
                name="Dana Whitfield", email="dana@example.com",
                phone="555-0142", address="18 Alder Lane",
            ),
            job_description="Kitchen sink leaking under the cabinet, shut-off valve seized",
            location="Kitchen",
            urgency="High",
            deadline=today + timedelta(days=1),
        ),
        WorkOrderForm(
            customer_details=CustomerInfo(
                name="Marcus Ortega", email="m.ortega@example.com",
                phone="555-0199", address="402 Quarry Road, Unit 3",
            ),
            job_description="Replace two tripping GFCI outlets in the garage",
            location="Garage",
            urgency="Medium",
            deadline=today + timedelta(days=4),
        ),
        WorkOrderForm(
            customer_details=CustomerInfo(
                name="Priya Raman", email="priya.raman@example.com",
                phone="555-0117", address="7 Harbor View Court",
            ),
            job_description="Annual furnace service and filter change",
            location="Basement",
            urgency="Low",
        ),
    ]
    for form in demo:
        order = await create_work_order(store, form)
        print(f"Created work order {order.id} for {form.customer_details.name}")
    print("\nSeed complete. Start the server with: uvicorn fieldflow.main:app --reload")


async def cmd_reset_storage(args):
    """Discard every stored work order, including corrupt data."""
    if not args.yes:
        answer = input("Delete ALL stored work orders? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return
    store = await _open_store(on_corrupt="reset")
    discarded = len(store)
    await store.reset()
    print(f"Storage reset ({discarded} work order(s) discarded).")


def main():
    parser = argparse.ArgumentParser(description="FieldFlow CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    ls = subparsers.add_parser("list", help="List work orders")
    ls.add_argument("--status", default="", help="Only orders with this status")

    due = subparsers.add_parser("due", help="Work orders due on a day")
    due.add_argument("date", help="Day as YYYY-MM-DD")

    tot = subparsers.add_parser("total", help="Compute an invoice total")
    tot.add_argument("--part", action="append", type=_parse_part, default=[],
                     metavar="NAME:COST:QTY", help="Part line (repeatable)")
    tot.add_argument("--labor", type=float, default=0.0, help="Labor estimate")
    tot.add_argument("--tax", type=float, default=0.0, help="Tax rate, e.g. 0.08")

    seed = subparsers.add_parser("seed", help="Add demo work orders")
    seed.add_argument("--force", action="store_true", help="Seed even if orders exist")

    rs = subparsers.add_parser("reset-storage", help="Delete all stored work orders")
    rs.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "list": cmd_list,
        "due": cmd_due,
        "total": cmd_total,
        "seed": cmd_seed,
        "reset-storage": cmd_reset_storage,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(commands[args.command](args))
    except FieldFlowError as e:
        print(f"Error: {e}")
        if hasattr(e, "errors"):
            for err in e.errors:
                print(f"  {err.field}: {err.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
