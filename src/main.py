"""
Command-line entry point for the BOM Cost Tracker.

Usage Examples:
    # Create the database tables
    bom-tracker init-db

    # Cost breakdown, margin and profit of a product
    bom-tracker cost 3

    # Compare a product against its cheapest-supplier composition
    bom-tracker optimize 3

    # Start a production run of 12 units (deducts materials now)
    bom-tracker produce 3 12 --notes "Morning shift"

    # Complete or cancel a pending run
    bom-tracker set-status 7 completed

    # List runs, optionally by status
    bom-tracker runs --status pending

    # Materials below their minimum stock
    bom-tracker low-stock

Exit code is 0 on success and 1 when a service error is reported.
"""

import argparse
import logging
import sys
from typing import List, Optional

from src.services import costing_service, production_service, simulation_service, stock_service
from src.services.database import initialize_app_database
from src.services.exceptions import InsufficientStockError, ServiceError, ValidationError
from src.utils.config import get_config

logger = logging.getLogger("bom_tracker.cli")


def configure_logging(level_name: str) -> None:
    """Configure root logging for command-line use."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def print_cost(product_id: int) -> None:
    """Print the cost breakdown of a product."""
    result = costing_service.calculate_product_cost(product_id).to_dict()
    print(f"Product {product_id}")
    for line in result["breakdown"]:
        price = line["unit_price"] if line["resolved"] else "UNRESOLVED"
        print(
            f"  {line['material_name']:<30} {line['quantity']:>10} {line['unit']:<5} "
            f"@ {price:>10} ({line['supplier_name']}) = {line['line_cost']}"
        )
    print(f"  Total cost:    {result['total_cost']}")
    print(f"  Selling price: {result['selling_price']}")
    print(f"  Profit:        {result['profit']}")
    print(f"  Margin:        {result['margin']}")
    if result["has_unresolved"]:
        print("  WARNING: some lines have no price and were counted as zero")


def print_optimization(product_id: int) -> None:
    """Print the cheapest-supplier comparison of a product."""
    comparison = simulation_service.simulate_cheapest_suppliers(product_id).to_dict()
    print(f"Product {product_id}")
    print(f"  Current cost:   {comparison['original_cost']}")
    print(f"  Optimized cost: {comparison['simulated_cost']}")
    print(f"  Cost change:    {comparison['cost_delta']}")
    print(f"  Margin change:  {comparison['margin_delta']}")
    if not comparison["line_changes"]:
        print("  Already using the cheapest suppliers")
    for change in comparison["line_changes"]:
        saving = change["saving"] if change["saving"] is not None else "n/a"
        print(
            f"  Line {change['index'] + 1}: supplier {change['original_supplier_id']} -> "
            f"{change['new_supplier_id']} (saving {saving})"
        )


def print_run(run: dict) -> None:
    """Print one production run."""
    print(
        f"Run {run['id']}: product {run['product_id']} ({run.get('product_name')}) "
        f"x{run['batch_quantity']} [{run['status']}] created {run['created_at']}"
    )


def print_runs(status: Optional[str]) -> None:
    """Print production runs, newest first."""
    runs = production_service.list_production_runs(status=status)
    if not runs:
        print("No production runs")
    for run in runs:
        print_run(run)


def print_low_stock() -> None:
    """Print materials whose stock is below their minimum."""
    materials = stock_service.get_low_stock_materials()
    if not materials:
        print("All materials are at or above their minimum stock")
    for material in materials:
        print(
            f"  {material['name']:<30} {material['stock']:>10} / "
            f"{material['min_stock']} {material['unit']}"
        )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bom-tracker",
        description="Bill-of-materials costing and production tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the database tables")

    cost_parser = subparsers.add_parser("cost", help="Show a product's cost breakdown")
    cost_parser.add_argument("product_id", type=int, help="Product ID")

    optimize_parser = subparsers.add_parser(
        "optimize", help="Compare a product against its cheapest suppliers"
    )
    optimize_parser.add_argument("product_id", type=int, help="Product ID")

    produce_parser = subparsers.add_parser("produce", help="Create a production run")
    produce_parser.add_argument("product_id", type=int, help="Product ID")
    produce_parser.add_argument("quantity", type=int, help="Batch quantity")
    produce_parser.add_argument("--notes", help="Optional notes")

    status_parser = subparsers.add_parser("set-status", help="Complete or cancel a run")
    status_parser.add_argument("run_id", type=int, help="Production run ID")
    status_parser.add_argument("status", help="'completed' or 'cancelled'")

    runs_parser = subparsers.add_parser("runs", help="List production runs")
    runs_parser.add_argument(
        "--status",
        choices=["pending", "completed", "cancelled"],
        help="Only runs with this status",
    )

    subparsers.add_parser("low-stock", help="List materials below minimum stock")
    return parser


def run_command(args: argparse.Namespace) -> int:
    """Dispatch a parsed command; returns the exit code."""
    try:
        if args.command == "init-db":
            print(f"Database ready: {get_config().database_url}")
        elif args.command == "cost":
            print_cost(args.product_id)
        elif args.command == "optimize":
            print_optimization(args.product_id)
        elif args.command == "produce":
            run = production_service.create_production_run(
                args.product_id, args.quantity, notes=args.notes
            )
            print_run(run)
        elif args.command == "set-status":
            print_run(production_service.update_production_run_status(args.run_id, args.status))
        elif args.command == "runs":
            print_runs(args.status)
        elif args.command == "low-stock":
            print_low_stock()
    except InsufficientStockError as e:
        print("ERROR: Insufficient stock", file=sys.stderr)
        for shortfall in e.shortfalls:
            print(
                f"  {shortfall.material_name}: required {shortfall.required} {shortfall.unit}, "
                f"available {shortfall.available} {shortfall.unit}",
                file=sys.stderr,
            )
        return 1
    except ValidationError as e:
        for error in e.errors:
            print(f"ERROR: {error}", file=sys.stderr)
        return 1
    except ServiceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    config = get_config()
    configure_logging(config.log_level)
    logger.debug(f"{config.app_name} v{config.app_version} ({config.environment})")

    initialize_app_database()
    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
