# main.py — revenue analytics pipeline
#
# python main.py                           # prompt for parts, read data/
# python main.py --parts 2 3 4 5           # run specific parts
# python main.py --demo --parts 1 2 3 4 5 6 --plots
#
# Set DATA_DIR in config.py before running, or pass --data-dir.

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

import config
import data_loader
import engine
import report
from errors import AuthorizationError, LedgerUnavailableError
from simulate import SimParams, simulate_ledger

logger = logging.getLogger("revenue_analytics")


# ---------------------------------------------------------------------------
# Individual part runners
# ---------------------------------------------------------------------------

def run_part1(args: argparse.Namespace) -> None:
    """Ledger loading and blank-value audit."""
    print("\n-- Part 1: Ledger Loading & Quality --")
    if args.demo:
        print("  Demo ledger: synthetic data, nothing to audit on disk.")
        return
    ledger = data_loader.CsvLedger(args.data_dir)
    data_loader.audit_ledger(ledger.load_frame("transactions"))


def run_part2(result) -> None:
    """Trailing 12-month MRR with new / churned decomposition."""
    print("\n-- Part 2: MRR Trend --")
    report.print_mrr_trend(result)


def run_part3(result) -> None:
    """Three-month linear forecast with ±20 % bands."""
    print("\n-- Part 3: Forecast --")
    report.print_forecast(result)


def run_part4(result) -> None:
    """Heuristic churn-risk ranking."""
    print("\n-- Part 4: Churn Risk --")
    report.print_churn_risks(result)


def run_part5(result, output_dir: str) -> None:
    """Summary KPIs + JSON / CSV export."""
    print("\n-- Part 5: Summary & Export --")
    report.print_summary(result)
    print(f"\n-- Saving response to {output_dir!r} --")
    for path in engine.save_report(result, output_dir).values():
        print(f"  Saved {path}")


def run_part6(result, output_dir: str, save: bool) -> None:
    """Charts: MRR + forecast, new vs churned, risk distribution."""
    print("\n-- Part 6: Charts --")
    save_dir = os.path.join(output_dir, "charts") if save else None
    for plot in (report.plot_mrr_forecast, report.plot_net_new, report.plot_risk_levels):
        path = plot(result, save_dir=save_dir)
        if path:
            print(f"  Saved {path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

PART_DESCRIPTIONS = {
    1: "Ledger Loading & Quality",
    2: "MRR Trend",
    3: "Revenue Forecast",
    4: "Churn Risk Ranking",
    5: "Summary & Export",
    6: "Charts",
}


def prompt_parts() -> set[int]:
    print("\nAvailable parts:")
    for num, desc in PART_DESCRIPTIONS.items():
        print(f"  {num}: {desc}")
    raw = input("\nParts to run (e.g. 1 2 3), or Enter for all: ").strip()
    if not raw:
        return set(PART_DESCRIPTIONS.keys())
    chosen = {int(x) for x in raw.split() if x.isdigit()} & set(PART_DESCRIPTIONS.keys())
    return chosen or set(PART_DESCRIPTIONS.keys())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Revenue analytics — MRR trend, forecast and churn-risk ranking"
    )
    parser.add_argument(
        "--parts", nargs="*", type=int,
        default=None,
        help="Which parts to run (default: ask interactively).  Example: --parts 2 3 4"
    )
    parser.add_argument(
        "--data-dir", type=str, default=config.DATA_DIR,
        help=f"Folder containing transactions.csv and subscriptions.csv (default: {config.DATA_DIR!r})"
    )
    parser.add_argument(
        "--output-dir", type=str, default=config.OUTPUT_DIR,
        help=f"Directory for the JSON response, CSV export and charts (default: {config.OUTPUT_DIR!r})"
    )
    parser.add_argument(
        "--reference-date", type=str, default=None,
        help="ISO date treated as 'today' (default: now, UTC)"
    )
    parser.add_argument(
        "--demo", action="store_true",
        help="Use a synthetic ledger instead of --data-dir"
    )
    parser.add_argument(
        "--plots", action="store_true",
        help="Save charts under <output-dir>/charts instead of showing them"
    )
    parser.add_argument(
        "--role", action="append", default=None,
        help="Requester role(s); one of admin/owner is required (default: admin)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log INFO messages from the pipeline"
    )
    return parser.parse_args(argv)


class _DemoLedger:
    """Ledger source over the synthetic generator."""

    def __init__(self, reference_date):
        end = engine.as_reference_date(reference_date)
        self._tx, self._subs = simulate_ledger(SimParams(end=end.isoformat()))

    def fetch_transactions(self):
        return self._tx

    def fetch_subscriptions(self):
        return self._subs


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.captureWarnings(True)

    print("Revenue Analytics")

    if args.parts is None:
        parts = prompt_parts()
    else:
        parts = set(args.parts)

    print(f"Running parts: {sorted(parts)}")
    print(f"Data source: {'synthetic demo ledger' if args.demo else repr(args.data_dir)}")

    source = _DemoLedger(args.reference_date) if args.demo else data_loader.CsvLedger(args.data_dir)
    roles = args.role or ["admin"]

    try:
        engine.authorize(roles)

        if 1 in parts:
            run_part1(args)

        # Every later part reads the same single-pass result
        result = None
        if parts & {2, 3, 4, 5, 6}:
            result = engine.run_analytics(source, roles, args.reference_date)
    except (AuthorizationError, LedgerUnavailableError) as exc:
        logger.error("%s", exc)
        print(f"\nError: {exc}", file=sys.stderr)
        return 1

    if 2 in parts:
        run_part2(result)

    if 3 in parts:
        run_part3(result)

    if 4 in parts:
        run_part4(result)

    if 5 in parts:
        run_part5(result, args.output_dir)

    if 6 in parts:
        run_part6(result, args.output_dir, save=args.plots)

    print("\nPipeline complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
