"""
report.py
---------
Console tables and matplotlib charts for an ``AnalyticsReport``.

Each chart function draws one figure.  With *save_dir* the figure is written
there as PNG and closed; without it the figure is shown interactively.
"""

from __future__ import annotations

import os
from collections import Counter

import matplotlib.pyplot as plt

import config
from records import AnalyticsReport


def _style() -> None:
    plt.rcParams.update(config.PLOT_STYLE)


def _finish(fig, save_dir: str | None, name: str) -> str | None:
    plt.tight_layout()
    if save_dir is None:
        plt.show()
        return None
    os.makedirs(save_dir, exist_ok=True)
    path = os.path.join(save_dir, name)
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path


def print_mrr_trend(report: AnalyticsReport) -> None:
    print(f"\n{'Month':<9} {'MRR':>12} {'New':>11} {'Churned':>11} {'Net new':>11}"
          f" {'+Cust':>6} {'-Cust':>6}")
    print("-" * 72)
    for c in report.mrr_trend:
        print(f"{c.month:<9} {c.mrr:>12,.2f} {c.new_mrr:>11,.2f} {c.churned_mrr:>11,.2f} "
              f"{c.net_new:>+11,.2f} {c.new_customers:>6} {c.churned_customers:>6}")


def print_forecast(report: AnalyticsReport) -> None:
    if not report.forecast:
        print("\nForecast unavailable (not enough months of MRR history).")
        return
    print(f"\n{'Month':<9} {'Conservative':>13} {'Projected':>12} {'Optimistic':>12}")
    print("-" * 50)
    for f in report.forecast:
        print(f"{f.month:<9} {f.conservative:>13,.2f} {f.projected:>12,.2f} {f.optimistic:>12,.2f}")


def print_churn_risks(report: AnalyticsReport, top: int = 15) -> None:
    """Print the riskiest *top* customers with their reasons."""
    print(f"\n{'Rank':<5} {'Customer':<16} {'Plan':<10} {'Score':>5} {'Level':<9} "
          f"{'Days':>5} {'LTV':>10}  Reasons")
    print("-" * 100)
    for i, p in enumerate(report.churn_risks[:top], start=1):
        print(f"  {i:<3} {p.customer_id:<16} {p.plan:<10} {p.risk_score:>5} {p.risk_level:<9} "
              f"{p.days_since_payment:>5} {p.ltv:>10,.2f}  {'; '.join(p.reasons)}")
    if len(report.churn_risks) > top:
        print(f"  ... {len(report.churn_risks) - top} more in the export")


def print_summary(report: AnalyticsReport) -> None:
    s = report.summary
    print("\n=== SUMMARY ===")
    print(f"  Current MRR          : {s.current_mrr:>12,.2f}  ({s.mrr_growth_pct:+d}% vs last month)")
    print(f"  Projected next month : {s.projected_next_month:>12,.2f}")
    print(f"  Customers            : {s.total_customers:>12,}  ({s.active_subscribers:,} active subscriptions)")
    print(f"  At-risk customers    : {s.at_risk_customers:>12,}")
    print(f"  Revenue at risk      : {s.revenue_at_risk:>12,.2f}  / month (approx.)")
    print(f"  Average LTV          : {s.avg_ltv:>12,.2f}")
    if report.malformed_records:
        print(f"  Malformed records    : {report.malformed_records:>12,}  (skipped or zeroed)")


def plot_mrr_forecast(report: AnalyticsReport, save_dir: str | None = None) -> str | None:
    """
    Line chart: 12-month MRR history followed by the projected months with
    the optimistic / conservative band shaded.
    """
    _style()
    months = [c.month for c in report.mrr_trend] + [f.month for f in report.forecast]
    mrr    = [c.mrr for c in report.mrr_trend]
    n_hist = len(mrr)

    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.plot(range(n_hist), mrr, color=config.NAVY, marker="o", linewidth=2, label="MRR")

    if report.forecast and mrr:
        # start the projection at the last actual month so the lines join
        x    = range(n_hist - 1, len(months))
        proj = [mrr[-1]] + [f.projected for f in report.forecast]
        lo   = [mrr[-1]] + [f.conservative for f in report.forecast]
        hi   = [mrr[-1]] + [f.optimistic for f in report.forecast]
        ax.plot(x, proj, color=config.TEAL, linestyle="--", marker="o", label="Projected")
        ax.fill_between(x, lo, hi, color=config.LIGHT, alpha=0.6, label="±20 % band")

    ax.set_xticks(range(len(months)))
    ax.set_xticklabels(months, rotation=45)
    ax.set_ylabel("Revenue")
    ax.set_title("MRR Trend & Forecast", fontsize=13, fontweight="bold", color=config.NAVY)
    ax.legend()
    return _finish(fig, save_dir, "mrr_forecast.png")


def plot_net_new(report: AnalyticsReport, save_dir: str | None = None) -> str | None:
    """Bar chart: new MRR up, churned MRR down, net-new marker per month."""
    _style()
    months  = [c.month for c in report.mrr_trend]
    new     = [c.new_mrr for c in report.mrr_trend]
    churned = [-c.churned_mrr for c in report.mrr_trend]
    net     = [c.net_new for c in report.mrr_trend]

    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.bar(months, new, color=config.TEAL, width=0.6, label="New MRR")
    ax.bar(months, churned, color=config.CORAL, width=0.6, label="Churned MRR")
    ax.scatter(months, net, color=config.NAVY, zorder=5, label="Net new")
    ax.axhline(0, color=config.GRAY, linewidth=1)
    ax.set_ylabel("Revenue")
    ax.set_title("New vs Churned MRR", fontsize=13, fontweight="bold", color=config.NAVY)
    ax.tick_params(axis="x", rotation=45)
    ax.legend()
    return _finish(fig, save_dir, "net_new_mrr.png")


def plot_risk_levels(report: AnalyticsReport, save_dir: str | None = None) -> str | None:
    """Bar chart: customers per risk level within the reported ranking."""
    _style()
    counts = Counter(p.risk_level for p in report.churn_risks)
    levels = [level for _, level in config.RISK_LEVELS] + [config.DEFAULT_RISK_LEVEL]
    values = [counts.get(level, 0) for level in levels]

    fig, ax = plt.subplots(figsize=(7, 4))
    bars = ax.bar(levels, values, color=[config.RISK_COLORS[lvl] for lvl in levels], width=0.55)
    for bar, n in zip(bars, values):
        ax.text(bar.get_x() + bar.get_width() / 2, n + 0.2, str(n),
                ha="center", fontsize=11, fontweight="bold")
    ax.set_ylabel("Customers")
    ax.set_title("Churn Risk Distribution", fontsize=13, fontweight="bold", color=config.NAVY)
    return _finish(fig, save_dir, "risk_levels.png")
