"""
Check stock status - low stock, fast movers and this month's counts.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import configure_logging
from services.container import build_services


def check_stock_status(threshold=None):
    """Print the inventory report and dashboard counts."""

    services = build_services()
    report = services.analytics.inventory_report(threshold=threshold)
    stats = services.analytics.dashboard_stats()

    print("=" * 50)
    print("DASHBOARD")
    print("=" * 50)
    print(f"Customers:                 {stats.total_customers}")
    print(f"Purchases this month:      {stats.current_month_purchases}")
    print(f"Freebies sent this month:  {stats.current_month_freebies}")
    print(f"Products:                  {stats.total_products}")
    print(f"Products low on stock:     {stats.low_stock_products}")
    print(f"Freebies available:        {stats.total_freebies_available}")
    print("=" * 50)

    print(f"\nLow stock (qty <= {report.threshold}):")
    print("-" * 50)
    for product in report.low_stock_products:
        print(f"{product.get('name')} {product.get('variant') or ''}: {product.get('qty')} left")
    for freebie in report.low_stock_freebies:
        print(f"[freebie] {freebie.get('name')}: {freebie.get('available_qty')} left")

    print("\nFast moving:")
    print("-" * 50)
    for product in report.fast_moving_products:
        print(f"{product.get('name')}: {product['qty_sold']} sold")
    for freebie in report.fast_moving_freebies:
        print(f"[freebie] {freebie.get('name')}: {freebie['qty_sold']} redeemed")

    print(f"\nCustomers without purchases: {len(report.customers_without_purchases)}")
    print("-" * 50)


if __name__ == "__main__":
    configure_logging()
    check_stock_status(int(sys.argv[1]) if len(sys.argv) > 1 else None)
