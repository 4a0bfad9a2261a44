"""
Paper ledger example: settle a few trades and print the portfolio.

Shows: LedgerService over the in-memory store (or SQLite via LEDGER_DB_PATH),
price updates, a rejected request, transaction paging and the report.
"""

from __future__ import annotations

from ledger_core import LedgerConfig, LedgerError, LedgerService
from ledger_core.config import configure_logging
from reporting import ledger_to_frame, print_report


def main() -> None:
    config = LedgerConfig.from_env()
    configure_logging(config.log_level)
    service = LedgerService.from_config(config)

    print("--- Catalog ---")
    for instrument in service.get_prices():
        print(f"  {instrument.instrument_id} {instrument.name:<22} {instrument.price:>10,.2f}")

    print("\n--- Trades ---")
    service.buy("600036", 1000)
    service.buy("600036", 500, "33.10")
    service.buy("002594", 100)
    service.set_price("600036", "34.00")
    result = service.sell("600036", 800)
    print(f"  Sold 800 600036: realized P&L {result.entry.profit_loss}, balance {result.balance}")

    try:
        service.sell("002594", 300)
    except LedgerError as exc:
        print(f"  Rejected: {exc.to_dict()}")

    print("\n--- Latest transactions ---")
    page = service.get_transactions(page=1, limit=10)
    print(ledger_to_frame(page.entries)[["side", "instrument_id", "quantity", "price", "total", "profit_loss"]])

    print()
    print_report(service.get_portfolio(), page.entries)


if __name__ == "__main__":
    main()
