from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from portfolio_ledger.config.paths import data_dir, default_db_path
from portfolio_ledger.config.settings import get_settings


def _engine():
    from portfolio_ledger.db.migrate import migrate

    return migrate()


def _cmd_init_db(_: argparse.Namespace) -> int:
    _engine()
    print("Initialized database schema.")
    return 0


def _cmd_paths(_: argparse.Namespace) -> int:
    settings = get_settings()
    print(f"DATA_DIR={data_dir()}")
    print(f"DEFAULT_DB={default_db_path()}")
    print(f"DATABASE_URL={settings.database_url}")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    from portfolio_ledger.db.repository import session_scope
    from portfolio_ledger.ingest.table_loader import TableLoadError, load_table
    from portfolio_ledger.services.ledger import import_statement

    path = Path(args.file)
    account = args.account or path.stem or get_settings().default_account_label
    try:
        rows = load_table(path)
    except TableLoadError as exc:
        print(f"Failed to read {path}: {exc}", file=sys.stderr)
        return 2

    with session_scope(_engine()) as session:
        result = import_statement(session, rows, account)

    if not result.recognized:
        print("Statement format not recognized (no matching header row).", file=sys.stderr)
        return 1
    print(f"Imported {len(result.transactions)} transactions into '{account}'.")
    for item in result.unmapped_names:
        print(f"  unmapped: {item.name}")
    return 0


def _cmd_holdings(args: argparse.Namespace) -> int:
    from portfolio_ledger.analytics.holdings import holdings_frame, summarize_holdings
    from portfolio_ledger.db.repository import session_scope
    from portfolio_ledger.services.ledger import current_holdings
    from portfolio_ledger.utils.money import format_percent, format_won

    with session_scope(_engine()) as session:
        holdings = current_holdings(session, args.account)

    frame = holdings_frame(holdings)
    if not args.all:
        frame = frame[frame["qty"] > 0]
    if frame.empty:
        print("No holdings.")
        return 0
    print(frame.drop(columns=["key", "ticker", "name"]).to_string(index=False))

    summary = summarize_holdings(holdings)
    print(
        f"\nCost {format_won(summary.total_cost)} | Realized {format_won(summary.realized_pnl)}"
        f" | Dividends {format_won(summary.dividends)} | Unrealized {format_percent(summary.unrealized_pct)}"
    )
    return 0


def _parse_weights(pairs: list[str]) -> dict[str, float]:
    from portfolio_ledger.ingest.validators import normalize_ticker

    weights: dict[str, float] = {}
    for pair in pairs:
        ticker, sep, pct = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected TICKER=PERCENT, got '{pair}'.")
        weights[normalize_ticker(ticker)] = float(pct)
    return weights


def _cmd_portfolio_add(args: argparse.Namespace) -> int:
    from datetime import datetime, timezone

    from portfolio_ledger.db.models import Portfolio
    from portfolio_ledger.db.repository import save_portfolio, session_scope
    from portfolio_ledger.ingest.statement_import import epoch_millis
    from portfolio_ledger.ingest.validators import normalize_ticker

    try:
        weights = _parse_weights(args.weight)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    portfolio = Portfolio(
        id=str(epoch_millis()),
        name=args.name.strip(),
        tickers=tuple(normalize_ticker(t) for t in args.tickers),
        target_weights=weights,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
    with session_scope(_engine()) as session:
        save_portfolio(session, portfolio)
    print(f"Saved portfolio '{portfolio.name}' ({len(portfolio.tickers)} tickers).")
    return 0


def _cmd_portfolios(args: argparse.Namespace) -> int:
    from portfolio_ledger.db.repository import session_scope
    from portfolio_ledger.services.ledger import portfolio_overview
    from portfolio_ledger.utils.money import format_percent, format_won

    with session_scope(_engine()) as session:
        overview = portfolio_overview(session, account=args.account)
    if not overview:
        print("No portfolios.")
        return 0
    for stats in overview:
        print(
            f"{stats.portfolio.name}: cost {format_won(stats.total_cost)}"
            f" | value {format_won(stats.market_value)} | P&L {format_percent(stats.pnl_pct)}"
            f" | CAGR {format_percent(stats.cagr)}"
        )
        for row in stats.rebalance or []:
            print(
                f"  {row.ticker}: {row.current_weight:.1f}% -> {row.target_weight:.1f}%"
                f" {row.action.value} {abs(row.diff_qty)}"
            )
    return 0


def _cmd_resolve(args: argparse.Namespace) -> int:
    from portfolio_ledger.db.repository import session_scope
    from portfolio_ledger.services.ledger import resolve_ticker

    with session_scope(_engine()) as session:
        updated = resolve_ticker(session, args.name, args.ticker)
    print(f"Mapped {args.name} -> {args.ticker}; {updated} transactions updated.")
    return 0


def _cmd_unmapped(_: argparse.Namespace) -> int:
    from portfolio_ledger.db.repository import session_scope
    from portfolio_ledger.services.ledger import pending_unmapped

    with session_scope(_engine()) as session:
        pending = pending_unmapped(session)
    for item in pending:
        print(item.name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio Ledger developer CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sp_init_db = subparsers.add_parser("init-db", help="Create/update local database schema")
    sp_init_db.set_defaults(func=_cmd_init_db)

    sp_paths = subparsers.add_parser("paths", help="Print configured project paths")
    sp_paths.set_defaults(func=_cmd_paths)

    sp_import = subparsers.add_parser("import", help="Import a statement file (CSV/TSV/XLSX)")
    sp_import.add_argument("file", help="Statement file to import.")
    sp_import.add_argument(
        "--account",
        default="",
        help="Account label for every imported row (defaults to the file name).",
    )
    sp_import.set_defaults(func=_cmd_import)

    sp_holdings = subparsers.add_parser("holdings", help="Print current holdings")
    sp_holdings.add_argument("--all", action="store_true", help="Include closed positions.")
    sp_holdings.add_argument("--account", default="", help="Only transactions of this account.")
    sp_holdings.set_defaults(func=_cmd_holdings)

    sp_resolve = subparsers.add_parser("resolve", help="Map an instrument name to a ticker")
    sp_resolve.add_argument("name")
    sp_resolve.add_argument("ticker")
    sp_resolve.set_defaults(func=_cmd_resolve)

    sp_portfolio_add = subparsers.add_parser("portfolio-add", help="Save a named group of tickers")
    sp_portfolio_add.add_argument("name")
    sp_portfolio_add.add_argument("tickers", nargs="+")
    sp_portfolio_add.add_argument(
        "--weight",
        action="append",
        default=[],
        help="Target weight as TICKER=PERCENT; repeatable.",
    )
    sp_portfolio_add.set_defaults(func=_cmd_portfolio_add)

    sp_portfolios = subparsers.add_parser("portfolios", help="Print portfolio stats and rebalance plans")
    sp_portfolios.add_argument("--account", default="", help="Only transactions of this account.")
    sp_portfolios.set_defaults(func=_cmd_portfolios)

    sp_unmapped = subparsers.add_parser("unmapped", help="List names still missing a ticker")
    sp_unmapped.set_defaults(func=_cmd_unmapped)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
