from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from datetime import date
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Tuple
from urllib.parse import parse_qs, urlparse

from finance_tracker.config import configure_logging, load_config
from finance_tracker.core.errors import FinanceTrackerError, InvalidDate, RemoteOperationFailed
from finance_tracker.core.models import Transaction, category_label
from finance_tracker.filters import ALL, SortSpec, TransactionFilter
from finance_tracker.money import format_net, format_signed, to_display_amount
from finance_tracker.service import TransactionService
from finance_tracker.timeutil import format_date, months_before, today_utc

logger = logging.getLogger(__name__)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDate(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def _get_param(query: dict[str, list[str]], key: str) -> str | None:
    values = query.get(key)
    return values[0] if values else None


def _range(query, default_months: int) -> Tuple[date, date]:
    end = _parse_date(_get_param(query, "end_date")) or today_utc()
    start = _parse_date(_get_param(query, "start_date")) or months_before(end, default_months)
    if start > end:
        raise InvalidDate("start_date must be on or before end_date")
    return start, end


def _transaction_json(tx: Transaction) -> dict[str, Any]:
    return {
        "transaction_id": tx.transaction_id,
        "date": tx.date,
        "date_label": format_date(tx.date),
        "amount": tx.amount,
        "amount_label": format_signed(tx.amount, tx.transaction_type),
        "transaction_type": tx.transaction_type.value,
        "category": tx.category.value,
        "category_label": category_label(tx.category),
        "description": tx.description,
    }


def _jsonable(value: Any) -> Any:
    """Turn enum-keyed dicts (category breakdowns) into plain JSON objects."""
    if isinstance(value, dict):
        return {getattr(k, "value", k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return getattr(value, "value", value)


def handle_api(service: TransactionService, path: str, query: dict[str, list[str]], config: dict):
    """Route an API request.

    Returns ``(status, payload)`` for JSON responses, or
    ``(status, (filename, csv_text))`` for ``/api/export``.
    """
    try:
        if path == "/api/transactions":
            flt = TransactionFilter.for_dates(
                _parse_date(_get_param(query, "start_date")),
                _parse_date(_get_param(query, "end_date")),
                transaction_type=_get_param(query, "type") or ALL,
                category=_get_param(query, "category") or ALL,
            )
            sort = SortSpec(
                _get_param(query, "sort_by") or "date",
                _get_param(query, "sort_dir") or "desc",
            )
            return 200, [_transaction_json(tx) for tx in service.view(flt, sort)]

        if path == "/api/dashboard":
            start, end = _range(query, int(config["dashboard_months"]))
            data = service.dashboard(start, end)
            totals = data["totals"]
            return 200, {
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "totals": asdict(totals),
                "totals_label": {
                    "income": to_display_amount(totals.income),
                    "expense": to_display_amount(totals.expense),
                    "net": format_net(totals.net),
                },
                "monthly_summaries": [asdict(s) for s in data["monthly_summaries"]],
                "category_shares": [_jsonable(asdict(s)) for s in data["category_shares"]],
            }

        if path == "/api/report":
            start, end = _range(query, int(config["report_months"]))
            report = service.report(start, end)
            return 200, {
                "monthly_summaries": [asdict(s) for s in report.monthly_summaries],
                "category_breakdowns": _jsonable(report.category_breakdowns),
            }

        if path == "/api/export":
            start, end = _range(query, int(config["report_months"]))
            return 200, service.export_csv(start, end)
    except RemoteOperationFailed as exc:
        return 502, {"error": str(exc)}
    except (FinanceTrackerError, ValueError) as exc:
        return 400, {"error": str(exc)}

    return 404, {"error": "not found"}


def _json_response(handler: BaseHTTPRequestHandler, payload: Any, status: int = 200) -> None:
    body = json.dumps(payload).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json")
    handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def _csv_response(handler: BaseHTTPRequestHandler, filename: str, text: str) -> None:
    body = text.encode("utf-8")
    handler.send_response(200)
    handler.send_header("Content-Type", "text/csv; charset=utf-8")
    handler.send_header("Content-Disposition", f'attachment; filename="{filename}"')
    handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


class FinanceWebHandler(BaseHTTPRequestHandler):
    db_path = "fintrack.db"
    principal: str | None = None
    config: dict = {}

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if not parsed.path.startswith("/api/"):
            _json_response(self, {"error": "not found"}, status=404)
            return
        # Each request re-reads the ledger; nothing is cached between requests.
        service = TransactionService(self.db_path, self.principal)
        status, payload = handle_api(service, parsed.path, parse_qs(parsed.query), self.config)
        if parsed.path == "/api/export" and status == 200:
            _csv_response(self, *payload)
            return
        _json_response(self, payload, status=status)


def main() -> None:
    parser = argparse.ArgumentParser(description="fintrack web dashboard")
    parser.add_argument("--config", dest="config_path", default="fintrack.yaml", help="Path to config YAML")
    parser.add_argument("--db", dest="db_path", default=None, help="Path to SQLite database")
    parser.add_argument("--principal", default=None, help="Identity whose ledger is served")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    args = parser.parse_args()

    config = load_config(args.config_path)
    if args.db_path:
        config["db_path"] = args.db_path
    if args.principal:
        config["principal"] = args.principal
    configure_logging(config)

    handler = type(
        "FinanceWebHandler",
        (FinanceWebHandler,),
        {
            "db_path": config["db_path"],
            "principal": config["principal"],
            "config": config,
        },
    )
    server = ThreadingHTTPServer((args.host, args.port), handler)
    logger.info("Serving %s for %s", config["db_path"], config["principal"])
    print(f"fintrack web UI running at http://{args.host}:{args.port} (db: {config['db_path']})")
    server.serve_forever()


if __name__ == "__main__":
    main()
