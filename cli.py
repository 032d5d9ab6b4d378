import argparse
import json
import os

from db.connection import get_connection
from db import schema
from db.repos.api_logs_repo import ApiLogsRepo
from services.company_service import CompanyService
from services.lista_firme_client import ListaFirmeClient
from config.settings import check_configuration, get_settings
from utils.logging_setup import init_logging


def cmd_bootstrap(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    print("Schema ready")


def cmd_lookup(args):
    cui = (args.cui or "").strip()
    if not (cui.isascii() and cui.isdigit()):
        print("CUI must contain digits only")
        raise SystemExit(2)
    settings = get_settings()
    check_configuration(settings)
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    client = ListaFirmeClient(settings=settings, audit_sink=ApiLogsRepo(conn))
    try:
        company = CompanyService(client, settings=settings).fetch_company_info(cui)
    finally:
        client.close()
        conn.close()
    if company is None:
        print(f"No company found for CUI {cui}")
        raise SystemExit(1)
    print(json.dumps(company.model_dump(), indent=2, ensure_ascii=False))


def cmd_logs(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    repo = ApiLogsRepo(conn)
    entries = repo.for_cui(args.cui, args.limit) if args.cui else repo.recent(args.limit)
    out = []
    for e in entries:
        out.append({
            "id": e.id,
            "cui": e.cui,
            "response_status": e.response_status,
            "duration_ms": e.duration_ms,
            "error_message": e.error_message,
            "created_at": e.formatted_created_at,
        })
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_cleanup(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    deleted = ApiLogsRepo(conn).cleanup_old_logs(args.days)
    print(f"Deleted {deleted} old log entries")


def cmd_serve(args):
    import uvicorn

    # The web app reads DB_PATH through settings
    os.environ["DB_PATH"] = args.db
    get_settings.cache_clear()
    uvicorn.run("web.app:app", host=args.host, port=args.port)


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Lista Firme company lookup CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create the api_logs table and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_look = sub.add_parser("lookup", help="Look up a company by CUI and print the record")
    p_look.add_argument("cui", help="Company tax ID (digits only)")
    p_look.set_defaults(func=cmd_lookup)

    p_logs = sub.add_parser("logs", help="List recent API log rows")
    p_logs.add_argument("--cui", default=None, help="Filter: only rows for this CUI")
    p_logs.add_argument("--limit", type=int, default=20)
    p_logs.set_defaults(func=cmd_logs)

    p_clean = sub.add_parser("cleanup", help="Delete API log rows older than N days")
    p_clean.add_argument("--days", type=int, default=settings.log_retention_days,
                         help="Retention in days (default from settings)")
    p_clean.set_defaults(func=cmd_cleanup)

    p_serve = sub.add_parser("serve", help="Run the web service with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
