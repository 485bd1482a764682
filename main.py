import sys
import json
import argparse

from scanner.core import DB_PATH, logger
from scanner.errors import ScanError
from scanner.service import ScanService
from history.sqlite_storage import SQLiteScanStore
from monitoring.sqlite_storage import SQLiteMonitorStore
from monitoring.scheduler import MonitorScheduler


def build_service(db_path=DB_PATH) -> ScanService:
    """Wire both SQLite stores (same database file) into a ScanService."""
    return ScanService(SQLiteScanStore(db_path), SQLiteMonitorStore(db_path))


def build_scheduler(service: ScanService) -> MonitorScheduler:
    return MonitorScheduler(service.monitor_store, service.scan_store, service)


def cmd_serve(args):
    from webapp.app import create_app

    service = build_service(args.db)
    scheduler = build_scheduler(service)
    app = create_app(service, scheduler)

    scheduler.start()
    logger.info(f"[SERVE] Listening on {args.host}:{args.port} (db={args.db})")
    try:
        app.run(host=args.host, port=args.port, threaded=True)
    finally:
        scheduler.stop(timeout=5)
    return 0


def cmd_scan(args):
    service = build_service(args.db)
    try:
        record = service.scan(args.url)
    except ScanError as e:
        print(json.dumps({"error": e.message}), file=sys.stderr)
        return 1
    payload = record.to_dict()
    payload["fix_priority"] = [f.to_dict() for f in service.fix_priority(record)]
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def cmd_tick(args):
    service = build_service(args.db)
    report = build_scheduler(service).run_due()
    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.failed else 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="WCAG Accessibility Scanner CLI")
    parser.add_argument("--db", default=str(DB_PATH), help="SQLite database path")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the JSON API and the monitor scheduler")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=5000)
    serve.set_defaults(func=cmd_serve)

    scan = sub.add_parser("scan", help="Scan one URL and print the record as JSON")
    scan.add_argument("url")
    scan.set_defaults(func=cmd_scan)

    tick = sub.add_parser("tick", help="Run due monitors once")
    tick.set_defaults(func=cmd_tick)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
