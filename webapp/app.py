"""
Flask JSON API for the accessibility scanner.
Scans, history, trends, comparisons and monitor registration.
"""

from flask import Flask, jsonify, request

from scanner.core import logger
from scanner.errors import ScanError, InvalidRequestError


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _scan_payload(service, record) -> dict:
    payload = record.to_dict()
    payload["fix_priority"] = [f.to_dict() for f in service.fix_priority(record)]
    return payload


def create_app(service, scheduler=None):
    """Build the Flask app around an already-wired ScanService."""
    app = Flask(__name__)

    # ============================================================
    # SCANS
    # ============================================================

    @app.route('/api/scan', methods=['POST'])
    def scan():
        url = _json_body().get('url')
        if not url or not isinstance(url, str):
            raise InvalidRequestError("Please provide a valid URL")
        record = service.scan(url)
        return jsonify(_scan_payload(service, record))

    @app.route('/api/scan/<scan_id>')
    def get_scan(scan_id):
        return jsonify(_scan_payload(service, service.get_scan(scan_id)))

    @app.route('/api/history')
    def history():
        try:
            limit = int(request.args.get('limit', 20))
        except ValueError:
            raise InvalidRequestError("limit must be an integer")
        records = service.history(request.args.get('url'), max(limit, 0))
        return jsonify([r.to_dict() for r in records])

    # ============================================================
    # TREND / COMPARISON
    # ============================================================

    @app.route('/api/trend')
    def trend():
        return jsonify(service.trend(request.args.get('url')).to_dict())

    @app.route('/api/scan-history/<path:url>')
    def scan_history(url):
        return jsonify(service.scan_history(url).to_dict())

    @app.route('/api/compare', methods=['POST'])
    def compare():
        body = _json_body()
        return jsonify(service.compare(body.get('url1'), body.get('url2')).to_dict())

    @app.route('/api/batch-scan', methods=['POST'])
    def batch_scan():
        results = service.batch_scan(_json_body().get('urls'))
        return jsonify({"results": [r.to_dict() for r in results]})

    # ============================================================
    # MONITORING
    # ============================================================

    @app.route('/api/monitor', methods=['POST'])
    def register_monitor():
        body = _json_body()
        monitor = service.register_monitor(body.get('url'), body.get('email'), body.get('frequency'))
        return jsonify({"message": "Monitor registered", "monitor": monitor.to_dict()})

    @app.route('/api/monitors')
    def list_monitors():
        email = request.args.get('email')
        if not email:
            # unfiltered listing never exposes contact addresses
            return jsonify([m.to_public_dict() for m in service.list_monitors()])
        return jsonify([m.to_dict() for m in service.list_monitors(email)])

    @app.route('/api/monitor/<monitor_id>', methods=['DELETE'])
    def deactivate_monitor(monitor_id):
        service.deactivate_monitor(monitor_id)
        return jsonify({"message": "Monitor deactivated"})

    @app.route('/api/alerts/configure', methods=['POST'])
    def configure_alerts():
        body = _json_body()
        config = service.configure_alerts(
            body.get('email'), body.get('frequency'), body.get('enabled') is not False, body.get('url'),
        )
        return jsonify({"success": True, "message": "Alerts configured successfully", "config": config})

    @app.route('/api/alerts/status')
    def alert_status():
        return jsonify(service.alert_status(request.args.get('email')))

    @app.route('/health')
    def health():
        payload = service.health()
        if scheduler is not None:
            payload["scheduler"] = scheduler.status()
        return jsonify(payload)

    # ============================================================
    # ERROR HANDLERS
    # ============================================================

    @app.errorhandler(ScanError)
    def scan_error(error):
        if error.status >= 500:
            logger.error(f"[API] {request.method} {request.path} -> {error.status}: {error.message}")
        return jsonify({"error": error.message}), error.status

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    return app
