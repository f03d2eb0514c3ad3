"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
import os

from src.services.supabase_client import TASKS_TABLE


def health_status() -> tuple[int, dict]:
    """Report whether the task store is configured; no network calls."""
    store_configured = bool(
        os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    )
    body = {
        "status": "ok" if store_configured else "degraded",
        "service": "taskflow-backend",
        "store_configured": store_configured,
        "tasks_table": TASKS_TABLE,
    }
    return (200 if store_configured else 503), body


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        status_code, body = health_status()
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(body).encode('utf-8'))

    def do_HEAD(self):
        status_code, _ = health_status()
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
