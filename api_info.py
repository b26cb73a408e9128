"""
HR console API metadata, served at /api/v1/info.
"""
from typing import Dict, Any
from datetime import datetime

DASHBOARD = "/dashboard/{area}/{resource}"


def get_api_info() -> Dict[str, Any]:
    return {
        "service": "hr-console",
        "version": "1.0.0",
        "description": "Backend-for-frontend of the HR management dashboard.",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "endpoints": [
            {"method": "GET", "path": "/health", "desc": "Basic health check"},
            {"method": "GET", "path": "/api/v1/info", "desc": "API metadata"},
            {"method": "POST", "path": "/login", "desc": "Open a session"},
            {"method": "POST", "path": "/register", "desc": "Create an account"},
            {"method": "POST", "path": "/forgot-password", "desc": "Request a password reset email"},
            {"method": "POST", "path": "/reset-password", "desc": "Set a new password"},
            {"method": "POST", "path": "/logout", "desc": "Close the session"},
            {"method": "GET", "path": "/api/v1/me", "desc": "Current user"},
            {"method": "POST", "path": "/api/v1/session/refresh", "desc": "Refresh backend tokens"},
            {"method": "GET", "path": "/api/v1/notifications", "desc": "Drain queued notifications"},
            {"method": "GET", "path": "/dashboard/{area}", "desc": "Area landing summary"},
            {"method": "GET", "path": DASHBOARD, "desc": "List view"},
            {"method": "POST", "path": DASHBOARD, "desc": "Create"},
            {"method": "GET", "path": DASHBOARD + "/{id}", "desc": "Detail view"},
            {"method": "PUT", "path": DASHBOARD + "/{id}", "desc": "Update"},
            {"method": "POST", "path": DASHBOARD + "/{id}/delete", "desc": "Open delete confirmation"},
            {"method": "POST", "path": DASHBOARD + "/{id}/delete/confirm", "desc": "Confirm delete"},
            {"method": "POST", "path": DASHBOARD + "/{id}/delete/cancel", "desc": "Cancel delete"},
            {"method": "POST", "path": DASHBOARD + "/{id}/actions/{action}", "desc": "Domain transition"},
        ],
    }
