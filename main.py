#!/usr/bin/env python3
"""
Main entry point for the HireFlow hiring API.

Serves the JSON API under /api and, unless START_BACKGROUND_SERVICES is
false, runs the scheduler for interview reminders, expiry of unanswered
invitations and offers, and the daily hiring report.
"""

from app import app

if __name__ == '__main__':
    if app.config["START_BACKGROUND_SERVICES"]:
        from scheduler import start_background_services
        start_background_services(app)

    app.run(host='0.0.0.0', port=5000)
