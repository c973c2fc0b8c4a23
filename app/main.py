"""
ASGI entry point for Expense Tracker

Run with:

    uvicorn app.main:app --host 0.0.0.0 --port 5000

or ``python -m app.main`` to bind to HOST/PORT from the settings.

Storage is chosen in the background at startup from DATABASE_URL
(REST API first, then a direct connection, then memory). Until that
finishes, requests are served from memory.
"""

import uvicorn

from expense_tracker.api import create_app
from expense_tracker.config import get_settings


app = create_app()


if __name__ == "__main__":
    app_settings = get_settings().app
    uvicorn.run(
        "app.main:app",
        host=app_settings.host,
        port=app_settings.port,
    )
