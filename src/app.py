"""Retail FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# PROTEAN_ENV controls which config overlay is applied:
#   - unset        → in-memory database
#   - "production" → PostgreSQL
from retail.api.app import create_app
from retail.domain import retail

retail.init()

app = create_app()
