"""
App assembly entry point.

Re-exports the FastAPI `app` from `tourcrm.api.main` so `uvicorn app:app`
works from the repository root.
"""

from tourcrm.api.main import app  # noqa: F401
