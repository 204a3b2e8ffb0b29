"""HTTP surface of the governance gate (FastAPI)."""
