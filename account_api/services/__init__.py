"""
High-level use cases for the account API.

Routers (FastAPI endpoints) call these services instead of touching the
repository or signing tokens directly.
"""
