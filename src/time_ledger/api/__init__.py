"""REST API for Time Ledger.

A FastAPI application exposing the aggregated project view and the time
entry history, plus endpoints to create, edit and delete entries. The user
identity is the ``sub`` claim of the bearer token.

Usage:
    time-ledger config set api.enabled true
    time-ledger api token create --user-id alice
    time-ledger api serve
"""

__all__ = ["create_app", "run_server"]

from time_ledger.api.server import create_app, run_server  # noqa: F401
