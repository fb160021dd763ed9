"""HTTP middleware: request ID.

Applied in main app; import and use from dealflow.main.
"""

from dealflow.middleware.request_id import RequestIDMiddleware, resolve_request_id

__all__ = ["RequestIDMiddleware", "resolve_request_id"]
