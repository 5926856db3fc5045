"""HTTP middleware. Applied in app.main."""

from app.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
