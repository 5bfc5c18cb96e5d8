"""HTTP middleware. Applied in main app; first added = outermost."""

from merchant_verification.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
