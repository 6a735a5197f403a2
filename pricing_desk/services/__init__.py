"""Transport, mapping, lifecycle rules and cache coordination.

Prefer importing from the concrete modules; this package only re-exports
the service entry points.
"""

from pricing_desk.services.analyst import AnalystRequestService
from pricing_desk.services.auth import AuthService, Session
from pricing_desk.services.sales import SalesRequestService
from pricing_desk.services.transport import ApiTransport

__all__ = [
    "AnalystRequestService",
    "ApiTransport",
    "AuthService",
    "SalesRequestService",
    "Session",
]
