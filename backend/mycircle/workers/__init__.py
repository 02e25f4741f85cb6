"""Background worker exports."""

from .request_expiry import RequestExpiryWorker

__all__ = ["RequestExpiryWorker"]
