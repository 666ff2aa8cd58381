"""Business logic services.

Services are called by route handlers and orchestrate the identity store
and the remote object API.
"""

from petfeeder.services.drive import DriveClient
from petfeeder.services.identity import IdentityReconciler
from petfeeder.services.media_relay import MediaRangeRelay, parse_range_header

__all__ = [
    "DriveClient",
    "IdentityReconciler",
    "MediaRangeRelay",
    "parse_range_header",
]
