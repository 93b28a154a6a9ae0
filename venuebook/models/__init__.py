# Import all models so that SQLAlchemy registers them for metadata.create_all
from venuebook.models.user import User
from venuebook.models.audit_log import AuditLog
from venuebook.models.venue import Venue, VenueAmenity, VenuePackage
from venuebook.models.availability_rule import AvailabilityRule
from venuebook.models.blackout import Blackout
from venuebook.models.booking import Booking

__all__ = [
    "User",
    "AuditLog",
    "Venue",
    "VenuePackage",
    "VenueAmenity",
    "AvailabilityRule",
    "Blackout",
    "Booking",
]
