from guestlist.models.admin import AdminConfig
from guestlist.models.gig import Gig
from guestlist.models.guest import Guest

__all__ = ["AdminConfig", "Gig", "Guest"]
