from eventdesk.models.admin import Admin
from eventdesk.models.checkin import Checkin
from eventdesk.models.consultation import Consultation
from eventdesk.models.event import Event, TicketTier
from eventdesk.models.registration import Registration

__all__ = ["Admin", "Checkin", "Consultation", "Event", "Registration", "TicketTier"]
