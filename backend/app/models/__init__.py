from app.models.user import User
from app.models.event import Event
from app.models.registration import EventRegistration, PaymentStatus, PaymentMethod, DelegateType
from app.models.newsletter import NewsletterSubscription
from app.models.counter import LedgerCounter, REGISTRATION_SEQUENCE
from app.models.partner import Sponsorship, Exhibition, ApplicationStatus, PartnerPaymentStatus

__all__ = [
    "User", "Event", "EventRegistration", "NewsletterSubscription", "LedgerCounter",
    "Sponsorship", "Exhibition",
    "PaymentStatus", "PaymentMethod", "DelegateType", "REGISTRATION_SEQUENCE",
    "ApplicationStatus", "PartnerPaymentStatus",
]
