from app.schemas.user import UserCreate, AdminUserCreate, UserResponse, UserLogin, RoleUpdate, Token
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse, AdminEventResponse
from app.schemas.registration import (
    RegistrationCreate, AdminRegistrationCreate, RegistrationResponse, RegistrationCreatedResponse,
    RegistrationWithEvent, PaymentStatusUpdate,
)
from app.schemas.newsletter import NewsletterSubscribe, NewsletterSubscriptionResponse

__all__ = [
    "UserCreate", "AdminUserCreate", "UserResponse", "UserLogin", "RoleUpdate", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "AdminEventResponse",
    "RegistrationCreate", "AdminRegistrationCreate", "RegistrationResponse",
    "RegistrationCreatedResponse", "RegistrationWithEvent", "PaymentStatusUpdate",
    "NewsletterSubscribe", "NewsletterSubscriptionResponse",
]
