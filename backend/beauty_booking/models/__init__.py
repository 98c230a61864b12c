from .tables import (
    ACTIVE_BOOKING_STATUSES,
    Base,
    Bookings,
    PaymentInstructions,
    ProviderAvailability,
    ProviderPolicies,
    Providers,
    ProviderTimeOff,
    RescheduleRequests,
    Services,
    metadata,
)

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Base",
    "Bookings",
    "PaymentInstructions",
    "ProviderAvailability",
    "ProviderPolicies",
    "Providers",
    "ProviderTimeOff",
    "RescheduleRequests",
    "Services",
    "metadata",
]
