# services/__init__.py
# ============================================================================
# DJTUNEZ BACKEND: SERVICES MODULE
# ============================================================================
# External collaborators (identity, payments, Spotify) and public read views
# ============================================================================

from services.identity_provider import (
    IIdentityProvider,
    FirebaseIdentityProvider,
    IdentityRecord,
    Role,
    VerifiedSession,
    parse_bearer,
)

from services.payment_provider import (
    PaymentProvider,
    to_major_units,
    to_minor_units,
)

from services.spotify import SpotifyTokenClient

from services.event_catalog import EventCatalog

__all__ = [
    # Identity
    "IIdentityProvider",
    "FirebaseIdentityProvider",
    "IdentityRecord",
    "Role",
    "VerifiedSession",
    "parse_bearer",
    # Payments
    "PaymentProvider",
    "to_major_units",
    "to_minor_units",
    # Spotify
    "SpotifyTokenClient",
    # Catalog
    "EventCatalog",
]
