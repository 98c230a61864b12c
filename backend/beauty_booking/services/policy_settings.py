# backend/beauty_booking/services/policy_settings.py
"""
Provider policy storage.

Policies are provider-owned and only change through the settings endpoint;
the booking flow reads them as a PolicyConfig snapshot.
"""

import logging
from dataclasses import asdict, replace

from sqlalchemy.orm import Session

from ..models import ProviderPolicies, Providers
from .errors import NotFound
from .policy import PolicyConfig

logger = logging.getLogger(__name__)


def _get_or_create_row(db: Session, provider_id: int) -> ProviderPolicies:
    """Get policy row by provider_id or create it with platform defaults."""
    row = db.query(ProviderPolicies).filter(ProviderPolicies.provider_id == provider_id).first()
    if row:
        return row

    if not db.get(Providers, provider_id):
        raise NotFound("Provider", provider_id)

    row = ProviderPolicies(provider_id=provider_id, **asdict(PolicyConfig()))
    db.add(row)
    db.flush()
    logger.info(f"Default policies created for provider {provider_id}")
    return row


def load_policy(db: Session, provider_id: int) -> PolicyConfig:
    """
    Policy snapshot for the booking flow.

    Does not write: a provider without stored policies gets the defaults.
    """
    row = db.query(ProviderPolicies).filter(ProviderPolicies.provider_id == provider_id).first()
    if row is None:
        return PolicyConfig()
    return PolicyConfig.from_row(row)


def get_policy(db: Session, provider_id: int) -> PolicyConfig:
    row = _get_or_create_row(db, provider_id)
    db.commit()
    return PolicyConfig.from_row(row)


def update_policy(db: Session, provider_id: int, changes: dict) -> PolicyConfig:
    """Apply a partial update; the merged config is validated before saving."""
    row = _get_or_create_row(db, provider_id)
    current = PolicyConfig.from_row(row)

    # Raises InvalidPolicyConfig before anything is written
    updated = replace(current, **{k: v for k, v in changes.items() if v is not None})

    for name, value in asdict(updated).items():
        setattr(row, name, value)
    db.commit()

    logger.info(f"Policies updated for provider {provider_id}: {sorted(changes)}")
    return updated
