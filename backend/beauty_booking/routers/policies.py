# backend/beauty_booking/routers/policies.py

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.policies import PoliciesRead, PoliciesUpdate
from ..services.policy_settings import get_policy, update_policy

router = APIRouter(prefix="/providers", tags=["policies"])


@router.get("/{provider_id}/policies", response_model=PoliciesRead)
def read_policies(provider_id: int, db: Session = Depends(get_db)):
    return PoliciesRead(provider_id=provider_id, **asdict(get_policy(db, provider_id)))


@router.put("/{provider_id}/policies", response_model=PoliciesRead)
def put_policies(
    provider_id: int,
    data: PoliciesUpdate,
    db: Session = Depends(get_db),
):
    policy = update_policy(db, provider_id, data.model_dump(exclude_unset=True))
    return PoliciesRead(provider_id=provider_id, **asdict(policy))
