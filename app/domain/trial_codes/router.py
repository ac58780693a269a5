"""Trial access code router"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_supervisor_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from .schemas import (
    TrialCodeCreate,
    TrialCodeResponse,
    TrialCodeValidateRequest,
    TrialCodeValidation,
)
from .service import TrialCodeService

router = APIRouter(prefix="/trial-codes", tags=["Trial Codes"])

# 20 validation attempts per IP per 15 minutes
rate_limit_validate = create_rate_limiter(limit=20, window_seconds=900, key_prefix="trial_code")


def get_trial_code_service(db: Session = Depends(get_db)) -> TrialCodeService:
    return TrialCodeService(db)


@router.get("", response_model=list[TrialCodeResponse])
async def list_trial_codes(
    current_user: User = Depends(get_supervisor_user),
    service: TrialCodeService = Depends(get_trial_code_service),
):
    return service.list_codes()


@router.post("", response_model=TrialCodeResponse)
async def create_trial_code(
    data: TrialCodeCreate,
    current_user: User = Depends(get_supervisor_user),
    service: TrialCodeService = Depends(get_trial_code_service),
):
    return service.create_code(current_user.id, data.notes, data.expires_in_days)


@router.post("/validate", response_model=TrialCodeValidation)
async def validate_trial_code(
    data: TrialCodeValidateRequest,
    _: None = Depends(rate_limit_validate),
    service: TrialCodeService = Depends(get_trial_code_service),
):
    if service.validate_code(data.code):
        return TrialCodeValidation(valid=True)
    return TrialCodeValidation(valid=False, message="Invalid or expired trial code")


@router.post("/consume", response_model=TrialCodeValidation)
async def consume_trial_code(
    data: TrialCodeValidateRequest,
    current_user: User = Depends(get_current_user),
    service: TrialCodeService = Depends(get_trial_code_service),
):
    if not service.consume_code(data.code, current_user.id):
        raise HTTPException(status_code=409, detail="Trial code is invalid, expired or already used")
    return TrialCodeValidation(valid=True, message="Trial code applied")


__all__ = ["router"]
