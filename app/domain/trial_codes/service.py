"""Trial access codes - single-use codes handed out by supervisors"""

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ...models import TrialAccessCode
from .schemas import normalize_code

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
MAX_GENERATION_ATTEMPTS = 10


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class TrialCodeService:
    def __init__(self, db: Session):
        self.db = db

    def list_codes(self) -> list[TrialAccessCode]:
        return self.db.query(TrialAccessCode).order_by(TrialAccessCode.created_at.desc()).all()

    def create_code(
        self,
        created_by: str,
        notes: Optional[str] = None,
        expires_in_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TrialAccessCode:
        now = now or datetime.utcnow()
        for _ in range(MAX_GENERATION_ATTEMPTS):
            code = generate_code()
            exists = self.db.query(TrialAccessCode).filter(TrialAccessCode.code == code).first()
            if not exists:
                break
        else:
            raise HTTPException(status_code=500, detail="Could not generate a unique code")

        trial_code = TrialAccessCode(
            code=code,
            notes=notes,
            expires_at=now + timedelta(days=expires_in_days) if expires_in_days else None,
            created_by=created_by,
        )
        self.db.add(trial_code)
        self.db.commit()
        self.db.refresh(trial_code)
        logger.info(f"🎟️ Trial code {code} created by {created_by}")
        return trial_code

    def _usable_filter(self, code: str, now: datetime):
        return (
            TrialAccessCode.code == code,
            TrialAccessCode.is_used.is_(False),
            or_(TrialAccessCode.expires_at.is_(None), TrialAccessCode.expires_at > now),
        )

    def validate_code(self, code: str, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        code = normalize_code(code)
        if not code:
            return False
        return (
            self.db.query(TrialAccessCode).filter(*self._usable_filter(code, now)).first()
            is not None
        )

    def consume_code(self, code: str, user_id: str, now: Optional[datetime] = None) -> bool:
        """
        Mark a code used by ``user_id``.
        A single conditional UPDATE so two concurrent callers cannot both win.
        """
        now = now or datetime.utcnow()
        code = normalize_code(code)
        result = self.db.execute(
            update(TrialAccessCode)
            .where(*self._usable_filter(code, now))
            .values(is_used=True, used_by_user_id=user_id, used_at=now)
        )
        self.db.commit()
        if result.rowcount != 1:
            logger.warning(f"⚠️ Trial code {code} could not be consumed by {user_id}")
            return False
        logger.info(f"✅ Trial code {code} consumed by {user_id}")
        return True
