"""Family group service - Business logic for family groups"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import FamilyGroup, User
from .repository import FamilyGroupRepository
from .schemas import FamilyGroupCreate, FamilyGroupUpdate

logger = logging.getLogger(__name__)

FAMILY_GROUP_COLORS = [
    "#EF4444",  # Red
    "#F97316",  # Orange
    "#EAB308",  # Yellow
    "#22C55E",  # Green
    "#06B6D4",  # Cyan
    "#3B82F6",  # Blue
    "#8B5CF6",  # Purple
    "#EC4899",  # Pink
    "#10B981",  # Emerald
    "#6366F1",  # Indigo
]


def user_acts_for_group(db: Session, user: User, org_id: str, family_group: str) -> bool:
    """True when the user belongs to the group: self-declared, the lead, or a listed member"""
    if user.family_group and user.family_group == family_group:
        return True
    group = FamilyGroupRepository.get_by_name(db, org_id, family_group)
    if not group or not user.email:
        return False
    email = user.email.lower()
    if group.lead_email and group.lead_email.lower() == email:
        return True
    return any(
        (member.get("email") or "").lower() == email for member in (group.host_members or [])
    )


class FamilyGroupService:
    """Service layer for family group business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FamilyGroupRepository()

    def list_groups(self, org_id: str) -> list[FamilyGroup]:
        return self.repo.list_groups(self.db, org_id)

    def get_group(self, org_id: str, group_id: str) -> FamilyGroup:
        group = self.repo.get_by_id(self.db, org_id, group_id)
        if not group:
            raise HTTPException(status_code=404, detail="Family group not found")
        return group

    def create_group(self, org_id: str, data: FamilyGroupCreate) -> FamilyGroup:
        if self.repo.get_by_name(self.db, org_id, data.name):
            raise HTTPException(status_code=409, detail=f"Family group '{data.name}' already exists")

        payload = data.model_dump()
        payload["host_members"] = [m.model_dump() for m in data.host_members]
        if not payload.get("color"):
            payload["color"] = self._next_color(org_id)

        group = self.repo.create(self.db, org_id, **payload)
        logger.info(f"✅ Family group created: {group.name} (org {org_id})")
        return group

    def update_group(self, org_id: str, group_id: str, data: FamilyGroupUpdate) -> FamilyGroup:
        group = self.get_group(org_id, group_id)
        updates = data.model_dump(exclude_unset=True)
        if data.host_members is not None:
            updates["host_members"] = [m.model_dump() for m in data.host_members]
        return self.repo.update(self.db, group, **updates)

    def delete_group(self, org_id: str, group_id: str) -> None:
        group = self.get_group(org_id, group_id)
        self.repo.delete(self.db, group)
        logger.info(f"🗑️ Family group deleted: {group.name} (org {org_id})")

    def rename_group(self, org_id: str, old_name: str, new_name: str) -> dict:
        """Rename a group and rewrite the name in every table that references it"""
        group = self.repo.get_by_name(self.db, org_id, old_name)
        if not group:
            raise HTTPException(status_code=404, detail="Family group not found")
        if old_name == new_name:
            return {"success": True, "old_name": old_name, "new_name": new_name, "updated": {}}
        if self.repo.get_by_name(self.db, org_id, new_name):
            raise HTTPException(status_code=409, detail=f"Family group '{new_name}' already exists")

        try:
            group.name = new_name
            counts = self.repo.cascade_rename(self.db, org_id, old_name, new_name)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to rename family group {old_name} → {new_name}: {str(e)}")
            raise

        logger.info(f"✅ Renamed family group {old_name} → {new_name}: {counts}")
        return {"success": True, "old_name": old_name, "new_name": new_name, "updated": counts}

    # ========================================================================
    # COLORS
    # ========================================================================

    def available_colors(self, org_id: str, exclude_group_id: Optional[str] = None) -> list[str]:
        used = {
            (g.color or "").upper()
            for g in self.repo.list_groups(self.db, org_id)
            if g.color and g.id != exclude_group_id
        }
        return [color for color in FAMILY_GROUP_COLORS if color not in used]

    def _next_color(self, org_id: str) -> Optional[str]:
        available = self.available_colors(org_id)
        return available[0] if available else None

    def assign_default_colors(self, org_id: str) -> dict:
        """Give every group without a color the next unused palette color"""
        available = self.available_colors(org_id)
        assigned = {}
        for group in self.repo.list_groups(self.db, org_id):
            if group.color:
                continue
            if not available:
                logger.warning(f"⚠️ Color palette exhausted for org {org_id}")
                break
            group.color = available.pop(0)
            assigned[group.name] = group.color
        if assigned:
            self.db.commit()
        return {"assigned": assigned}

    def set_color(self, org_id: str, group_id: str, color: str) -> FamilyGroup:
        group = self.get_group(org_id, group_id)
        color = color.upper()
        if color in FAMILY_GROUP_COLORS and color not in self.available_colors(org_id, group.id):
            raise HTTPException(status_code=409, detail="Color already used by another family group")
        group.color = color
        self.db.commit()
        self.db.refresh(group)
        return group
