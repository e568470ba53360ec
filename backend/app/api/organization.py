"""Organization settings: profile details and logo reference."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer, get_current_user
from backend.app.models.organization import Organization
from backend.app.models.user import User
from backend.app.schemas.organization import OrganizationRead, OrganizationUpdate

router = APIRouter(prefix="/organization", tags=["organization"])


def _get_organization(db: Session, organization_id: int) -> Organization:
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return organization


@router.get("/", response_model=OrganizationRead)
async def get_organization(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_organization(db, current_user.organization_id)


@router.patch("/", response_model=OrganizationRead)
async def update_organization(
    payload: OrganizationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    organization = _get_organization(db, current_user.organization_id)
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="Organization name cannot be empty")
    for field, value in updates.items():
        setattr(organization, field, value)
    db.commit()
    db.refresh(organization)
    return organization
