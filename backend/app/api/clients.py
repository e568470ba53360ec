"""Client management for employers."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer
from backend.app.models.client import Client
from backend.app.models.user import User
from backend.app.schemas.client import ClientCreate, ClientRead

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("/", response_model=List[ClientRead])
async def list_clients(
    search: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    query = db.query(Client).filter(Client.organization_id == current_user.organization_id)
    if search:
        query = query.filter(Client.name.ilike(f"%{search}%"))
    return query.order_by(Client.name.asc(), Client.id.asc()).all()


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    client = Client(organization_id=current_user.organization_id, **payload.model_dump())
    db.add(client)
    db.commit()
    db.refresh(client)
    return client
