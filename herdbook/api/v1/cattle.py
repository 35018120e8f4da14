"""
Cattle API endpoints
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from herdbook.api.deps import get_db, get_today
from herdbook.application.cattle import (
    CattleNotFoundError, CattleValidationError,
    CreateCattleUseCase, UpdateCattleUseCase, DeleteCattleUseCase,
    count_cattle, get_next_injections,
)
from herdbook.infrastructure.store import CattleStore


router = APIRouter(prefix="/api/v1/cattle", tags=["cattle"])


# === Request/Response models ===

class CreateCattleRequest(BaseModel):
    name: str
    type: str
    image: str  # data URL captured by the camera

    @field_validator("name", "type", "image")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class UpdateCattleRequest(BaseModel):
    name: str | None = None
    type: str | None = None
    image: str | None = None


class CattleResponse(BaseModel):
    id: str
    name: str
    type: str
    image: str
    next_injection: date | None
    created_at: datetime


class HeadCountResponse(BaseModel):
    total: int
    by_type: dict[str, int]


class NextInjectionResponse(BaseModel):
    cattle_id: str
    next_injection: date | None


# === Helper function ===

def _raise_http(e: CattleValidationError) -> None:
    status_code = 404 if isinstance(e, CattleNotFoundError) else 400
    raise HTTPException(status_code=status_code, detail=str(e))


# === Endpoints ===

@router.post("/", response_model=CattleResponse)
def create_cattle(req: CreateCattleRequest, db: Session = Depends(get_db)):
    """Register an animal"""
    try:
        cattle_id = CreateCattleUseCase(db).execute(
            name=req.name, cattle_type=req.type, image=req.image,
        )
    except CattleValidationError as e:
        _raise_http(e)

    cattle = CattleStore(db).get(cattle_id)
    if not cattle:
        raise HTTPException(status_code=500, detail="Cattle creation failed")
    return CattleResponse(**cattle)


@router.get("/", response_model=list[CattleResponse])
def list_cattle(db: Session = Depends(get_db)):
    """All registered animals"""
    return [CattleResponse(**c) for c in CattleStore(db).list_all()]


@router.get("/count", response_model=HeadCountResponse)
def headcount(db: Session = Depends(get_db)):
    """Herd size, total and per type"""
    counts = count_cattle(db)
    return HeadCountResponse(total=counts.total, by_type=counts.by_type)


@router.get("/next-injections", response_model=list[NextInjectionResponse])
def next_injections(db: Session = Depends(get_db), today: date = Depends(get_today)):
    """Next injection due per animal"""
    return [
        NextInjectionResponse(cattle_id=cattle_id, next_injection=due)
        for cattle_id, due in get_next_injections(db, today).items()
    ]


@router.get("/{cattle_id}", response_model=CattleResponse)
def get_cattle(cattle_id: str, db: Session = Depends(get_db)):
    cattle = CattleStore(db).get(cattle_id)
    if not cattle:
        raise HTTPException(status_code=404, detail=f"Cattle {cattle_id} not found")
    return CattleResponse(**cattle)


@router.patch("/{cattle_id}", response_model=CattleResponse)
def update_cattle(cattle_id: str, req: UpdateCattleRequest, db: Session = Depends(get_db)):
    try:
        UpdateCattleUseCase(db).execute(cattle_id, **req.model_dump(exclude_none=True))
    except CattleValidationError as e:
        _raise_http(e)
    return CattleResponse(**CattleStore(db).get(cattle_id))


@router.delete("/{cattle_id}", status_code=204)
def delete_cattle(cattle_id: str, db: Session = Depends(get_db)):
    """Remove an animal together with its events"""
    try:
        DeleteCattleUseCase(db).execute(cattle_id)
    except CattleValidationError as e:
        _raise_http(e)
