"""
Organization API Routes

Districts, schools and departments. Listing is filtered by the caller's
access scope; creation is reserved for administrators.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from edconnect.api.dependencies import get_db_service
from edconnect.api.security import get_current_scope, require_admin
from edconnect.core.access import AccessScope
from edconnect.core.exceptions import DatabaseError
from edconnect.core.models import Department, District, School, User
from edconnect.core.services.database import DatabaseService

router = APIRouter(prefix="/api", tags=["organization"])


# --- Pydantic Models ---


class DistrictCreate(BaseModel):
    name: str
    code: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None


class DistrictResponse(DistrictCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SchoolCreate(BaseModel):
    name: str
    code: str
    district_id: Optional[int] = None
    address: Optional[str] = None
    principal: Optional[str] = None
    phone: Optional[str] = None


class SchoolResponse(SchoolCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DepartmentCreate(BaseModel):
    name: str
    school_id: int
    head_educator_id: Optional[int] = None
    description: Optional[str] = None


class DepartmentResponse(DepartmentCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Routes ---


@router.get("/districts", response_model=List[DistrictResponse])
def list_districts(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_districts(scope)


@router.post("/districts", response_model=DistrictResponse, status_code=201)
def create_district(
    payload: DistrictCreate,
    current_user: User = Depends(require_admin),
    db_service: DatabaseService = Depends(get_db_service),
):
    if db_service.get_district_by_code(payload.code):
        raise HTTPException(status_code=400, detail="District code already exists")
    try:
        return db_service.create_district(District(**payload.model_dump()))
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/schools", response_model=List[SchoolResponse])
def list_schools(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_schools(scope)


@router.post("/schools", response_model=SchoolResponse, status_code=201)
def create_school(
    payload: SchoolCreate,
    current_user: User = Depends(require_admin),
    db_service: DatabaseService = Depends(get_db_service),
):
    if payload.district_id is not None and not db_service.get_district(payload.district_id):
        raise HTTPException(status_code=400, detail="District not found")
    if db_service.get_school_by_code(payload.code):
        raise HTTPException(status_code=400, detail="School code already exists")
    try:
        return db_service.create_school(School(**payload.model_dump()))
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/departments", response_model=List[DepartmentResponse])
def list_departments(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_departments(scope)


@router.post("/departments", response_model=DepartmentResponse, status_code=201)
def create_department(
    payload: DepartmentCreate,
    current_user: User = Depends(require_admin),
    db_service: DatabaseService = Depends(get_db_service),
):
    if not db_service.get_school(payload.school_id):
        raise HTTPException(status_code=400, detail="School not found")
    try:
        return db_service.create_department(Department(**payload.model_dump()))
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))
