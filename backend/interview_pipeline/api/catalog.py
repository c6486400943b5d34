from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import current_user
from ..crud import list_companies, list_stage_methods, list_stages
from ..db import get_db
from ..models import User
from ..schemas import CompanyOut, StageMethodOut, StageOut

router = APIRouter(prefix="/api")


@router.get("/companies", response_model=List[CompanyOut])
def get_companies_api(
    user: User = Depends(current_user), db: Session = Depends(get_db)
) -> List[CompanyOut]:
    return [CompanyOut.model_validate(company) for company in list_companies(db, user.id)]


@router.get("/stages", response_model=List[StageOut])
def get_stages_api(
    user: User = Depends(current_user), db: Session = Depends(get_db)
) -> List[StageOut]:
    return [StageOut.model_validate(stage) for stage in list_stages(db)]


@router.get("/stage-methods", response_model=List[StageMethodOut])
def get_stage_methods_api(
    user: User = Depends(current_user), db: Session = Depends(get_db)
) -> List[StageMethodOut]:
    return [StageMethodOut.model_validate(method) for method in list_stage_methods(db)]
