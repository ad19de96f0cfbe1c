from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, models
from ..auth import require_account
from ..database import get_db
from ..models import Role
from ..schemas import CompanyOut, CompanyUpdate

router = APIRouter(prefix="/api/users", tags=["users"])

employer_account = require_account(Role.EMPLOYER)


@router.get("/employer/company")
def get_company_profile(db: Session = Depends(get_db), employer: models.Account = Depends(employer_account)):
    company = crud.ensure_company(db, employer)
    return {"status": "success", "data": {"company": CompanyOut.model_validate(company).dump()}}


@router.patch("/employer/company")
def update_company_profile(
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    employer: models.Account = Depends(employer_account),
):
    company = crud.ensure_company(db, employer)
    company = crud.update_company(db, company, payload)
    return {"status": "success", "data": {"company": CompanyOut.model_validate(company).dump()}}
