from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmaflow.app.api.deps import get_db
from pharmaflow.app.schemas.costs import CostLine, CostTotal
from pharmaflow.app.settings import settings
from pharmaflow.services.costs import cost_total, list_costs

router = APIRouter(prefix="/costs")


@router.get("", response_model=list[CostLine])
def get_costs(limit: int = settings.READ_LIMIT, db: Session = Depends(get_db)):
    """
    Costs (READ ONLY)
    - recomputed from fulfillment rows + catalog prices on every call
    """
    return list_costs(db, limit=limit)


@router.get("/total", response_model=CostTotal)
def get_cost_total(db: Session = Depends(get_db)):
    return cost_total(db)
