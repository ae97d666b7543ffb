from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import ROLE_STORE_MANAGER
from app.dependencies import get_db, require_roles
from app.schemas.inventory import LotDriftRead
from app.services.inventory_service import find_lot_drift

router = APIRouter(prefix="/lots", tags=["Lots"])


@router.get("/drift", response_model=list[LotDriftRead])
def lot_drift(
    db: Session = Depends(get_db),
    _auth=Depends(require_roles(ROLE_STORE_MANAGER)),
):
    rows = find_lot_drift(db)
    return [LotDriftRead(**row) for row in rows]


__all__ = ["router"]
