"""
Dashboard routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelhub.database import get_db
from travelhub.models.schemas import AdminDashboardResponse, UserDashboardResponse
from travelhub.security.auth import get_request_context
from travelhub.security.context import RequestContext
from travelhub.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/admin", response_model=AdminDashboardResponse)
def admin_dashboard(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Catalog, user and reservation counts plus confirmed revenue"""
    return DashboardService(db).admin_summary(ctx)


@router.get("/user", response_model=UserDashboardResponse)
def user_dashboard(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """The caller's own reservation counts"""
    return DashboardService(db).user_summary(ctx)
