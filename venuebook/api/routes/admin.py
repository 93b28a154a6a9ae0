from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from venuebook.core.deps import get_db, require_admin
from venuebook.models.user import User
from venuebook.models.venue import VENUE_APPROVED, VENUE_REJECTED, VENUE_STATUSES
from venuebook.schemas.audit import AuditLogOut
from venuebook.schemas.booking import BookingOut
from venuebook.schemas.venue import AdminStatsOut, VenueOut
from venuebook.services.audit_service import list_audit_logs, write_audit_log
from venuebook.services.booking_service import get_venue, list_all_bookings
from venuebook.services.mailer import send_venue_status_notification
from venuebook.services.venue_service import admin_stats, list_venues_for_admin, set_venue_status

router = APIRouter()


@router.get("/venues", response_model=list[VenueOut])
def venues(status: str | None = None, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    if status and status not in VENUE_STATUSES:
        raise HTTPException(status_code=400, detail="Unknown venue status")
    return list_venues_for_admin(db, status)


def _moderate(venue_id: str, status: str, request: Request, db: Session, user: User):
    v = get_venue(db, venue_id)
    v = set_venue_status(db, venue=v, status=status)

    write_audit_log(
        db,
        actor=user,
        action_type="VENUE_APPROVE" if status == VENUE_APPROVED else "VENUE_REJECT",
        target_type="venue",
        target_id=v.id,
        summary=f"Venue {status}",
        request=request,
    )

    host = db.get(User, v.host_id)
    if host is not None:
        send_venue_status_notification(host=host, venue=v, status=status)
    return v


@router.patch("/venues/{venue_id}/approve", response_model=VenueOut)
def approve(venue_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return _moderate(venue_id, VENUE_APPROVED, request, db, user)


@router.patch("/venues/{venue_id}/reject", response_model=VenueOut)
def reject(venue_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return _moderate(venue_id, VENUE_REJECTED, request, db, user)


@router.get("/stats", response_model=AdminStatsOut)
def stats(db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return admin_stats(db)


@router.get("/bookings", response_model=list[BookingOut])
def bookings(status: str | None = None, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return list_all_bookings(db, status=status)


@router.get("/audit-logs", response_model=list[AuditLogOut])
def audit_logs(
    from_: datetime | None = Query(default=None, alias="from"),
    to: datetime | None = None,
    action_type: str | None = None,
    target_type: str | None = None,
    target_id: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return list_audit_logs(
        db,
        since=from_,
        until=to,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        limit=limit,
    )
