from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from venuebook.core.deps import get_current_user, get_db, require_roles
from venuebook.models.user import User
from venuebook.models.venue import Venue
from venuebook.schemas.booking import BookingCancelRequest, BookingCreate, BookingOut
from venuebook.services.audit_service import write_audit_log
from venuebook.services.booking_service import cancel_booking, create_booking, get_booking_for_user, list_guest_bookings
from venuebook.services.mailer import send_booking_cancellation, send_booking_confirmation, send_new_booking_to_host

router = APIRouter()


@router.post("", response_model=BookingOut, status_code=201)
def create(payload: BookingCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(require_roles("guest", "admin"))):
    b = create_booking(
        db,
        guest=user,
        venue_id=payload.venue_id,
        start_at=payload.start_at,
        end_at=payload.end_at,
        guest_count=payload.guest_count,
        package_id=payload.package_id,
        special_requests=payload.special_requests,
    )

    write_audit_log(
        db,
        actor=user,
        action_type="BOOKING_CREATE",
        target_type="booking",
        target_id=b.id,
        summary="Booking confirmed",
        diff_json={"venue_id": b.venue_id, "total_price_egp": str(b.total_price_egp)},
        request=request,
    )

    venue = db.get(Venue, b.venue_id)
    send_booking_confirmation(guest=user, venue=venue, booking=b)
    host = db.get(User, venue.host_id)
    if host is not None:
        send_new_booking_to_host(host=host, guest=user, venue=venue, booking=b)
    return b


@router.get("/me", response_model=list[BookingOut])
def my_bookings(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return list_guest_bookings(db, user.id)


@router.get("/{booking_id}", response_model=BookingOut)
def get_one(booking_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_booking_for_user(db, booking_id, user)


@router.post("/{booking_id}/cancel", response_model=BookingOut)
def cancel(
    booking_id: str,
    request: Request,
    payload: BookingCancelRequest | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    b = get_booking_for_user(db, booking_id, user)
    changed = cancel_booking(db, booking=b, reason=payload.reason if payload else "")
    if changed:
        write_audit_log(
            db,
            actor=user,
            action_type="BOOKING_CANCEL",
            target_type="booking",
            target_id=b.id,
            summary="Cancelled booking",
            request=request,
        )
        guest = db.get(User, b.guest_id)
        venue = db.get(Venue, b.venue_id)
        if guest is None or venue is None:
            raise HTTPException(status_code=404, detail="Not found")
        send_booking_cancellation(guest=guest, venue=venue, booking=b)
    return b
