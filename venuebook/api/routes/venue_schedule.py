from __future__ import annotations

from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from venuebook.core.config import get_settings
from venuebook.core.deps import get_db, require_roles
from venuebook.models.availability_rule import AvailabilityRule
from venuebook.models.blackout import Blackout
from venuebook.models.user import User
from venuebook.models.booking import Booking
from venuebook.models.venue import VenueAmenity, VenuePackage
from venuebook.schemas.availability import AvailabilityRuleCreate, AvailabilityRuleOut
from venuebook.schemas.blackout import BlackoutCreate, BlackoutOut
from venuebook.schemas.venue import AmenityCreate, AmenityOut, PackageCreate, PackageOut
from venuebook.services.audit_service import write_audit_log
from venuebook.services.booking_service import get_venue, venue_timezone
from venuebook.services.intervals import ensure_utc, local_instant
from venuebook.services.venue_service import ensure_can_manage

router = APIRouter()

host_or_admin = require_roles("host", "admin")


class BulkBlackoutCreate(BaseModel):
    date_from: date
    date_to: date
    start_time: time
    end_time: time
    reason: str = Field(default="", max_length=255)


def _managed_venue(db: Session, venue_id: str, user: User):
    v = get_venue(db, venue_id)
    ensure_can_manage(user, v)
    return v


# Availability rules


@router.get("/{venue_id}/availability/rules", response_model=list[AvailabilityRuleOut])
def list_rules(venue_id: str, db: Session = Depends(get_db)):
    get_venue(db, venue_id)
    q = select(AvailabilityRule).where(AvailabilityRule.venue_id == venue_id).order_by(AvailabilityRule.day_of_week, AvailabilityRule.open_time)
    return db.execute(q).scalars().all()


@router.post("/{venue_id}/availability/rules", response_model=AvailabilityRuleOut, status_code=201)
def create_rule(venue_id: str, payload: AvailabilityRuleCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    r = AvailabilityRule(venue_id=v.id, day_of_week=payload.day_of_week, open_time=payload.open_time, close_time=payload.close_time)
    db.add(r)
    db.commit()
    db.refresh(r)

    write_audit_log(
        db,
        actor=user,
        action_type="RULE_CREATE",
        target_type="venue",
        target_id=v.id,
        summary="Created availability rule",
        diff_json={"day_of_week": r.day_of_week, "open_time": str(r.open_time), "close_time": str(r.close_time)},
        request=request,
    )
    return r


@router.delete("/{venue_id}/availability/rules/{rule_id}")
def delete_rule(venue_id: str, rule_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    r = db.get(AvailabilityRule, rule_id)
    if not r or r.venue_id != v.id:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(r)
    db.commit()

    write_audit_log(db, actor=user, action_type="RULE_DELETE", target_type="venue", target_id=v.id, summary="Deleted availability rule", diff_json={"rule_id": rule_id}, request=request)
    return {"ok": True}


# Blackouts


@router.get("/{venue_id}/blackouts", response_model=list[BlackoutOut])
def list_blackouts(
    venue_id: str,
    from_: datetime | None = Query(default=None, alias="from"),
    to: datetime | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(host_or_admin),
):
    _managed_venue(db, venue_id, user)
    q = select(Blackout).where(Blackout.venue_id == venue_id).order_by(Blackout.start_at)
    if from_:
        q = q.where(Blackout.end_at > ensure_utc(from_))
    if to:
        q = q.where(Blackout.start_at < ensure_utc(to))
    return db.execute(q.limit(1000)).scalars().all()


@router.post("/{venue_id}/blackouts", response_model=BlackoutOut, status_code=201)
def create_blackout(venue_id: str, payload: BlackoutCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    b = Blackout(venue_id=v.id, start_at=payload.start_at, end_at=payload.end_at, reason=payload.reason, created_by_user_id=user.id)
    db.add(b)
    db.commit()
    db.refresh(b)

    write_audit_log(db, actor=user, action_type="BLACKOUT_CREATE", target_type="venue", target_id=v.id, summary="Created blackout", diff_json={"blackout_id": b.id}, request=request)
    return b


@router.post("/{venue_id}/blackouts/bulk")
def create_blackouts_bulk(venue_id: str, payload: BulkBlackoutCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    """Block the same local time window on every day of a date range."""
    v = _managed_venue(db, venue_id, user)
    if payload.date_from > payload.date_to:
        raise HTTPException(status_code=400, detail="Invalid date range")
    if payload.start_time >= payload.end_time:
        raise HTTPException(status_code=400, detail="Invalid time range")
    if (payload.date_to - payload.date_from).days > get_settings().bulk_blackout_max_days:
        raise HTTPException(status_code=400, detail="Date range too long")

    tz = venue_timezone()

    created = 0
    d = payload.date_from
    while d <= payload.date_to:
        start_at = local_instant(d, payload.start_time, tz)
        end_at = local_instant(d, payload.end_time, tz)
        db.add(Blackout(venue_id=v.id, start_at=start_at, end_at=end_at, reason=payload.reason, created_by_user_id=user.id))
        created += 1
        d = d + timedelta(days=1)

    db.commit()

    write_audit_log(
        db,
        actor=user,
        action_type="BLACKOUT_BULK_CREATE",
        target_type="venue",
        target_id=v.id,
        summary="Created blackouts (bulk)",
        diff_json={"count": created, "from": str(payload.date_from), "to": str(payload.date_to)},
        request=request,
    )

    return {"ok": True, "created": created}


@router.delete("/{venue_id}/blackouts/{blackout_id}")
def delete_blackout(venue_id: str, blackout_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    b = db.get(Blackout, blackout_id)
    if not b or b.venue_id != v.id:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(b)
    db.commit()

    write_audit_log(db, actor=user, action_type="BLACKOUT_DELETE", target_type="venue", target_id=v.id, summary="Deleted blackout", diff_json={"blackout_id": blackout_id}, request=request)
    return {"ok": True}


# Packages


@router.get("/{venue_id}/packages", response_model=list[PackageOut])
def list_packages(venue_id: str, db: Session = Depends(get_db)):
    get_venue(db, venue_id)
    q = select(VenuePackage).where(VenuePackage.venue_id == venue_id).order_by(VenuePackage.hourly_price_egp, VenuePackage.name)
    return db.execute(q).scalars().all()


@router.post("/{venue_id}/packages", response_model=PackageOut, status_code=201)
def create_package(venue_id: str, payload: PackageCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    p = VenuePackage(venue_id=v.id, name=payload.name, description=payload.description, hourly_price_egp=payload.hourly_price_egp)
    db.add(p)
    db.commit()
    db.refresh(p)

    write_audit_log(db, actor=user, action_type="PACKAGE_CREATE", target_type="venue", target_id=v.id, summary="Created package", diff_json={"package_id": p.id}, request=request)
    return p


@router.delete("/{venue_id}/packages/{package_id}")
def delete_package(venue_id: str, package_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    p = db.get(VenuePackage, package_id)
    if not p or p.venue_id != v.id:
        raise HTTPException(status_code=404, detail="Not found")
    in_use = db.execute(select(Booking.id).where(Booking.package_id == p.id).limit(1)).first() is not None
    if in_use:
        raise HTTPException(status_code=409, detail="Package is referenced by bookings")
    db.delete(p)
    db.commit()

    write_audit_log(db, actor=user, action_type="PACKAGE_DELETE", target_type="venue", target_id=v.id, summary="Deleted package", diff_json={"package_id": package_id}, request=request)
    return {"ok": True}


# Amenities


@router.get("/{venue_id}/amenities", response_model=list[AmenityOut])
def list_amenities(venue_id: str, db: Session = Depends(get_db)):
    get_venue(db, venue_id)
    q = select(VenueAmenity).where(VenueAmenity.venue_id == venue_id).order_by(VenueAmenity.name)
    return db.execute(q).scalars().all()


@router.post("/{venue_id}/amenities", response_model=AmenityOut, status_code=201)
def create_amenity(venue_id: str, payload: AmenityCreate, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Amenity name is required")
    dup = db.execute(
        select(VenueAmenity.id).where(VenueAmenity.venue_id == v.id, func.lower(VenueAmenity.name) == name.lower()).limit(1)
    ).first()
    if dup is not None:
        raise HTTPException(status_code=409, detail="Amenity already exists")
    a = VenueAmenity(venue_id=v.id, name=name)
    db.add(a)
    db.commit()
    db.refresh(a)

    write_audit_log(db, actor=user, action_type="AMENITY_CREATE", target_type="venue", target_id=v.id, summary="Added amenity", diff_json={"amenity_id": a.id, "name": a.name}, request=request)
    return a


@router.delete("/{venue_id}/amenities/{amenity_id}")
def delete_amenity(venue_id: str, amenity_id: str, request: Request, db: Session = Depends(get_db), user: User = Depends(host_or_admin)):
    v = _managed_venue(db, venue_id, user)
    a = db.get(VenueAmenity, amenity_id)
    if not a or a.venue_id != v.id:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(a)
    db.commit()

    write_audit_log(db, actor=user, action_type="AMENITY_DELETE", target_type="venue", target_id=v.id, summary="Removed amenity", diff_json={"amenity_id": amenity_id}, request=request)
    return {"ok": True}
