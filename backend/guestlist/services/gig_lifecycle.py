"""
Gig lifecycle: create (single or batch), edit, close/reopen, delete,
plus admin edits of individual guests.
"""
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guestlist.core.config import settings
from guestlist.core.errors import Conflict, NotFound, ValidationFailed
from guestlist.models.gig import Gig
from guestlist.models.guest import Guest
from guestlist.schemas import GigBatchItem, GigCreate, GigUpdate, GuestUpdate
from guestlist.services.capacity import effective_max, remaining_capacity, total_guests
from guestlist.utils.crypto import generate_slug

logger = logging.getLogger(__name__)

REQUIRED_GIG_FIELDS = ("date", "dj_name", "max_per_signup", "is_closed")


@dataclass
class GigCounts:
    total_guests: int = 0
    sign_up_count: int = 0
    new_guest_count: int = 0


def unique_slug(db: Session) -> str:
    slug = generate_slug(settings.SLUG_LENGTH)
    while db.query(Gig.id).filter(Gig.slug == slug).first():
        slug = generate_slug(settings.SLUG_LENGTH)
    return slug


def get_gig(db: Session, slug: str) -> Gig:
    gig = db.query(Gig).filter(Gig.slug == slug).first()
    if gig is None:
        raise NotFound("Gig not found")
    return gig


def get_guest(db: Session, guest_id: int) -> Guest:
    guest = db.query(Guest).filter(Guest.id == guest_id).first()
    if guest is None:
        raise NotFound("Guest not found")
    return guest


def gig_counts(db: Session, gig: Gig) -> GigCounts:
    total, signups = db.query(
        func.coalesce(func.sum(Guest.quantity), 0),
        func.count(Guest.id),
    ).filter(Guest.gig_id == gig.id).one()

    new_count = 0
    if gig.last_exported_at is not None:
        new_count = db.query(func.count(Guest.id)).filter(
            Guest.gig_id == gig.id,
            Guest.created_at > gig.last_exported_at,
        ).scalar()

    return GigCounts(total_guests=int(total), sign_up_count=int(signups), new_guest_count=int(new_count or 0))


def list_gigs(db: Session) -> List[dict]:
    """All gigs, newest date first, with guest totals"""
    gigs = db.query(Gig).order_by(Gig.date.desc(), Gig.id.desc()).all()
    return [{"gig": gig, "counts": gig_counts(db, gig)} for gig in gigs]


def public_view(db: Session, gig: Gig) -> dict:
    """Fields the public signup page needs, including the form's party-size bound"""
    counts = gig_counts(db, gig)
    remaining = remaining_capacity(gig.guest_cap, counts.total_guests)
    return {
        "slug": gig.slug,
        "date": gig.date,
        "dj_name": gig.dj_name,
        "venue_name": gig.venue_name,
        "guest_cap": gig.guest_cap,
        "max_per_signup": gig.max_per_signup,
        "is_closed": gig.is_closed,
        "total_guests": counts.total_guests,
        "sign_up_count": counts.sign_up_count,
        "remaining": remaining,
        "effective_max": effective_max(gig.max_per_signup, remaining),
    }


def create_gig(db: Session, payload: GigCreate) -> Gig:
    gig = Gig(
        slug=unique_slug(db),
        date=payload.date,
        dj_name=payload.dj_name,
        venue_name=payload.venue_name or None,
        guest_cap=payload.guest_cap,
        max_per_signup=payload.max_per_signup or settings.DEFAULT_MAX_PER_SIGNUP,
    )
    try:
        db.add(gig)
        db.commit()
    except IntegrityError as e:
        # Another request took the same slug between the check and the insert
        db.rollback()
        logger.warning(f"Slug collision creating gig: {e}")
        raise Conflict("Could not allocate a unique gig link, please retry")
    except Exception:
        db.rollback()
        raise
    db.refresh(gig)
    logger.info(f"🎫 Created gig {gig.slug} ({gig.dj_name}, {gig.date})")
    return gig


def validate_batch(items: List[GigBatchItem]) -> List[str]:
    """Per-index problems; an empty list means every item can be created"""
    errors = []
    for index, item in enumerate(items):
        if item.date is None:
            errors.append(f"Gig at index {index} is missing date")
        if not item.dj_name or not item.dj_name.strip():
            errors.append(f"Gig at index {index} is missing djName")
    return errors


def create_gigs_batch(db: Session, items: List[GigBatchItem]) -> List[Gig]:
    """
    Create many gigs all-or-nothing.

    Every item is validated before any row is added; the rows are then
    committed in a single transaction.
    """
    if not items:
        raise ValidationFailed("gigs array is required and must not be empty")

    errors = validate_batch(items)
    if errors:
        raise ValidationFailed("Validation failed", details=errors)

    gigs = []
    slugs = set()
    try:
        for item in items:
            slug = unique_slug(db)
            while slug in slugs:
                slug = unique_slug(db)
            slugs.add(slug)
            gig = Gig(
                slug=slug,
                date=item.date,
                dj_name=item.dj_name.strip(),
                venue_name=item.venue_name or None,
                guest_cap=item.guest_cap if item.guest_cap is not None else settings.BATCH_DEFAULT_GUEST_CAP,
                max_per_signup=item.max_per_signup or settings.DEFAULT_MAX_PER_SIGNUP,
            )
            db.add(gig)
            gigs.append(gig)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Batch gig creation failed: {e}")
        raise

    for gig in gigs:
        db.refresh(gig)
    logger.info(f"✅ Batch created {len(gigs)} gigs")
    return gigs


def update_gig(db: Session, slug: str, payload: GigUpdate) -> Gig:
    """
    Apply a partial update.

    Lowering the cap below the guests already on the list is refused; an
    explicit null cap makes the list unlimited.
    """
    gig = get_gig(db, slug)
    changes = payload.model_dump(exclude_unset=True)

    if any(key in changes and changes[key] is None for key in REQUIRED_GIG_FIELDS):
        raise ValidationFailed("Required gig fields cannot be cleared")

    if changes.get("guest_cap") is not None:
        total = total_guests(db, gig.id)
        if changes["guest_cap"] < total:
            raise ValidationFailed(f"Cannot set guest cap below current guest count ({total})")

    try:
        for field, value in changes.items():
            setattr(gig, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(gig)
    logger.info(f"✏️ Updated gig {slug}: {sorted(changes)}")
    return gig


def set_closed(db: Session, slug: str, closed: bool) -> Gig:
    """Close or reopen signups; existing guests are untouched"""
    gig = get_gig(db, slug)
    try:
        gig.is_closed = closed
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(gig)
    logger.info(f"{'🔒 Closed' if closed else '🔓 Reopened'} gig {slug}")
    return gig


def delete_gig(db: Session, slug: str) -> None:
    """Delete a gig and, through the cascade, its guests"""
    gig = get_gig(db, slug)
    try:
        db.delete(gig)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"🗑️ Deleted gig {slug}")


def list_guests(db: Session, slug: str) -> List[Guest]:
    gig = get_gig(db, slug)
    return db.query(Guest).filter(Guest.gig_id == gig.id).order_by(Guest.created_at.asc(), Guest.id.asc()).all()


def update_guest(db: Session, guest_id: int, payload: GuestUpdate) -> Guest:
    """
    Admin edit of a single guest.

    No cap or duplicate-email check and no email normalization: admins
    may deliberately go over the list's limits.
    """
    guest = get_guest(db, guest_id)
    changes = payload.model_dump(exclude_unset=True)

    if "quantity" in changes and (changes["quantity"] is None or changes["quantity"] < 1):
        raise ValidationFailed("Quantity must be at least 1")
    if any(key in changes and changes[key] is None for key in ("name", "email")):
        raise ValidationFailed("Name and email cannot be cleared")

    try:
        for field, value in changes.items():
            setattr(guest, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(guest)
    logger.info(f"✏️ Admin updated guest {guest_id}: {sorted(changes)}")
    return guest


def delete_guest(db: Session, guest_id: int) -> None:
    guest = get_guest(db, guest_id)
    try:
        db.delete(guest)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"🗑️ Admin deleted guest {guest_id}")
