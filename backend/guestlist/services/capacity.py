"""
Guest capacity rules for public signups.

``evaluate_signup`` is the pure decision over a snapshot of the gig;
``admit_guest`` runs it against live rows and inserts the guest inside the
same transaction, with the gig row locked, so two signups near the cap
cannot both pass the check.
"""
import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from guestlist.core.errors import NotFound, RejectionReason, SignupRejected
from guestlist.models.gig import Gig
from guestlist.models.guest import Guest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacitySnapshot:
    is_closed: bool
    guest_cap: Optional[int]
    max_per_signup: int
    total_guests: int
    emails: FrozenSet[str]


@dataclass(frozen=True)
class Admission:
    name: str
    email: str
    quantity: int
    total_after: int
    remaining_after: Optional[int]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_quantity(value: Any) -> Optional[int]:
    """Positive integer party size, or None when the value is not one"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdecimal():
        quantity = int(value.strip())
    else:
        return None
    return quantity if quantity >= 1 else None


def remaining_capacity(guest_cap: Optional[int], total_guests: int) -> Optional[int]:
    """Spots left under the cap; None means unlimited"""
    if guest_cap is None:
        return None
    return max(guest_cap - total_guests, 0)


def effective_max(max_per_signup: int, remaining: Optional[int]) -> int:
    """Largest party size the signup form should offer"""
    if remaining is None:
        return max_per_signup
    return min(max_per_signup, remaining)


def evaluate_signup(snapshot: CapacitySnapshot, name: str, email: str, quantity: Any) -> Admission:
    """
    Decide whether a signup is admitted.

    Checks run in a fixed order and the first failure wins: closed list,
    invalid quantity, duplicate email, party size over the per-signup
    limit, full list, party size over the remaining spots.

    Raises:
        SignupRejected: with the reason (and remaining count where relevant)
    """
    if snapshot.is_closed:
        raise SignupRejected(RejectionReason.LIST_CLOSED, "This guest list is closed")

    parsed = parse_quantity(quantity)
    if parsed is None:
        raise SignupRejected(RejectionReason.INVALID_QUANTITY, "Quantity must be at least 1")

    normalized = normalize_email(email)
    if normalized in snapshot.emails:
        raise SignupRejected(RejectionReason.DUPLICATE_EMAIL, "This email is already on the guest list")

    if parsed > snapshot.max_per_signup:
        raise SignupRejected(
            RejectionReason.EXCEEDS_MAX_PER_SIGNUP,
            f"Maximum {snapshot.max_per_signup} guests per signup",
        )

    remaining = None
    if snapshot.guest_cap is not None:
        remaining = snapshot.guest_cap - snapshot.total_guests
        if remaining <= 0:
            raise SignupRejected(RejectionReason.LIST_FULL, "Sorry, the guest list is full!", remaining=0)
        if parsed > remaining:
            plural = "" if remaining == 1 else "s"
            raise SignupRejected(
                RejectionReason.EXCEEDS_REMAINING,
                f"Only {remaining} spot{plural} remaining",
                remaining=remaining,
            )
        remaining -= parsed

    return Admission(
        name=name,
        email=normalized,
        quantity=parsed,
        total_after=snapshot.total_guests + parsed,
        remaining_after=remaining,
    )


def total_guests(db: Session, gig_id: int) -> int:
    """Sum of party sizes on a gig"""
    total = db.query(func.coalesce(func.sum(Guest.quantity), 0)).filter(Guest.gig_id == gig_id).scalar()
    return int(total or 0)


def snapshot_for(db: Session, gig: Gig) -> CapacitySnapshot:
    rows = db.query(Guest.email, Guest.quantity).filter(Guest.gig_id == gig.id).all()
    return CapacitySnapshot(
        is_closed=bool(gig.is_closed),
        guest_cap=gig.guest_cap,
        max_per_signup=gig.max_per_signup,
        total_guests=sum(quantity for _, quantity in rows),
        emails=frozenset(normalize_email(email) for email, _ in rows),
    )


def admit_guest(db: Session, slug: str, name: str, email: str, quantity: Any) -> Guest:
    """
    Validate a public signup against the live list and persist it.

    The gig row is read FOR UPDATE, so concurrent admissions on the same
    gig serialize on it until this transaction commits. On rejection
    nothing is written.
    """
    try:
        gig = db.query(Gig).filter(Gig.slug == slug).with_for_update().first()
        if gig is None:
            raise NotFound("Gig not found")

        admission = evaluate_signup(snapshot_for(db, gig), name, email, quantity)

        guest = Guest(
            gig_id=gig.id,
            name=admission.name,
            email=admission.email,
            quantity=admission.quantity,
        )
        db.add(guest)
        db.commit()
    except SignupRejected as e:
        db.rollback()
        logger.info(f"Signup rejected for gig {slug}: {e.reason.value}")
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(guest)
    logger.info(
        f"✅ Guest {guest.id} admitted to gig {slug} (x{admission.quantity}, total {admission.total_after})"
    )
    return guest
