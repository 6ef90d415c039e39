"""Organizer endpoints for guest lists. Every route requires a session."""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from guestlist.core.deps import AdminIdentity, get_current_admin
from guestlist.db.session import get_db
from guestlist.schemas import (
    BatchCreateResponse,
    GigBatchCreate,
    GigCreate,
    GigResponse,
    GigSummary,
    GigUpdate,
    GuestResponse,
    SuccessResponse,
)
from guestlist.services import gig_lifecycle
from guestlist.services.csv_export import export_gig

router = APIRouter(dependencies=[Depends(get_current_admin)])
logger = logging.getLogger(__name__)


def _summary(gig, counts) -> GigSummary:
    return GigSummary(
        **GigResponse.model_validate(gig).model_dump(),
        total_guests=counts.total_guests,
        sign_up_count=counts.sign_up_count,
        new_guest_count=counts.new_guest_count,
    )


@router.get("/gigs", response_model=List[GigSummary])
def list_gigs(db: Session = Depends(get_db)):
    """All gigs with totalGuests, signUpCount and newGuestCount"""
    return [_summary(row["gig"], row["counts"]) for row in gig_lifecycle.list_gigs(db)]


@router.post("/gigs", response_model=GigResponse, status_code=status.HTTP_201_CREATED)
def create_gig(
    payload: GigCreate,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(get_current_admin),
):
    gig = gig_lifecycle.create_gig(db, payload)
    logger.info(f"Gig {gig.slug} created by {admin.email}")
    return gig


@router.post("/gigs/batch", response_model=BatchCreateResponse, status_code=status.HTTP_201_CREATED)
def create_gigs_batch(
    payload: GigBatchCreate,
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Create many gigs in one transaction; nothing is created if any item is invalid"""
    gigs = gig_lifecycle.create_gigs_batch(db, payload.gigs)
    logger.info(f"{len(gigs)} gigs created by {admin.email}")
    return BatchCreateResponse(count=len(gigs), gigs=[GigResponse.model_validate(g) for g in gigs])


@router.patch("/gigs/{slug}", response_model=GigResponse)
def update_gig(slug: str, payload: GigUpdate, db: Session = Depends(get_db)):
    return gig_lifecycle.update_gig(db, slug, payload)


@router.delete("/gigs/{slug}", response_model=SuccessResponse)
def delete_gig(slug: str, db: Session = Depends(get_db)):
    gig_lifecycle.delete_gig(db, slug)
    return SuccessResponse()


@router.post("/gigs/{slug}/close", response_model=GigResponse)
def close_gig(slug: str, db: Session = Depends(get_db)):
    return gig_lifecycle.set_closed(db, slug, True)


@router.post("/gigs/{slug}/reopen", response_model=GigResponse)
def reopen_gig(slug: str, db: Session = Depends(get_db)):
    return gig_lifecycle.set_closed(db, slug, False)


@router.get("/gigs/{slug}/guests", response_model=List[GuestResponse])
def list_guests(slug: str, db: Session = Depends(get_db)):
    return gig_lifecycle.list_guests(db, slug)


@router.get("/gigs/{slug}/csv")
def export_csv(
    slug: str,
    new_only: bool = Query(False, alias="newOnly"),
    db: Session = Depends(get_db),
):
    """Download the guest list; newOnly=true limits it to guests since the last export"""
    gig = gig_lifecycle.get_gig(db, slug)
    export = export_gig(db, gig, new_only=new_only)
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
