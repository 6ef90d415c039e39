"""
Guest list CSV export in the ticketing import layout:
Name, Company, Email, Quantity, Type. Company and Type stay blank.
"""
import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from guestlist.db.base import utcnow
from guestlist.models.gig import Gig
from guestlist.models.guest import Guest

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Name", "Company", "Email", "Quantity", "Type"]


@dataclass
class CsvExport:
    filename: str
    content: str
    guest_count: int


def render_guest_csv(guests: Iterable[Guest]) -> str:
    """
    Render guests as CSV, one row per guest in the given order.

    Fields holding a comma, double quote or newline are quoted with inner
    quotes doubled; everything else is written as is.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for guest in guests:
        writer.writerow([guest.name, "", guest.email, str(guest.quantity), ""])
    return buffer.getvalue()


def export_filename(gig: Gig) -> str:
    """ASCII-only so it can go in a Content-Disposition header"""
    title = re.sub(r"\s+", "-", gig.dj_name.strip()).lower()
    title = re.sub(r"[^\w\-]", "", title, flags=re.ASCII)
    title = re.sub(r"-{2,}", "-", title).strip("-") or gig.slug
    return f"guestlist-{title}-{gig.date.isoformat()}.csv"


def guests_for_export(
    db: Session,
    gig: Gig,
    new_only: bool = False,
    until: Optional[datetime] = None,
) -> List[Guest]:
    """
    Guests in creation order.

    With new_only, only those created after the watermark; with until, only
    those created at or before that time.
    """
    query = db.query(Guest).filter(Guest.gig_id == gig.id)
    if new_only and gig.last_exported_at is not None:
        query = query.filter(Guest.created_at > gig.last_exported_at)
    if until is not None:
        query = query.filter(Guest.created_at <= until)
    return query.order_by(Guest.created_at.asc(), Guest.id.asc()).all()


def export_gig(db: Session, gig: Gig, new_only: bool = False) -> CsvExport:
    """
    Build the CSV for a gig and move its export watermark.

    The watermark is the moment taken before the guest query, so a guest
    signing up while the export runs lands in the next new-only export.
    Both full and new-only exports advance ``last_exported_at``.
    """
    exported_at = utcnow()
    guests = guests_for_export(db, gig, new_only=new_only, until=exported_at)
    export = CsvExport(
        filename=export_filename(gig),
        content=render_guest_csv(guests),
        guest_count=len(guests),
    )

    try:
        gig.last_exported_at = exported_at
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"📄 Exported {len(guests)} guests for gig {gig.slug} (new_only={new_only})")
    return export
