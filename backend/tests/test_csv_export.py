"""Tests for guest CSV rendering and the export watermark."""

import csv
import io
from datetime import date, timedelta

from guestlist.db.base import utcnow
from guestlist.models.guest import Guest
from guestlist.services.csv_export import (
    export_filename,
    export_gig,
    guests_for_export,
    render_guest_csv,
)

HEADER = "Name,Company,Email,Quantity,Type"


def test_empty_export_is_header_only():
    content = render_guest_csv([])
    assert content.splitlines() == [HEADER]


def test_rows_in_given_order_with_blank_columns():
    guests = [
        Guest(name="Ana", email="ana@example.com", quantity=2),
        Guest(name="Ben", email="ben@example.com", quantity=1),
    ]
    lines = render_guest_csv(guests).splitlines()

    assert lines == [
        HEADER,
        "Ana,,ana@example.com,2,",
        "Ben,,ben@example.com,1,",
    ]


def test_awkward_name_is_quoted_and_round_trips():
    name = 'Smith, "DJ" John\nSecond line'
    content = render_guest_csv([Guest(name=name, email="j@example.com", quantity=1)])

    assert '"Smith, ""DJ"" John\nSecond line"' in content
    rows = list(csv.reader(io.StringIO(content)))
    assert len(rows) == 2
    assert rows[1] == [name, "", "j@example.com", "1", ""]


def test_export_filename(make_gig):
    gig = make_gig(dj_name="  DJ   Big Name ", date=date(2024, 3, 23))
    assert export_filename(gig) == "guestlist-dj-big-name-2024-03-23.csv"


def test_export_filename_falls_back_to_slug(make_gig):
    gig = make_gig(dj_name='"/"', date=date(2024, 3, 23))
    assert export_filename(gig) == f"guestlist-{gig.slug}-2024-03-23.csv"


def test_full_export_lists_all_guests_and_sets_watermark(db_session, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Ana")
    add_guest(gig, name="Ben")
    assert gig.last_exported_at is None

    export = export_gig(db_session, gig)

    assert export.guest_count == 2
    assert len(export.content.splitlines()) == 3
    db_session.refresh(gig)
    assert gig.last_exported_at is not None


def test_new_only_export_uses_watermark(db_session, make_gig, add_guest):
    gig = make_gig()
    old = add_guest(gig, name="Old")
    new = add_guest(gig, name="New")
    old.created_at = new.created_at - timedelta(hours=2)
    gig.last_exported_at = new.created_at - timedelta(hours=1)
    db_session.commit()

    assert [g.name for g in guests_for_export(db_session, gig, new_only=True)] == ["New"]
    assert [g.name for g in guests_for_export(db_session, gig)] == ["Old", "New"]


def test_new_only_without_watermark_exports_everything(db_session, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Ana")
    export = export_gig(db_session, gig, new_only=True)
    assert export.guest_count == 1


def test_new_only_export_also_advances_watermark(db_session, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Ana")
    export_gig(db_session, gig)
    first_mark = gig.last_exported_at

    add_guest(gig, name="Ben")
    export = export_gig(db_session, gig, new_only=True)

    assert export.guest_count == 1
    assert "Ben" in export.content
    assert gig.last_exported_at >= first_mark
    assert guests_for_export(db_session, gig, new_only=True) == []


def test_export_filename_is_ascii(make_gig):
    gig = make_gig(dj_name="Łukasz 東京", date=date(2024, 3, 23))
    assert export_filename(gig) == "guestlist-ukasz-2024-03-23.csv"


def test_guest_arriving_during_export_is_in_next_new_only_export(db_session, make_gig, add_guest, monkeypatch):
    gig = make_gig()
    snapshot = utcnow() - timedelta(minutes=1)
    early = add_guest(gig, name="Early")
    late = add_guest(gig, name="Late")
    early.created_at = snapshot - timedelta(seconds=1)
    late.created_at = snapshot + timedelta(seconds=1)
    db_session.commit()

    monkeypatch.setattr("guestlist.services.csv_export.utcnow", lambda: snapshot)
    first = export_gig(db_session, gig)
    monkeypatch.undo()

    assert [row.split(",")[0] for row in first.content.splitlines()[1:]] == ["Early"]
    assert gig.last_exported_at == snapshot

    second = export_gig(db_session, gig, new_only=True)
    assert second.guest_count == 1
    assert "Late" in second.content
