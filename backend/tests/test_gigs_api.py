"""Organizer endpoints for gigs: auth gate, lifecycle, batch creation, export."""

from datetime import timedelta

import pytest

from guestlist.models.gig import Gig
from guestlist.models.guest import Guest


@pytest.mark.parametrize("method,path", [
    ("get", "/api/gigs"),
    ("post", "/api/gigs"),
    ("post", "/api/gigs/batch"),
    ("patch", "/api/gigs/anything"),
    ("delete", "/api/gigs/anything"),
    ("post", "/api/gigs/anything/close"),
    ("get", "/api/gigs/anything/guests"),
    ("get", "/api/gigs/anything/csv"),
    ("patch", "/api/guests/1"),
    ("delete", "/api/guests/1"),
])
def test_admin_routes_require_session(client, method, path):
    kwargs = {"json": {}} if method in ("post", "patch") else {}
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_forged_cookie_is_rejected(client):
    client.cookies.set("auth_session", "Zm9yZ2VkOjE6YWJj")
    assert client.get("/api/gigs").status_code == 401


def test_create_gig(auth_client, db_session):
    response = auth_client.post("/api/gigs", json={
        "date": "2030-06-01",
        "djName": "  DJ Fresh ",
        "venueName": "Main Room",
        "guestCap": 50,
    })

    assert response.status_code == 201
    body = response.json()
    assert len(body["slug"]) == 10
    assert body["djName"] == "DJ Fresh"
    assert body["guestCap"] == 50
    assert body["maxPerSignup"] == 10
    assert body["isClosed"] is False
    assert body["lastExportedAt"] is None
    assert db_session.query(Gig).count() == 1


def test_create_gig_defaults_to_unlimited(auth_client):
    body = auth_client.post("/api/gigs", json={"date": "2030-06-01", "djName": "DJ"}).json()
    assert body["guestCap"] is None


def test_create_gig_requires_date_and_name(auth_client, db_session):
    assert auth_client.post("/api/gigs", json={"djName": "DJ"}).status_code == 400
    assert auth_client.post("/api/gigs", json={"date": "2030-06-01"}).status_code == 400
    assert auth_client.post("/api/gigs", json={"date": "2030-06-01", "djName": "  "}).status_code == 400
    assert db_session.query(Gig).count() == 0


def test_list_gigs_with_counts(auth_client, db_session, make_gig, add_guest):
    import datetime as dt

    older = make_gig(date=dt.date(2030, 1, 1))
    newer = make_gig(date=dt.date(2030, 2, 1))
    first = add_guest(newer, name="Ana", quantity=3)
    second = add_guest(newer, name="Ben", quantity=2)
    newer.last_exported_at = first.created_at
    second.created_at = first.created_at + timedelta(minutes=5)
    db_session.commit()

    response = auth_client.get("/api/gigs")

    assert response.status_code == 200
    body = response.json()
    assert [g["slug"] for g in body] == [newer.slug, older.slug]
    assert body[0]["totalGuests"] == 5
    assert body[0]["signUpCount"] == 2
    assert body[0]["newGuestCount"] == 1
    assert body[1]["totalGuests"] == 0
    assert body[1]["newGuestCount"] == 0


def test_batch_create(auth_client, db_session):
    response = auth_client.post("/api/gigs/batch", json={"gigs": [
        {"date": "2030-03-01", "djName": "DJ One"},
        {"date": "2030-03-08", "djName": "DJ Two", "guestCap": 20, "maxPerSignup": 4},
    ]})

    assert response.status_code == 201
    body = response.json()
    assert body["count"] == 2
    assert body["gigs"][0]["guestCap"] == 75
    assert body["gigs"][0]["maxPerSignup"] == 10
    assert body["gigs"][1]["guestCap"] == 20
    assert body["gigs"][1]["maxPerSignup"] == 4
    assert len({g["slug"] for g in body["gigs"]}) == 2
    assert db_session.query(Gig).count() == 2


def test_batch_is_all_or_nothing(auth_client, db_session):
    response = auth_client.post("/api/gigs/batch", json={"gigs": [
        {"date": "2030-03-01", "djName": "DJ One"},
        {"djName": "No Date"},
        {"date": "2030-03-15", "djName": "   "},
    ]})

    assert response.status_code == 400
    assert response.json()["details"] == [
        "Gig at index 1 is missing date",
        "Gig at index 2 is missing djName",
    ]
    assert db_session.query(Gig).count() == 0


def test_batch_requires_items(auth_client):
    response = auth_client.post("/api/gigs/batch", json={"gigs": []})
    assert response.status_code == 400
    assert response.json()["error"] == "gigs array is required and must not be empty"


def test_patch_updates_fields(auth_client, make_gig):
    gig = make_gig()

    response = auth_client.patch(f"/api/gigs/{gig.slug}", json={
        "djName": "Renamed",
        "maxPerSignup": 2,
        "guestCap": 40,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["djName"] == "Renamed"
    assert body["maxPerSignup"] == 2
    assert body["guestCap"] == 40


def test_patch_rejects_cap_below_total(auth_client, db_session, make_gig, add_guest):
    gig = make_gig(guest_cap=10)
    add_guest(gig, quantity=6)

    response = auth_client.patch(f"/api/gigs/{gig.slug}", json={"guestCap": 5})

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot set guest cap below current guest count (6)"
    db_session.expire_all()
    assert db_session.get(Gig, gig.id).guest_cap == 10


def test_patch_cap_equal_to_total_and_null_cap(auth_client, make_gig, add_guest):
    gig = make_gig(guest_cap=10)
    add_guest(gig, quantity=6)

    assert auth_client.patch(f"/api/gigs/{gig.slug}", json={"guestCap": 6}).json()["guestCap"] == 6
    assert auth_client.patch(f"/api/gigs/{gig.slug}", json={"guestCap": None}).json()["guestCap"] is None


def test_patch_cannot_clear_required_field(auth_client, make_gig):
    gig = make_gig()
    assert auth_client.patch(f"/api/gigs/{gig.slug}", json={"djName": None}).status_code == 400


def test_patch_unknown_gig(auth_client):
    assert auth_client.patch("/api/gigs/missing", json={"djName": "x"}).status_code == 404


def test_close_and_reopen(auth_client, client, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Before")

    assert auth_client.post(f"/api/gigs/{gig.slug}/close").json()["isClosed"] is True
    closed = auth_client.post(f"/api/gigs/{gig.slug}/guests", json={
        "name": "Late", "email": "late@example.com", "quantity": 1,
    })
    assert closed.status_code == 400

    assert auth_client.post(f"/api/gigs/{gig.slug}/reopen").json()["isClosed"] is False
    reopened = auth_client.post(f"/api/gigs/{gig.slug}/guests", json={
        "name": "Late", "email": "late@example.com", "quantity": 1,
    })
    assert reopened.status_code == 201
    assert len(auth_client.get(f"/api/gigs/{gig.slug}/guests").json()) == 2


def test_patch_is_closed(auth_client, make_gig):
    gig = make_gig()
    assert auth_client.patch(f"/api/gigs/{gig.slug}", json={"isClosed": True}).json()["isClosed"] is True


def test_delete_cascades_to_guests(auth_client, db_session, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Ana")
    add_guest(gig, name="Ben")

    response = auth_client.delete(f"/api/gigs/{gig.slug}")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    db_session.expire_all()
    assert db_session.query(Gig).count() == 0
    assert db_session.query(Guest).count() == 0
    assert auth_client.delete(f"/api/gigs/{gig.slug}").status_code == 404


def test_guest_list_in_creation_order(auth_client, make_gig, add_guest):
    gig = make_gig()
    for name in ("Ana", "Ben", "Cy"):
        add_guest(gig, name=name)

    body = auth_client.get(f"/api/gigs/{gig.slug}/guests").json()

    assert [g["name"] for g in body] == ["Ana", "Ben", "Cy"]


def test_csv_download(auth_client, db_session, make_gig, add_guest):
    import datetime as dt

    gig = make_gig(dj_name="DJ Test", date=dt.date(2030, 5, 17))
    add_guest(gig, name="Ana", email="ana@example.com", quantity=2)

    response = auth_client.get(f"/api/gigs/{gig.slug}/csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="guestlist-dj-test-2030-05-17.csv"'
    assert response.text.splitlines() == ["Name,Company,Email,Quantity,Type", "Ana,,ana@example.com,2,"]
    db_session.expire_all()
    assert db_session.get(Gig, gig.id).last_exported_at is not None


def test_csv_new_only(auth_client, make_gig, add_guest):
    gig = make_gig()
    add_guest(gig, name="Ana")
    auth_client.get(f"/api/gigs/{gig.slug}/csv")
    add_guest(gig, name="Ben")

    lines = auth_client.get(f"/api/gigs/{gig.slug}/csv?newOnly=true").text.splitlines()

    assert lines[1:] == ["Ben,,ben@example.com,1,"]
    assert len(auth_client.get(f"/api/gigs/{gig.slug}/csv?newOnly=true").text.splitlines()) == 1


def test_csv_unknown_gig(auth_client):
    assert auth_client.get("/api/gigs/missing/csv").status_code == 404


def test_create_gig_slug_collision_is_conflict(auth_client, make_gig, monkeypatch):
    taken = make_gig().slug
    monkeypatch.setattr("guestlist.services.gig_lifecycle.unique_slug", lambda db: taken)

    response = auth_client.post("/api/gigs", json={"date": "2030-06-01", "djName": "DJ"})

    assert response.status_code == 409
    assert response.json() == {"error": "Could not allocate a unique gig link, please retry"}


def test_csv_download_with_non_ascii_dj_name(auth_client, db_session, make_gig, add_guest):
    import datetime as dt

    gig = make_gig(dj_name="Łukasz 東京", date=dt.date(2030, 5, 17))
    add_guest(gig, name="Zoë", email="zoe@example.com")

    response = auth_client.get(f"/api/gigs/{gig.slug}/csv")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="guestlist-ukasz-2030-05-17.csv"'
    assert "Zoë,,zoe@example.com,1," in response.text
    db_session.expire_all()
    assert db_session.get(Gig, gig.id).last_exported_at is not None
