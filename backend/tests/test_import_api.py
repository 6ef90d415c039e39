"""Calendar upload endpoint."""

import io
import zipfile


def event(uid, summary, dtstart):
    return f"BEGIN:VEVENT\r\nUID:{uid}\r\nDTSTART:{dtstart}\r\nSUMMARY:{summary}\r\nEND:VEVENT\r\n"


def calendar(*events):
    return f"BEGIN:VCALENDAR\r\nVERSION:2.0\r\n{''.join(events)}END:VCALENDAR\r\n".encode()


def upload(client, filename, data, **params):
    return client.post(
        "/api/gigs/import",
        params=params,
        files={"file": (filename, data, "application/octet-stream")},
    )


ICS = calendar(
    event("late", "DJ Late", "20240420T220000"),
    event("early", "DJ Early", "20240301T200000"),
    event("mid", "DJ Mid", "20240315"),
    "BEGIN:VEVENT\r\nUID:broken\r\nSUMMARY:No Start\r\nEND:VEVENT\r\n",
)


def test_import_requires_session(client):
    assert upload(client, "cal.ics", ICS).status_code == 401


def test_import_ics_sorted_with_errors(auth_client, db_session):
    from guestlist.models.gig import Gig

    response = upload(auth_client, "cal.ics", ICS)

    assert response.status_code == 200
    body = response.json()
    assert [e["id"] for e in body["events"]] == ["early", "mid", "late"]
    assert body["events"][0]["djName"] == "DJ Early"
    assert body["events"][0]["date"] == "2024-03-01"
    assert body["events"][1]["start"] == "2024-03-15T00:00:00"
    assert body["errors"] == ["Event missing DTSTART"]
    # Preview only
    assert db_session.query(Gig).count() == 0


def test_import_date_range_inclusive(auth_client):
    response = upload(auth_client, "cal.ics", ICS, start="2024-03-15", end="2024-04-20")

    assert [e["id"] for e in response.json()["events"]] == ["mid", "late"]


def test_import_rejects_inverted_range(auth_client):
    response = upload(auth_client, "cal.ics", ICS, start="2024-05-01", end="2024-04-01")
    assert response.status_code == 400


def test_import_zip(auth_client):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("a.ics", calendar(event("one", "DJ One", "20240601T210000")))
        zf.writestr("b.ics", calendar(event("two", "DJ Two", "20240501T210000")))
        zf.writestr("notes.txt", "ignored")

    response = upload(auth_client, "export.zip", buffer.getvalue())

    assert response.status_code == 200
    assert [e["id"] for e in response.json()["events"]] == ["two", "one"]


def test_import_unsupported_extension(auth_client):
    response = upload(auth_client, "cal.txt", ICS)

    assert response.status_code == 200
    assert response.json() == {
        "events": [],
        "errors": ["Unsupported file format. Please upload a .ics or .zip file"],
    }
