from __future__ import annotations

from bson import ObjectId

ALICE = "alice@example.com"
BOB = "bob@example.com"
CAROL = "carol@example.com"


def _apply(client, auth_headers, email: str, post_id: str, **fields) -> dict:
    r = client.post("/applications", json={"volunteerPostId": post_id, **fields}, headers=auth_headers(email))
    assert r.status_code == 201, r.text
    return r.json()


def test_create_takes_applicant_from_token(client, make_post, auth_headers) -> None:
    post_id = make_post(ALICE)
    app = _apply(client, auth_headers, BOB, post_id, message="Happy to help", status="approved")

    assert app["userEmail"] == BOB
    assert app["volunteerPostId"] == post_id
    assert app["message"] == "Happy to help"
    # clients cannot pick their own status
    assert app["status"] == "requested"
    assert "createdAt" in app and "updatedAt" in app
    assert ObjectId.is_valid(app["id"])


def test_create_requires_token(client) -> None:
    r = client.post("/applications", json={"volunteerPostId": "abc"})
    assert r.status_code == 401


def test_create_rejects_foreign_user_email(client, auth_headers) -> None:
    r = client.post(
        "/applications",
        json={"volunteerPostId": "abc", "userEmail": ALICE},
        headers=auth_headers(BOB),
    )
    assert r.status_code == 403


def test_create_does_not_check_post_reference(client, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, "no-such-post")
    assert app["volunteerPostId"] == "no-such-post"


def test_list_returns_only_callers_records(client, make_post, auth_headers) -> None:
    post_id = make_post(CAROL)
    _apply(client, auth_headers, ALICE, post_id)
    _apply(client, auth_headers, BOB, post_id)
    _apply(client, auth_headers, BOB, post_id)

    r = client.get("/applications", headers=auth_headers(ALICE))
    assert r.status_code == 200
    assert [a["userEmail"] for a in r.json()] == [ALICE]

    # a query parameter cannot widen the read
    r = client.get("/applications", params={"userEmail": BOB}, headers=auth_headers(ALICE))
    assert [a["userEmail"] for a in r.json()] == [ALICE]

    r = client.get("/applications", headers=auth_headers(BOB))
    assert len(r.json()) == 2


def test_list_requires_valid_token(client) -> None:
    assert client.get("/applications").status_code == 401
    assert client.get("/applications", headers={"Authorization": "Bearer junk"}).status_code == 403


def test_read_single_application(client, make_post, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, make_post(ALICE))

    r = client.get(f"/applications/{app['id']}", headers=auth_headers(BOB))
    assert r.status_code == 200
    fetched = r.json()
    assert {k: fetched[k] for k in ("id", "userEmail", "volunteerPostId", "status")} == {
        k: app[k] for k in ("id", "userEmail", "volunteerPostId", "status")
    }

    assert client.get(f"/applications/{app['id']}", headers=auth_headers(CAROL)).status_code == 403
    assert client.get(f"/applications/{ObjectId()}", headers=auth_headers(BOB)).status_code == 404
    assert client.get("/applications/bad-id", headers=auth_headers(BOB)).status_code == 400


def test_only_applicant_can_delete(client, make_post, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, make_post(ALICE))

    assert client.delete(f"/applications/{app['id']}").status_code == 401
    assert client.delete(f"/applications/{app['id']}", headers=auth_headers(CAROL)).status_code == 403

    r = client.delete(f"/applications/{app['id']}", headers=auth_headers(BOB))
    assert r.status_code == 200
    assert r.json() == {"message": "Application deleted successfully"}
    assert client.get("/applications", headers=auth_headers(BOB)).json() == []


def test_delete_unknown_or_malformed_id(client, auth_headers) -> None:
    assert client.delete(f"/applications/{ObjectId()}", headers=auth_headers(BOB)).status_code == 404
    assert client.delete("/applications/bad-id", headers=auth_headers(BOB)).status_code == 400


def test_organizer_sets_status(client, make_post, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, make_post(ALICE))

    r = client.patch(f"/applications/{app['id']}/status", json={"status": "approved"}, headers=auth_headers(ALICE))
    assert r.status_code == 200
    assert r.json()["status"] == "approved"

    mine = client.get(f"/applications/{app['id']}", headers=auth_headers(BOB)).json()
    assert mine["status"] == "approved"


def test_applicant_cannot_set_status(client, make_post, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, make_post(ALICE))
    r = client.patch(f"/applications/{app['id']}/status", json={"status": "approved"}, headers=auth_headers(BOB))
    assert r.status_code == 403
    assert client.get(f"/applications/{app['id']}", headers=auth_headers(BOB)).json()["status"] == "requested"


def test_status_update_validation(client, make_post, auth_headers) -> None:
    app = _apply(client, auth_headers, BOB, make_post(ALICE))
    r = client.patch(f"/applications/{app['id']}/status", json={"status": "maybe"}, headers=auth_headers(ALICE))
    assert r.status_code == 400

    dangling = _apply(client, auth_headers, BOB, str(ObjectId()))
    r = client.patch(f"/applications/{dangling['id']}/status", json={"status": "rejected"}, headers=auth_headers(ALICE))
    assert r.status_code == 404
    assert r.json() == {"error": "Volunteer post not found"}
