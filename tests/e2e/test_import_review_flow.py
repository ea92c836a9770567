import json

from fastapi.testclient import TestClient

from jobfilter.api.app import create_app


def test_import_edit_save_and_approve(sample_resume: str) -> None:
    client = TestClient(create_app())

    parse_resp = client.post("/api/imports/parse", json={"text": sample_resume})
    assert parse_resp.status_code == 200
    session = parse_resp.json()
    session_id = session["id"]
    assert session["has_usable_draft"] is True
    assert session["profile_suggestion"]["first_name"] == "Jordan"
    assert len(session["destinations"]) == 2

    company = session["draft"]["companies"][0]
    role = company["roles"][0]
    tool = role["tools"][0]
    reject_resp = client.post(
        f"/api/imports/{session_id}/draft",
        json={
            "op": "update_item",
            "company_id": company["id"],
            "role_id": role["id"],
            "item_id": tool["id"],
            "status": "rejected",
        },
    )
    assert reject_resp.status_code == 200
    assert reject_resp.json()["revision"] == 2

    missing_resp = client.post(
        f"/api/imports/{session_id}/draft",
        json={"op": "delete_role", "company_id": company["id"], "role_id": "nope"},
    )
    assert missing_resp.status_code == 404

    save_resp = client.post(f"/api/imports/{session_id}/save")
    assert save_resp.status_code == 200
    assert save_resp.json()["state"] == "saved"
    assert len(save_resp.json()["summary"]["claim_ids"]) == 4

    assert len(client.get("/api/claims").json()) == 4
    bundles = client.get("/api/claims/experiences").json()
    assert {bundle["role"] for bundle in bundles} == {"Growth Lead", "Marketing Manager"}

    approve_resp = client.post("/api/claims/approve", json={})
    assert approve_resp.json() == {"approved": 4}
    assert client.get("/api/claims/review-queue").json() == []

    assert client.post(f"/api/imports/{session_id}/save").status_code == 409
    assert client.post(f"/api/imports/{session_id}/draft", json={"op": "remove_empty"}).status_code == 409

    report_resp = client.get(f"/api/imports/{session_id}/debug-report")
    assert report_resp.status_code == 200
    report = json.loads(report_resp.text)
    assert report["session"]["state"] == "saved"
    assert report["counts"]["items_rejected"] == 1

    assert client.delete(f"/api/imports/{session_id}").status_code == 204
    assert client.get(f"/api/imports/{session_id}").status_code == 404


def test_reparse_and_skip(sample_resume: str) -> None:
    client = TestClient(create_app())
    session_id = client.post("/api/imports/parse", json={"text": sample_resume}).json()["id"]

    reparsed = client.post(f"/api/imports/{session_id}/reparse", json={"mode": "newlines"})
    assert reparsed.status_code == 200
    assert reparsed.json()["id"] == session_id
    assert reparsed.json()["diagnostics"]["mode"] == "newlines"

    skipped = client.post(f"/api/imports/{session_id}/skip")
    assert skipped.json()["state"] == "skipped"
    assert client.post(f"/api/imports/{session_id}/save").status_code == 409


def test_empty_import_cannot_be_saved() -> None:
    client = TestClient(create_app())
    session = client.post("/api/imports/parse", json={"text": ""}).json()

    assert session["has_usable_draft"] is False
    assert session["diagnostics"]["reason_codes"] == ["TEXT_EMPTY"]
    assert session["guidance"]
    assert session["suggested_modes"]
    assert session["diagnostics"]["mode"] not in session["suggested_modes"]
    assert client.post(f"/api/imports/{session['id']}/save").status_code == 400
