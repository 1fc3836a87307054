"""
API tests for version endpoints
"""
from uuid import uuid4

import pytest


@pytest.fixture
def repo_id(client, auth_headers):
    r = client.post("/api/repo/create", json={"repoName": "My Prompt Repo"}, headers=auth_headers())
    assert r.status_code == 201
    return r.json()["data"]["id"]


def _add_version(client, repo_id, headers, **fields):
    return client.post(f"/api/repositories/{repo_id}/versions", json=fields, headers=headers)


def test_create_and_list_versions(client, repo_id, auth_headers):
    r = _add_version(
        client, repo_id, auth_headers(),
        prompt_text="Write a haiku about {{topic}}", variables={"topic": "string"}, notes="v1",
    )
    assert r.status_code == 201
    assert r.json()["version_number"] == 1
    assert r.json()["variables"] == {"topic": "string"}

    r = _add_version(client, repo_id, auth_headers(sub="user_bob"), prompt_text="Write a limerick")
    assert r.status_code == 201
    assert r.json()["version_number"] == 2
    assert r.json()["user_id"] == "user_bob"

    r = client.get(f"/api/repositories/{repo_id}/versions")
    assert r.status_code == 200
    history = r.json()
    assert [entry["version_number"] for entry in history] == [2, 1]
    assert history[0]["editor"] is None


def test_create_version_requires_auth(client, repo_id):
    r = _add_version(client, repo_id, {}, prompt_text="Anonymous")
    assert r.status_code == 401


def test_create_version_requires_prompt_text(client, repo_id, auth_headers):
    r = _add_version(client, repo_id, auth_headers(), prompt_text="  ")
    assert r.status_code == 400
    assert r.json() == {"error": "Prompt text is required"}


def test_create_version_unknown_repository(client, auth_headers):
    r = _add_version(client, uuid4(), auth_headers(), prompt_text="Orphan")
    assert r.status_code == 404


def test_rollback(client, repo_id, auth_headers):
    v1 = _add_version(client, repo_id, auth_headers(), prompt_text="A", notes="first").json()
    _add_version(client, repo_id, auth_headers(), prompt_text="B")

    r = client.post(f"/api/repositories/{repo_id}/versions/{v1['id']}/rollback", headers=auth_headers())

    assert r.status_code == 201
    v3 = r.json()
    assert v3["version_number"] == 3
    assert v3["prompt_text"] == "A"
    assert v3["notes"] == f"Rolled back to version 1 (ID: {v1['id']}). Original notes: first"

    history = client.get(f"/api/repositories/{repo_id}/versions").json()
    assert [entry["prompt_text"] for entry in history] == ["A", "B", "A"]


def test_rollback_requires_auth(client, repo_id, auth_headers):
    v1 = _add_version(client, repo_id, auth_headers(), prompt_text="A").json()

    r = client.post(f"/api/repositories/{repo_id}/versions/{v1['id']}/rollback")
    assert r.status_code == 401


def test_rollback_unknown_version(client, repo_id, auth_headers):
    r = client.post(f"/api/repositories/{repo_id}/versions/{uuid4()}/rollback", headers=auth_headers())
    assert r.status_code == 404
    assert r.json() == {"error": "Target version not found"}


def test_compare(client, repo_id, auth_headers):
    _add_version(client, repo_id, auth_headers(), prompt_text="Be brief.")
    _add_version(client, repo_id, auth_headers(), prompt_text="Be very brief.", model_settings={"temperature": 0})

    r = client.get(f"/api/repositories/{repo_id}/versions/compare", params={"from": 1, "to": 2})

    assert r.status_code == 200
    body = r.json()
    assert body["from"]["version_number"] == 1
    assert body["to"]["version_number"] == 2
    assert body["prompt_text"]["changed"] is True
    inserted = "".join(span["text"] for span in body["prompt_text"]["spans"] if span["op"] == "insert")
    assert inserted.strip() == "very"
    assert body["model_settings"]["changed"] is True
    assert body["variables"]["changed"] is False


def test_compare_missing_version(client, repo_id, auth_headers):
    _add_version(client, repo_id, auth_headers(), prompt_text="Only one")

    r = client.get(f"/api/repositories/{repo_id}/versions/compare", params={"from": 1, "to": 5})
    assert r.status_code == 404
    assert r.json() == {"error": "Version 5 not found"}


def test_download(client, repo_id, auth_headers):
    version = _add_version(client, repo_id, auth_headers(), prompt_text="Download me").json()

    r = client.get(f"/api/repositories/{repo_id}/versions/{version['id']}/download")

    assert r.status_code == 200
    assert r.text == "Download me"
    assert r.headers["content-type"].startswith("text/plain")
    assert "My_Prompt_Repo_v1.txt" in r.headers["content-disposition"]


def test_private_repository_versions_hidden(client, auth_headers):
    repo_id = client.post(
        "/api/repo/create", json={"repoName": "Private", "is_public": False}, headers=auth_headers()
    ).json()["data"]["id"]
    _add_version(client, repo_id, auth_headers(), prompt_text="Secret")

    assert client.get(f"/api/repositories/{repo_id}/versions").status_code == 404
    assert client.get(f"/api/repositories/{repo_id}/versions", headers=auth_headers()).status_code == 200
    r = _add_version(client, repo_id, auth_headers(sub="user_bob"), prompt_text="Intrusion")
    assert r.status_code == 404


def test_compare_rejects_huge_version_number(client, repo_id):
    r = client.get(f"/api/repositories/{repo_id}/versions/compare", params={"from": 1, "to": 10**19})
    assert r.status_code == 400
