"""
Integration tests for the HTTP API.

The application runs in-process over httpx with the database, notifier and
storage dependencies pointed at the test fixtures.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.dependencies import get_notifier, get_storage
from api.main import app
from core.security import create_access_token
from database.engine import get_db
from tests.conftest import PDF_BYTES, PDF_CONTENT_TYPE, TEST_PASSWORD

BASE = "/api/v1"


@pytest_asyncio.fixture
async def client(session_factory, seed, notifier, storage):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


def auth(seed, key: str) -> dict:
    user = seed.users[key]
    role = {v: k for k, v in seed.roles.items()}[user.role_id]
    return {"Authorization": f"Bearer {create_access_token(user.id, role)}"}


def create_body(seed, **overrides) -> dict:
    body = seed.create_payload(**overrides)
    if body["closing_date"] is None:
        body.pop("closing_date")
    return body


async def create_pr(client, seed, **overrides) -> dict:
    response = await client.post(
        f"{BASE}/people-requisitions",
        json=create_body(seed, **overrides),
        headers=auth(seed, "hrbp"),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def approve_pr(client, seed, pr_id: int) -> dict:
    response = await client.put(
        f"{BASE}/people-requisitions/{pr_id}/approve", headers=auth(seed, "hrbp")
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestAuthentication:
    """Login and bearer token handling."""

    @pytest.mark.asyncio
    async def test_login_then_call_api(self, client, seed):
        login = await client.post(
            f"{BASE}/auth/login",
            json={"email": "rita@rhub.io", "password": TEST_PASSWORD},
        )
        assert login.status_code == 200
        token = login.json()["access_token"]

        response = await client.get(
            f"{BASE}/people-requisitions",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_bad_credentials(self, client, seed):
        response = await client.post(
            f"{BASE}/auth/login",
            json={"email": "rita@rhub.io", "password": "nope"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}])
    async def test_missing_or_bad_token(self, client, seed, headers):
        response = await client.get(f"{BASE}/people-requisitions", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"


class TestPeopleRequisitionEndpoints:
    """People requisition routes."""

    @pytest.mark.asyncio
    async def test_create(self, client, seed, notifier):
        pr = await create_pr(client, seed, closing_date="2030-01-31")

        assert pr["job_code"] == "SSE001"
        assert pr["status"] == "open"
        assert pr["closing_date"] == "2030-01-31"
        assert pr["recruiter"]["user_code"] == "RHUB-003"
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_create_requires_hrbp(self, client, seed):
        response = await client.post(
            f"{BASE}/people-requisitions",
            json=create_body(seed),
            headers=auth(seed, "recruiter"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_duplicate(self, client, seed):
        await create_pr(client, seed)

        response = await client.post(
            f"{BASE}/people-requisitions",
            json=create_body(seed),
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_create_invalid_reference(self, client, seed):
        response = await client.post(
            f"{BASE}/people-requisitions",
            json=create_body(seed, recruiter_id=seed.users["panel"].id),
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "One or more provided fields are invalid."

    @pytest.mark.asyncio
    async def test_create_missing_field(self, client, seed):
        body = create_body(seed)
        body.pop("recruiter_id")

        response = await client.post(
            f"{BASE}/people-requisitions", json=body, headers=auth(seed, "hrbp")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_recruiter_sees_only_after_approval(self, client, seed, notifier):
        pr = await create_pr(client, seed)
        url = f"{BASE}/people-requisitions/{pr['id']}"

        hidden = await client.get(url, headers=auth(seed, "recruiter"))
        assert hidden.status_code == 404

        await approve_pr(client, seed, pr["id"])
        visible = await client.get(url, headers=auth(seed, "recruiter"))

        assert visible.status_code == 200
        assert visible.json()["is_approved_by_hrbp"] is True
        assert notifier.templates() == ["prApprovalEmail"]

    @pytest.mark.asyncio
    async def test_second_approval_conflicts(self, client, seed):
        pr = await create_pr(client, seed)
        await approve_pr(client, seed, pr["id"])

        response = await client.put(
            f"{BASE}/people-requisitions/{pr['id']}/approve", headers=auth(seed, "hrbp")
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unassigned_user_forbidden(self, client, seed):
        pr = await create_pr(client, seed)

        response = await client.get(
            f"{BASE}/people-requisitions/{pr['id']}", headers=auth(seed, "hrbp2")
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_edit(self, client, seed):
        pr = await create_pr(client, seed)

        response = await client.put(
            f"{BASE}/people-requisitions/{pr['id']}",
            json={"prf_number": "PRF-77"},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 200
        assert response.json()["prf_number"] == "PRF-77"

    @pytest.mark.asyncio
    async def test_edit_unlisted_field_forbidden(self, client, seed):
        pr = await create_pr(client, seed)

        response = await client.put(
            f"{BASE}/people-requisitions/{pr['id']}",
            json={"job_code": "SSE999"},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == (
            "You do not have permission to edit the job_code field."
        )

    @pytest.mark.asyncio
    async def test_recruiter_cannot_reassign(self, client, seed):
        pr = await create_pr(client, seed)
        await approve_pr(client, seed, pr["id"])

        response = await client.put(
            f"{BASE}/people-requisitions/{pr['id']}",
            json={"recruiter_id": seed.users["recruiter"].id},
            headers=auth(seed, "recruiter"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_status_change(self, client, seed):
        pr = await create_pr(client, seed)

        on_hold = await client.patch(
            f"{BASE}/people-requisitions/{pr['id']}/status",
            json={"status": "onhold"},
            headers=auth(seed, "hrbp"),
        )
        invalid = await client.patch(
            f"{BASE}/people-requisitions/{pr['id']}/status",
            json={"status": "completed"},
            headers=auth(seed, "hrbp"),
        )

        assert on_hold.status_code == 200
        assert on_hold.json()["status"] == "onhold"
        assert invalid.status_code == 400
        assert invalid.json()["error"]["message"] == (
            "As a HRBP, you cannot change the status from onhold to completed."
        )

    @pytest.mark.asyncio
    async def test_delete(self, client, seed):
        pr = await create_pr(client, seed)
        url = f"{BASE}/people-requisitions/{pr['id']}"

        deleted = await client.delete(url, headers=auth(seed, "hrbp"))
        again = await client.delete(url, headers=auth(seed, "hrbp"))
        fetched = await client.get(url, headers=auth(seed, "hrbp"))

        assert deleted.status_code == 200
        assert deleted.json() == {"message": "People Requisition deleted successfully."}
        assert again.status_code == 409
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters(self, client, seed):
        await create_pr(client, seed)
        await create_pr(client, seed, job_position_id=seed.job_positions["Data Analyst"])

        response = await client.get(
            f"{BASE}/people-requisitions",
            params={"search": "da", "status": "open", "sort_by": "job_code", "order_by": "asc"},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 200
        body = response.json()
        assert [pr["job_code"] for pr in body["data"]] == ["DA001"]
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [
        {"sort_by": "password"},
        {"order_by": "sideways"},
        {"status": "archived"},
        {"limit": 0},
    ])
    async def test_list_rejects_bad_query(self, client, seed, params):
        response = await client.get(
            f"{BASE}/people-requisitions", params=params, headers=auth(seed, "hrbp")
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_panel_cannot_list(self, client, seed):
        response = await client.get(f"{BASE}/people-requisitions", headers=auth(seed, "panel"))

        assert response.status_code == 403


class TestJobDescriptionEndpoints:
    """Upload and download of job description files."""

    @pytest.mark.asyncio
    async def test_upload_and_download(self, client, seed, notifier):
        pr = await create_pr(client, seed)
        await approve_pr(client, seed, pr["id"])

        uploaded = await client.post(
            f"{BASE}/people-requisitions/{pr['id']}/upload-jd",
            files={"jobDescription": ("job description.pdf", PDF_BYTES, PDF_CONTENT_TYPE)},
            headers=auth(seed, "recruiter"),
        )
        assert uploaded.status_code == 200, uploaded.text
        assert uploaded.json()["jd_file_name"] == "job_description.pdf"
        assert notifier.templates()[-1] == "jdUploadedEmail"

        downloaded = await client.get(
            f"{BASE}/people-requisitions/{pr['id']}/download-jd",
            headers=auth(seed, "hrbp"),
        )
        assert downloaded.status_code == 200
        assert downloaded.content == PDF_BYTES
        assert "job_description.pdf" in downloaded.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_upload_wrong_type(self, client, seed, storage):
        pr = await create_pr(client, seed)
        await approve_pr(client, seed, pr["id"])

        response = await client.post(
            f"{BASE}/people-requisitions/{pr['id']}/upload-jd",
            files={"jobDescription": ("notes.txt", b"hello", "text/plain")},
            headers=auth(seed, "recruiter"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Only .pdf, .doc, and .docx files are allowed."
        assert list(storage.base_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_upload_without_file(self, client, seed):
        pr = await create_pr(client, seed)

        response = await client.post(
            f"{BASE}/people-requisitions/{pr['id']}/upload-jd",
            headers=auth(seed, "recruiter"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No file was uploaded."

    @pytest.mark.asyncio
    async def test_upload_by_hrbp_forbidden_and_discarded(self, client, seed, storage):
        pr = await create_pr(client, seed)

        response = await client.post(
            f"{BASE}/people-requisitions/{pr['id']}/upload-jd",
            files={"jobDescription": ("jd.pdf", PDF_BYTES, PDF_CONTENT_TYPE)},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 403
        assert list(storage.base_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_without_file(self, client, seed):
        pr = await create_pr(client, seed)

        response = await client.get(
            f"{BASE}/people-requisitions/{pr['id']}/download-jd",
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 404


class TestMasterDataEndpoints:
    """Department, role, job position and nature of employment routes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path,total", [
        ("departments", 2),
        ("roles", 3),
        ("job-positions", 2),
        ("natures-of-employment", 2),
    ])
    async def test_list(self, client, seed, path, total):
        response = await client.get(f"{BASE}/{path}", headers=auth(seed, "panel"))

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == total

    @pytest.mark.asyncio
    async def test_create_requires_hrbp(self, client, seed):
        response = await client.post(
            f"{BASE}/departments", json={"name": "Legal"}, headers=auth(seed, "recruiter")
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_rename_delete(self, client, seed):
        created = await client.post(
            f"{BASE}/departments", json={"name": "legal"}, headers=auth(seed, "hrbp")
        )
        assert created.status_code == 201
        department_id = created.json()["id"]
        assert created.json()["name"] == "Legal"

        renamed = await client.put(
            f"{BASE}/departments/{department_id}",
            json={"name": "legal affairs"},
            headers=auth(seed, "hrbp"),
        )
        assert renamed.json()["name"] == "Legal Affairs"

        deleted = await client.delete(
            f"{BASE}/departments/{department_id}", headers=auth(seed, "hrbp")
        )
        assert deleted.json() == {"message": "Department deleted successfully."}

        missing = await client.get(
            f"{BASE}/departments/{department_id}", headers=auth(seed, "hrbp")
        )
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_referenced_position_conflicts(self, client, seed):
        await create_pr(client, seed)

        response = await client.delete(
            f"{BASE}/job-positions/{seed.job_positions['Senior Software Engineer']}",
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_created_role_keeps_case(self, client, seed):
        response = await client.post(
            f"{BASE}/roles", json={"name": " TA "}, headers=auth(seed, "hrbp")
        )

        assert response.status_code == 201
        assert response.json()["name"] == "TA"


class TestUserEndpoints:
    """User routes."""

    @pytest.mark.asyncio
    async def test_create_user(self, client, seed, notifier):
        response = await client.post(
            f"{BASE}/users",
            json={
                "name": "Nina New",
                "email": "nina@rhub.io",
                "department_id": seed.departments["Finance"],
                "role_id": seed.roles["Interview Panel"],
                "job_position_id": seed.job_positions["Data Analyst"],
            },
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 201
        assert response.json()["user_code"] == "RHUB-006"
        assert notifier.templates() == ["welcomeEmail"]

    @pytest.mark.asyncio
    async def test_recruiter_cannot_view_other_recruiter(self, client, seed):
        response = await client.get(
            f"{BASE}/users/{seed.users['recruiter2'].id}", headers=auth(seed, "recruiter")
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_recruiter_user_list(self, client, seed):
        response = await client.get(f"{BASE}/users", headers=auth(seed, "recruiter"))

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 4

    @pytest.mark.asyncio
    async def test_update_user(self, client, seed):
        response = await client.put(
            f"{BASE}/users/{seed.users['panel'].id}",
            json={"name": "Patricia Panel", "role_id": seed.roles["Recruiter"]},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 200, response.text
        assert response.json()["name"] == "Patricia Panel"
        assert response.json()["role"]["name"] == "Recruiter"
        assert response.json()["email"] == "pat@rhub.io"

    @pytest.mark.asyncio
    async def test_update_user_assigned_to_open_pr_conflicts(self, client, seed):
        await create_pr(client, seed)

        response = await client.put(
            f"{BASE}/users/{seed.users['recruiter'].id}",
            json={"role_id": seed.roles["Interview Panel"]},
            headers=auth(seed, "hrbp"),
        )

        assert response.status_code == 409
        assert response.json()["error"]["message"] == (
            "Cannot edit user. They are assigned to active People Requisitions."
        )

    @pytest.mark.asyncio
    async def test_update_user_requires_hrbp(self, client, seed):
        response = await client.put(
            f"{BASE}/users/{seed.users['panel'].id}",
            json={"name": "Pat"},
            headers=auth(seed, "recruiter"),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_user(self, client, seed):
        deleted = await client.delete(
            f"{BASE}/users/{seed.users['panel'].id}", headers=auth(seed, "hrbp")
        )
        assert deleted.json() == {"message": "User deleted successfully."}

        missing = await client.get(
            f"{BASE}/users/{seed.users['panel'].id}", headers=auth(seed, "hrbp")
        )
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_assigned_or_self_refused(self, client, seed):
        await create_pr(client, seed)

        assigned = await client.delete(
            f"{BASE}/users/{seed.users['recruiter'].id}", headers=auth(seed, "hrbp")
        )
        own = await client.delete(
            f"{BASE}/users/{seed.users['hrbp2'].id}", headers=auth(seed, "hrbp2")
        )

        assert assigned.status_code == 409
        assert own.status_code == 403


class TestHealthEndpoints:
    """Liveness checks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", f"{BASE}/health"])
    async def test_health(self, client, path):
        response = await client.get(path)

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
