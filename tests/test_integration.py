"""
Integration Tests for the Volunteer Hub API
Drives the FastAPI app over ASGI against the in-memory store
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from volunteerhub.main import app
from volunteerhub.database.database import get_db
from volunteerhub.models import Role


# ============================================================================
# FIXTURES
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def client(db_session):
    """Create test client with database override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def as_user(actor):
    return {"X-User-Id": str(actor.user_id)}


@pytest.fixture
def sample_project_data():
    return {
        "name": "Generators for the district hospital",
        "description": "Two diesel generators",
        "target_amount": 1000.0,
    }


async def create_approved_project(client, coordinator, moderator, data):
    response = await client.post("/projects", json=data, headers=as_user(coordinator))
    assert response.status_code == 201
    project_id = response.json()["id"]
    response = await client.post(
        f"/projects/{project_id}/moderate",
        json={"status": "approved", "comment": "ok"},
        headers=as_user(moderator),
    )
    assert response.status_code == 200
    return project_id


# ============================================================================
# HEALTH
# ============================================================================

class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, client):
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text


# ============================================================================
# ACTING USER
# ============================================================================

class TestActingUser:
    @pytest.mark.asyncio
    async def test_missing_header_is_unauthenticated(self, client, sample_project_data):
        response = await client.post("/projects", json=sample_project_data)
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_unknown_user_is_unauthenticated(self, client, sample_project_data):
        response = await client.post("/projects", json=sample_project_data, headers={"X-User-Id": "999"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_blocked_user_is_forbidden(self, client, db_session, make_user, admin, sample_project_data):
        coordinator = make_user(db_session, "blocked_coordinator", Role.COORDINATOR)
        response = await client.post(f"/users/{coordinator.user_id}/block", headers=as_user(admin))
        assert response.status_code == 200
        assert response.json()["is_blocked"] is True

        response = await client.post("/projects", json=sample_project_data, headers=as_user(coordinator))
        assert response.status_code == 403


# ============================================================================
# USERS
# ============================================================================

class TestUsers:
    @pytest.mark.asyncio
    async def test_register_and_admin_listing(self, client, admin, volunteer):
        response = await client.post(
            "/users",
            json={"username": "olena", "email": "olena@example.org", "role": "volunteer"},
        )
        assert response.status_code == 201
        assert response.json()["role"] == "volunteer"
        assert response.json()["is_verified"] is False

        response = await client.get("/users", headers=as_user(admin))
        assert response.status_code == 200
        assert response.json()["total"] == 3

        response = await client.get("/users", headers=as_user(volunteer))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_staff_roles_cannot_self_register(self, client):
        response = await client.post(
            "/users",
            json={"username": "root", "email": "root@example.org", "role": "admin"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, client, volunteer):
        response = await client.post(
            "/users",
            json={"username": "volunteer", "email": "someone@example.org", "role": "donor"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_admin_cannot_be_blocked(self, client, db_session, make_user, admin):
        other_admin = make_user(db_session, "other_admin", Role.ADMIN)
        response = await client.post(f"/users/{other_admin.user_id}/block", headers=as_user(admin))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_verify_user(self, client, admin, coordinator):
        response = await client.post(f"/users/{coordinator.user_id}/verify", headers=as_user(admin))
        assert response.status_code == 200
        assert response.json()["is_verified"] is True


# ============================================================================
# PROJECT LIFECYCLE
# ============================================================================

class TestProjectLifecycleAPI:
    @pytest.mark.asyncio
    async def test_pending_project_hidden_until_approved(self, client, coordinator, moderator, donor, sample_project_data):
        response = await client.post("/projects", json=sample_project_data, headers=as_user(coordinator))
        assert response.status_code == 201
        project = response.json()
        assert project["status"] == "funding"
        assert project["moderation_status"] == "pending"
        assert project["collected_amount"] == 0

        response = await client.get(f"/projects/{project['id']}", headers=as_user(donor))
        assert response.status_code == 403
        assert (await client.get("/projects")).json()["total"] == 0

        response = await client.get("/projects/moderation", headers=as_user(moderator))
        assert [p["id"] for p in response.json()["projects"]] == [project["id"]]

        response = await client.post(
            f"/projects/{project['id']}/moderate",
            json={"status": "approved"},
            headers=as_user(moderator),
        )
        assert response.status_code == 200

        response = await client.get(f"/projects/{project['id']}")
        assert response.status_code == 200
        assert response.json()["moderation_status"] == "approved"

        response = await client.post(
            f"/projects/{project['id']}/moderate",
            json={"status": "rejected"},
            headers=as_user(moderator),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_donations_drive_status(self, client, coordinator, moderator, donor, sample_project_data):
        project_id = await create_approved_project(client, coordinator, moderator, sample_project_data)

        response = await client.post(f"/projects/{project_id}/donations", json={"amount": 600}, headers=as_user(donor))
        assert response.status_code == 201
        assert response.json()["donor_id"] == donor.user_id
        project = (await client.get(f"/projects/{project_id}")).json()
        assert project["collected_amount"] == 600
        assert project["status"] == "funding"

        response = await client.post(f"/projects/{project_id}/donations", json={"amount": 500})
        assert response.status_code == 201
        assert response.json()["donor_id"] is None
        project = (await client.get(f"/projects/{project_id}")).json()
        assert project["collected_amount"] == 1100
        assert project["status"] == "in_progress"

        response = await client.post(f"/projects/{project_id}/donations", json={"amount": 5}, headers=as_user(donor))
        assert response.status_code == 409
        assert response.json() == {
            "error": "project_not_accepting_funds",
            "message": f"Project {project_id} is no longer accepting donations",
        }

        response = await client.get(f"/projects/{project_id}/donations", headers=as_user(donor))
        assert response.status_code == 403
        response = await client.get(f"/projects/{project_id}/donations", headers=as_user(coordinator))
        assert response.json()["total"] == 2
        response = await client.get("/donations/mine", headers=as_user(donor))
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_non_positive_donation_rejected_by_schema(self, client, coordinator, moderator, donor, sample_project_data):
        project_id = await create_approved_project(client, coordinator, moderator, sample_project_data)
        response = await client.post(f"/projects/{project_id}/donations", json={"amount": 0}, headers=as_user(donor))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_manual_status_and_update(self, client, coordinator, other_coordinator, moderator, sample_project_data):
        project_id = await create_approved_project(client, coordinator, moderator, sample_project_data)

        response = await client.patch(f"/projects/{project_id}/status", json={"status": "completed"}, headers=as_user(coordinator))
        assert response.status_code == 409

        response = await client.put(f"/projects/{project_id}", json={"name": "Hijacked"}, headers=as_user(other_coordinator))
        assert response.status_code == 403

        response = await client.put(f"/projects/{project_id}", json={"collected_amount": 5000}, headers=as_user(coordinator))
        assert response.status_code == 422

        response = await client.patch(f"/projects/{project_id}/status", json={"status": "in_progress"}, headers=as_user(coordinator))
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_delete_project(self, client, coordinator, moderator, sample_project_data):
        project_id = await create_approved_project(client, coordinator, moderator, sample_project_data)

        response = await client.delete(f"/projects/{project_id}", headers=as_user(moderator))
        assert response.status_code == 403

        response = await client.delete(f"/projects/{project_id}", headers=as_user(coordinator))
        assert response.status_code == 204
        assert (await client.get(f"/projects/{project_id}")).status_code == 404


# ============================================================================
# VOLUNTEER WORKFLOW
# ============================================================================

class TestVolunteerWorkflowAPI:
    @pytest.mark.asyncio
    async def test_apply_assign_report(self, client, coordinator, moderator, volunteer, other_volunteer, sample_project_data):
        project_id = await create_approved_project(client, coordinator, moderator, sample_project_data)

        response = await client.post(
            f"/projects/{project_id}/tasks",
            json={
                "title": "Buy fuel",
                "description": "200 litres",
                "type": "collection",
                "requires_expenses": True,
                "estimated_amount": 250.0,
                "expense_purpose": "Diesel",
            },
            headers=as_user(coordinator),
        )
        assert response.status_code == 201
        task_id = response.json()["id"]

        response = await client.post(f"/tasks/{task_id}/assign", json={"volunteer_id": volunteer.user_id}, headers=as_user(coordinator))
        assert response.status_code == 409
        assert response.json()["error"] == "volunteer_not_eligible"

        response = await client.post(f"/projects/{project_id}/applications", json={"message": "Count me in"}, headers=as_user(volunteer))
        assert response.status_code == 201
        application_id = response.json()["id"]
        response = await client.post(f"/projects/{project_id}/applications", json={}, headers=as_user(volunteer))
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_application"

        response = await client.get(f"/projects/{project_id}/applications", headers=as_user(volunteer))
        assert response.status_code == 403
        response = await client.get("/applications/mine", headers=as_user(volunteer))
        assert response.json()["total"] == 1

        response = await client.patch(f"/applications/{application_id}/status", json={"status": "approved"}, headers=as_user(coordinator))
        assert response.status_code == 200

        response = await client.post(f"/tasks/{task_id}/assign", json={"volunteer_id": volunteer.user_id}, headers=as_user(coordinator))
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

        response = await client.get("/tasks/mine", headers=as_user(volunteer))
        assert [t["id"] for t in response.json()["tasks"]] == [task_id]

        response = await client.post(f"/tasks/{task_id}/reports", json={"description": "Bought"}, headers=as_user(volunteer))
        assert response.status_code == 400

        response = await client.post(
            f"/tasks/{task_id}/reports",
            json={"description": "Bought", "expense_amount": 10, "expense_purpose": "Fuel"},
            headers=as_user(other_volunteer),
        )
        assert response.status_code == 403

        response = await client.post(
            f"/tasks/{task_id}/reports",
            json={"description": "Bought", "expense_amount": 240.0, "expense_purpose": "Diesel"},
            headers=as_user(volunteer),
        )
        assert response.status_code == 201

        response = await client.get(f"/tasks/{task_id}", headers=as_user(volunteer))
        assert response.json()["status"] == "completed"
        response = await client.get(f"/tasks/{task_id}/assignments", headers=as_user(coordinator))
        assert response.json()["total"] == 1
        response = await client.get(f"/projects/{project_id}/reports")
        assert response.json()["total"] == 1
        response = await client.get(f"/projects/{project_id}/volunteers", headers=as_user(coordinator))
        assert [u["id"] for u in response.json()["users"]] == [volunteer.user_id]
        response = await client.get("/projects/mine/volunteering", headers=as_user(volunteer))
        assert [p["id"] for p in response.json()["projects"]] == [project_id]
