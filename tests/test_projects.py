"""
Unit Tests for the project lifecycle: creation, moderation, status changes,
updates, deletion and listings
"""
import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func, select

from volunteerhub.core.config import Settings
from volunteerhub.core.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from volunteerhub.models import (
    Application,
    ApplicationStatus,
    Donation,
    ModerationStatus,
    Project,
    ProjectModeration,
    ProjectStatus,
    Report,
    Task,
    TaskAssignment,
)
from volunteerhub.schemas.project import CreateProjectRequest, UpdateProjectRequest
from volunteerhub.schemas.report import CreateReportRequest
from volunteerhub.schemas.task import CreateTaskRequest
from volunteerhub.services import projects as projects_module
from volunteerhub.services.applications import ApplicationService
from volunteerhub.services.donations import DonationService
from volunteerhub.services.projects import ProjectService
from volunteerhub.services.reports import ReportService
from volunteerhub.services.tasks import TaskService


def _count(db, model):
    return db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def sample_create_project_request():
    return CreateProjectRequest(
        name="Food kits",
        description="Food kits for displaced families",
        target_amount=1000.0,
        image_url="/uploads/kits.jpg",
    )


# ============================================================================
# CREATE
# ============================================================================

class TestProjectCreate:
    """Project creation by role"""

    def test_coordinator_creates_pending_funding_project(self, db_session, coordinator, sample_create_project_request):
        project = ProjectService.create_project(db_session, coordinator, sample_create_project_request)

        assert project.id is not None
        assert project.status == ProjectStatus.FUNDING
        assert project.moderation_status == ModerationStatus.PENDING
        assert project.collected_amount == 0
        assert project.coordinator_id == coordinator.user_id
        assert project.image_url == "/uploads/kits.jpg"

    def test_admin_creates_for_coordinator(self, db_session, admin, coordinator, sample_create_project_request):
        request = sample_create_project_request.model_copy(update={"coordinator_id": coordinator.user_id})
        project = ProjectService.create_project(db_session, admin, request)
        assert project.coordinator_id == coordinator.user_id

    def test_admin_cannot_create_for_non_coordinator(self, db_session, admin, volunteer, sample_create_project_request):
        request = sample_create_project_request.model_copy(update={"coordinator_id": volunteer.user_id})
        with pytest.raises(ValidationError):
            ProjectService.create_project(db_session, admin, request)

    def test_admin_must_name_a_coordinator(self, db_session, admin, sample_create_project_request):
        with pytest.raises(ValidationError):
            ProjectService.create_project(db_session, admin, sample_create_project_request)

    def test_coordinator_cannot_create_for_someone_else(self, db_session, coordinator, other_coordinator, sample_create_project_request):
        request = sample_create_project_request.model_copy(update={"coordinator_id": other_coordinator.user_id})
        with pytest.raises(Forbidden):
            ProjectService.create_project(db_session, coordinator, request)

    @pytest.mark.parametrize("role_fixture", ["volunteer", "donor", "moderator"])
    def test_other_roles_forbidden(self, request, db_session, role_fixture, sample_create_project_request):
        actor = request.getfixturevalue(role_fixture)
        with pytest.raises(Forbidden):
            ProjectService.create_project(db_session, actor, sample_create_project_request)
        assert _count(db_session, Project) == 0


class TestProjectGet:
    def test_pending_project_hidden_from_public(self, db_session, make_project, donor, volunteer, other_coordinator):
        project = make_project(approved=False)
        for actor in (None, donor, volunteer, other_coordinator):
            with pytest.raises(Forbidden):
                ProjectService.get_project(db_session, actor, project.id)

    def test_pending_project_visible_to_owner_and_moderator(self, db_session, make_project, coordinator, moderator):
        project = make_project(approved=False)
        assert ProjectService.get_project(db_session, coordinator, project.id).id == project.id
        assert ProjectService.get_project(db_session, moderator, project.id).id == project.id

    def test_missing_project(self, db_session, admin):
        with pytest.raises(NotFound):
            ProjectService.get_project(db_session, admin, 999)


# ============================================================================
# MODERATION
# ============================================================================

class TestProjectModeration:
    """pending -> approved | rejected, with an audit record per decision"""

    def test_approve_makes_project_public(self, db_session, make_project, moderator, donor):
        project = make_project(approved=False)

        ProjectService.moderate_project(db_session, moderator, project.id, ModerationStatus.APPROVED, "Looks fine")

        assert ProjectService.get_project(db_session, donor, project.id).moderation_status == ModerationStatus.APPROVED
        records = ProjectService.list_moderations(db_session, moderator, project.id)
        assert len(records) == 1
        assert records[0].status == ModerationStatus.APPROVED
        assert records[0].comment == "Looks fine"
        assert records[0].moderator_id == moderator.user_id

    def test_moderation_does_not_touch_status(self, db_session, make_project, moderator):
        project = make_project(approved=False)
        ProjectService.moderate_project(db_session, moderator, project.id, ModerationStatus.REJECTED)
        assert project.status == ProjectStatus.FUNDING
        assert project.moderation_status == ModerationStatus.REJECTED

    def test_decided_project_cannot_be_moderated_again(self, db_session, make_project, moderator, admin):
        project = make_project()
        with pytest.raises(InvalidTransition):
            ProjectService.moderate_project(db_session, admin, project.id, ModerationStatus.REJECTED)
        assert len(ProjectService.list_moderations(db_session, moderator, project.id)) == 1

    def test_pending_is_not_a_decision(self, db_session, make_project, moderator):
        project = make_project(approved=False)
        with pytest.raises(InvalidTransition):
            ProjectService.moderate_project(db_session, moderator, project.id, ModerationStatus.PENDING)

    def test_coordinator_cannot_moderate(self, db_session, make_project, coordinator):
        project = make_project(approved=False)
        with pytest.raises(Forbidden):
            ProjectService.moderate_project(db_session, coordinator, project.id, ModerationStatus.APPROVED)

    def test_moderation_history_hidden_from_public(self, db_session, make_project, donor, coordinator):
        project = make_project()
        assert len(ProjectService.list_moderations(db_session, coordinator, project.id)) == 1
        with pytest.raises(Forbidden):
            ProjectService.list_moderations(db_session, donor, project.id)

    def test_queue_lists_pending_for_moderators(self, db_session, make_project, moderator, volunteer):
        make_project(name="approved")
        pending = make_project(name="pending", approved=False)

        queue = ProjectService.moderation_queue(db_session, moderator)
        assert [p.id for p in queue] == [pending.id]
        with pytest.raises(Forbidden):
            ProjectService.moderation_queue(db_session, volunteer)


class TestProjectResubmission:
    def _reject(self, db_session, make_project, moderator):
        project = make_project(approved=False)
        ProjectService.moderate_project(db_session, moderator, project.id, ModerationStatus.REJECTED, "Missing bank details")
        return project

    def test_rejected_is_terminal_by_default(self, db_session, make_project, moderator, coordinator):
        project = self._reject(db_session, make_project, moderator)
        with pytest.raises(InvalidTransition):
            ProjectService.resubmit_project(db_session, coordinator, project.id)

    def test_resubmission_when_enabled(self, db_session, make_project, moderator, coordinator, monkeypatch):
        monkeypatch.setattr(projects_module, "get_settings", lambda: Settings(allow_moderation_resubmission=True))
        project = self._reject(db_session, make_project, moderator)

        ProjectService.resubmit_project(db_session, coordinator, project.id, "Bank details added")

        assert project.moderation_status == ModerationStatus.PENDING
        statuses = [m.status for m in ProjectService.list_moderations(db_session, moderator, project.id)]
        assert statuses == [ModerationStatus.REJECTED, ModerationStatus.PENDING]

    def test_only_owner_resubmits(self, db_session, make_project, moderator, other_coordinator, monkeypatch):
        monkeypatch.setattr(projects_module, "get_settings", lambda: Settings(allow_moderation_resubmission=True))
        project = self._reject(db_session, make_project, moderator)
        with pytest.raises(Forbidden):
            ProjectService.resubmit_project(db_session, other_coordinator, project.id)

    def test_approved_project_cannot_be_resubmitted(self, db_session, make_project, coordinator, monkeypatch):
        monkeypatch.setattr(projects_module, "get_settings", lambda: Settings(allow_moderation_resubmission=True))
        project = make_project()
        with pytest.raises(InvalidTransition):
            ProjectService.resubmit_project(db_session, coordinator, project.id)


# ============================================================================
# MANUAL STATUS CHANGE
# ============================================================================

class TestProjectStatusChange:
    """Forward single-step only"""

    def test_forward_steps(self, db_session, make_project, coordinator):
        project = make_project()
        ProjectService.change_status(db_session, coordinator, project.id, ProjectStatus.IN_PROGRESS)
        assert project.status == ProjectStatus.IN_PROGRESS
        ProjectService.change_status(db_session, coordinator, project.id, ProjectStatus.COMPLETED)
        assert project.status == ProjectStatus.COMPLETED

    def test_skipping_a_step_is_rejected(self, db_session, make_project, admin):
        project = make_project()
        with pytest.raises(InvalidTransition):
            ProjectService.change_status(db_session, admin, project.id, ProjectStatus.COMPLETED)
        assert project.status == ProjectStatus.FUNDING

    def test_backward_move_is_rejected(self, db_session, make_project, coordinator):
        project = make_project()
        ProjectService.change_status(db_session, coordinator, project.id, ProjectStatus.IN_PROGRESS)
        with pytest.raises(InvalidTransition):
            ProjectService.change_status(db_session, coordinator, project.id, ProjectStatus.FUNDING)

    def test_non_owner_forbidden(self, db_session, make_project, other_coordinator, moderator):
        project = make_project()
        for actor in (other_coordinator, moderator):
            with pytest.raises(Forbidden):
                ProjectService.change_status(db_session, actor, project.id, ProjectStatus.IN_PROGRESS)


# ============================================================================
# UPDATE
# ============================================================================

class TestProjectUpdate:
    def test_owner_updates_fields(self, db_session, make_project, coordinator):
        project = make_project()
        updated = ProjectService.update_project(
            db_session,
            coordinator,
            project.id,
            UpdateProjectRequest(name="Generators and fuel", bank_details="UA00 1234"),
        )
        assert updated.name == "Generators and fuel"
        assert updated.bank_details == "UA00 1234"
        assert updated.description == "Keep surgery running during outages"

    def test_lowering_target_below_collected_advances_status(self, db_session, make_project, coordinator, donor):
        project = make_project(target_amount=1000.0)
        DonationService.apply_donation(db_session, donor, project.id, 600.0)

        updated = ProjectService.update_project(db_session, coordinator, project.id, UpdateProjectRequest(target_amount=500.0))

        assert updated.target_amount == 500.0
        assert updated.collected_amount == 600.0
        assert updated.status == ProjectStatus.IN_PROGRESS

    def test_raising_target_keeps_funding(self, db_session, make_project, coordinator, donor):
        project = make_project(target_amount=1000.0)
        DonationService.apply_donation(db_session, donor, project.id, 600.0)

        updated = ProjectService.update_project(db_session, coordinator, project.id, UpdateProjectRequest(target_amount=2000.0))
        assert updated.status == ProjectStatus.FUNDING

    def test_other_coordinator_forbidden(self, db_session, make_project, other_coordinator):
        project = make_project()
        with pytest.raises(Forbidden):
            ProjectService.update_project(db_session, other_coordinator, project.id, UpdateProjectRequest(name="Mine now"))

    def test_only_admin_reassigns_coordinator(self, db_session, make_project, coordinator, other_coordinator, admin, volunteer):
        project = make_project()
        with pytest.raises(Forbidden):
            ProjectService.update_project(
                db_session, coordinator, project.id, UpdateProjectRequest(coordinator_id=other_coordinator.user_id)
            )
        with pytest.raises(ValidationError):
            ProjectService.update_project(
                db_session, admin, project.id, UpdateProjectRequest(coordinator_id=volunteer.user_id)
            )

        updated = ProjectService.update_project(
            db_session, admin, project.id, UpdateProjectRequest(coordinator_id=other_coordinator.user_id)
        )
        assert updated.coordinator_id == other_coordinator.user_id

    def test_status_is_not_an_editable_field(self):
        with pytest.raises(SchemaValidationError):
            UpdateProjectRequest(status="completed")


# ============================================================================
# DELETE
# ============================================================================

class TestProjectDelete:
    def test_delete_cascades(self, db_session, make_project, coordinator, volunteer, donor, moderator):
        project = make_project()
        task = TaskService.create_task(
            db_session, coordinator, project.id, CreateTaskRequest(title="Deliver", description="Deliver kits")
        )
        application = ApplicationService.apply(db_session, volunteer, project.id)
        ApplicationService.decide(db_session, coordinator, application.id, ApplicationStatus.APPROVED)
        TaskService.assign_task(db_session, coordinator, task.id, volunteer.user_id)
        ReportService.submit_report(db_session, volunteer, task.id, CreateReportRequest(description="Delivered"))
        DonationService.apply_donation(db_session, donor, project.id, 100.0)

        ProjectService.delete_project(db_session, coordinator, project.id)

        for model in (Project, Task, TaskAssignment, Report, Application, Donation, ProjectModeration):
            assert _count(db_session, model) == 0, model.__name__

    def test_non_owner_cannot_delete(self, db_session, make_project, other_coordinator, moderator):
        project = make_project()
        for actor in (other_coordinator, moderator):
            with pytest.raises(Forbidden):
                ProjectService.delete_project(db_session, actor, project.id)
        assert _count(db_session, Project) == 1

    def test_admin_deletes_any(self, db_session, make_project, admin):
        project = make_project()
        ProjectService.delete_project(db_session, admin, project.id)
        with pytest.raises(NotFound):
            ProjectService.get_project(db_session, admin, project.id)


# ============================================================================
# LISTINGS
# ============================================================================

class TestProjectListings:
    @pytest.fixture
    def three_projects(self, make_project, other_coordinator):
        return (
            make_project(name="Approved kits"),
            make_project(name="Own pending", approved=False),
            make_project(name="Foreign pending", approved=False, owner=other_coordinator),
        )

    def test_public_list_shows_approved_only(self, db_session, three_projects, donor):
        approved, _, _ = three_projects
        assert [p.id for p in ProjectService.list_projects(db_session, None)] == [approved.id]
        assert [p.id for p in ProjectService.list_projects(db_session, donor)] == [approved.id]

    def test_coordinator_sees_own_pending(self, db_session, three_projects, coordinator):
        approved, own, _ = three_projects
        ids = {p.id for p in ProjectService.list_projects(db_session, coordinator)}
        assert ids == {approved.id, own.id}

    def test_moderator_sees_everything(self, db_session, three_projects, moderator):
        assert len(ProjectService.list_projects(db_session, moderator)) == 3

    def test_status_filter_and_search(self, db_session, three_projects, coordinator, donor):
        approved, _, _ = three_projects
        DonationService.apply_donation(db_session, donor, approved.id, 1000.0)

        in_progress = ProjectService.list_projects(db_session, None, status=ProjectStatus.IN_PROGRESS)
        assert [p.id for p in in_progress] == [approved.id]
        assert ProjectService.list_projects(db_session, None, status=ProjectStatus.FUNDING) == []
        assert [p.name for p in ProjectService.list_projects(db_session, coordinator, search="pending")] == ["Own pending"]

    def test_search_treats_wildcards_literally(self, db_session, make_project):
        make_project(name="100% solar panels")
        make_project(name="1000 solar lamps")

        assert [p.name for p in ProjectService.list_projects(db_session, None, search="0% s")] == ["100% solar panels"]
        assert ProjectService.list_projects(db_session, None, search="_") == []

    def test_pagination(self, db_session, make_project):
        for index in range(5):
            make_project(name=f"Project {index}")
        page = ProjectService.list_projects(db_session, None, skip=1, limit=2)
        assert [p.name for p in page] == ["Project 3", "Project 2"]

    def test_coordinator_projects(self, db_session, three_projects, coordinator, other_coordinator, admin):
        assert len(ProjectService.coordinator_projects(db_session, coordinator, coordinator.user_id)) == 2
        assert len(ProjectService.coordinator_projects(db_session, admin, other_coordinator.user_id)) == 1
        with pytest.raises(Forbidden):
            ProjectService.coordinator_projects(db_session, other_coordinator, coordinator.user_id)

    def test_volunteer_projects_need_approval(self, db_session, make_project, coordinator, volunteer):
        project = make_project()
        application = ApplicationService.apply(db_session, volunteer, project.id)
        assert ProjectService.volunteer_projects(db_session, volunteer) == []

        ApplicationService.decide(db_session, coordinator, application.id, ApplicationStatus.APPROVED)
        assert [p.id for p in ProjectService.volunteer_projects(db_session, volunteer)] == [project.id]
