import asyncio

from taskflow.models.capture_item import CaptureItem
from taskflow.providers import BaseProvider
from taskflow.services.capture_service import CaptureService
from taskflow.services.domain_area_service import DomainAreaService
from taskflow.services.profile_service import ProfileService
from taskflow.services.project_service import ProjectService
from taskflow.services.results import ErrorKind
from taskflow.utils import utcnow


class EchoProvider(BaseProvider):
    def __init__(self, text="Wants to ship the book by June.", error=None):
        self.text = text
        self.error = error

    @property
    def name(self) -> str:
        return "echo"

    async def chat(self, messages, model=None, max_tokens=1024, json_mode=False):
        return self._result("echo-1", text=self.text, error=self.error)


# ── Capture ───────────────────────────────────────────────────────
def test_upload_ideas_one_item_per_line(db):
    result = CaptureService.upload_ideas(db, "a\n\n  b  \nc")
    assert result.data["count"] == 3
    assert [i["raw_text"] for i in CaptureService.list_by_status(db).data] == ["a", "b", "c"]


def test_upload_nothing_is_invalid(db):
    assert CaptureService.upload_ideas(db, " \n ").error_kind == ErrorKind.VALIDATION


def test_quick_capture_is_tagged_focus_mode(db):
    assert CaptureService.capture_idea(db, " call mom ").data["source"] == "focus_mode"


def test_park_and_delete(db):
    item_id = CaptureService.capture_idea(db, "someday").data["id"]
    assert CaptureService.park(db, item_id).data["status"] == "PARKED"
    assert not CaptureService.park(db, item_id).success
    assert CaptureService.delete(db, item_id).data["status"] == "DELETED"
    assert CaptureService.park(db, 999).error_kind == ErrorKind.NOT_FOUND


def test_clarify_capture_into_ready_task(db, area):
    item_id = CaptureService.capture_idea(db, "Renew passport").data["id"]

    result = CaptureService.create_task_from_capture(db, item_id, {
        "domain_area_id": area.id,
        "dod_items": ["Form submitted"],
        "next_action": "Print form",
        "duration_minutes": 25,
    })

    assert result.data["title"] == "Renew passport"
    assert result.data["status"] == "READY"
    assert result.data["origin_capture_item_id"] == item_id
    assert db.get(CaptureItem, item_id).status == "PROCESSED"
    assert not CaptureService.delete(db, item_id).success


def test_clarify_incomplete_capture_gives_draft(db):
    item_id = CaptureService.capture_idea(db, "Something about taxes").data["id"]
    result = CaptureService.create_task_from_capture(db, item_id, {})
    assert result.data["status"] == "DRAFT"
    assert result.warning == "Task saved as DRAFT"


# ── Profile ───────────────────────────────────────────────────────
def test_profile_is_created_lazily_once(db):
    first = ProfileService.get(db)
    second = ProfileService.get(db)
    assert first.id == second.id


def test_summary_staleness(db):
    assert ProfileService.is_summary_stale(db)
    ProfileService.update(db, {"long_term_goals": "Write a book"})
    ProfileService.save_summary(db, "Writer")
    assert not ProfileService.is_summary_stale(db)

    profile = ProfileService.get(db)
    profile.profile_updated_at = utcnow().replace(year=utcnow().year + 1)
    db.commit()
    assert ProfileService.is_summary_stale(db)


def test_generate_summary(db):
    ProfileService.update(db, {"long_term_goals": "Publish a book"})
    result = asyncio.run(ProfileService.generate_summary(db, EchoProvider()))
    assert result.data["summary"] == "Wants to ship the book by June."
    assert result.data["summary_stale"] is False


def test_generate_summary_failures(db):
    assert asyncio.run(ProfileService.generate_summary(db, EchoProvider())).error_kind == ErrorKind.VALIDATION

    ProfileService.update(db, {"preferences": "Mornings"})
    failed = asyncio.run(ProfileService.generate_summary(db, EchoProvider(text=None, error="Timeout")))
    assert failed.error_kind == ErrorKind.EXTERNAL
    assert ProfileService.get(db).summary is None


# ── Domain areas / projects ───────────────────────────────────────
def test_domain_area_delete_only_when_unused(db, make_task, area):
    make_task()
    assert DomainAreaService.delete(db, area.id).error_kind == ErrorKind.VALIDATION
    assert DomainAreaService.set_active(db, area.id, False).data["is_active"] is False
    assert DomainAreaService.list_all(db, active_only=True).data == []

    spare = DomainAreaService.create(db, "Spare").data
    assert DomainAreaService.delete(db, spare["id"]).success


def test_domain_area_reorder(db):
    a = DomainAreaService.create(db, "A").data["id"]
    b = DomainAreaService.create(db, "B").data["id"]
    result = DomainAreaService.reorder(db, [b, a])
    assert [x["name"] for x in result.data] == ["B", "A"]
    assert DomainAreaService.reorder(db, [a, 999]).error_kind == ErrorKind.VALIDATION


def test_names_are_required(db):
    assert DomainAreaService.create(db, " ").error_kind == ErrorKind.VALIDATION
    assert ProjectService.create(db, {"name": ""}).error_kind == ErrorKind.VALIDATION


def test_project_lifecycle(db, make_task, project):
    make_task(project_id=project.id)
    assert ProjectService.delete(db, project.id).error_kind == ErrorKind.VALIDATION
    assert ProjectService.set_active(db, project.id, False).data["is_active"] is False
    assert ProjectService.update(db, project.id, {"description": "Q3"}).data["description"] == "Q3"
    assert ProjectService.update(db, 999, {"name": "x"}).error_kind == ErrorKind.NOT_FOUND
