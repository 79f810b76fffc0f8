import pytest

from vrai.db.repositories import submission_repo
from vrai.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    RemoteServiceError,
    ValidationError,
)
from vrai.models.enums import RequestStatus
from vrai.services.upload_orchestrator import (
    UploadOrchestrator,
    UploadSessions,
    get_or_create_draft,
)
from vrai.validators import FilePayload

BUCKET = "auth-photos"


@pytest.fixture
def orchestrator(store):
    return UploadOrchestrator(store, bucket=BUCKET)


async def _fill_steps(orchestrator, steps=range(1, 10)):
    for step in steps:
        await orchestrator.upload_photo(step, direct_url=f"https://cdn/photo-{step}.jpg")


async def test_upload_before_set_submission_id_is_a_precondition_error(orchestrator):
    with pytest.raises(PreconditionError):
        await orchestrator.upload_photo(1, direct_url="https://cdn/a.jpg")


@pytest.mark.parametrize("bad", ["", None, 42])
def test_set_submission_id_rejects_invalid_ids(orchestrator, bad):
    with pytest.raises(ValidationError):
        orchestrator.set_submission_id(bad)


async def test_upload_requires_file_or_url(orchestrator):
    orchestrator.set_submission_id("sub-1")
    with pytest.raises(ValidationError):
        await orchestrator.upload_photo(1)


async def test_upload_rejects_bad_step(orchestrator):
    orchestrator.set_submission_id("sub-1")
    with pytest.raises(ValidationError):
        await orchestrator.upload_photo(11, direct_url="https://cdn/a.jpg")


async def test_step_ten_is_an_idempotent_append(orchestrator):
    orchestrator.set_submission_id("sub-1")
    await orchestrator.upload_photo(10, direct_url="https://cdn/x.jpg")
    await orchestrator.upload_photo(10, direct_url="https://cdn/x.jpg")
    assert orchestrator.photo_urls()[9] == ["https://cdn/x.jpg"]

    await orchestrator.upload_photo(10, direct_url="https://cdn/y.jpg")
    assert orchestrator.photo_urls()[9] == ["https://cdn/x.jpg", "https://cdn/y.jpg"]


async def test_single_step_overwrites(orchestrator):
    orchestrator.set_submission_id("sub-1")
    await orchestrator.upload_photo(2, direct_url="https://cdn/old.jpg")
    await orchestrator.upload_photo(2, direct_url="https://cdn/new.jpg")
    assert orchestrator.photo_urls()[1] == "https://cdn/new.jpg"


async def test_validate_photos_ignores_slot_ten(orchestrator):
    assert orchestrator.validate_photos() is False
    orchestrator.set_submission_id("sub-1")
    await _fill_steps(orchestrator, range(1, 9))
    await orchestrator.upload_photo(10, direct_url="https://cdn/extra.jpg")
    assert orchestrator.validate_photos() is False
    await orchestrator.upload_photo(9, direct_url="https://cdn/photo-9.jpg")
    assert orchestrator.validate_photos() is True


async def test_file_upload_goes_to_storage_under_step_prefix(orchestrator, store):
    orchestrator.set_submission_id("sub-1")
    file = FilePayload("front.PNG", b"png-bytes", "image/png")
    url = await orchestrator.upload_photo(1, file=file)

    entries = await store.list_objects(BUCKET, "sub-1")
    assert len(entries) == 1
    name = entries[0]["name"]
    assert name.startswith("step1-") and name.endswith(".png")
    assert url == store.public_url(BUCKET, f"sub-1/{name}")
    assert store.read_object(BUCKET, f"sub-1/{name}") == (b"png-bytes", "image/png")


async def test_storage_errors_propagate(orchestrator, store):
    async def broken_upload(*args, **kwargs):
        raise RemoteServiceError("bucket not found")

    store.upload_object = broken_upload
    orchestrator.set_submission_id("sub-1")
    with pytest.raises(RemoteServiceError, match="bucket not found"):
        await orchestrator.upload_photo(1, file=FilePayload("a.jpg", b"x", "image/jpeg"))
    assert orchestrator.photo_urls()[0] is None


async def test_arena_create_fetch_reset(orchestrator):
    orchestrator.set_submission_id("sub-1")
    await orchestrator.upload_photo(1, direct_url="https://cdn/a.jpg")
    assert orchestrator.fetch("sub-1").get(1) == "https://cdn/a.jpg"

    orchestrator.create("sub-1")
    assert orchestrator.fetch("sub-1").get(1) is None

    orchestrator.set_submission_id("sub-1")
    await orchestrator.upload_photo(1, direct_url="https://cdn/b.jpg")
    orchestrator.reset()
    assert orchestrator.submission_id is None
    assert orchestrator.fetch("sub-1").get(1) is None


async def test_submissions_keep_separate_slots(orchestrator):
    orchestrator.set_submission_id("a")
    await orchestrator.upload_photo(1, direct_url="https://cdn/a1.jpg")
    orchestrator.set_submission_id("b")
    assert orchestrator.photo_urls()[0] is None
    assert orchestrator.photo_urls("a")[0] == "https://cdn/a1.jpg"


async def test_load_submission_photos_rebuilds_from_storage(orchestrator, store):
    for name in ("step1-aaa.jpg", "step9-bbb.jpg", "step10-ccc.jpg", "step10-ddd.jpg", "notes.txt"):
        await store.upload_object(BUCKET, f"sub-9/{name}", b"x", "image/jpeg")
    await store.upload_object(BUCKET, "sub-9/nested/step2-zzz.jpg", b"x", "image/jpeg")

    slots = await orchestrator.load_submission_photos("sub-9")
    assert slots.get(1) == store.public_url(BUCKET, "sub-9/step1-aaa.jpg")
    assert slots.get(9) == store.public_url(BUCKET, "sub-9/step9-bbb.jpg")
    assert slots.get(2) is None
    assert slots.get(10) == [
        store.public_url(BUCKET, "sub-9/step10-ccc.jpg"),
        store.public_url(BUCKET, "sub-9/step10-ddd.jpg"),
    ]
    assert orchestrator.photo_urls("sub-9")[8] == slots.get(9)


async def test_get_or_create_draft_reuses_the_single_draft(store):
    first = await get_or_create_draft(store, "user-1")
    second = await get_or_create_draft(store, "user-1")
    assert first["id"] == second["id"]
    assert first["status"] == "draft"


async def test_finalize_creates_pending_request_with_sequential_id(orchestrator, store, user):
    draft = await get_or_create_draft(store, user.id)
    orchestrator.set_submission_id(draft["id"])
    await _fill_steps(orchestrator)

    request = await orchestrator.finalize_submission(draft["id"], "Birkin 30", user)

    assert request.status == RequestStatus.PENDING_REVIEW.value
    assert request.human_readable_id == "Vrai#000001"
    assert request.submission_id == draft["id"]
    assert request.user_email == user.email
    assert request.photo_urls[9] == []
    assert (await submission_repo.get_submission(store, draft["id"]))["status"] == "completed"
    assert orchestrator.submission_id is None
    assert orchestrator.photo_urls(draft["id"]) == [None] * 9 + [[]]

    next_draft = await get_or_create_draft(store, user.id)
    assert next_draft["id"] != draft["id"]
    orchestrator.set_submission_id(next_draft["id"])
    await _fill_steps(orchestrator)
    second = await orchestrator.finalize_submission(next_draft["id"], "Kelly 25", user)
    assert second.human_readable_id == "Vrai#000002"


async def test_finalize_requires_complete_photos(orchestrator, store, user):
    draft = await get_or_create_draft(store, user.id)
    orchestrator.set_submission_id(draft["id"])
    await _fill_steps(orchestrator, range(1, 9))

    with pytest.raises(ValidationError) as exc_info:
        await orchestrator.finalize_submission(draft["id"], "Birkin", user)
    assert exc_info.value.details["missing_steps"] == [9]
    assert (await submission_repo.get_submission(store, draft["id"]))["status"] == "draft"


async def test_finalize_rejects_foreign_draft(orchestrator, store, user):
    draft = await get_or_create_draft(store, "someone-else")
    with pytest.raises(AuthorizationError):
        await orchestrator.finalize_submission(draft["id"], "Birkin", user)


async def test_finalize_unknown_or_completed_draft(orchestrator, store, user):
    with pytest.raises(NotFoundError):
        await orchestrator.finalize_submission("missing", "Birkin", user)

    draft = await get_or_create_draft(store, user.id)
    photos = [f"https://cdn/{i}.jpg" for i in range(1, 10)] + [[]]
    await orchestrator.finalize_submission(draft["id"], "Birkin", user, photo_urls=photos)
    with pytest.raises(ConflictError):
        await orchestrator.finalize_submission(draft["id"], "Birkin", user, photo_urls=photos)


async def test_finalize_requires_model_name(orchestrator, store, user):
    draft = await get_or_create_draft(store, user.id)
    with pytest.raises(ValidationError):
        await orchestrator.finalize_submission(draft["id"], "  ", user)


def test_sessions_are_per_user(store):
    sessions = UploadSessions(store, bucket=BUCKET)
    alice = sessions.for_user("alice")
    assert sessions.for_user("alice") is alice
    assert sessions.for_user("bob") is not alice
    alice.set_submission_id("sub-a")
    assert sessions.for_user("bob").submission_id is None
    sessions.discard("alice")
    assert sessions.for_user("alice") is not alice
    assert sessions.for_user("alice").submission_id is None
