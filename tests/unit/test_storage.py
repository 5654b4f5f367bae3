import asyncio
import json
from uuid import uuid4

import pytest

from truthtrack.models.schemas import Answer, Question, TransparencyReport
from truthtrack.scoring.report import score_answers
from truthtrack.services.storage import InMemoryDataStore, JsonFileDataStore
from truthtrack.utils.errors import PersistenceError


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryDataStore()
    return JsonFileDataStore(tmp_path / "store")


def make_questions(product_id, count=3):
    return [
        Question(product_id=product_id, text=f"Question {i}", type="text", order_index=i)
        for i in reversed(range(count))
    ]


# =============================================================================
# Shared behaviour
# =============================================================================

@pytest.mark.asyncio
async def test_product_roundtrip(store, sample_product):
    await store.create_product(sample_product, [])
    assert await store.get_product(sample_product.id) == sample_product
    assert await store.get_product(uuid4()) is None


@pytest.mark.asyncio
async def test_duplicate_product_rejected(store, sample_product):
    await store.create_product(sample_product, [])
    with pytest.raises(PersistenceError):
        await store.create_product(sample_product, [])


@pytest.mark.asyncio
async def test_questions_stored_with_product(store, sample_product):
    created = await store.create_product(sample_product, make_questions(sample_product.id))

    questions = await store.list_questions(sample_product.id)
    assert [q.order_index for q in created] == [0, 1, 2]
    assert [q.id for q in questions] == [q.id for q in created]


@pytest.mark.asyncio
async def test_questions_for_unknown_product(store):
    assert await store.list_questions(uuid4()) == []


@pytest.mark.asyncio
async def test_concurrent_answer_upserts_are_all_kept(store, sample_product):
    await store.create_product(sample_product, [])
    answers = [Answer(question_id=uuid4(), value=f"answer {i}") for i in range(10)]

    await asyncio.gather(*(store.upsert_answers(sample_product.id, [a]) for a in answers))

    stored = await store.list_answers(sample_product.id)
    assert {a.question_id for a in stored} == {a.question_id for a in answers}


@pytest.mark.asyncio
async def test_answers_upsert_by_question(store, sample_product):
    await store.create_product(sample_product, [])
    q1, q2 = uuid4(), uuid4()

    await store.upsert_answers(sample_product.id, [
        Answer(question_id=q1, value="first"),
        Answer(question_id=q2, value="other"),
    ])
    stored = await store.upsert_answers(sample_product.id, [Answer(question_id=q1, value="second")])

    assert len(stored) == 2
    by_id = {a.question_id: a.value for a in await store.list_answers(sample_product.id)}
    assert by_id == {q1: "second", q2: "other"}


@pytest.mark.asyncio
async def test_answers_for_unknown_product(store):
    with pytest.raises(PersistenceError):
        await store.upsert_answers(uuid4(), [Answer(question_id=uuid4(), value="x")])
    assert await store.list_answers(uuid4()) == []


@pytest.mark.asyncio
async def test_report_supersedes_previous(store, sample_product, sample_answers):
    await store.create_product(sample_product, [])
    assert await store.get_report(sample_product.id) is None

    first = score_answers(sample_product, [])
    second = score_answers(sample_product, sample_answers)
    await store.save_report(first)
    await store.save_report(second)

    stored = await store.get_report(sample_product.id)
    assert stored.report_id == second.report_id
    assert stored.total == 48


@pytest.mark.asyncio
async def test_report_for_unknown_product(store, sample_product):
    with pytest.raises(PersistenceError):
        await store.save_report(score_answers(sample_product, []))


# =============================================================================
# JSON file adapter
# =============================================================================

@pytest.mark.asyncio
async def test_json_store_document_layout(tmp_path, sample_product, sample_answers):
    store = JsonFileDataStore(tmp_path)
    await store.create_product(sample_product, [])
    await store.upsert_answers(sample_product.id, sample_answers[:2])
    await store.save_report(score_answers(sample_product, sample_answers[:2]))

    document = json.loads((tmp_path / f"{sample_product.id}.json").read_text())
    assert set(document) == {"product", "questions", "answers", "report"}
    assert document["product"]["name"] == "Organic Granola Bar"
    assert set(document["answers"]) == {str(a.question_id) for a in sample_answers[:2]}
    assert document["report"]["product"]["id"] == str(sample_product.id)


@pytest.mark.asyncio
async def test_json_store_survives_reopen(tmp_path, sample_product):
    await JsonFileDataStore(tmp_path).create_product(sample_product, [])
    reopened = JsonFileDataStore(tmp_path)
    assert (await reopened.get_product(sample_product.id)).name == sample_product.name


@pytest.mark.asyncio
async def test_json_store_corrupt_document(tmp_path, sample_product):
    store = JsonFileDataStore(tmp_path)
    (tmp_path / f"{sample_product.id}.json").write_text("{not json")

    with pytest.raises(PersistenceError):
        await store.get_product(sample_product.id)


@pytest.mark.asyncio
async def test_json_store_failed_write_keeps_previous_report(tmp_path, sample_product, sample_answers, mocker):
    store = JsonFileDataStore(tmp_path)
    await store.create_product(sample_product, [])
    original = score_answers(sample_product, sample_answers)
    await store.save_report(original)

    mocker.patch("truthtrack.services.storage.os.replace", side_effect=OSError("disk full"))
    with pytest.raises(PersistenceError):
        await store.save_report(score_answers(sample_product, []))

    stored = await store.get_report(sample_product.id)
    assert isinstance(stored, TransparencyReport)
    assert stored.report_id == original.report_id


@pytest.mark.asyncio
async def test_json_store_failed_create_leaves_nothing(tmp_path, sample_product, mocker):
    store = JsonFileDataStore(tmp_path / "store")
    mocker.patch("truthtrack.services.storage.os.replace", side_effect=OSError("disk full"))

    with pytest.raises(PersistenceError):
        await store.create_product(sample_product, make_questions(sample_product.id))

    assert await store.get_product(sample_product.id) is None
    assert list((tmp_path / "store").iterdir()) == []


def test_json_store_unwritable_directory(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(PersistenceError):
        JsonFileDataStore(blocker / "sub")
