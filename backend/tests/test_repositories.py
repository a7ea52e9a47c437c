"""Entity stores: CRUD contract, relation loading and error classification."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from core.errors import ConflictError, NotFoundError, ValidationFailedError
from models.talk import TalkDate, talks_at
from repositories import (
    EventRepository,
    LocationRepository,
    OrganizationRepository,
    PersonRepository,
    RoomRepository,
    TalkRepository,
    TopicRepository,
)
from schemas import LocationOut, TalkOut


async def _create(database, repo_cls, payload) -> int:
    async with database.session() as session:
        entity = await repo_cls(session).create(payload)
        return entity.id


async def _seed_schedule(database) -> dict:
    """Organization, person, parent/child topics, location, room and event."""
    ids = {}
    ids["organization"] = await _create(database, OrganizationRepository, {"name": "ACME"})
    ids["person"] = await _create(
        database,
        PersonRepository,
        {"name": "Ada", "email": "ada@acme.test", "organizationId": ids["organization"]},
    )
    ids["topic"] = await _create(database, TopicRepository, {"name": "Python"})
    ids["subtopic"] = await _create(
        database, TopicRepository, {"name": "asyncio", "parentId": ids["topic"]}
    )
    ids["location"] = await _create(
        database, LocationRepository, {"name": "HQ", "lat": 44.8, "lon": 20.4}
    )
    ids["room"] = await _create(
        database, RoomRepository, {"name": "Hall A", "locationId": ids["location"]}
    )
    ids["event"] = await _create(
        database,
        EventRepository,
        {
            "name": "PyConf",
            "beginDate": "2021-05-20",
            "endDate": "2021-05-21",
            "locationId": ids["location"],
        },
    )
    return ids


def _talk_payload(ids: dict, **overrides) -> dict:
    payload = {
        "title": "Async all the way",
        "durationInMinutes": 45,
        "language": "en",
        "level": "advanced",
        "persons": [{"id": ids["person"]}],
        "topics": [{"id": ids["topic"]}],
        "talkDates": [
            {
                "beginDate": "2021-05-20T10:00:00",
                "endDate": "2021-05-20T10:45:00",
                "roomId": ids["room"],
                "eventId": ids["event"],
            }
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_then_get_returns_submitted_fields(database):
    payload = {"name": "HQ", "lat": 1.0, "lon": 2.0}
    new_id = await _create(database, LocationRepository, payload)

    async with database.session() as session:
        location = await LocationRepository(session).get_by_id(new_id)

    assert new_id > 0
    assert LocationOut.model_validate(location).model_dump(by_alias=True) == {"id": new_id, **payload}


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get", "update", "delete"])
async def test_missing_id_raises_not_found(database, operation):
    with pytest.raises(NotFoundError):
        async with database.session() as session:
            repo = LocationRepository(session)
            if operation == "get":
                await repo.get_by_id(999999)
            elif operation == "update":
                await repo.update(999999, {"name": "HQ", "lat": 1.0, "lon": 2.0})
            else:
                await repo.delete(999999)


@pytest.mark.asyncio
async def test_update_of_missing_id_is_not_found_even_with_invalid_payload(database):
    with pytest.raises(NotFoundError):
        async with database.session() as session:
            await LocationRepository(session).update(424242, {})


@pytest.mark.asyncio
async def test_delete_twice_yields_not_found(database):
    new_id = await _create(database, OrganizationRepository, {"name": "ACME"})

    async with database.session() as session:
        await OrganizationRepository(session).delete(new_id)

    with pytest.raises(NotFoundError):
        async with database.session() as session:
            await OrganizationRepository(session).delete(new_id)


@pytest.mark.asyncio
async def test_validation_lists_every_violation_and_writes_nothing(database):
    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await TalkRepository(session).create({"durationInMinutes": 0, "level": "guru"})

    fields = {violation["field"] for violation in excinfo.value.fields}
    assert {"title", "durationInMinutes", "language", "level"} <= fields

    async with database.session() as session:
        assert await TalkRepository(session).list() == []


@pytest.mark.asyncio
async def test_unresolvable_references_fail_validation_without_partial_write(database):
    ids = await _seed_schedule(database)
    payload = _talk_payload(ids, persons=[{"id": ids["person"]}, {"id": 4040}])
    payload["talkDates"][0]["roomId"] = 5050

    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await TalkRepository(session).create(payload)

    fields = {violation["field"] for violation in excinfo.value.fields}
    assert fields == {"persons.1.id", "talkDates.0.roomId"}

    async with database.session() as session:
        assert await TalkRepository(session).list() == []
        count = await session.scalar(select(func.count()).select_from(TalkDate))
        assert count == 0


@pytest.mark.asyncio
async def test_talk_is_returned_with_relations_loaded(database):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))

    async with database.session() as session:
        talk = await TalkRepository(session).get_by_id(talk_id)
        body = TalkOut.model_validate(talk).model_dump(mode="json", by_alias=True)

    assert body["title"] == "Async all the way"
    assert body["level"] == "advanced"
    assert body["persons"][0]["organization"]["name"] == "ACME"
    assert body["topics"][0]["children"][0]["name"] == "asyncio"
    slot = body["talkDates"][0]
    assert slot["room"]["name"] == "Hall A"
    assert slot["event"]["name"] == "PyConf"
    assert slot["beginDate"] == "2021-05-20T10:00:00"


@pytest.mark.asyncio
async def test_update_replaces_relations_and_talk_dates(database):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))
    other_person = await _create(database, PersonRepository, {"name": "Grace"})

    replacement = _talk_payload(
        ids,
        title="Async, revisited",
        persons=[{"id": other_person}],
        topics=[],
        talkDates=[
            {
                "beginDate": "2021-05-21T14:00:00",
                "endDate": "2021-05-21T15:00:00",
                "roomId": ids["room"],
                "eventId": ids["event"],
            }
        ],
    )
    async with database.session() as session:
        talk = await TalkRepository(session).update(talk_id, replacement)
        assert talk.id == talk_id
        assert talk.title == "Async, revisited"
        assert [person.name for person in talk.persons] == ["Grace"]
        assert talk.topics == []
        assert [slot.begin_date.hour for slot in talk.talk_dates] == [14]

    async with database.session() as session:
        count = await session.scalar(select(func.count()).select_from(TalkDate))
        assert count == 1


@pytest.mark.asyncio
async def test_list_by_related(database):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))
    await _create(
        database, TalkRepository, _talk_payload(ids, title="Unscheduled", persons=[], talkDates=[])
    )

    async with database.session() as session:
        talks = TalkRepository(session)
        assert [t.id for t in await talks.list_by_related("event", ids["event"])] == [talk_id]
        assert [t.id for t in await talks.list_by_related("person", ids["person"])] == [talk_id]
        assert len(await talks.list_by_related("topic", ids["topic"])) == 2
        assert await talks.list_by_related("event", 999) == []

        rooms = await RoomRepository(session).list_by_related("location", ids["location"])
        assert [room.name for room in rooms] == ["Hall A"]
        persons = await PersonRepository(session).list_by_related("organization", ids["organization"])
        assert [person.name for person in persons] == ["Ada"]


@pytest.mark.asyncio
async def test_list_by_related_rejects_unknown_relation(database):
    async with database.session() as session:
        with pytest.raises(ValueError):
            await LocationRepository(session).list_by_related("talk", 1)


@pytest.mark.asyncio
async def test_deleting_referenced_location_conflicts(database):
    ids = await _seed_schedule(database)

    with pytest.raises(ConflictError):
        async with database.session() as session:
            await LocationRepository(session).delete(ids["location"])

    async with database.session() as session:
        location = await LocationRepository(session).get_by_id(ids["location"])
        assert location.name == "HQ"


@pytest.mark.asyncio
async def test_deleting_talk_removes_talk_dates_and_links(database):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))

    async with database.session() as session:
        await TalkRepository(session).delete(talk_id)

    async with database.session() as session:
        assert await session.scalar(select(func.count()).select_from(TalkDate)) == 0
        assert await session.scalar(select(func.count()).select_from(talks_at)) == 0
        person = await PersonRepository(session).get_by_id(ids["person"])
        assert person.name == "Ada"


@pytest.mark.asyncio
async def test_deleting_person_unlinks_talk(database):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))

    async with database.session() as session:
        await PersonRepository(session).delete(ids["person"])

    async with database.session() as session:
        talk = await TalkRepository(session).get_by_id(talk_id)
        assert talk.persons == []


@pytest.mark.asyncio
async def test_deleting_organization_clears_person_reference(database):
    ids = await _seed_schedule(database)

    async with database.session() as session:
        await OrganizationRepository(session).delete(ids["organization"])

    async with database.session() as session:
        person = await PersonRepository(session).get_by_id(ids["person"])
        assert person.organization_id is None
        assert person.organization is None


@pytest.mark.asyncio
async def test_topic_cannot_be_its_own_parent(database):
    topic_id = await _create(database, TopicRepository, {"name": "Python"})

    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await TopicRepository(session).update(topic_id, {"name": "Python", "parentId": topic_id})

    assert excinfo.value.fields[0]["field"] == "parentId"


async def _talk_snapshot(database, talk_id) -> dict:
    async with database.session() as session:
        talk = await TalkRepository(session).get_by_id(talk_id)
        return TalkOut.model_validate(talk).model_dump(mode="json", by_alias=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("broken", ["missing-title", "unknown-room"])
async def test_failed_update_leaves_talk_unchanged(database, broken):
    ids = await _seed_schedule(database)
    talk_id = await _create(database, TalkRepository, _talk_payload(ids))
    before = await _talk_snapshot(database, talk_id)

    payload = _talk_payload(ids, persons=[], topics=[])
    if broken == "missing-title":
        del payload["title"]
        expected_field = "title"
    else:
        payload["talkDates"][0]["roomId"] = 5050
        expected_field = "talkDates.0.roomId"

    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await TalkRepository(session).update(talk_id, payload)

    assert [violation["field"] for violation in excinfo.value.fields] == [expected_field]
    assert await _talk_snapshot(database, talk_id) == before
    async with database.session() as session:
        assert await session.scalar(select(func.count()).select_from(TalkDate)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo_cls, payload, field",
    [
        (RoomRepository, {"name": "Hall", "locationId": 2**70}, "locationId"),
        (TopicRepository, {"name": "Python", "parentId": 2**70}, "parentId"),
        (PersonRepository, {"name": "Ada", "organizationId": 2**63}, "organizationId"),
    ],
)
async def test_reference_ids_beyond_64_bits_fail_validation(database, repo_cls, payload, field):
    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await repo_cls(session).create(payload)

    assert [violation["field"] for violation in excinfo.value.fields] == [field]


@pytest.mark.asyncio
async def test_topic_cannot_be_moved_under_its_descendant(database):
    root = await _create(database, TopicRepository, {"name": "Python"})
    child = await _create(database, TopicRepository, {"name": "asyncio", "parentId": root})
    grandchild = await _create(database, TopicRepository, {"name": "TaskGroup", "parentId": child})

    with pytest.raises(ValidationFailedError) as excinfo:
        async with database.session() as session:
            await TopicRepository(session).update(root, {"name": "Python", "parentId": grandchild})

    assert excinfo.value.fields[0]["field"] == "parentId"

    async with database.session() as session:
        topic = await TopicRepository(session).get_by_id(root)
        assert topic.parent_id is None
        moved = await TopicRepository(session).update(grandchild, {"name": "TaskGroup", "parentId": root})
        assert moved.parent_id == root


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, message",
    [
        ("delete", "location is referenced by other rows"),
        ("create", "cannot create location: constraint violated"),
        ("update", "cannot update location: constraint violated"),
    ],
)
async def test_integrity_errors_are_worded_by_action(database, action, message):
    async with database.session() as session:
        repo = LocationRepository(session)
        with pytest.raises(ConflictError) as excinfo:
            with repo._classified(action):
                raise IntegrityError("INSERT ...", {}, Exception("constraint failed"))

    assert excinfo.value.message == message
