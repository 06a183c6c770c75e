"""
CRUD behaviour against a live PostgreSQL database
Runs only when TABLEDB_TEST_DATABASE_URL is set
"""

import os

import pytest
import pytest_asyncio

from tabledb import ConflictError, DatabaseSettings, InvalidArgumentError, connect

DATABASE_URL = os.getenv("TABLEDB_TEST_DATABASE_URL")
TABLE = "tabledb_people"
ROLES = "tabledb_roles"

pytestmark = [
    pytest.mark.integration,
    pytest.mark.asyncio,
    pytest.mark.skipif(not DATABASE_URL, reason="TABLEDB_TEST_DATABASE_URL not set"),
]

PEOPLE = [
    {"name": "Ann", "email": "ann@x.com", "age": 31, "team": "red"},
    {"name": "Bob", "email": "bob@x.com", "age": 45, "team": "red"},
    {"name": "Cid", "email": "cid@x.com", "age": 22, "team": "red"},
    {"name": "Dee", "email": "dee@x.com", "age": 38, "team": "blue"},
]


@pytest_asyncio.fixture
async def store():
    """Store over a freshly created people table"""
    settings = DatabaseSettings(url=DATABASE_URL, min_size=1, max_size=4)
    async with connect(settings) as store:
        await store.query(f"DROP TABLE IF EXISTS {TABLE}")
        await store.query(
            f"CREATE TABLE {TABLE} ("
            "id SERIAL PRIMARY KEY, name TEXT, email TEXT UNIQUE, age INTEGER, team TEXT)"
        )
        yield store
        await store.query(f"DROP TABLE IF EXISTS {TABLE}")


@pytest.fixture
def people(store):
    return store.table(TABLE)


async def test_created_row_round_trips(people):
    row = dict(PEOPLE[0])

    insert_id = await people.create_one(row)
    found = await people.find({"id": insert_id})

    assert found == {**row, "id": insert_id}


async def test_empty_filter_returns_every_row(people):
    await people.create_many(PEOPLE)

    assert len(await people.filter({})) == len(PEOPLE)


async def test_find_without_match_returns_none(people):
    await people.create_many(PEOPLE)

    assert await people.find({"email": "nobody@x.com"}) is None


async def test_create_many_returns_first_id(people):
    first_id = await people.create_many(PEOPLE)

    found = await people.find({"id": first_id})

    assert found["name"] == PEOPLE[0]["name"]


async def test_create_many_rejects_empty_batch(people):
    with pytest.raises(InvalidArgumentError):
        await people.create_many([])


async def test_update_one_touches_one_row_update_touches_all(people):
    await people.create_many(PEOPLE)

    assert await people.update_one({"team": "red"}, {"age": 99}) == 1
    assert len(await people.filter({"age": 99})) == 1
    assert await people.update({"team": "red"}, {"age": 50}) == 3


async def test_upsert_creates_then_updates_in_place(store, people):
    before = len(await people.filter({}))

    first = await people.upsert({"email": "a@x.com"}, {"email": "a@x.com", "name": "A"})
    second = await people.upsert({"email": "a@x.com"}, {"name": "A2"})

    assert first == second
    assert len(await people.filter({})) == before + 1
    assert (await people.find({"id": first}))["name"] == "A2"


@pytest.mark.parametrize("direction", ["desc", "DESC", "Desc"])
async def test_order_descending_any_case(people, direction):
    await people.create_many(PEOPLE)

    rows = await people.filter({}, {"order": ["age", direction]})

    assert [row["age"] for row in rows] == sorted((p["age"] for p in PEOPLE), reverse=True)


async def test_limit_and_offset(people):
    await people.create_many(PEOPLE)
    ordered = await people.filter({}, {"order": ["age", "asc"]})

    window = await people.filter({}, {"order": ["age", "asc"], "limit": 2, "offset": 1})
    no_limit = await people.filter({}, {"order": ["age", "asc"], "offset": 1})

    assert window == ordered[1:3]
    assert no_limit == ordered


async def test_remove_returns_count(people):
    await people.create_many(PEOPLE)

    assert await people.remove({"team": "red"}) == 3
    assert len(await people.filter({})) == 1


async def test_duplicate_unique_value_is_a_conflict(people):
    await people.create_one(PEOPLE[0])

    with pytest.raises(ConflictError):
        await people.create_one(PEOPLE[0])


async def test_operator_filters(people):
    await people.create_many(PEOPLE)

    adults = await people.filter({"age": {"op": ">=", "value": 38}}, {"order": "age"})
    either = await people.filter({"$or": [{"name": "Ann"}, {"team": "blue"}]}, {"order": "name"})

    assert [row["name"] for row in adults] == ["Dee", "Bob"]
    assert [row["name"] for row in either] == ["Ann", "Dee"]


@pytest_asyncio.fixture
async def roles(store):
    """Table without an id column"""
    await store.query(f"DROP TABLE IF EXISTS {ROLES}")
    await store.query(f"CREATE TABLE {ROLES} (user_id INTEGER, role TEXT)")
    yield store.table(ROLES)
    await store.query(f"DROP TABLE IF EXISTS {ROLES}")


async def test_create_on_table_without_id_column(roles):
    assert await roles.create_one({"user_id": 1, "role": "admin"}) == 0
    assert await roles.create([{"user_id": 2, "role": "viewer"}, {"user_id": 3, "role": "viewer"}]) == 0

    assert len(await roles.filter({"role": "viewer"})) == 2
    assert await roles.update({"role": "viewer"}, {"role": "editor"}) == 2
    assert await roles.remove({"user_id": 1}) == 1


async def test_raw_update_returning_keeps_rows(store, people):
    insert_id = await people.create_one(dict(PEOPLE[0]))

    result = await store.query(f"UPDATE {TABLE} SET age = age + 1 WHERE id = $1 RETURNING id, age", [insert_id])

    assert result.rows == [{"id": insert_id, "age": PEOPLE[0]["age"] + 1}]


async def test_raw_delete_reports_affected_rows(store, people):
    await people.create_many(PEOPLE)

    result = await store.query(f"DELETE FROM {TABLE} WHERE team = $1", ["red"])

    assert result.affected_rows == 3
