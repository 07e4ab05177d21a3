"""Tests for the Repository service against the fake document store."""

import re
from datetime import date, datetime, timezone

import pytest

from couchmapper.core.conditions import Condition, Operator, PatternKind
from couchmapper.core.errors import (
    RevisionConflictError,
    StoreError,
    UnknownPropertyError,
    UnsupportedOperatorError,
)
from couchmapper.core.repository import Repository
from couchmapper.core.validation import PresenceValidator
from couchmapper.tests.fakes import FakeDocumentStorePort, User


class ValidatedUser(User):
    validators = (PresenceValidator("name"),)


@pytest.fixture
async def store() -> FakeDocumentStorePort:
    fake = FakeDocumentStorePort()
    await fake.create_database("users")
    fake.reset()
    return fake


@pytest.fixture
async def users(store: FakeDocumentStorePort) -> Repository[User]:
    return Repository(store, User)


def new_user(**options) -> User:
    defaults = {"name": "Jamie", "age": 67, "wealth": 11.5}
    defaults.update(options)
    return User(**defaults)


async def seed(users: Repository[User]) -> None:
    """Three Jamies aged 67 and one John aged 50."""
    for _ in range(3):
        await users.save(new_user())
    await users.save(new_user(name="John", age=50))


def test_repository_requires_database_name() -> None:
    from couchmapper.core.models import Resource

    class Nameless(Resource):
        pass

    with pytest.raises(ValueError, match="must declare a database name"):
        Repository(FakeDocumentStorePort(), Nameless)


# ============================================================================
# CRUD
# ============================================================================


@pytest.mark.asyncio
async def test_create_record(users: Repository[User]) -> None:
    user = new_user()

    assert await users.save(user) is True
    assert user.id is not None
    assert user.rev is not None
    assert user.new_record is False


@pytest.mark.asyncio
async def test_get_record(users: Repository[User]) -> None:
    created = new_user()
    await users.save(created)

    user = await users.get(created.id)

    assert user is not None
    assert user.id == created.id
    assert user.rev is not None
    assert user.name == "Jamie"
    assert user.age == 67
    assert user.wealth == 11.5


@pytest.mark.asyncio
async def test_get_missing_record_returns_none(users: Repository[User]) -> None:
    assert await users.get("nope") is None


@pytest.mark.asyncio
async def test_update_record_changes_revision_only(users: Repository[User]) -> None:
    created = new_user()
    await users.save(created)

    user = await users.get(created.id)
    user.name = "Janet"
    assert await users.save(user) is True

    assert user.name != created.name
    assert user.rev != created.rev
    assert user.age == created.age
    assert user.id == created.id

    reloaded = await users.get(created.id)
    assert reloaded.name == "Janet"
    assert reloaded.rev == user.rev


@pytest.mark.asyncio
async def test_update_sends_full_document(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    user = new_user()
    await users.save(user)
    user.age = 68
    await users.save(user)

    operation, document = store.calls[-1]
    assert operation == "update"
    assert document["name"] == "Jamie"
    assert document["age"] == 68


@pytest.mark.asyncio
async def test_update_keeps_undeclared_fields(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    doc_id, _ = await store.create(
        "users", {"name": "Jamie", "age": 67, "nickname": "J", "tags": ["a", "b"]}
    )

    user = await users.get(doc_id)
    user.name = "Janet"
    assert await users.save(user) is True

    stored = await store.read("users", doc_id)
    assert stored["name"] == "Janet"
    assert stored["nickname"] == "J"
    assert stored["tags"] == ["a", "b"]
    assert "nickname" not in user.to_document(dirty=True)


@pytest.mark.asyncio
async def test_save_without_changes_skips_store(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    user = new_user()
    await users.save(user)
    rev = user.rev
    store.reset()

    assert await users.save(user) is True
    assert store.calls == []
    assert user.rev == rev


@pytest.mark.asyncio
async def test_stale_revision_conflicts(users: Repository[User]) -> None:
    created = new_user()
    await users.save(created)

    first = await users.get(created.id)
    second = await users.get(created.id)
    first.name = "Janet"
    await users.save(first)

    second.name = "Joan"
    with pytest.raises(RevisionConflictError):
        await users.save(second)


@pytest.mark.asyncio
async def test_destroy_record(users: Repository[User]) -> None:
    user = new_user()
    await users.save(user)

    assert await users.destroy(user) is True
    assert await users.get(user.id) is None


@pytest.mark.asyncio
async def test_destroy_unsaved_record_is_false(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    assert await users.destroy(new_user()) is False
    assert store.calls == []


@pytest.mark.asyncio
async def test_date_and_datetime_round_trip(users: Repository[User]) -> None:
    created_at = datetime(2024, 3, 1, 9, 30, 15, 250000, tzinfo=timezone.utc)
    user = new_user(created_at=created_at, created_on=date(2024, 3, 1))
    await users.save(user)

    fetched = await users.get(user.id)

    assert fetched.created_at == created_at
    assert fetched.created_on == date(2024, 3, 1)


# ============================================================================
# Validation and failures
# ============================================================================


@pytest.mark.asyncio
async def test_invalid_record_is_not_saved(store: FakeDocumentStorePort) -> None:
    repository = Repository(store, ValidatedUser)
    user = ValidatedUser(age=20)

    assert await repository.save(user) is False
    assert user.errors.on("name") == ["Name must not be blank"]
    assert user.new_record is True
    assert store.calls == []


@pytest.mark.asyncio
async def test_store_failure_propagates(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    store.fail_with = StoreError("connection refused")
    user = new_user()

    with pytest.raises(StoreError, match="connection refused"):
        await users.save(user)
    assert user.new_record is True
    assert user.id is None


@pytest.mark.asyncio
async def test_destroy_failure_propagates(
    users: Repository[User], store: FakeDocumentStorePort
) -> None:
    user = new_user()
    await users.save(user)
    store.fail_with = StoreError("connection refused")

    with pytest.raises(StoreError):
        await users.destroy(user)


# ============================================================================
# Queries
# ============================================================================


@pytest.mark.asyncio
async def test_all_records(users: Repository[User]) -> None:
    await seed(users)
    assert len(await users.all()) == 4
    assert await users.count() == 4


@pytest.mark.asyncio
async def test_eql_matchers(users: Repository[User]) -> None:
    await seed(users)
    assert len(await users.all({"name": "John"})) == 1
    assert len(await users.all({"age": 50})) == 1
    assert len(await users.all({"wealth": 11.5})) == 4


@pytest.mark.asyncio
async def test_comparison_matchers(users: Repository[User]) -> None:
    await seed(users)
    assert await users.count({"age": {"not": 50}}) == 3
    assert await users.count({"age": {"gt": 50}}) == 3
    assert await users.count({"age": {"gte": 50}}) == 4
    assert await users.count({"age": {"lt": 50}}) == 0
    assert await users.count({"age": {"lte": 50}}) == 1


@pytest.mark.asyncio
async def test_like_matcher(users: Repository[User]) -> None:
    await seed(users)
    assert await users.count({"name": {"like": "Jo"}}) == 0
    assert await users.count({"name": {"like": "Jo%"}}) == 1
    assert await users.count({"name": {"like": re.compile("^Jam")}}) == 3


@pytest.mark.asyncio
async def test_multiple_matchers(users: Repository[User]) -> None:
    await seed(users)
    await users.save(new_user(name="John", age=30))
    assert await users.count({"name": "John", "age": {"lt": 50}}) == 1


@pytest.mark.asyncio
async def test_order_records(users: Repository[User]) -> None:
    await seed(users)
    await users.save(new_user(name="Aaron", age=30))
    await users.save(new_user(name="Aaron"))

    by_age = await users.all(order=["age"])
    assert by_age[0].age == 30

    by_name_age = await users.all(order=["name", "age"])
    assert [(u.name, u.age) for u in by_name_age[:2]] == [("Aaron", 30), ("Aaron", 67)]


@pytest.mark.asyncio
async def test_first_with_order(users: Repository[User]) -> None:
    await seed(users)
    youngest = await users.first(order=["age"])
    assert youngest.name == "John"
    assert await users.first({"name": "Nobody"}) is None


@pytest.mark.asyncio
async def test_condition_values_are_typecast(users: Repository[User]) -> None:
    await seed(users)
    assert await users.count({"age": "50"}) == 1


@pytest.mark.asyncio
async def test_fractional_operands_compare_as_given(users: Repository[User]) -> None:
    await users.save(new_user(name="John", age=49))
    await users.save(new_user(name="Jane", age=50))

    assert [u.name for u in await users.all({"age": {"lt": 49.5}})] == ["John"]
    assert await users.count({"age": {"gt": 49.5}}) == 1
    assert await users.count({"age": 50.7}) == 0
    assert await users.count({"age": 50.0}) == 1
    assert await users.count({"age": {"not": 50.7}}) == 2


def test_compile_query_keeps_numeric_operands() -> None:
    query = Repository(FakeDocumentStorePort(), User).compile_query(
        {"age": {"lt": 49.5, "gte": "18"}}
    )

    assert query.conditions == (
        Condition("age", Operator.LT, 49.5),
        Condition("age", Operator.GTE, 18),
    )


@pytest.mark.asyncio
async def test_date_conditions_compare_wire_values(users: Repository[User]) -> None:
    await users.save(new_user(created_on=date(2024, 1, 15)))
    await users.save(new_user(created_on=date(2024, 6, 1)))

    assert await users.count({"created_on": {"gt": date(2024, 3, 1)}}) == 1


def test_compile_query_maps_storage_fields() -> None:
    query = Repository(FakeDocumentStorePort(), User).compile_query(
        {"id": "u1", "name": {"like": "Jo%"}}, order=["rev"]
    )

    assert query.conditions == (
        Condition("_id", Operator.EQ, "u1"),
        Condition("name", Operator.LIKE, "Jo%", PatternKind.LITERAL),
    )
    assert query.order == ("_rev",)


@pytest.mark.asyncio
async def test_unknown_property_in_query(users: Repository[User]) -> None:
    with pytest.raises(UnknownPropertyError):
        await users.all({"height": 180})
    with pytest.raises(UnknownPropertyError):
        await users.all(order=["height"])


@pytest.mark.asyncio
async def test_unsupported_operator_in_query(users: Repository[User]) -> None:
    with pytest.raises(UnsupportedOperatorError):
        await users.all({"age": {"between": [1, 2]}})
