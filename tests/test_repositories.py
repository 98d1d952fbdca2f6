"""Tests for repository queries against PostgreSQL."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from promptledger.models.access_token import AccessToken
from promptledger.models.generation import GenerationRecord
from promptledger.models.user import User
from promptledger.repositories.access_token import AccessTokenRepository
from promptledger.repositories.generation import GenerationRepository
from promptledger.repositories.user import UserRepository
from promptledger.services.access_tokens import generate_token
from promptledger.services.sort_spec import SortSpec

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


def make_record(owner: User, prompt: str, **overrides) -> GenerationRecord:
    values = {
        "user_id": owner.id,
        "image_path": f"uploads/images/{uuid4().hex}.png",
        "generated_prompt": prompt,
        "original_filename": "photo.png",
        "file_size": 100,
        "mime_type": "image/png",
    }
    values.update(overrides)
    return GenerationRecord(**values)


class TestGenerationRepository:
    """Test suite for GenerationRepository.list_for_owner."""

    @pytest.mark.asyncio
    async def test_only_owner_records_are_listed(self, session, user, other_user):
        # Arrange
        session.add(make_record(user, "mine"))
        session.add(make_record(other_user, "theirs"))
        await session.commit()
        repo = GenerationRepository(session)

        # Act
        records, total = await repo.list_for_owner(user.id)

        # Assert
        assert total == 1
        assert [r.generated_prompt for r in records] == ["mine"]
        assert all(r.user_id == user.id for r in records)

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, session, user, other_user):
        session.add(make_record(user, "A Red Bicycle in the rain"))
        session.add(make_record(user, "a blue car"))
        session.add(make_record(other_user, "red bicycle owned by someone else"))
        await session.commit()
        repo = GenerationRepository(session)

        records, total = await repo.list_for_owner(user.id, search="RED bIcY")

        assert total == 1
        assert records[0].generated_prompt == "A Red Bicycle in the rain"

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, session, user):
        session.add(make_record(user, "100% cotton shirt"))
        session.add(make_record(user, "100 percent wool"))
        session.add(make_record(user, "snake_case sign"))
        session.add(make_record(user, "snakeXcase sign"))
        await session.commit()
        repo = GenerationRepository(session)

        percent_records, _ = await repo.list_for_owner(user.id, search="100%")
        underscore_records, _ = await repo.list_for_owner(user.id, search="snake_case")

        assert [r.generated_prompt for r in percent_records] == ["100% cotton shirt"]
        assert [r.generated_prompt for r in underscore_records] == ["snake_case sign"]

    @pytest.mark.asyncio
    async def test_empty_search_matches_everything(self, session, user):
        session.add(make_record(user, "one"))
        session.add(make_record(user, "two"))
        await session.commit()
        repo = GenerationRepository(session)

        _, total = await repo.list_for_owner(user.id, search="")

        assert total == 2

    @pytest.mark.asyncio
    async def test_default_sort_is_newest_first(self, session, user):
        for offset, prompt in enumerate(["oldest", "middle", "newest"]):
            session.add(make_record(user, prompt, created_at=BASE_TIME + timedelta(minutes=offset)))
        await session.commit()
        repo = GenerationRepository(session)

        records, _ = await repo.list_for_owner(user.id)

        assert [r.generated_prompt for r in records] == ["newest", "middle", "oldest"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sort, expected",
        [
            (SortSpec("file_size", False), ["small", "medium", "large"]),
            (SortSpec("file_size", True), ["large", "medium", "small"]),
            (SortSpec("generated_prompt", False), ["large", "medium", "small"]),
            (SortSpec("original_filename", True), ["small", "medium", "large"]),
            (SortSpec("created_at", False), ["medium", "small", "large"]),
        ],
    )
    async def test_sorting(self, session, user, sort, expected):
        session.add(
            make_record(
                user,
                "small",
                file_size=10,
                original_filename="c.png",
                created_at=BASE_TIME + timedelta(minutes=1),
            )
        )
        session.add(
            make_record(
                user,
                "medium",
                file_size=20,
                original_filename="b.png",
                created_at=BASE_TIME,
            )
        )
        session.add(
            make_record(
                user,
                "large",
                file_size=30,
                original_filename="a.png",
                created_at=BASE_TIME + timedelta(minutes=2),
            )
        )
        await session.commit()
        repo = GenerationRepository(session)

        records, _ = await repo.list_for_owner(user.id, sort=sort)

        assert [r.generated_prompt for r in records] == expected

    @pytest.mark.asyncio
    async def test_pagination_returns_total_across_pages(self, session, user):
        for i in range(5):
            session.add(make_record(user, f"prompt {i}", created_at=BASE_TIME + timedelta(minutes=i)))
        await session.commit()
        repo = GenerationRepository(session)

        first_page, total = await repo.list_for_owner(user.id, offset=0, limit=2)
        last_page, _ = await repo.list_for_owner(user.id, offset=4, limit=2)
        beyond, beyond_total = await repo.list_for_owner(user.id, offset=10, limit=2)

        assert total == 5
        assert [r.generated_prompt for r in first_page] == ["prompt 4", "prompt 3"]
        assert [r.generated_prompt for r in last_page] == ["prompt 0"]
        assert beyond == []
        assert beyond_total == 5

    @pytest.mark.asyncio
    async def test_search_lowercases_non_ascii_in_database(self, session, user):
        session.add(make_record(user, "ÉCLAIR au chocolat"))
        session.add(make_record(user, "plain croissant"))
        await session.commit()
        repo = GenerationRepository(session)

        records, total = await repo.list_for_owner(user.id, search="éclair")

        assert total == 1
        assert records[0].generated_prompt == "ÉCLAIR au chocolat"


class TestUserRepository:
    """Test suite for UserRepository."""

    @pytest.mark.asyncio
    async def test_add_normalizes_email(self, session):
        repo = UserRepository(session)

        user = await repo.add(User(email="  Ada@Example.COM ", name="Ada"))
        await session.commit()

        assert user.email == "ada@example.com"
        assert (await repo.get_by_email("ADA@example.com")).id == user.id

    @pytest.mark.asyncio
    async def test_get_or_create_reuses_existing_user(self, session, user):
        repo = UserRepository(session)

        same = await repo.get_or_create("U1@EXAMPLE.COM")
        created = await repo.get_or_create("new@example.com", name="New")
        await session.commit()

        assert same.id == user.id
        assert created.id != user.id
        assert created.name == "New"


class TestAccessTokenRepository:
    """Test suite for AccessTokenRepository."""

    @pytest.mark.asyncio
    async def test_resolves_user_by_token_hash(self, session, user):
        _, token_hash = generate_token()
        repo = AccessTokenRepository(session)
        await repo.add(AccessToken(user_id=user.id, token_hash=token_hash))
        await session.commit()

        resolved = await repo.get_user_by_token_hash(token_hash)

        assert resolved is not None
        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_unknown_hash_resolves_to_none(self, session, user):
        repo = AccessTokenRepository(session)

        assert await repo.get_user_by_token_hash("0" * 64) is None
