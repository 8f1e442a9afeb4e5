"""
Unit tests for ContactRepository.
"""

import pytest
from bson import ObjectId


@pytest.fixture
def portfolio_id():
    return ObjectId()


class TestExistsForPortfolioEmail:
    """Test suite for exists_for_portfolio_email()."""

    @pytest.mark.anyio
    async def test_false_before_any_message(self, contact_repo, portfolio_id):
        assert await contact_repo.exists_for_portfolio_email(portfolio_id, "a@b.co") is False

    @pytest.mark.anyio
    async def test_true_after_message(self, contact_repo, portfolio_id):
        # Arrange
        await contact_repo.create(
            {"portfolio_id": portfolio_id, "email": "visitor@example.com", "message": "Hi!"}
        )

        # Act
        exists = await contact_repo.exists_for_portfolio_email(str(portfolio_id), "visitor@example.com")

        # Assert
        assert exists is True

    @pytest.mark.anyio
    async def test_email_is_normalized(self, contact_repo, portfolio_id):
        # Arrange
        await contact_repo.create(
            {"portfolio_id": portfolio_id, "email": "  Visitor@Example.COM ", "message": "Hi!"}
        )

        # Act & Assert
        assert await contact_repo.exists_for_portfolio_email(portfolio_id, "VISITOR@example.com") is True

    @pytest.mark.anyio
    async def test_scoped_to_portfolio(self, contact_repo, portfolio_id):
        # Arrange
        await contact_repo.create(
            {"portfolio_id": portfolio_id, "email": "visitor@example.com", "message": "Hi!"}
        )

        # Act & Assert
        assert await contact_repo.exists_for_portfolio_email(ObjectId(), "visitor@example.com") is False

    @pytest.mark.anyio
    async def test_malformed_inputs_are_false(self, contact_repo, portfolio_id):
        assert await contact_repo.exists_for_portfolio_email("nope", "visitor@example.com") is False
        assert await contact_repo.exists_for_portfolio_email(portfolio_id, "not an email") is False


class TestSubmit:
    """Test suite for submit()."""

    @pytest.mark.anyio
    async def test_first_submission_is_stored(self, contact_repo, portfolio_id):
        # Act
        contact = await contact_repo.submit(
            {"portfolio_id": str(portfolio_id), "email": "visitor@example.com", "message": "Hello"}
        )

        # Assert
        assert contact is not None
        assert contact.id is not None
        assert contact.portfolio_id == portfolio_id
        assert await contact_repo.count() == 1

    @pytest.mark.anyio
    async def test_repeat_submission_returns_none(self, contact_repo, portfolio_id):
        # Arrange
        data = {"portfolio_id": portfolio_id, "email": "visitor@example.com", "message": "Hello"}
        await contact_repo.submit(data)

        # Act
        second = await contact_repo.submit({**data, "message": "Hello again"})

        # Assert
        assert second is None
        assert await contact_repo.count() == 1

    @pytest.mark.anyio
    async def test_unique_index_catches_race(self, contact_repo, mongo_db, portfolio_id, monkeypatch):
        """
        Arrange: Unique (portfolio_id, email) index, existing message, and a
            stale existence check that misses it
        Act: Submit again
        Assert: DuplicateKeyError is reported as None, nothing inserted
        """
        # Arrange
        await mongo_db["contacts"].create_index(
            [("portfolio_id", 1), ("email", 1)], unique=True
        )
        data = {"portfolio_id": portfolio_id, "email": "visitor@example.com", "message": "Hello"}
        await contact_repo.create(data)

        async def stale_check(portfolio_id, email):
            return False

        monkeypatch.setattr(contact_repo, "exists_for_portfolio_email", stale_check)

        # Act
        result = await contact_repo.submit(data)

        # Assert
        assert result is None
        assert await contact_repo.count() == 1

    @pytest.mark.anyio
    async def test_blank_message_rejected(self, contact_repo, portfolio_id):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            await contact_repo.submit(
                {"portfolio_id": portfolio_id, "email": "visitor@example.com", "message": "   "}
            )
