"""Tests for ContentItemRepository."""

import pytest
from unittest.mock import MagicMock, patch

from sqlalchemy.orm import Session

from src.repositories.content_item_repository import ContentItemRepository
from src.models.content_item import ContentItem


@pytest.fixture
def mock_db():
    """Create a mock database session with chainable query."""
    session = MagicMock(spec=Session)
    mock_query = MagicMock()
    session.query.return_value = mock_query
    mock_query.filter.return_value = mock_query
    mock_query.order_by.return_value = mock_query
    mock_query.limit.return_value = mock_query
    return session


@pytest.fixture
def content_repo(mock_db):
    with patch.object(ContentItemRepository, "__init__", lambda self: None):
        repo = ContentItemRepository()
        repo._db = mock_db
        return repo


@pytest.mark.unit
class TestContentItemRepository:
    """Test suite for ContentItemRepository."""

    def test_get_by_share_path(self, content_repo, mock_db):
        mock_item = MagicMock()
        mock_db.query.return_value.first.return_value = mock_item

        assert content_repo.get_by_share_path("abc123") is mock_item

    def test_share_path_exists(self, content_repo, mock_db):
        mock_db.query.return_value.first.return_value = ("some-id",)
        assert content_repo.share_path_exists("taken") is True

        mock_db.query.return_value.first.return_value = None
        assert content_repo.share_path_exists("free") is False

    def test_count_reactions(self, content_repo, mock_db):
        mock_db.query.return_value.count.return_value = 4

        assert content_repo.count_reactions("item-1") == 4

    def test_list_by_owner_with_limit(self, content_repo, mock_db):
        mock_db.query.return_value.all.return_value = []

        content_repo.list_by_owner("acc-1", limit=5)

        mock_db.query.return_value.limit.assert_called_once_with(5)

    def test_create(self, content_repo, mock_db):
        content_repo.create(
            owner_id="acc-1",
            body="hello",
            share_path="0123456789abcdef",
            reaction_length=20,
            max_reactions_allowed=3,
        )

        added = mock_db.add.call_args[0][0]
        assert isinstance(added, ContentItem)
        assert added.body == "hello"
        assert added.share_path == "0123456789abcdef"
        assert added.reaction_length == 20
        assert added.max_reactions_allowed == 3
        assert added.has_reply is False
        assert added.viewed is False
        assert added.moderation_status == "approved"
        mock_db.commit.assert_called_once()
        mock_db.refresh.assert_called_once_with(added)

    def test_mark_has_reply(self, content_repo, mock_db):
        mock_db.execute.return_value.rowcount = 1

        assert content_repo.mark_has_reply("item-1") is True

        sql = str(mock_db.execute.call_args[0][0])
        assert "has_reply" in sql
        mock_db.commit.assert_called_once()

    def test_mark_viewed_missing_item(self, content_repo, mock_db):
        mock_db.execute.return_value.rowcount = 0

        assert content_repo.mark_viewed("missing") is False
