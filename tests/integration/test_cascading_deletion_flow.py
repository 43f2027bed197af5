"""Integration tests for cascading deletion.

Builds a real graph (account -> items -> reactions -> replies) in SQLite,
deletes it through CascadingDeletionService and checks that no rows
survive and every media object was sent to the (mocked) media store.
"""
import uuid
from datetime import datetime

import pytest
from botocore.exceptions import ClientError
from dateutil.relativedelta import relativedelta

from src.exceptions import NotFoundError
from src.models.account import Account
from src.models.content_item import ContentItem
from src.models.reaction import Reaction
from src.models.reply import Reply
from src.models.service_run import ServiceRun
from src.services.core.cascading_deletion import CascadingDeletionService
from src.services.core.content import ContentService
from src.services.core.reaction_lifecycle import ReactionLifecycleService


def _row_count(session_factory, model, *criteria) -> int:
    session = session_factory()
    try:
        return session.query(model).filter(*criteria).count()
    finally:
        session.close()


def _deleted_keys(s3_client) -> set:
    keys = set()
    for call in s3_client.delete_objects.call_args_list:
        keys.update(obj["Key"] for obj in call.kwargs["Delete"]["Objects"])
    return keys


@pytest.fixture
def populated_account(sqlite_db, make_account, s3_client):
    """An account with one video item, one reacted-to reaction and a reply."""
    owner_id = make_account(picture_url="https://media.example.com/profiles/owner.webp")

    item = ContentService().create_content_item(
        owner_id, "look at this", media=b"video-bytes", file_name="intro.mp4"
    )
    lifecycle = ReactionLifecycleService()
    init = lifecycle.initialize(item.id, "session-1", name="Alex")
    clip = lifecycle.attach_media(init.reaction_id, b"clip-bytes", file_name="clip.mp4")
    lifecycle.add_text_reply(init.reaction_id, "loved it")

    return {
        "owner_id": owner_id,
        "item_id": item.id,
        "item_key": item.media_url.split("https://media.example.com/", 1)[1],
        "reaction_id": init.reaction_id,
        "clip_key": clip.key,
    }


@pytest.mark.integration
class TestDeleteAccountFlow:
    def test_delete_account_removes_everything(self, sqlite_db, s3_client, populated_account):
        owner_id = populated_account["owner_id"]

        result = CascadingDeletionService().delete_account(owner_id)

        assert result.items_deleted == 1
        assert result.reactions_deleted == 1
        assert result.replies_deleted == 1
        assert result.media_purged == 3
        assert result.media_failed == 0

        assert _row_count(sqlite_db, Account, Account.id == owner_id) == 0
        assert _row_count(sqlite_db, ContentItem, ContentItem.owner_id == owner_id) == 0
        assert _row_count(sqlite_db, Reaction) == 0
        assert _row_count(sqlite_db, Reply) == 0

        assert _deleted_keys(s3_client) == {
            populated_account["item_key"],
            populated_account["clip_key"],
            "profiles/owner.webp",
        }

    def test_service_runs_outlive_deleted_account(self, sqlite_db, s3_client, populated_account):
        owner_id = populated_account["owner_id"]

        CascadingDeletionService().delete_account(owner_id)

        session = sqlite_db()
        try:
            run = (
                session.query(ServiceRun)
                .filter(ServiceRun.method_name == "create_content_item")
                .one()
            )
            assert run.account_id is None
            assert run.input_params["owner_id"] == str(owner_id)
            deletion = (
                session.query(ServiceRun)
                .filter(ServiceRun.method_name == "delete_account")
                .one()
            )
            assert deletion.success is True
        finally:
            session.close()

    def test_media_purge_failure_still_reports_success(
        self, sqlite_db, s3_client, populated_account
    ):
        s3_client.delete_objects.side_effect = ClientError(
            {"Error": {"Code": "InternalError", "Message": "store unavailable"}},
            "DeleteObjects",
        )
        owner_id = populated_account["owner_id"]

        result = CascadingDeletionService().delete_account(owner_id)

        assert result.items_deleted == 1
        assert result.media_purged == 0
        assert result.media_failed == 3
        assert _row_count(sqlite_db, Account, Account.id == owner_id) == 0

    def test_delete_missing_account(self, sqlite_db, s3_client):
        with pytest.raises(NotFoundError):
            CascadingDeletionService().delete_account(uuid.uuid4())

        s3_client.delete_objects.assert_not_called()


@pytest.mark.integration
class TestDeleteContentFlow:
    def test_delete_content_item(self, sqlite_db, s3_client, populated_account):
        item_id = populated_account["item_id"]

        result = CascadingDeletionService().delete_content_item(item_id)

        assert result.items_deleted == 1
        assert result.reactions_deleted == 1
        assert result.replies_deleted == 1
        assert result.media_purged == 2
        assert _row_count(sqlite_db, ContentItem, ContentItem.id == item_id) == 0
        assert _row_count(sqlite_db, Reaction) == 0
        # The account survives with its profile picture
        assert _row_count(
            sqlite_db, Account, Account.id == populated_account["owner_id"]
        ) == 1
        assert s3_client.delete_object.call_count == 2

    def test_delete_content_item_despite_purge_failure(
        self, sqlite_db, s3_client, populated_account
    ):
        item_id = populated_account["item_id"]
        s3_client.delete_object.side_effect = [
            ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "DeleteObject"
            ),
            {},
        ]

        result = CascadingDeletionService().delete_content_item(item_id)

        assert result.media_purged == 1
        assert result.media_failed == 1
        assert _row_count(sqlite_db, ContentItem, ContentItem.id == item_id) == 0
        assert _row_count(sqlite_db, Reaction) == 0
        assert _row_count(sqlite_db, Reply) == 0

    def test_delete_reactions_keeps_item(self, sqlite_db, s3_client, populated_account):
        item_id = populated_account["item_id"]

        result = CascadingDeletionService().delete_reactions_for_item(item_id)

        assert result.items_deleted == 0
        assert result.reactions_deleted == 1
        assert result.replies_deleted == 1
        assert result.media_purged == 1
        assert _row_count(sqlite_db, ContentItem, ContentItem.id == item_id) == 1
        assert _row_count(sqlite_db, Reaction, Reaction.content_item_id == item_id) == 0
        s3_client.delete_object.assert_called_once_with(
            Bucket="reactlyve-test", Key=populated_account["clip_key"]
        )

    def test_delete_single_reaction(self, sqlite_db, s3_client, populated_account):
        result = CascadingDeletionService().delete_reaction(populated_account["reaction_id"])

        assert result.reactions_deleted == 1
        assert result.replies_deleted == 1
        assert _row_count(sqlite_db, Reply) == 0
        assert _row_count(
            sqlite_db, ContentItem, ContentItem.id == populated_account["item_id"]
        ) == 1


@pytest.mark.integration
class TestInactiveAccountSweep:
    def test_sweep_uses_last_login_then_created_at(self, sqlite_db, make_account, s3_client):
        now = datetime(2026, 6, 15, 12, 0)
        stale_login = make_account(
            last_login_at=now - relativedelta(months=13),
            created_at=now - relativedelta(years=3),
        )
        never_logged_in = make_account(
            last_login_at=None,
            created_at=now - relativedelta(months=14),
        )
        recent_login = make_account(
            last_login_at=now - relativedelta(days=2),
            created_at=now - relativedelta(years=3),
        )
        new_account = make_account(
            last_login_at=None,
            created_at=now - relativedelta(days=10),
        )

        outcomes = CascadingDeletionService().sweep_inactive_accounts(
            relativedelta(months=12), now=now
        )

        assert {outcome.account_id for outcome in outcomes} == {stale_login, never_logged_in}
        assert all(outcome.success for outcome in outcomes)
        assert _row_count(sqlite_db, Account, Account.id == recent_login) == 1
        assert _row_count(sqlite_db, Account, Account.id == new_account) == 1
        assert _row_count(sqlite_db, Account) == 2

    def test_sweep_respects_limit(self, sqlite_db, make_account, s3_client):
        now = datetime(2026, 6, 15, 12, 0)
        for _ in range(3):
            make_account(last_login_at=now - relativedelta(years=2))

        outcomes = CascadingDeletionService().sweep_inactive_accounts(
            relativedelta(months=12), now=now, limit=2
        )

        assert len(outcomes) == 2
        assert _row_count(sqlite_db, Account) == 1
