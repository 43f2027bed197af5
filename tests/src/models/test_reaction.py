"""Tests for Reaction model."""

import pytest

from src.models.reaction import Reaction


@pytest.mark.unit
class TestReactionModel:
    """Tests for Reaction model definition and lifecycle rules."""

    def test_table_name(self):
        assert Reaction.__tablename__ == "reactions"

    def test_unique_session_constraint(self):
        constraint_names = {c.name for c in Reaction.__table__.constraints}
        assert "unique_reaction_per_session" in constraint_names

    def test_status_check_constraint(self):
        constraint_names = {c.name for c in Reaction.__table__.constraints}
        assert "check_reaction_status" in constraint_names

    def test_client_session_id_is_nullable(self):
        """Direct reactions have no client session."""
        assert Reaction.__table__.columns["client_session_id"].nullable is True

    def test_content_item_id_not_nullable(self):
        assert Reaction.__table__.columns["content_item_id"].nullable is False

    def test_pending_can_complete(self):
        reaction = Reaction(status=Reaction.STATUS_PENDING)
        assert reaction.can_transition_to(Reaction.STATUS_COMPLETE) is True

    def test_complete_is_terminal(self):
        reaction = Reaction(status=Reaction.STATUS_COMPLETE)
        assert reaction.can_transition_to(Reaction.STATUS_COMPLETE) is False
        assert reaction.can_transition_to(Reaction.STATUS_PENDING) is False

    def test_pending_cannot_stay_pending(self):
        reaction = Reaction(status=Reaction.STATUS_PENDING)
        assert reaction.can_transition_to(Reaction.STATUS_PENDING) is False

    def test_unknown_status_allows_nothing(self):
        reaction = Reaction(status="archived")
        assert reaction.can_transition_to(Reaction.STATUS_COMPLETE) is False

    def test_repr(self):
        reaction = Reaction(status="pending")
        assert "pending" in repr(reaction)


@pytest.mark.unit
class TestStatusesLeadingTo:
    def test_only_pending_leads_to_complete(self):
        assert Reaction.statuses_leading_to(Reaction.STATUS_COMPLETE) == {Reaction.STATUS_PENDING}

    def test_nothing_leads_back_to_pending(self):
        assert Reaction.statuses_leading_to(Reaction.STATUS_PENDING) == set()
