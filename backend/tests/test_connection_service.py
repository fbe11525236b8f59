"""
DevLink Backend — Connection Service Tests
============================================

What:  The connection request state machine against an in-memory database.

What we test:
    ✅ send_request guards (unknown user, self, duplicate either direction)
    ✅ A racing duplicate that slips past the lookup still ends in Conflict
    ✅ accept/reject guards and terminal states
    ✅ Two accepts of the same request cannot both succeed
    ✅ remove by either party in any status
    ✅ Listing accepted and pending connections, with ordering
    ✅ Notification events published for request and accept only
"""

import uuid
from datetime import datetime, timezone

import pytest

from devlink.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from devlink.models.connection import ConnectionStatus
from devlink.models.notification import NotificationType
from devlink.repositories.connections import ConnectionRepository


class TestSendRequest:
    """Tests for send_request guards and side effects."""

    @pytest.mark.asyncio
    async def test_creates_pending_connection_with_both_parties(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")

        result = await connection_service.send_request(alice.id, bob.id)

        assert result.status == ConnectionStatus.PENDING
        assert result.requester.id == alice.id
        assert result.requester.name == "Alice"
        assert result.recipient.id == bob.id
        assert result.recipient.email == "bob@example.com"
        assert result.responded_at is None

    @pytest.mark.asyncio
    async def test_publishes_connection_request_event(self, connection_service, events, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")

        result = await connection_service.send_request(alice.id, bob.id)

        assert len(events.events) == 1
        event = events.events[0]
        assert event.type == NotificationType.CONNECTION_REQUEST
        assert event.recipient_id == bob.id
        assert event.sender_id == alice.id
        assert event.message == "Alice sent you a connection request"
        assert event.related_connection_id == result.id

    @pytest.mark.asyncio
    async def test_unknown_recipient_is_not_found(self, connection_service, make_user):
        alice = await make_user("Alice")

        with pytest.raises(NotFoundError):
            await connection_service.send_request(alice.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_request_to_self_is_invalid(self, connection_service, events, make_user):
        alice = await make_user("Alice")

        with pytest.raises(InvalidOperationError):
            await connection_service.send_request(alice.id, alice.id)
        assert events.events == []

    @pytest.mark.asyncio
    async def test_duplicate_request_conflicts(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await connection_service.send_request(alice.id, bob.id)

        with pytest.raises(ConflictError):
            await connection_service.send_request(alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_reverse_request_conflicts_and_original_stays_pending(
        self, connection_service, make_user
    ):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        original = await connection_service.send_request(alice.id, bob.id)

        with pytest.raises(ConflictError):
            await connection_service.send_request(bob.id, alice.id)

        received = await connection_service.list_pending(bob.id, direction="received")
        assert [c.id for c in received] == [original.id]
        assert received[0].status == ConnectionStatus.PENDING

    @pytest.mark.asyncio
    async def test_request_after_rejection_still_conflicts(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)
        await connection_service.reject(conn.id, bob.id)

        with pytest.raises(ConflictError):
            await connection_service.send_request(alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_race_past_lookup_hits_unique_index(
        self, connection_service, make_user, monkeypatch
    ):
        """A concurrent duplicate that the lookup missed is stopped by pair_key."""
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await connection_service.send_request(alice.id, bob.id)

        async def nothing_found(a, b):
            return None

        monkeypatch.setattr(connection_service.connections, "find_between", nothing_found)

        with pytest.raises(ConflictError):
            await connection_service.send_request(bob.id, alice.id)


class TestRespond:
    """Tests for accept/reject."""

    @pytest.mark.asyncio
    async def test_accept_sets_status_and_timestamp(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)

        result = await connection_service.accept(conn.id, bob.id)

        assert result.id == conn.id
        assert result.status == ConnectionStatus.ACCEPTED
        assert result.responded_at is not None
        assert result.requester.id == alice.id

    @pytest.mark.asyncio
    async def test_accept_notifies_requester(self, connection_service, events, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)
        events.events.clear()

        await connection_service.accept(conn.id, bob.id)

        assert len(events.events) == 1
        event = events.events[0]
        assert event.type == NotificationType.CONNECTION_ACCEPTED
        assert event.recipient_id == alice.id
        assert event.sender_id == bob.id
        assert event.message == "Bob accepted your connection request"

    @pytest.mark.asyncio
    async def test_reject_publishes_nothing(self, connection_service, events, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)
        events.events.clear()

        result = await connection_service.reject(conn.id, bob.id)

        assert result.msg == "Connection request rejected"
        assert events.events == []

    @pytest.mark.asyncio
    async def test_unknown_connection_is_not_found(self, connection_service, make_user):
        bob = await make_user("Bob")

        with pytest.raises(NotFoundError):
            await connection_service.accept(uuid.uuid4(), bob.id)
        with pytest.raises(NotFoundError):
            await connection_service.reject(uuid.uuid4(), bob.id)

    @pytest.mark.asyncio
    async def test_only_recipient_may_respond(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        conn = await connection_service.send_request(alice.id, bob.id)

        for actor in (alice, carol):
            with pytest.raises(ForbiddenError):
                await connection_service.accept(conn.id, actor.id)
            with pytest.raises(ForbiddenError):
                await connection_service.reject(conn.id, actor.id)

    @pytest.mark.asyncio
    async def test_forbidden_checked_before_status(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        conn = await connection_service.send_request(alice.id, bob.id)
        await connection_service.accept(conn.id, bob.id)

        with pytest.raises(ForbiddenError):
            await connection_service.reject(conn.id, carol.id)

    @pytest.mark.asyncio
    async def test_accepted_and_rejected_are_terminal(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        accepted = await connection_service.send_request(alice.id, bob.id)
        rejected = await connection_service.send_request(carol.id, bob.id)
        await connection_service.accept(accepted.id, bob.id)
        await connection_service.reject(rejected.id, bob.id)

        for conn_id in (accepted.id, rejected.id):
            with pytest.raises(InvalidOperationError):
                await connection_service.accept(conn_id, bob.id)
            with pytest.raises(InvalidOperationError):
                await connection_service.reject(conn_id, bob.id)

    @pytest.mark.asyncio
    async def test_concurrent_accept_loses_on_conditional_update(
        self, connection_service, session, make_user
    ):
        """
        Another transaction accepts between our read and our update: the
        loaded row still says pending, but the guarded UPDATE matches nothing.
        """
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)

        repo = ConnectionRepository(session)
        stale = await repo.get(conn.id)
        assert stale.status == ConnectionStatus.PENDING.value
        assert await repo.transition(conn.id, ConnectionStatus.ACCEPTED, datetime.now(timezone.utc))

        with pytest.raises(InvalidOperationError):
            await connection_service.accept(conn.id, bob.id)

    @pytest.mark.asyncio
    async def test_transition_only_moves_pending_rows(self, session, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)
        repo = ConnectionRepository(session)
        now = datetime.now(timezone.utc)

        assert await repo.transition(conn.id, ConnectionStatus.ACCEPTED, now) is True
        assert await repo.transition(conn.id, ConnectionStatus.REJECTED, now) is False
        assert await repo.transition(conn.id, ConnectionStatus.ACCEPTED, now) is False


class TestRemove:
    """Tests for remove()."""

    @pytest.mark.asyncio
    async def test_either_party_can_remove_in_any_status(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        dave = await make_user("Dave")

        pending = await connection_service.send_request(alice.id, bob.id)
        accepted = await connection_service.send_request(alice.id, carol.id)
        await connection_service.accept(accepted.id, carol.id)
        rejected = await connection_service.send_request(dave.id, alice.id)
        await connection_service.reject(rejected.id, alice.id)

        assert (await connection_service.remove(pending.id, alice.id)).msg == "Connection removed"
        assert (await connection_service.remove(accepted.id, carol.id)).msg == "Connection removed"
        assert (await connection_service.remove(rejected.id, dave.id)).msg == "Connection removed"

        assert await connection_service.list_accepted(alice.id) == []
        assert await connection_service.list_pending(bob.id, direction="received") == []

    @pytest.mark.asyncio
    async def test_third_party_cannot_remove(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        conn = await connection_service.send_request(alice.id, bob.id)

        with pytest.raises(ForbiddenError):
            await connection_service.remove(conn.id, carol.id)

    @pytest.mark.asyncio
    async def test_remove_unknown_is_not_found(self, connection_service, make_user):
        alice = await make_user("Alice")

        with pytest.raises(NotFoundError):
            await connection_service.remove(uuid.uuid4(), alice.id)

    @pytest.mark.asyncio
    async def test_pair_can_reconnect_after_removal(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conn = await connection_service.send_request(alice.id, bob.id)
        await connection_service.remove(conn.id, bob.id)

        again = await connection_service.send_request(bob.id, alice.id)

        assert again.status == ConnectionStatus.PENDING
        assert again.requester.id == bob.id


class TestListing:
    """Tests for list_accepted and list_pending."""

    @pytest.mark.asyncio
    async def test_list_accepted_shows_other_party_with_profile(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user(
            "Bob",
            bio="Backend dev",
            location="Berlin",
            skills=["python", "sql"],
            profile_picture="https://img.example.com/bob.png",
        )
        conn = await connection_service.send_request(alice.id, bob.id)
        await connection_service.accept(conn.id, bob.id)

        alice_view = await connection_service.list_accepted(alice.id)
        bob_view = await connection_service.list_accepted(bob.id)

        assert len(alice_view) == 1
        entry = alice_view[0]
        assert entry.connection_id == conn.id
        assert entry.user.id == bob.id
        assert entry.user.bio == "Backend dev"
        assert entry.user.skills == ["python", "sql"]
        assert entry.user.profile_picture == "https://img.example.com/bob.png"
        assert entry.connected_at is not None

        assert bob_view[0].user.id == alice.id
        assert bob_view[0].user.bio is None
        assert bob_view[0].user.skills == []

    @pytest.mark.asyncio
    async def test_list_accepted_newest_first_and_excludes_pending(
        self, connection_service, make_user
    ):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        dave = await make_user("Dave")

        first = await connection_service.send_request(alice.id, bob.id)
        second = await connection_service.send_request(carol.id, alice.id)
        await connection_service.send_request(alice.id, dave.id)
        await connection_service.accept(first.id, bob.id)
        await connection_service.accept(second.id, alice.id)

        result = await connection_service.list_accepted(alice.id)

        assert [c.connection_id for c in result] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_list_pending_by_direction(self, connection_service, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob", profile_picture="https://img.example.com/bob.png")
        carol = await make_user("Carol")

        to_bob = await connection_service.send_request(alice.id, bob.id)
        to_carol = await connection_service.send_request(alice.id, carol.id)

        sent = await connection_service.list_pending(alice.id, direction="sent")
        received = await connection_service.list_pending(bob.id, direction="received")

        assert [c.id for c in sent] == [to_carol.id, to_bob.id]
        assert [c.id for c in received] == [to_bob.id]
        assert received[0].requester.id == alice.id
        assert sent[1].recipient.profile_picture == "https://img.example.com/bob.png"
        assert await connection_service.list_pending(alice.id, direction="received") == []

    @pytest.mark.asyncio
    async def test_list_pending_rejects_unknown_direction(self, connection_service, make_user):
        alice = await make_user("Alice")

        with pytest.raises(ValidationError):
            await connection_service.list_pending(alice.id, direction="sideways")
