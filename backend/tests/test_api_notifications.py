"""
DevLink Backend — Notification and Messaging API Tests
========================================================

What we test:
    ✅ Feed, unread count, mark read (own ids only), mark all, delete
    ✅ Conversation lifecycle over HTTP, including 201 on send
"""

import uuid

import pytest

from devlink.models.notification import Notification, NotificationType


@pytest.fixture
def add_notification(session):
    async def _add(recipient, sender, message="something happened"):
        n = Notification(
            recipient_id=recipient.id,
            sender_id=sender.id,
            type=NotificationType.POST_COMMENT.value,
            message=message,
        )
        session.add(n)
        await session.commit()
        return n
    return _add


class TestNotificationRoutes:
    @pytest.mark.asyncio
    async def test_feed_and_unread_count(self, test_client, make_user, auth_headers, add_notification):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await add_notification(bob, alice, "Alice commented on your post")

        resp = await test_client.get("/api/notifications", headers=auth_headers(bob))
        assert resp.status_code == 200
        feed = resp.json()
        assert len(feed) == 1
        assert feed[0]["message"] == "Alice commented on your post"
        assert feed[0]["sender"]["name"] == "Alice"
        assert feed[0]["timeAgo"] == "just now"

        resp = await test_client.get("/api/notifications/unread-count", headers=auth_headers(bob))
        assert resp.json() == {"count": 1}

    @pytest.mark.asyncio
    async def test_pagination_params_validated(self, test_client, make_user, auth_headers):
        bob = await make_user("Bob")

        resp = await test_client.get("/api/notifications?limit=500", headers=auth_headers(bob))
        assert resp.status_code == 422
        resp = await test_client.get("/api/notifications?page=0", headers=auth_headers(bob))
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_mark_read_skips_foreign_ids(
        self, test_client, make_user, auth_headers, add_notification
    ):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")
        for_bob = await add_notification(bob, alice)
        for_carol = await add_notification(carol, alice)

        resp = await test_client.put(
            "/api/notifications/mark-read",
            json={"notificationIds": [str(for_bob.id), str(for_carol.id)]},
            headers=auth_headers(bob),
        )

        assert resp.status_code == 200
        assert resp.json() == {"msg": "Notifications marked as read"}
        resp = await test_client.get("/api/notifications/unread-count", headers=auth_headers(carol))
        assert resp.json() == {"count": 1}
        resp = await test_client.get("/api/notifications/unread-count", headers=auth_headers(bob))
        assert resp.json() == {"count": 0}

    @pytest.mark.asyncio
    async def test_mark_read_requires_ids(self, test_client, make_user, auth_headers):
        bob = await make_user("Bob")

        resp = await test_client.put("/api/notifications/mark-read", json={}, headers=auth_headers(bob))

        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_mark_all_read(self, test_client, make_user, auth_headers, add_notification):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await add_notification(bob, alice)
        await add_notification(bob, alice)

        resp = await test_client.put("/api/notifications/mark-all-read", headers=auth_headers(bob))

        assert resp.status_code == 200
        resp = await test_client.get("/api/notifications/unread-count", headers=auth_headers(bob))
        assert resp.json() == {"count": 0}

    @pytest.mark.asyncio
    async def test_delete_one_and_all(self, test_client, make_user, auth_headers, add_notification):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        first = await add_notification(bob, alice)
        await add_notification(bob, alice)

        resp = await test_client.delete(f"/api/notifications/{first.id}", headers=auth_headers(alice))
        assert resp.status_code == 401

        resp = await test_client.delete(f"/api/notifications/{uuid.uuid4()}", headers=auth_headers(bob))
        assert resp.status_code == 404

        resp = await test_client.delete(f"/api/notifications/{first.id}", headers=auth_headers(bob))
        assert resp.status_code == 200
        resp = await test_client.get("/api/notifications", headers=auth_headers(bob))
        assert len(resp.json()) == 1

        resp = await test_client.delete("/api/notifications", headers=auth_headers(bob))
        assert resp.status_code == 200
        resp = await test_client.get("/api/notifications", headers=auth_headers(bob))
        assert resp.json() == []


class TestMessageRoutes:
    @pytest.mark.asyncio
    async def test_send_list_and_read(self, test_client, make_user, auth_headers):
        alice = await make_user("Alice")
        bob = await make_user("Bob")

        resp = await test_client.post(
            "/api/messages",
            json={"recipientId": str(bob.id), "text": "hey bob"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 201
        message = resp.json()
        assert message["text"] == "hey bob"
        assert message["isRead"] is False

        resp = await test_client.get("/api/messages/conversations", headers=auth_headers(bob))
        inbox = resp.json()
        assert len(inbox) == 1
        assert inbox[0]["otherUser"]["id"] == str(alice.id)
        assert inbox[0]["unreadCount"] == 1
        assert inbox[0]["lastMessage"] == "hey bob"
        conversation_id = inbox[0]["id"]
        assert conversation_id == message["conversationId"]

        resp = await test_client.get(
            f"/api/messages/conversations/{conversation_id}/messages", headers=auth_headers(bob)
        )
        assert resp.status_code == 200
        assert [m["isRead"] for m in resp.json()] == [True]

        resp = await test_client.get("/api/messages/conversations", headers=auth_headers(bob))
        assert resp.json()[0]["unreadCount"] == 0

    @pytest.mark.asyncio
    async def test_open_conversation(self, test_client, make_user, auth_headers):
        alice = await make_user("Alice")
        bob = await make_user("Bob")

        resp = await test_client.post(
            "/api/messages/conversations",
            json={"userId": str(bob.id)},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 200
        assert sorted(resp.json()["participants"]) == sorted([str(alice.id), str(bob.id)])

        resp = await test_client.post(
            "/api/messages/conversations",
            json={"userId": str(alice.id)},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_outsider_cannot_read(self, test_client, make_user, auth_headers):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        eve = await make_user("Eve")
        resp = await test_client.post(
            "/api/messages",
            json={"recipientId": str(bob.id), "text": "secret"},
            headers=auth_headers(alice),
        )
        conversation_id = resp.json()["conversationId"]

        resp = await test_client.get(
            f"/api/messages/conversations/{conversation_id}/messages", headers=auth_headers(eve)
        )

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_blank_message_400(self, test_client, make_user, auth_headers):
        alice = await make_user("Alice")
        bob = await make_user("Bob")

        resp = await test_client.post(
            "/api/messages",
            json={"recipientId": str(bob.id), "text": "   "},
            headers=auth_headers(alice),
        )

        assert resp.status_code == 400
