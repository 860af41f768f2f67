"""Tests for ticket comments and the activity feed."""
import uuid

import pytest
from httpx import AsyncClient

from bugtracker.core.config import settings
from bugtracker.db.enums import ActivityTargetType
from bugtracker.db.models import Activity
from bugtracker.services import activity_service


async def _ticket(client: AsyncClient, owner) -> dict:
    project = (
        await client.post("/projects/", json={"title": "Apollo"}, headers=owner.headers)
    ).json()
    response = await client.post(
        "/tickets/", json={"project_id": project["id"], "title": "Crash"}, headers=owner.headers
    )
    return response.json()


@pytest.mark.asyncio
async def test_comments_are_listed_oldest_first_with_author(client: AsyncClient, alice):
    ticket = await _ticket(client, alice)
    for text in ("first", "second"):
        response = await client.post(
            "/comments/", json={"ticket_id": ticket["id"], "text": text}, headers=alice.headers
        )
        assert response.status_code == 201

    response = await client.get(f"/comments/ticket/{ticket['id']}", headers=alice.headers)

    assert response.status_code == 200
    data = response.json()
    assert [c["text"] for c in data] == ["first", "second"]
    assert data[0]["user"]["name"] == "Alice"


@pytest.mark.asyncio
async def test_comment_logs_activity_against_ticket(client: AsyncClient, db, alice):
    ticket = await _ticket(client, alice)

    response = await client.post(
        "/comments/", json={"ticket_id": ticket["id"], "text": "Repro attached"}, headers=alice.headers
    )

    comment_activity = db.query(Activity).filter(Activity.target_type == "Comment").one()
    assert comment_activity.action == "added a comment"
    assert comment_activity.target_id == uuid.UUID(response.json()["id"])
    assert comment_activity.target_name == "Crash"
    assert str(comment_activity.project_id) == ticket["project_id"]


@pytest.mark.asyncio
async def test_comment_requires_existing_ticket_and_text(client: AsyncClient, alice):
    missing = await client.post(
        "/comments/", json={"ticket_id": str(uuid.uuid4()), "text": "hi"}, headers=alice.headers
    )
    assert missing.status_code == 404

    ticket = await _ticket(client, alice)
    empty = await client.post(
        "/comments/", json={"ticket_id": ticket["id"]}, headers=alice.headers
    )
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_comments_open_to_non_members_by_default(client: AsyncClient, alice, carol):
    ticket = await _ticket(client, alice)

    response = await client.post(
        "/comments/", json={"ticket_id": ticket["id"], "text": "drive-by"}, headers=carol.headers
    )

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_comment_membership_can_be_required(client: AsyncClient, monkeypatch, alice, carol):
    monkeypatch.setattr(settings, "COMMENTS_REQUIRE_MEMBERSHIP", True)
    ticket = await _ticket(client, alice)

    post = await client.post(
        "/comments/", json={"ticket_id": ticket["id"], "text": "drive-by"}, headers=carol.headers
    )
    listing = await client.get(f"/comments/ticket/{ticket['id']}", headers=carol.headers)
    own = await client.post(
        "/comments/", json={"ticket_id": ticket["id"], "text": "mine"}, headers=alice.headers
    )

    assert post.status_code == 403
    assert listing.status_code == 403
    assert own.status_code == 201


@pytest.mark.asyncio
async def test_activity_feed_newest_first_with_project_title(client: AsyncClient, alice):
    await _ticket(client, alice)

    response = await client.get("/activities/", headers=alice.headers)

    assert response.status_code == 200
    data = response.json()
    assert [a["action"] for a in data] == ['created ticket "Crash"', "created project"]
    assert data[0]["user"]["name"] == "Alice"
    assert data[0]["project"]["title"] == "Apollo"
    assert data[0]["target_type"] == "Ticket"


@pytest.mark.asyncio
async def test_activity_feed_is_capped(client: AsyncClient, db, monkeypatch, alice):
    monkeypatch.setattr(settings, "ACTIVITY_FEED_LIMIT", 3)
    for i in range(5):
        activity_service.log_activity(
            db,
            user_id=alice.user.id,
            action=f"did thing {i}",
            target_type=ActivityTargetType.USER,
            target_id=alice.user.id,
            target_name="Alice",
        )

    response = await client.get("/activities/", headers=alice.headers)

    assert [a["action"] for a in response.json()] == ["did thing 4", "did thing 3", "did thing 2"]


@pytest.mark.asyncio
async def test_activity_feed_requires_auth(client: AsyncClient):
    assert (await client.get("/activities/")).status_code == 401
