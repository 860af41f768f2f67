"""Tests for project/user reports and CSV export."""
import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from bugtracker.db.models import Ticket
from bugtracker.services import report_service


async def _project(client: AsyncClient, owner, *members) -> dict:
    response = await client.post(
        "/projects/",
        json={"title": "Apollo", "team_member_ids": [str(m.user.id) for m in members]},
        headers=owner.headers,
    )
    return response.json()


async def _ticket(client: AsyncClient, auth, project_id: str, **body) -> dict:
    response = await client.post(
        "/tickets/", json={"project_id": project_id, "title": "T", **body}, headers=auth.headers
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Project report
# =============================================================================

@pytest.mark.asyncio
async def test_project_report_breakdowns(client: AsyncClient, db, alice, bob):
    project = await _project(client, alice, bob)
    pid = project["id"]
    done = await _ticket(client, alice, pid, status="Done", assignee_id=str(bob.user.id))
    await _ticket(client, alice, pid, priority="High", type="Feature", assignee_id=str(bob.user.id))
    await _ticket(client, alice, pid, assignee_id=str(alice.user.id))

    # Resolved exactly 1.5 days after creation
    ticket = db.get(Ticket, uuid.UUID(done["id"]))
    ticket.updated_at = ticket.created_at + timedelta(days=1, hours=12)
    db.commit()

    response = await client.get(f"/reports/project/{pid}", headers=bob.headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_tickets"] == 3
    assert data["status_breakdown"] == {"Done": 1, "To Do": 2}
    assert data["priority_breakdown"] == {"Medium": 2, "High": 1}
    assert data["type_breakdown"] == {"Bug": 2, "Feature": 1}
    assert data["assignee_breakdown"] == [
        {"assignee_id": str(bob.user.id), "name": "Bob", "count": 2},
        {"assignee_id": str(alice.user.id), "name": "Alice", "count": 1},
    ]
    assert data["avg_resolution_time"] == "1.50"


@pytest.mark.asyncio
async def test_project_report_without_done_tickets_is_zero(client: AsyncClient, alice):
    project = await _project(client, alice)
    await _ticket(client, alice, project["id"])

    response = await client.get(f"/reports/project/{project['id']}", headers=alice.headers)

    assert response.json()["avg_resolution_time"] == "0.00"
    assert response.json()["assignee_breakdown"] == []


@pytest.mark.asyncio
async def test_project_report_requires_membership(client: AsyncClient, alice, carol):
    project = await _project(client, alice)

    assert (await client.get(f"/reports/project/{project['id']}", headers=carol.headers)).status_code == 403
    assert (await client.get(f"/reports/project/{uuid.uuid4()}", headers=alice.headers)).status_code == 404


def test_average_resolution_time_over_done_only():
    from datetime import datetime, timezone

    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    tickets = [
        SimpleNamespace(status="Done", created_at=start, updated_at=start + timedelta(days=1)),
        SimpleNamespace(status="Done", created_at=start, updated_at=start + timedelta(days=2)),
        SimpleNamespace(status="To Do", created_at=start, updated_at=start + timedelta(days=30)),
    ]

    assert report_service.average_resolution_time(tickets) == "1.50"
    assert report_service.average_resolution_time([]) == "0.00"


# =============================================================================
# User report
# =============================================================================

@pytest.mark.asyncio
async def test_user_report_self_and_admin(client: AsyncClient, alice, bob, admin):
    first = await _project(client, alice, bob)
    await _ticket(client, alice, first["id"], assignee_id=str(bob.user.id), status="Done")
    await _ticket(client, alice, first["id"], assignee_id=str(bob.user.id), priority="Low")
    second = await _project(client, bob)
    await _ticket(client, bob, second["id"], assignee_id=str(bob.user.id))

    own = await client.get(f"/reports/user/{bob.user.id}", headers=bob.headers)
    by_admin = await client.get(f"/reports/user/{bob.user.id}", headers=admin.headers)

    assert own.status_code == 200
    assert own.json() == by_admin.json()
    data = own.json()
    assert data["total_assigned"] == 3
    assert data["status_breakdown"] == {"Done": 1, "To Do": 2}
    assert data["priority_breakdown"] == {"Medium": 2, "Low": 1}
    assert data["project_breakdown"][0] == {
        "project_id": first["id"],
        "name": "Apollo",
        "count": 2,
    }
    assert sum(p["count"] for p in data["project_breakdown"]) == 3


@pytest.mark.asyncio
async def test_user_report_access(client: AsyncClient, alice, bob, admin):
    other = await client.get(f"/reports/user/{bob.user.id}", headers=alice.headers)
    assert other.status_code == 403

    missing = await client.get(f"/reports/user/{uuid.uuid4()}", headers=admin.headers)
    assert missing.status_code == 404


# =============================================================================
# CSV export
# =============================================================================

def test_escape_csv_field():
    assert report_service.escape_csv_field('Bug, "urgent"') == '"Bug, ""urgent"""'
    assert report_service.escape_csv_field('say "hi"') == 'say ""hi""'
    assert report_service.escape_csv_field("line one\nline two") == '"line one\nline two"'
    assert report_service.escape_csv_field("plain") == "plain"
    assert report_service.escape_csv_field(None) == ""


@pytest.mark.asyncio
async def test_export_csv(client: AsyncClient, alice, bob):
    project = await _project(client, alice, bob)
    pid = project["id"]
    first = await _ticket(client, alice, pid, title='Bug, "urgent"', assignee_id=str(bob.user.id))
    second = await _ticket(client, alice, pid, title="Plain", description="No commas here")

    response = await client.get(f"/reports/export/tickets/{pid}", headers=bob.headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == f'attachment; filename="tickets-{pid}.csv"'

    lines = response.text.strip().split("\n")
    assert lines[0] == "ID,Title,Description,Status,Priority,Type,Assignee,Reporter,Created At,Updated At"
    assert lines[1].startswith(f'{first["id"]},"Bug, ""urgent""",,To Do,Medium,Bug,Bob,Alice,')
    assert lines[2].startswith(f"{second['id']},Plain,No commas here,To Do,Medium,Bug,Unassigned,Alice,")


@pytest.mark.asyncio
async def test_export_csv_requires_membership(client: AsyncClient, alice, carol):
    project = await _project(client, alice)

    response = await client.get(f"/reports/export/tickets/{project['id']}", headers=carol.headers)

    assert response.status_code == 403
