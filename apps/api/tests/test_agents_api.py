"""Tests for the agent and invitation HTTP endpoints."""
import uuid

import pytest

from mediature.db.enums import InvitationStatus
from mediature.db.models import Agent, Invitation


@pytest.mark.asyncio
async def test_list_agents(client_as, agent, main_agent, authority, make_case):
    make_case(authority, agent=agent)
    make_case(authority, agent=agent, closed=True)

    response = await client_as(agent.user).get(
        "/agents", params={"authority_ids": [str(authority.id)]}
    )

    assert response.status_code == 200
    wrappers = {w["agent"]["id"]: w for w in response.json()["agents_wrappers"]}
    assert wrappers[str(agent.id)]["open_cases"] == 1
    assert wrappers[str(agent.id)]["close_cases"] == 1
    assert wrappers[str(agent.id)]["agent"]["email"] == "agent@example.com"
    assert wrappers[str(main_agent.id)]["agent"]["is_main_agent"] is True


@pytest.mark.asyncio
async def test_list_agents_forbidden_reports_denied_authorities(
    client_as, agent, authority, other_authority
):
    response = await client_as(agent.user).get(
        "/agents",
        params={"authority_ids": [str(authority.id), str(other_authority.id)]},
    )

    assert response.status_code == 403
    body = response.json()
    assert body["kind"] == "forbidden"
    assert body["context"]["denied_authority_ids"] == [str(other_authority.id)]
    assert body["detail"]


@pytest.mark.asyncio
async def test_get_agent(client_as, agent, main_agent):
    response = await client_as(agent.user).get(f"/agents/{main_agent.id}")

    assert response.status_code == 200
    assert response.json()["firstname"] == "Martin"
    assert response.json()["is_main_agent"] is True


@pytest.mark.asyncio
async def test_get_unknown_agent(client_as, admin):
    response = await client_as(admin).get(f"/agents/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invite_then_list_then_cancel(db, client_as, main_agent, authority, sent_emails):
    http = client_as(main_agent.user)

    response = await http.post(
        "/agents/invite",
        json={
            "authority_id": str(authority.id),
            "invitee_email": "Invited@Example.com",
            "invitee_firstname": "Ivan",
        },
    )
    assert response.status_code == 200
    invitation_id = response.json()["invitation_id"]
    assert response.json()["agent"] is None
    assert sent_emails[0]["to"] == "invited@example.com"

    duplicate = await http.post(
        "/agents/invite",
        json={"authority_id": str(authority.id), "invitee_email": "invited@example.com"},
    )
    assert duplicate.status_code == 409

    listed = await http.get(
        "/agents/invitations",
        params={"authority_ids": [str(authority.id)], "status": "PENDING"},
    )
    assert listed.status_code == 200
    invitations = listed.json()["invitations"]
    assert [i["id"] for i in invitations] == [invitation_id]
    assert invitations[0]["issuer"]["email"] == "main@example.com"
    assert "token" not in invitations[0]

    canceled = await http.post(f"/invitations/{invitation_id}/cancel")
    assert canceled.status_code == 200

    db.expire_all()
    assert db.get(Invitation, uuid.UUID(invitation_id)).status == InvitationStatus.CANCELED.value


@pytest.mark.asyncio
async def test_invite_existing_user_returns_agent(client_as, main_agent, authority, outsider):
    response = await client_as(main_agent.user).post(
        "/agents/invite",
        json={"authority_id": str(authority.id), "invitee_email": outsider.email},
    )

    assert response.status_code == 200
    assert response.json()["invitation_id"] is None
    assert response.json()["agent"]["user_id"] == str(outsider.id)


@pytest.mark.asyncio
async def test_add_agent_endpoint(client_as, admin, authority, outsider):
    response = await client_as(admin).post(
        "/agents",
        json={"user_id": str(outsider.id), "authority_id": str(authority.id)},
    )

    assert response.status_code == 201
    assert response.json()["authority_id"] == str(authority.id)
    assert response.json()["is_main_agent"] is False


@pytest.mark.asyncio
async def test_grant_main_agent_endpoint(client_as, main_agent, agent, authority):
    http = client_as(main_agent.user)

    response = await http.post(
        f"/agents/{agent.id}/grant-main", json={"authority_id": str(authority.id)}
    )
    assert response.status_code == 200

    fetched = await http.get(f"/agents/{agent.id}")
    assert fetched.json()["is_main_agent"] is True


@pytest.mark.asyncio
async def test_remove_agent_endpoint(db, client_as, main_agent, agent, authority):
    agent_id = agent.id

    response = await client_as(main_agent.user).delete(
        f"/agents/{agent_id}", params={"authority_id": str(authority.id)}
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Agent, agent_id) is None


@pytest.mark.asyncio
async def test_regular_agent_cannot_remove_endpoint(client_as, agent, main_agent, authority):
    response = await client_as(agent.user).delete(
        f"/agents/{main_agent.id}", params={"authority_id": str(authority.id)}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_public_invitation_lookup(client, db, main_agent, authority, client_as):
    invite = await client_as(main_agent.user).post(
        "/agents/invite",
        json={"authority_id": str(authority.id), "invitee_email": "someone@example.com"},
    )
    token = db.get(Invitation, uuid.UUID(invite.json()["invitation_id"])).token

    response = await client.get(f"/invitations/public/{token}")

    assert response.status_code == 200
    invitation = response.json()["invitation"]
    assert invitation["invitee_email"] == "someone@example.com"
    assert invitation["status"] == "PENDING"
    assert invitation["issuer"]["firstname"] == "Martin"


@pytest.mark.asyncio
async def test_admin_invites_admin(client_as, admin, sent_emails):
    response = await client_as(admin).post(
        "/invitations/admins", json={"invitee_email": "new-admin@example.com"}
    )

    assert response.status_code == 200
    assert response.json()["granted"] is False
    assert response.json()["invitation"]["invitee_email"] == "new-admin@example.com"
    assert len(sent_emails) == 1


@pytest.mark.asyncio
async def test_health(client, db):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
