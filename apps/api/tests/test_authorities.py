"""Tests for authority administration."""
import pytest

from mediature.db.models import Authority


@pytest.mark.asyncio
async def test_admin_creates_authority(db, client_as, admin):
    response = await client_as(admin).post(
        "/authorities",
        json={"name": "Ville de Nantes", "slug": "Nantes", "type": "CITY"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "nantes"
    assert data["main_agent_id"] is None
    assert db.query(Authority).filter(Authority.slug == "nantes").count() == 1


@pytest.mark.asyncio
async def test_duplicate_slug_conflicts(client_as, admin, authority):
    response = await client_as(admin).post(
        "/authorities",
        json={"name": "Doublon", "slug": authority.slug, "type": "CITY"},
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.asyncio
async def test_invalid_slug_rejected(client_as, admin):
    response = await client_as(admin).post(
        "/authorities", json={"name": "Ville", "slug": "pas de slug", "type": "CITY"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_non_admin_cannot_create(client_as, main_agent):
    response = await client_as(main_agent.user).post(
        "/authorities", json={"name": "Ville", "slug": "ville", "type": "CITY"}
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_list_authorities_filters_by_name(client_as, admin, authority, other_authority):
    response = await client_as(admin).get("/authorities", params={"q": "lyon"})

    assert response.status_code == 200
    names = [a["name"] for a in response.json()["authorities"]]
    assert names == ["Ville de Lyon"]


@pytest.mark.asyncio
async def test_agent_reads_own_authority_only(client_as, agent, authority, other_authority):
    http = client_as(agent.user)

    assert (await http.get(f"/authorities/{authority.id}")).status_code == 200
    assert (await http.get(f"/authorities/{other_authority.id}")).status_code == 403


@pytest.mark.asyncio
async def test_update_authority_main_agent(client_as, admin, agent, authority):
    response = await client_as(admin).patch(
        f"/authorities/{authority.id}",
        json={
            "name": "Ville de Paris",
            "slug": authority.slug,
            "type": "CITY",
            "main_agent_id": str(agent.id),
        },
    )

    assert response.status_code == 200
    assert response.json()["main_agent_id"] == str(agent.id)


@pytest.mark.asyncio
async def test_update_with_foreign_main_agent_conflicts(
    client_as, admin, make_agent, authority, other_authority
):
    foreign = make_agent(other_authority)

    response = await client_as(admin).patch(
        f"/authorities/{authority.id}",
        json={
            "name": "Ville de Paris",
            "slug": authority.slug,
            "type": "CITY",
            "main_agent_id": str(foreign.id),
        },
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_deleted_authority_disappears(client_as, client, admin, authority):
    slug = authority.slug
    http = client_as(admin)

    response = await http.delete(f"/authorities/{authority.id}")
    assert response.status_code == 204

    assert (await http.get(f"/authorities/{authority.id}")).status_code == 404
    assert (await client.get(f"/authorities/public/{slug}")).status_code == 404


@pytest.mark.asyncio
async def test_public_facing_authority(client, authority):
    response = await client.get(f"/authorities/public/{authority.slug}")

    assert response.status_code == 200
    assert response.json() == {
        "id": str(authority.id),
        "name": "Ville de Paris",
        "slug": authority.slug,
        "type": "CITY",
        "logo_attachment_id": None,
    }
