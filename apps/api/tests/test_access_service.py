"""Tests for authorization predicates."""
import uuid

import pytest

from mediature.core.errors import DomainError, ErrorKind
from mediature.services import access_service


def test_admin_detection(db, admin, outsider):
    assert access_service.is_user_an_admin(db, admin.id)
    assert not access_service.is_user_an_admin(db, outsider.id)


def test_empty_request_is_vacuously_granted(db, outsider):
    assert access_service.find_authorities_not_agent_of(db, outsider.id, []) == set()
    assert access_service.find_authorities_not_main_agent_of(db, outsider.id, []) == set()
    assert access_service.is_user_an_agent_part_of_authorities(db, [], outsider.id)
    assert access_service.is_user_main_agent_of_authorities(db, [], outsider.id)


def test_agent_membership_is_conjunctive(db, agent, authority, other_authority):
    user_id = agent.user_id

    assert access_service.is_user_an_agent_part_of_authority(db, authority.id, user_id)
    assert not access_service.is_user_an_agent_part_of_authority(db, other_authority.id, user_id)
    assert not access_service.is_user_an_agent_part_of_authorities(
        db, [authority.id, other_authority.id], user_id
    )

    denied = access_service.find_authorities_not_agent_of(
        db, user_id, [authority.id, other_authority.id]
    )
    assert denied == {other_authority.id}


def test_duplicate_ids_are_ignored(db, agent, authority):
    assert access_service.is_user_an_agent_part_of_authorities(
        db, [authority.id, authority.id], agent.user_id
    )


def test_unknown_authority_is_denied(db, agent):
    missing = uuid.uuid4()
    assert access_service.find_authorities_not_agent_of(db, agent.user_id, [missing]) == {missing}


def test_main_agent_predicate(db, main_agent, agent, authority):
    assert access_service.is_user_main_agent_of_authority(db, authority.id, main_agent.user_id)
    assert not access_service.is_user_main_agent_of_authority(db, authority.id, agent.user_id)


def test_main_agent_of_several_authorities(db, make_agent, main_agent, authority, other_authority):
    make_agent(other_authority, user=main_agent.user, main=True)

    assert access_service.is_user_main_agent_of_authorities(
        db, [authority.id, other_authority.id], main_agent.user_id
    )


def test_main_agent_requires_every_authority(db, make_agent, main_agent, authority, other_authority):
    # Agent of the other authority, but not its main agent
    make_agent(other_authority, user=main_agent.user)

    denied = access_service.find_authorities_not_main_agent_of(
        db, main_agent.user_id, [authority.id, other_authority.id]
    )
    assert denied == {other_authority.id}


def test_ensure_admin_or_main_agent(db, admin, main_agent, agent, authority):
    access_service.ensure_admin_or_main_agent(db, admin.id, authority.id)
    access_service.ensure_admin_or_main_agent(db, main_agent.user_id, authority.id)

    with pytest.raises(DomainError) as exc_info:
        access_service.ensure_admin_or_main_agent(db, agent.user_id, authority.id)
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert exc_info.value.context["denied_authority_ids"] == {authority.id}


def test_ensure_admin_or_agent_of_lists_denied_authorities(
    db, agent, authority, other_authority
):
    with pytest.raises(DomainError) as exc_info:
        access_service.ensure_admin_or_agent_of(
            db, agent.user_id, [authority.id, other_authority.id]
        )
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert exc_info.value.context["denied_authority_ids"] == {other_authority.id}


def test_ensure_admin(db, admin, main_agent):
    access_service.ensure_admin(db, admin.id)
    with pytest.raises(DomainError) as exc_info:
        access_service.ensure_admin(db, main_agent.user_id)
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
