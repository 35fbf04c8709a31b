from __future__ import annotations

import pytest

from src.flockcare.flockcare.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import (
    ADMIN,
    MEMBER_ANNA,
    PASTOR_PAUL,
    PASTOR_PETER,
    SHEPHERD_SARAH,
    SHEPHERD_ZED,
)


def test_admin_reassigns_member_and_audits(container, directory, audit_sink, fixed_now):
    member = container.directory_service.reassign_member(
        actor_id=ADMIN, member_id=MEMBER_ANNA, new_owner_id=SHEPHERD_ZED, now=fixed_now
    )

    assert member.owner_id == SHEPHERD_ZED
    assert directory.get_member(MEMBER_ANNA).owner_id == SHEPHERD_ZED
    assert audit_sink.entries == [
        {
            "actor_id": ADMIN,
            "action": "member_reassigned",
            "entity_type": "member",
            "entity_id": str(MEMBER_ANNA),
            "details": {"previous_owner_id": SHEPHERD_SARAH, "new_owner_id": SHEPHERD_ZED},
            "timestamp": fixed_now,
        }
    ]


def test_reassignment_moves_pastor_scope(container):
    container.directory_service.reassign_member(actor_id=ADMIN, member_id=MEMBER_ANNA, new_owner_id=SHEPHERD_ZED)
    peter = container.directory_repo.get_actor(PASTOR_PETER)
    paul = container.directory_repo.get_actor(PASTOR_PAUL)
    anna = container.directory_repo.get_member(MEMBER_ANNA)

    assert container.policy.scope_for(peter).covers_member(anna)
    assert not container.policy.scope_for(paul).covers_member(anna)


def test_pastor_cannot_reassign(container):
    with pytest.raises(AuthorizationError):
        container.directory_service.reassign_member(
            actor_id=PASTOR_PAUL, member_id=MEMBER_ANNA, new_owner_id=SHEPHERD_ZED
        )


def test_new_owner_must_be_a_shepherd(container):
    with pytest.raises(ValidationError):
        container.directory_service.reassign_member(actor_id=ADMIN, member_id=MEMBER_ANNA, new_owner_id=PASTOR_PAUL)


def test_same_owner_is_a_no_op(container, audit_sink):
    member = container.directory_service.reassign_member(
        actor_id=ADMIN, member_id=MEMBER_ANNA, new_owner_id=SHEPHERD_SARAH
    )
    assert member.owner_id == SHEPHERD_SARAH
    assert audit_sink.entries == []


def test_unknown_member_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.directory_service.reassign_member(actor_id=ADMIN, member_id=404, new_owner_id=SHEPHERD_ZED)
