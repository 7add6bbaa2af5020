import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from staydesk.core.exceptions import BookingError, ConflictError, InvalidStatusError, NotFoundError
from staydesk.models import AssignmentStatus, UserProperty, UserRole
from staydesk.services import assignment_service
from staydesk.services.assignment_service import (
    assign_concierge, unassign_concierge, update_assignment_status,
)


@pytest.fixture()
def owner(make_user):
    return make_user(UserRole.CLIENT)


@pytest.fixture()
def concierges(make_user):
    return make_user(UserRole.CONCIERGE), make_user(UserRole.CONCIERGE)


def _active_count(db, property_id):
    db.expire_all()
    return (
        db.query(UserProperty)
        .filter(UserProperty.property_id == property_id, UserProperty.status == AssignmentStatus.ACTIVE)
        .count()
    )


def test_second_concierge_waits_for_first_to_be_deactivated(db, owner, concierges, make_property):
    c1, c2 = concierges
    prop = make_property(owner)
    first, created = assign_concierge(db, owner.id, c1.id, prop.id)
    assert created is True

    with pytest.raises(ConflictError) as exc_info:
        assign_concierge(db, owner.id, c2.id, prop.id)
    assert exc_info.value.message == "Property is already assigned to another concierge"
    assert _active_count(db, prop.id) == 1

    update_assignment_status(db, first.id, "inactive")
    second, _ = assign_concierge(db, owner.id, c2.id, prop.id)

    assert second.status == AssignmentStatus.ACTIVE
    assert _active_count(db, prop.id) == 1


def test_self_assignment_is_rejected(db, owner, make_property):
    prop = make_property(owner)

    with pytest.raises(BookingError) as exc_info:
        assign_concierge(db, owner.id, owner.id, prop.id)

    assert exc_info.value.message == "Cannot assign yourself as a manager"


def test_duplicate_assignment_is_rejected(db, owner, concierges, make_property):
    prop = make_property(owner)
    assign_concierge(db, owner.id, concierges[0].id, prop.id)

    with pytest.raises(ConflictError) as exc_info:
        assign_concierge(db, owner.id, concierges[0].id, prop.id)

    assert exc_info.value.message == "Assignment already exists"


def test_inactive_assignment_is_reactivated_in_place(db, owner, concierges, make_property):
    prop = make_property(owner)
    first, _ = assign_concierge(db, owner.id, concierges[0].id, prop.id)
    update_assignment_status(db, first.id, "inactive")

    again, created = assign_concierge(db, owner.id, concierges[0].id, prop.id)

    assert created is False
    assert again.id == first.id
    assert again.status == AssignmentStatus.ACTIVE


def test_activation_rechecks_exclusivity(db, owner, concierges, make_property):
    c1, c2 = concierges
    prop = make_property(owner)
    first, _ = assign_concierge(db, owner.id, c1.id, prop.id)
    update_assignment_status(db, first.id, "inactive")
    assign_concierge(db, owner.id, c2.id, prop.id)

    with pytest.raises(ConflictError):
        update_assignment_status(db, first.id, "active")

    assert _active_count(db, prop.id) == 1


def test_unknown_assignment_status(db, owner, concierges, make_property):
    prop = make_property(owner)
    assignment, _ = assign_concierge(db, owner.id, concierges[0].id, prop.id)

    with pytest.raises(InvalidStatusError):
        update_assignment_status(db, assignment.id, "pending")


def test_partial_index_rejects_second_active_row(db, owner, concierges, make_property):
    prop = make_property(owner)
    for concierge in concierges:
        db.add(UserProperty(
            id=uuid.uuid4(),
            client_id=owner.id,
            concierge_id=concierge.id,
            property_id=prop.id,
            status=AssignmentStatus.ACTIVE,
        ))

    with pytest.raises(IntegrityError) as exc_info:
        db.commit()
    db.rollback()

    assert assignment_service._violates_exclusivity(exc_info.value)


def test_unrelated_integrity_errors_are_not_exclusivity_conflicts():
    fk_failure = IntegrityError("INSERT INTO user_properties ...", {}, Exception("FOREIGN KEY constraint failed"))

    assert not assignment_service._violates_exclusivity(fk_failure)


def test_unknown_client_is_not_found(db, concierges, make_property):
    prop = make_property()

    with pytest.raises(NotFoundError) as exc_info:
        assign_concierge(db, uuid.uuid4(), concierges[0].id, prop.id)

    assert exc_info.value.message == "Client not found"
    assert _active_count(db, prop.id) == 0


def test_race_past_the_guard_surfaces_as_conflict(db, owner, concierges, make_property, monkeypatch):
    c1, c2 = concierges
    prop = make_property(owner)
    assign_concierge(db, owner.id, c1.id, prop.id)
    # Simulate a concurrent writer that committed after our check ran
    monkeypatch.setattr(assignment_service, "_find_active_holder", lambda *args: None)

    with pytest.raises(ConflictError) as exc_info:
        assign_concierge(db, owner.id, c2.id, prop.id)

    assert exc_info.value.message == "Property is already assigned to another concierge"
    assert _active_count(db, prop.id) == 1


def test_unassign_deletes_row(db, owner, concierges, make_property):
    prop = make_property(owner)
    assignment, _ = assign_concierge(db, owner.id, concierges[0].id, prop.id)

    unassign_concierge(db, owner.id, concierges[0].id, prop.id)

    db.expire_all()
    assert db.get(UserProperty, assignment.id) is None
    with pytest.raises(NotFoundError):
        unassign_concierge(db, owner.id, concierges[0].id, prop.id)


# ==================== HTTP ====================

def test_assign_endpoint_flow(client, owner, concierges, make_property):
    c1, c2 = concierges
    prop = make_property(owner)
    body = {"client_id": str(owner.id), "property_id": str(prop.id)}

    assigned = client.post("/api/concierges/assign", json={**body, "concierge_id": str(c1.id)})
    refused = client.post("/api/concierges/assign", json={**body, "concierge_id": str(c2.id)})

    assert assigned.status_code == 201
    assert refused.status_code == 400
    assert refused.json()["conflicting_assignments"][0]["concierge_id"] == str(c1.id)

    deactivated = client.patch(
        f"/api/concierges/status/{assigned.json()['id']}", json={"status": "inactive"}
    )
    accepted = client.post("/api/concierges/assign", json={**body, "concierge_id": str(c2.id)})

    assert deactivated.json()["status"] == "inactive"
    assert accepted.status_code == 201


def test_unassign_endpoint_takes_body(client, owner, concierges, make_property):
    prop = make_property(owner)
    body = {"client_id": str(owner.id), "concierge_id": str(concierges[0].id), "property_id": str(prop.id)}
    client.post("/api/concierges/assign", json=body)

    response = client.request("DELETE", "/api/concierges/unassign", json=body)

    assert response.status_code == 200
    assert client.request("DELETE", "/api/concierges/unassign", json=body).status_code == 404


def test_client_concierges_listing(client, db, owner, concierges, make_property):
    c1, c2 = concierges
    villa, flat = make_property(owner, name="Villa"), make_property(owner, name="Flat")
    assign_concierge(db, owner.id, c1.id, villa.id)
    assign_concierge(db, owner.id, c1.id, flat.id)

    data = client.get(f"/api/concierges/client/{owner.id}").json()

    assert len(data) == 1
    assert data[0]["id"] == str(c1.id)
    assert sorted(p["name"] for p in data[0]["properties"]) == ["Flat", "Villa"]


def test_concierge_details_and_properties(client, db, owner, concierges, make_property):
    c1, c2 = concierges
    prop = make_property(owner)
    assign_concierge(db, owner.id, c1.id, prop.id)

    details = client.get(f"/api/concierges/{c1.id}")
    properties = client.get(f"/api/concierges/{c1.id}/properties")
    unassigned = client.get(f"/api/concierges/{c2.id}")

    assert details.status_code == 200
    assert details.json()["properties"][0]["id"] == str(prop.id)
    assert properties.json()[0]["property"]["name"] == "Riad Zitoun"
    assert unassigned.status_code == 404
