from datetime import date
from itertools import product

import pytest

from staydesk.core.exceptions import (
    BookingError, IncompleteEntityError, InvalidTransitionError,
)
from staydesk.models import ContractStatus, Reservation, ReservationContract, ReservationStatus
from staydesk.schemas.contract import ContractCreate, ContractUpdate
from staydesk.services import contract_service, reservation_service
from staydesk.services.contract_service import CONTRACT_TRANSITIONS, update_contract_status


@pytest.fixture()
def reservation(make_property, make_reservation):
    prop = make_property()
    return make_reservation(prop, date(2024, 8, 1), date(2024, 8, 5))


@pytest.fixture()
def draft_contract(db, reservation, complete_guest):
    return contract_service.create_contract(
        db, ContractCreate(reservation_id=reservation.id, **complete_guest)
    )


def _force_status(db, contract, status):
    """Walk the contract along the allowed path up to ``status``."""
    path = {
        ContractStatus.DRAFT: [],
        ContractStatus.SENT: [ContractStatus.SENT],
        ContractStatus.SIGNED: [ContractStatus.SENT, ContractStatus.SIGNED],
        ContractStatus.COMPLETED: [ContractStatus.SENT, ContractStatus.SIGNED, ContractStatus.COMPLETED],
        ContractStatus.REJECTED: [ContractStatus.SENT, ContractStatus.SIGNED, ContractStatus.REJECTED],
    }[status]
    for step in path:
        update_contract_status(db, contract.id, step.value)


# ==================== Transition table ====================

@pytest.mark.parametrize(
    "current, target",
    [(a, b) for a, b in product(ContractStatus, ContractStatus) if a != b],
)
def test_contract_transition_closure(db, draft_contract, current, target):
    _force_status(db, draft_contract, current)

    if target in CONTRACT_TRANSITIONS[current]:
        assert update_contract_status(db, draft_contract.id, target.value).status == target
    else:
        with pytest.raises(InvalidTransitionError) as exc_info:
            update_contract_status(db, draft_contract.id, target.value)
        assert exc_info.value.message == (
            f"Invalid status transition from {current.value} to {target.value}"
        )
        db.expire_all()
        assert db.get(ReservationContract, draft_contract.id).status == current


def test_missing_email_blocks_sending(db, reservation, complete_guest):
    del complete_guest["email"]
    contract = contract_service.create_contract(
        db, ContractCreate(reservation_id=reservation.id, **complete_guest)
    )

    with pytest.raises(IncompleteEntityError) as exc_info:
        update_contract_status(db, contract.id, "SENT")

    assert exc_info.value.message == "Field email cannot be null when contract is being finalized"
    assert exc_info.value.missing_fields == ["email"]
    db.expire_all()
    assert db.get(ReservationContract, contract.id).status == ContractStatus.DRAFT


def test_mapper_event_guards_direct_writes(db, reservation):
    contract, _ = reservation_service.generate_contract(db, reservation.id)
    contract.status = ContractStatus.SENT

    with pytest.raises(IncompleteEntityError) as exc_info:
        db.commit()

    assert exc_info.value.missing_fields[0] == "firstname"
    db.rollback()


def test_model_helpers(db, draft_contract, reservation):
    assert reservation.is_active is False
    assert draft_contract.guest_name == "Amina Benali"

    update_contract_status(db, draft_contract.id, "SENT")
    update_contract_status(db, draft_contract.id, "SIGNED")

    db.expire_all()
    assert db.get(Reservation, reservation.id).is_active is True
    assert ReservationContract(firstname="Amina").guest_name == "Amina"


# ==================== Cascade ====================

def test_signing_cascades_to_reservation(db, draft_contract, reservation):
    update_contract_status(db, draft_contract.id, "SENT")
    signed = update_contract_status(db, draft_contract.id, "SIGNED", ip_address="203.0.113.7")

    db.expire_all()
    assert db.get(Reservation, reservation.id).status == ReservationStatus.SIGNED
    assert signed.signed_at is not None
    assert signed.signing_ip_address == "203.0.113.7"


def test_completion_cascades_to_confirmed(db, draft_contract, reservation):
    _force_status(db, draft_contract, ContractStatus.COMPLETED)

    db.expire_all()
    assert db.get(Reservation, reservation.id).status == ReservationStatus.CONFIRMED


def test_rejection_keeps_reservation_signed(db, draft_contract, reservation):
    # REJECTED is only reachable from SIGNED, which already cascaded
    _force_status(db, draft_contract, ContractStatus.REJECTED)

    db.expire_all()
    assert db.get(ReservationContract, draft_contract.id).status == ContractStatus.REJECTED
    assert db.get(Reservation, reservation.id).status == ReservationStatus.SIGNED


def test_failed_cascade_rolls_back_contract(db, draft_contract, reservation):
    update_contract_status(db, draft_contract.id, "SENT")
    reservation_service.update_reservation_status(db, reservation.id, "cancelled")

    with pytest.raises(InvalidTransitionError):
        update_contract_status(db, draft_contract.id, "SIGNED")

    db.expire_all()
    assert db.get(ReservationContract, draft_contract.id).status == ContractStatus.SENT
    assert db.get(Reservation, reservation.id).status == ReservationStatus.CANCELLED


def test_cascade_is_blocked_by_calendar_conflict(db, make_reservation, draft_contract, reservation):
    other = make_reservation(reservation.property, date(2024, 8, 3), date(2024, 8, 9))
    reservation_service.update_reservation_status(db, other.id, "sent")
    update_contract_status(db, draft_contract.id, "SENT")

    with pytest.raises(BookingError):
        update_contract_status(db, draft_contract.id, "SIGNED")

    db.expire_all()
    assert db.get(ReservationContract, draft_contract.id).status == ContractStatus.SENT


def test_status_endpoint_records_client_ip(client, db, draft_contract):
    update_contract_status(db, draft_contract.id, "SENT")

    response = client.patch(
        f"/api/reservationcontract/{draft_contract.id}/status",
        json={"status": "SIGNED"},
        headers={"X-Forwarded-For": "198.51.100.4, 10.0.0.1"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "SIGNED"
    assert response.json()["signing_ip_address"] == "198.51.100.4"


# ==================== Commands ====================

def test_one_contract_per_reservation(db, draft_contract, reservation):
    with pytest.raises(BookingError) as exc_info:
        contract_service.create_contract(db, ContractCreate(reservation_id=reservation.id))

    assert exc_info.value.extra["contract_id"] == str(draft_contract.id)


def test_update_keeps_finalized_contract_complete(db, draft_contract):
    update_contract_status(db, draft_contract.id, "SENT")

    with pytest.raises(IncompleteEntityError):
        contract_service.update_contract(db, draft_contract.id, ContractUpdate(phone=None))

    updated = contract_service.update_contract(db, draft_contract.id, ContractUpdate(phone="+33100000000"))
    assert updated.phone == "+33100000000"


@pytest.mark.parametrize("status", [ContractStatus.SIGNED, ContractStatus.COMPLETED])
def test_signed_contracts_cannot_be_deleted(client, db, draft_contract, status):
    _force_status(db, draft_contract, status)

    response = client.delete(f"/api/reservationcontract/{draft_contract.id}")

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete a signed or completed contract"


def test_draft_contract_can_be_deleted(client, draft_contract):
    response = client.delete(f"/api/reservationcontract/{draft_contract.id}")

    assert response.status_code == 200
    assert client.get(f"/api/reservationcontract/{draft_contract.id}").status_code == 404


# ==================== Queries ====================

def test_guest_loads_contract_by_hash(client, db, draft_contract, reservation):
    reservation_service.update_electronic_lock(db, reservation.id, True, "2468")

    response = client.get(f"/api/reservationcontract/hash/{draft_contract.hash_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(draft_contract.id)
    assert data["reservation"]["electronic_lock_code"] == "2468"
    assert data["reservation"]["start_date"] == "2024-08-01"


def test_contract_details_view(client, draft_contract, reservation):
    response = client.get(f"/api/reservationcontract/reservation/{reservation.id}/details")

    assert response.status_code == 200
    data = response.json()
    assert data["property_name"] == "Riad Zitoun"
    assert data["guest_firstname"] == "Amina"
    assert data["reservation_status"] == "draft"
    assert data["contract_generation_link"].endswith(f"/generate-contract/{reservation.id}")


def test_contract_for_unknown_reservation(client, reservation):
    response = client.get(f"/api/reservationcontract/reservation/{reservation.id}")

    assert response.status_code == 404
    assert response.json()["error"] == "Contract not found for this reservation"
