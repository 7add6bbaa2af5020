from datetime import date

import pytest
from pydantic import ValidationError

from staydesk.core.exceptions import BookingError, ConflictError
from staydesk.schemas.reservation import ReservationRevenueCreate
from staydesk.schemas.revenue import RevenueCreate, RevenueUpdate
from staydesk.services import revenue_service


def _revenue(prop, start, end, amount=1000.0, **kwargs):
    return RevenueCreate(
        property_id=prop.id,
        amount=amount,
        start_date=start,
        end_date=end,
        created_by=prop.client_id,
        **kwargs,
    )


def test_overlapping_revenue_periods_are_rejected(db, make_property):
    prop = make_property()
    january = revenue_service.add_revenue(db, _revenue(prop, date(2024, 1, 1), date(2024, 1, 31)))

    with pytest.raises(ConflictError) as exc_info:
        revenue_service.add_revenue(db, _revenue(prop, date(2024, 1, 15), date(2024, 2, 15)))

    body = exc_info.value.to_dict()
    assert body["conflicting_revenues"][0]["id"] == str(january.id)
    assert len(revenue_service.list_property_revenue(db, prop.id)) == 1


def test_adjacent_periods_and_other_properties_are_fine(db, make_property):
    prop, other = make_property(), make_property()
    revenue_service.add_revenue(db, _revenue(prop, date(2024, 1, 1), date(2024, 1, 31)))

    revenue_service.add_revenue(db, _revenue(prop, date(2024, 2, 1), date(2024, 2, 29)))
    revenue_service.add_revenue(db, _revenue(other, date(2024, 1, 10), date(2024, 1, 20)))

    listed = revenue_service.list_property_revenue(db, prop.id)
    assert [r.start_date for r in listed] == [date(2024, 2, 1), date(2024, 1, 1)]


def test_update_checks_overlap_excluding_itself(db, make_property):
    prop = make_property()
    january = revenue_service.add_revenue(db, _revenue(prop, date(2024, 1, 1), date(2024, 1, 31)))
    revenue_service.add_revenue(db, _revenue(prop, date(2024, 3, 1), date(2024, 3, 31)))

    widened = revenue_service.update_revenue(
        db, january.id, RevenueUpdate(end_date=date(2024, 2, 10), amount=1300)
    )
    assert widened.end_date == date(2024, 2, 10)

    with pytest.raises(ConflictError):
        revenue_service.update_revenue(db, january.id, RevenueUpdate(end_date=date(2024, 3, 2)))


def test_update_can_clear_notes(db, make_property):
    prop = make_property()
    revenue = revenue_service.add_revenue(
        db, _revenue(prop, date(2024, 5, 1), date(2024, 5, 31), notes="May let")
    )

    cleared = revenue_service.update_revenue(db, revenue.id, RevenueUpdate(notes=None))

    assert cleared.notes is None
    assert cleared.amount == 1000.0


def test_update_refuses_null_required_fields():
    with pytest.raises(ValidationError):
        RevenueUpdate(amount=None)
    with pytest.raises(ValidationError):
        RevenueUpdate(start_date=None)


def test_update_endpoint_clears_notes(client, db, make_property):
    prop = make_property()
    revenue = revenue_service.add_revenue(
        db, _revenue(prop, date(2024, 6, 1), date(2024, 6, 30), notes="June let")
    )

    response = client.put(f"/api/propertyrevenue/revenue/{revenue.id}", json={"notes": None})
    rejected = client.put(f"/api/propertyrevenue/revenue/{revenue.id}", json={"end_date": None})

    assert response.status_code == 200
    assert response.json()["notes"] is None
    assert response.json()["end_date"] == "2024-06-30"
    assert rejected.status_code == 422


def test_revenue_from_reservation_uses_stay_dates(db, make_property, make_reservation):
    prop = make_property()
    reservation = make_reservation(prop, date(2024, 4, 10), date(2024, 4, 14))

    revenue = revenue_service.create_revenue_from_reservation(
        db, reservation.id, ReservationRevenueCreate(amount=450)
    )

    assert (revenue.start_date, revenue.end_date) == (date(2024, 4, 10), date(2024, 4, 14))
    assert revenue.notes == f"Revenue from reservation #{reservation.hash_id}"
    assert revenue.created_by == reservation.created_by_user_id

    with pytest.raises(BookingError) as exc_info:
        revenue_service.create_revenue_from_reservation(
            db, reservation.id, ReservationRevenueCreate(amount=10)
        )
    assert exc_info.value.message == "Revenue already exists for this reservation"


def test_reservation_must_belong_to_property(db, make_property, make_reservation):
    prop, other = make_property(), make_property()
    reservation = make_reservation(other, date(2024, 4, 1), date(2024, 4, 2))

    with pytest.raises(BookingError):
        revenue_service.add_revenue(
            db, _revenue(prop, date(2024, 4, 1), date(2024, 4, 2), reservation_id=reservation.id)
        )


def test_annual_revenue_prorates_by_day(db, make_property):
    prop = make_property()
    # 31 days: 10 in January, 21 in February
    revenue_service.add_revenue(
        db, _revenue(prop, date(2024, 1, 22), date(2024, 2, 21), amount=310, notes="Winter let")
    )
    revenue_service.add_revenue(db, _revenue(prop, date(2024, 3, 1), date(2024, 3, 3), amount=99.99))

    report = revenue_service.annual_revenue(db, prop.id, 2024)
    months = report["revenues"]

    assert months[0] == {"month": 1, "amount": 100.0, "notes": "Winter let (10 days)"}
    assert months[1] == {"month": 2, "amount": 210.0, "notes": "Winter let (21 days)"}
    assert months[2]["amount"] == 99.99
    assert months[2]["notes"] == ""
    assert report["total_revenue"] == 409.99


def test_annual_revenue_splits_across_years(db, make_property):
    prop = make_property()
    # 10 days: 5 in December 2023, 5 in January 2024
    revenue_service.add_revenue(db, _revenue(prop, date(2023, 12, 27), date(2024, 1, 5), amount=200))

    previous = revenue_service.annual_revenue(db, prop.id, 2023)
    current = revenue_service.annual_revenue(db, prop.id, 2024)

    assert previous["revenues"][11]["amount"] == 100.0
    assert previous["total_revenue"] == 100.0
    assert current["revenues"][0]["amount"] == 100.0
    assert sum(m["amount"] for m in current["revenues"][1:]) == 0


def test_revenue_endpoints(client, make_property):
    prop = make_property()
    payload = {
        "property_id": str(prop.id),
        "amount": 800,
        "start_date": "2024-01-01",
        "end_date": "2024-01-31",
        "notes": "January",
        "created_by": str(prop.client_id),
    }

    created = client.post("/api/propertyrevenue/revenue", json=payload)
    overlapping = client.post(
        "/api/propertyrevenue/revenue",
        json={**payload, "start_date": "2024-01-15", "end_date": "2024-02-15"},
    )
    annual = client.get(f"/api/propertyrevenue/property/{prop.id}/annual-revenue/2024")
    deleted = client.delete(f"/api/propertyrevenue/revenue/{created.json()['id']}")

    assert created.status_code == 201
    assert overlapping.status_code == 400
    assert overlapping.json()["conflicting_revenues"][0]["id"] == created.json()["id"]
    assert annual.json()["total_revenue"] == 800.0
    assert deleted.status_code == 200
    assert client.get(f"/api/propertyrevenue/property/{prop.id}/revenue").json() == []


def test_generate_revenue_from_reservation_endpoint(client, make_property, make_reservation):
    prop = make_property()
    reservation = make_reservation(prop, date(2024, 9, 1), date(2024, 9, 3))

    response = client.post(
        f"/api/reservations/{reservation.id}/generate-revenue", json={"amount": 360, "notes": "Direct"}
    )

    assert response.status_code == 201
    assert response.json()["reservation_id"] == str(reservation.id)
    assert response.json()["notes"] == "Direct"
