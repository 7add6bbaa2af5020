import re

import pytest

from staydesk.core.exceptions import BookingError
from staydesk.models import Reservation
from staydesk.services.identifiers import allocate_public_id, generate_public_id


def test_public_ids_are_128_bit_hex():
    ids = {generate_public_id() for _ in range(200)}

    assert len(ids) == 200
    assert all(re.fullmatch(r"[0-9a-f]{32}", value) for value in ids)


def test_collision_is_retried(db, make_property, make_reservation):
    from datetime import date

    prop = make_property()
    taken = make_reservation(prop, date(2024, 1, 1), date(2024, 1, 2)).hash_id
    candidates = iter([taken, "f" * 32])

    allocated = allocate_public_id(db, Reservation, generator=lambda: next(candidates))

    assert allocated == "f" * 32


def test_allocation_gives_up_after_max_attempts(db, make_property, make_reservation):
    from datetime import date

    prop = make_property()
    taken = make_reservation(prop, date(2024, 1, 1), date(2024, 1, 2)).hash_id

    with pytest.raises(BookingError) as exc_info:
        allocate_public_id(db, Reservation, generator=lambda: taken, max_attempts=3)

    assert exc_info.value.status_code == 500
