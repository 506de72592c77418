# tests/test_queue_service.py

from datetime import date

import pytest
from sqlmodel import select

from barberqueue.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from barberqueue.models import Booking, Shop
from barberqueue.services import queue_service


def join(session, shop, user, clock, service="Haircut"):
    booking = queue_service.join_queue(session, shop.id, user.id, service)
    clock.tick(minutes=1)
    return booking


def positions(session, *bookings):
    result = []
    for booking in bookings:
        session.refresh(booking)
        result.append((booking.queue_position, booking.estimated_wait_time))
    return result


@pytest.fixture
def customers(make_user):
    return [make_user(f"customer{i}@example.com") for i in range(4)]


def test_recompute_three_waiting(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=30)
    a, b, c = (join(session, shop, u, clock) for u in customers[:3])

    queue_service.recompute_queue(session, shop.id)
    session.commit()

    assert positions(session, a, b, c) == [(1, 0), (2, 30), (3, 60)]


def test_cancel_middle_booking_closes_gap(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=30)
    a, b, c = (join(session, shop, u, clock) for u in customers[:3])

    queue_service.cancel_booking(session, b.id, customers[1].id)
    # explicit recompute gives the same answer: it already ran with the cancel
    assert positions(session, a, c) == [(1, 0), (2, 30)]
    queue_service.recompute_queue(session, shop.id)
    session.commit()

    assert positions(session, a, c) == [(1, 0), (2, 30)]
    session.refresh(b)
    assert b.status == "cancelled"
    assert b.queue_position is None
    assert b.estimated_wait_time is None


def test_recompute_is_idempotent(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=20)
    bookings = [join(session, shop, u, clock) for u in customers]

    first = [(b.id, b.queue_position, b.estimated_wait_time)
             for b in queue_service.recompute_queue(session, shop.id)]
    second = [(b.id, b.queue_position, b.estimated_wait_time)
              for b in queue_service.recompute_queue(session, shop.id)]

    assert first == second
    assert [p for _, p, _ in first] == [1, 2, 3, 4]
    assert [b.id for b in bookings] == [i for i, _, _ in first]


def test_positions_are_contiguous_after_mixed_transitions(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=15)
    owner_id = shop.user_id
    bookings = [join(session, shop, u, clock) for u in customers]

    queue_service.update_booking_status(session, bookings[0].id, "in_progress", owner_id)
    queue_service.update_booking_status(session, bookings[2].id, "no_show", owner_id)

    waiting = session.exec(
        select(Booking)
        .where(Booking.shop_id == shop.id)
        .where(Booking.status == "waiting")
        .order_by(Booking.queue_position)
    ).all()
    assert [b.id for b in waiting] == [bookings[1].id, bookings[3].id]
    assert [(b.queue_position, b.estimated_wait_time) for b in waiting] == [(1, 0), (2, 15)]


def test_equal_join_times_use_insertion_order(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=10)
    # the clock never ticks, so every booking shares the same joined_at
    for user in customers[:3]:
        session.add(Booking(user_id=user.id, shop_id=shop.id, service_name="Haircut"))
    session.commit()

    waiting = queue_service.recompute_queue(session, shop.id)
    assert [b.queue_position for b in waiting] == [1, 2, 3]
    assert [b.id for b in waiting] == sorted(b.id for b in waiting)


def test_missing_duration_counts_as_zero(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=None)
    a, b = (join(session, shop, u, clock) for u in customers[:2])

    assert positions(session, a, b) == [(1, 0), (2, 0)]


def test_recompute_unknown_shop(session):
    with pytest.raises(NotFoundError):
        queue_service.recompute_queue(session, 999)


def test_join_queue_sets_position_immediately(session, clock, make_shop, customers):
    shop = make_shop(avg_service_duration=25)
    join(session, shop, customers[0], clock)
    second = join(session, shop, customers[1], clock)

    assert second.status == "waiting"
    assert (second.queue_position, second.estimated_wait_time) == (2, 25)
    session.refresh(shop)
    assert shop.total_bookings == 2


def test_join_queue_full(session, clock, make_shop, customers):
    shop = make_shop(max_queue_limit=2)
    join(session, shop, customers[0], clock)
    join(session, shop, customers[1], clock)

    with pytest.raises(ConflictError, match="full"):
        join(session, shop, customers[2], clock)


def test_join_queue_twice_is_rejected(session, clock, make_shop, customers):
    shop = make_shop()
    join(session, shop, customers[0], clock)

    with pytest.raises(ConflictError, match="Already"):
        join(session, shop, customers[0], clock)


def test_join_again_after_completion(session, clock, make_shop, customers):
    shop = make_shop()
    first = join(session, shop, customers[0], clock)
    queue_service.update_booking_status(session, first.id, "in_progress", shop.user_id)
    queue_service.update_booking_status(session, first.id, "completed", shop.user_id)

    again = join(session, shop, customers[0], clock)
    assert again.queue_position == 1


def test_join_queue_uses_catalog_price(session, clock, make_shop, customers):
    shop = make_shop(services=[{"name": "Fade", "price": 30, "duration": 30}])

    booking = queue_service.join_queue(session, shop.id, customers[0].id, "Fade", 5)
    assert booking.service_price == 30

    with pytest.raises(ValidationError):
        queue_service.join_queue(session, shop.id, customers[1].id, "Perm")


def test_join_inactive_shop(session, make_shop, customers):
    shop = make_shop(is_active=False)
    with pytest.raises(NotFoundError):
        queue_service.join_queue(session, shop.id, customers[0].id, "Haircut")


def test_walk_ins_may_repeat(session, clock, make_shop):
    shop = make_shop()
    first = queue_service.join_queue(session, shop.id, shop.user_id, "Walk-in Haircut", 25, walk_in=True)
    second = queue_service.join_queue(session, shop.id, shop.user_id, "Walk-in Haircut", 25, walk_in=True)

    assert (first.user_id, second.user_id) == (shop.user_id, shop.user_id)
    session.refresh(first)
    assert [first.queue_position, second.queue_position] == [1, 2]


def test_status_stamps(session, clock, make_shop, customers):
    shop = make_shop()
    booking = join(session, shop, customers[0], clock)

    started = clock.tick(minutes=3)
    booking = queue_service.update_booking_status(session, booking.id, "in_progress", shop.user_id)
    assert booking.started_at == started
    assert booking.completed_at is None

    finished = clock.tick(minutes=30)
    booking = queue_service.update_booking_status(session, booking.id, "completed", shop.user_id)
    assert booking.completed_at == finished


def test_invalid_transition(session, clock, make_shop, customers):
    shop = make_shop()
    booking = join(session, shop, customers[0], clock)

    with pytest.raises(ConflictError):
        queue_service.update_booking_status(session, booking.id, "completed", shop.user_id)
    with pytest.raises(ConflictError):
        queue_service.update_booking_status(session, booking.id, "waiting", shop.user_id)


def test_only_owner_updates_status(session, clock, make_shop, customers):
    shop = make_shop()
    other = make_shop()
    booking = join(session, shop, customers[0], clock)

    with pytest.raises(PermissionDeniedError):
        queue_service.update_booking_status(session, booking.id, "in_progress", other.user_id)
    with pytest.raises(PermissionDeniedError):
        queue_service.update_booking_status(session, booking.id, "in_progress", customers[0].id)


def test_cancel_permissions(session, clock, make_shop, customers):
    shop = make_shop()
    mine = join(session, shop, customers[0], clock)
    theirs = join(session, shop, customers[1], clock)

    with pytest.raises(PermissionDeniedError):
        queue_service.cancel_booking(session, theirs.id, customers[0].id)

    assert queue_service.cancel_booking(session, mine.id, customers[0].id).status == "cancelled"
    assert queue_service.cancel_booking(session, theirs.id, shop.user_id).status == "cancelled"

    with pytest.raises(ConflictError):
        queue_service.cancel_booking(session, mine.id, customers[0].id)


def test_duration_change_refreshes_waits(session, clock, make_shop, customers):
    from barberqueue.services import shop_service

    shop = make_shop(avg_service_duration=30)
    a, b = (join(session, shop, u, clock) for u in customers[:2])

    shop_service.update_shop(session, shop, avg_service_duration=45)
    assert positions(session, a, b) == [(1, 0), (2, 45)]


def test_shop_queue_includes_customer_details(session, clock, make_shop, make_user):
    shop = make_shop()
    named = make_user("ann@example.com", name="Ann", phone="555-0101")
    anonymous = make_user("nobody@example.com")
    join(session, shop, named, clock)
    second = join(session, shop, anonymous, clock)
    queue_service.update_booking_status(session, second.id, "in_progress", shop.user_id)

    queue = queue_service.shop_queue(session, shop)
    assert [e["status"] for e in queue] == ["waiting", "in_progress"]
    assert queue[0]["profiles"] == {"name": "Ann", "phone": "555-0101"}
    assert queue[1]["profiles"] == {"name": "Unknown Customer", "phone": ""}


def test_customer_bookings_newest_first(session, clock, make_shop, customers):
    old_shop = make_shop(shop_name="Old Cuts")
    new_shop = make_shop(shop_name="New Cuts")
    join(session, old_shop, customers[0], clock)
    join(session, new_shop, customers[0], clock)

    bookings = queue_service.customer_bookings(session, customers[0].id)
    assert [b["shop"]["shop_name"] for b in bookings] == ["New Cuts", "Old Cuts"]


def test_today_stats(session, clock, make_shop, customers):
    shop = make_shop(services=[{"name": "Haircut", "price": 20}])
    done = join(session, shop, customers[0], clock)
    join(session, shop, customers[1], clock)
    queue_service.update_booking_status(session, done.id, "in_progress", shop.user_id)
    queue_service.update_booking_status(session, done.id, "completed", shop.user_id)

    stats = queue_service.today_stats(session, session.get(Shop, shop.id))
    assert stats == {
        "total_bookings": 2,
        "served_customers": 1,
        "avg_rating": 0,
        "total_income": 20,
    }

    assert queue_service.today_stats(session, shop, date(2025, 8, 5))["total_bookings"] == 0
