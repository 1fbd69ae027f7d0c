"""
Tests for BookingRepository.

Rows are inserted directly with explicit ``created_at`` values so ordering and
date filters do not depend on the clock.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from slicedadvice.core.exceptions import RepositoryException
from slicedadvice.models.booking import Booking, BookingStatus, BookingType
from slicedadvice.repositories import RepositoryFactory
from slicedadvice.repositories.booking_repository import (
    BookingListFilters,
    clamp_per_page,
    escape_like,
)

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(db: Session):
    return RepositoryFactory.create_booking_repository(db)


@pytest.fixture
def seed(db: Session, expert, customer, expertise_post):
    """Insert bookings oldest to newest and return them in that order."""

    def _seed(*rows):
        bookings = []
        for i, row in enumerate(rows):
            total = Decimal(row.get("total", "103.20"))
            booking = Booking(
                booking_type=row.get("booking_type", BookingType.SINGLE_TEXT_RESPONSE.value),
                expert_id=expert.id,
                customer_id=customer.id,
                expertise_post_id=expertise_post.id,
                status=row.get("status", BookingStatus.PENDING_RESPONSE.value),
                customer_submission=row.get("submission", f"Question {i}"),
                expert_response=row.get("response"),
                stripe_payment_intent_id=f"pi_seed_{i}",
                price_per_submission=total - Decimal("3.20"),
                service_fee=Decimal("3.20"),
                total=total,
                created_at=BASE_TIME + timedelta(days=i),
            )
            db.add(booking)
            bookings.append(booking)
        db.commit()
        return bookings

    return _seed


class TestBookingRepositoryCrud:
    def test_create_flushes_and_assigns_ulid(self, db, repo, expert, customer, expertise_post):
        booking = repo.create(
            expert_id=expert.id,
            customer_id=customer.id,
            expertise_post_id=expertise_post.id,
            customer_submission="Hello",
            stripe_payment_intent_id="pi_new",
            price_per_submission=Decimal("100.00"),
            service_fee=Decimal("3.20"),
            total=Decimal("103.20"),
        )
        db.commit()

        assert len(booking.id) == 26
        assert booking.status == BookingStatus.PENDING_RESPONSE.value
        assert booking.booking_type == BookingType.SINGLE_TEXT_RESPONSE.value
        assert booking.created_at is not None

    def test_duplicate_payment_intent_raises(self, repo, seed, expert, customer, expertise_post):
        seed({})

        with pytest.raises(RepositoryException):
            repo.create(
                expert_id=expert.id,
                customer_id=customer.id,
                expertise_post_id=expertise_post.id,
                customer_submission="Again",
                stripe_payment_intent_id="pi_seed_0",
                price_per_submission=Decimal("100.00"),
                service_fee=Decimal("3.20"),
                total=Decimal("103.20"),
            )

    def test_get_by_id_loads_parties(self, repo, seed, expert, customer):
        (booking,) = seed({})

        loaded = repo.get_by_id(booking.id)

        assert loaded.expert.email == expert.email
        assert loaded.customer.email == customer.email
        assert loaded.expertise_post.title == "Pitch deck teardown"

    def test_get_by_payment_intent_id(self, repo, seed):
        first, second = seed({}, {})

        assert repo.get_by_payment_intent_id("pi_seed_1").id == second.id
        assert repo.get_by_payment_intent_id("pi_unknown") is None

    def test_update_unknown_field_raises(self, repo, seed):
        (booking,) = seed({})

        with pytest.raises(RepositoryException):
            repo.update(booking.id, not_a_column="x")

    def test_update_missing_booking_returns_none(self, repo):
        assert repo.update("01J00000000000000000000000", expert_response="x") is None

    def test_conditional_update_writes_when_status_matches(self, db, repo, seed):
        (booking,) = seed({})

        updated = repo.update(
            booking.id,
            expected={"status": BookingStatus.PENDING_RESPONSE.value},
            status=BookingStatus.COMPLETED.value,
            expert_response="Done",
        )
        db.commit()

        assert updated is booking
        assert booking.status == BookingStatus.COMPLETED.value
        assert booking.expert_response == "Done"

    def test_conditional_update_skips_changed_row(self, db, repo, seed):
        (booking,) = seed({"status": BookingStatus.COMPLETED.value, "response": "Original"})

        updated = repo.update(
            booking.id,
            expected={"status": BookingStatus.PENDING_RESPONSE.value},
            expert_response="Overwrite",
        )

        assert updated is None
        db.expire_all()
        assert repo.get_by_id(booking.id).expert_response == "Original"


class TestListBookings:
    def test_newest_first_with_counts(self, repo, seed):
        bookings = seed({}, {}, {})

        page = repo.list_bookings()

        assert [b.id for b in page.items] == [b.id for b in reversed(bookings)]
        assert page.total_count == 3
        assert page.filtered_count == 3
        assert page.page == 1

    def test_pagination(self, repo, seed):
        bookings = seed({}, {}, {}, {}, {})

        page = repo.list_bookings(page=2, per_page=2)

        assert [b.id for b in page.items] == [bookings[2].id, bookings[1].id]
        assert page.per_page == 2
        assert page.filtered_count == 5

    def test_page_past_the_end_is_empty(self, repo, seed):
        seed({})

        page = repo.list_bookings(page=5, per_page=10)

        assert page.items == []
        assert page.total_count == 1

    def test_keyword_searches_submission_and_response(self, repo, seed):
        seed(
            {"submission": "Review my Pitch deck"},
            {"submission": "Salary negotiation", "response": "Anchor high on the pitch"},
            {"submission": "Resume feedback"},
        )

        page = repo.list_bookings(BookingListFilters(keyword="pitch"))

        assert page.filtered_count == 2
        assert page.total_count == 3

    def test_keyword_wildcards_match_literally(self, repo, seed):
        seed(
            {"submission": "Is a 100% raise realistic?"},
            {"submission": "Equity or salary"},
            {"submission": "snake_case or camelCase"},
        )

        assert repo.list_bookings(BookingListFilters(keyword="%")).filtered_count == 1
        assert repo.list_bookings(BookingListFilters(keyword="_")).filtered_count == 1
        assert repo.list_bookings(BookingListFilters(keyword="100%")).filtered_count == 1

    def test_status_and_total_range(self, repo, seed):

        seed(
            {"total": "20.87", "status": BookingStatus.COMPLETED.value},
            {"total": "103.20", "status": BookingStatus.COMPLETED.value},
            {"total": "103.20"},
        )

        page = repo.list_bookings(
            BookingListFilters(
                status=BookingStatus.COMPLETED.value,
                total_gte=Decimal("50"),
                total_lte=Decimal("200"),
            )
        )

        assert page.filtered_count == 1
        assert page.items[0].total == Decimal("103.20")

    def test_created_window(self, repo, seed):
        bookings = seed({}, {}, {})

        page = repo.list_bookings(
            BookingListFilters(
                created_after=BASE_TIME + timedelta(hours=12),
                created_before=BASE_TIME + timedelta(days=1, hours=12),
            )
        )

        assert [b.id for b in page.items] == [bookings[1].id]

    def test_party_filters(self, repo, seed, expert, customer):
        seed({})

        assert repo.list_bookings(BookingListFilters(expert_id=expert.id)).filtered_count == 1
        assert repo.list_bookings(BookingListFilters(expert_id=customer.id)).filtered_count == 0


@pytest.mark.parametrize("requested, expected", [(None, 20), (0, 1), (5, 5), (1000, 100)])
def test_clamp_per_page(requested, expected):
    assert clamp_per_page(requested) == expected


@pytest.mark.parametrize(
    "raw, escaped",
    [("100%", "100\\%"), ("a_b", "a\\_b"), ("a\\b", "a\\\\b"), ("plain", "plain")],
)
def test_escape_like(raw, escaped):
    assert escape_like(raw) == escaped


class TestSupportingRepositories:
    def test_count_by_criteria(self, repo, seed):
        seed({}, {"status": BookingStatus.COMPLETED.value})

        assert repo.count() == 2
        assert repo.count(status=BookingStatus.COMPLETED.value) == 1

    def test_active_post_lookup(self, db, expertise_post, make_post):
        posts = RepositoryFactory.create_expertise_post_repository(db)
        retired = make_post("10.00", is_active=False)

        assert posts.get_active_by_id(expertise_post.id).user.name == "Ada Expert"
        assert posts.get_active_by_id(retired.id) is None
