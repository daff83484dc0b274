"""
Tests for event models.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from authentication.tests.factories import UserFactory
from events.models import EventStatus, RegistrationStatus
from events.tests.factories import (
    EventFactory,
    EventMerchandiseOrderFactory,
    EventRegistrationFactory,
    RegistrationGuestFactory,
)


@pytest.mark.django_db
class TestEvent:
    def test_registration_window(self):
        now = timezone.now()
        event = EventFactory(
            registration_start_date=now + timedelta(days=1),
            registration_end_date=now + timedelta(days=5),
        )

        assert event.registration_not_started(now)
        assert not event.registration_deadline_passed(now)
        assert event.registration_deadline_passed(now + timedelta(days=6))

    def test_open_ended_window(self):
        event = EventFactory(registration_start_date=None, registration_end_date=None)

        assert not event.registration_not_started()
        assert not event.registration_deadline_passed()

    def test_attendee_count_includes_guests_of_confirmed_only(self):
        event = EventFactory()
        confirmed = EventRegistrationFactory(event=event, status=RegistrationStatus.CONFIRMED)
        RegistrationGuestFactory(registration=confirmed)
        pending = EventRegistrationFactory(event=event, user=UserFactory())
        RegistrationGuestFactory(registration=pending)

        assert event.attendee_count() == 2

    def test_cancelled(self):
        assert EventFactory(status=EventStatus.CANCELLED).is_cancelled


@pytest.mark.django_db
def test_merchandise_order_total_recomputed_on_save():
    order = EventMerchandiseOrderFactory(quantity=3, unit_price=Decimal("120.50"))

    assert order.total_price == Decimal("361.50")
