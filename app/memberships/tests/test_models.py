"""
Tests for membership models.
"""

import datetime
from datetime import timedelta

import pytest
from django.utils import timezone

from authentication.tests.factories import UserFactory
from memberships.models import Membership, MembershipStatus


def test_validity_ends_at_start_of_next_year():
    assert Membership.validity_end(2026) == datetime.datetime(2027, 1, 1, tzinfo=datetime.timezone.utc)


@pytest.mark.django_db
class TestMembershipIsActive:
    def test_active_until_valid_until(self):
        membership = Membership(
            user=UserFactory(),
            membership_year=timezone.now().year,
            status=MembershipStatus.ACTIVE,
            valid_until=timezone.now() + timedelta(days=1),
        )

        assert membership.is_active

    def test_lapsed(self):
        membership = Membership(
            user=UserFactory(),
            membership_year=2020,
            status=MembershipStatus.ACTIVE,
            valid_until=timezone.now() - timedelta(days=1),
        )

        assert not membership.is_active

    def test_pending_is_not_active(self):
        membership = Membership(
            user=UserFactory(),
            membership_year=timezone.now().year,
            status=MembershipStatus.PENDING,
        )

        assert not membership.is_active
