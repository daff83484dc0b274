"""
Factory Boy factories for memberships models.
"""

from decimal import Decimal

import factory

from memberships.models import MembershipFee


class MembershipFeeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MembershipFee
        django_get_or_create = ("batch_year",)

    batch_year = 2015
    amount = Decimal("500.00")
    fee_type = "ANNUAL"
    is_active = True
