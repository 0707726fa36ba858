"""
Common test fixtures for the API and service tests.

Provides users (a customer, a second customer and a staff member), Django
test clients authenticated with JWT tokens, a catalog package, an order
factory and a fake payment gateway swapped in for Stripe.
"""
import itertools
from decimal import Decimal

import pytest
from django.contrib.auth.models import User
from django.test import Client

from catalog.models import Package
from orders.models import PackageOrder
from payments import gateway as gateway_module
from payments.tests.fakes import FakeGateway

PASSWORD = "pass12345"


def _jwt_client(username):
    """Return a Django test client carrying a Bearer token for ``username``."""
    client = Client()
    resp = client.post(
        "/api/token/",
        {"username": username, "password": PASSWORD},
        content_type="application/json",
    )
    assert resp.status_code == 200
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {resp.json()['access']}"
    return client


@pytest.fixture
def user(db):
    """Create a test customer."""
    return User.objects.create_user(username="u1", password=PASSWORD, email="u1@example.com")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="u2", password=PASSWORD, email="u2@example.com")


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        username="staff", password=PASSWORD, email="staff@example.com", is_staff=True
    )


@pytest.fixture
def auth_client(user):
    """Django test client authenticated as ``user``."""
    return _jwt_client(user.username)


@pytest.fixture
def other_client(other_user):
    return _jwt_client(other_user.username)


@pytest.fixture
def staff_client(staff_user):
    return _jwt_client(staff_user.username)


@pytest.fixture
def package(db):
    """The 'Pro' package: PKR 13,000 for three months."""
    return Package.objects.create(
        name="Pro",
        price="13,000",
        currency="PKR",
        period="3 months",
        features=["Gym floor", "Group classes", "Sauna", "Diet plan"],
    )


@pytest.fixture
def fake_gateway():
    """Swap the process-wide payment gateway for an in-memory fake."""
    fake = FakeGateway()
    gateway_module.set_gateway(fake)
    yield fake
    gateway_module.set_gateway(None)


@pytest.fixture
def order_factory(db, package):
    """Create orders directly in the store, bypassing checkout."""
    counter = itertools.count(1)

    def make(**kwargs):
        n = next(counter)
        defaults = dict(
            order_number=f"PKG2501{9000 + n:04d}",
            package=package,
            package_name=package.name,
            package_price=package.price,
            package_currency=package.currency,
            package_period=package.period,
            package_features=package.features,
            customer_full_name=f"Customer {n}",
            customer_email=f"customer{n}@example.com",
            customer_phone="+920000000",
            customer_country="PK",
            stripe_session_id=f"cs_factory_{n}",
            payment_amount=Decimal("13000"),
            payment_currency="PKR",
        )
        defaults.update(kwargs)
        return PackageOrder.objects.create(**defaults)

    return make
