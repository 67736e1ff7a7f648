from decimal import Decimal

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient
from faker import Faker
from tortoise import Tortoise

from bikerental.middleware import validate_token_middleware, rental_error_middleware
from bikerental.models import Bike, User, Booking
from bikerental.models.user import UserType
from bikerental.service.background.reconciler import AvailabilityReconciler
from bikerental.service.manager.rental_manager import RentalManager
from bikerental.service.verify_token import DummyVerifier
from bikerental.signals import register_signals
from bikerental.views import register_views
from tests.util import Clock

fake = Faker()


@pytest.fixture
def database_url():
    return "sqlite://:memory:"


@pytest.fixture
async def database(database_url):
    """Gives every test a fresh database."""
    await Tortoise.init(
        db_url=database_url,
        modules={'models': ['bikerental.models']},
        use_tz=True,
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def random_user_factory(database):
    async def create_user(is_admin=False):
        return await User.create(
            id=fake.sha1(), name=fake.name(), email=fake.unique.email(),
            type=UserType.ADMIN if is_admin else UserType.CUSTOMER
        )

    return create_user


@pytest.fixture
def random_bike_factory(database):
    async def create_bike(price_per_hour=Decimal("12.00"), **kwargs):
        fields = {
            "model": fake.word().title(),
            "brand": fake.company(),
            "latitude": float(fake.latitude()),
            "longitude": float(fake.longitude()),
            "battery_level": fake.random_int(20, 100),
            **kwargs
        }
        return await Bike.create(price_per_hour=price_per_hour, **fields)

    return create_bike


@pytest.fixture
def rental_manager(database, clock) -> RentalManager:
    return RentalManager(clock=clock)


@pytest.fixture
def reconciler(rental_manager) -> AvailabilityReconciler:
    return AvailabilityReconciler(rental_manager, interval=3600)


@pytest.fixture
async def random_bike(random_bike_factory) -> Bike:
    """Creates a random bike in the database."""
    return await random_bike_factory()


@pytest.fixture
async def random_user(random_user_factory) -> User:
    """Creates a random user in the database."""
    return await random_user_factory()


@pytest.fixture
async def random_admin(random_user_factory) -> User:
    return await random_user_factory(True)


@pytest.fixture
async def random_rental(rental_manager, random_bike, random_user) -> Booking:
    """Starts a rental of the random bike by the random user."""
    return await rental_manager.rent(random_user.id, random_bike.id)


@pytest.fixture
async def client(aiohttp_client, database, rental_manager, reconciler) -> TestClient:
    app = web.Application(middlewares=[validate_token_middleware, rental_error_middleware])

    app['rental_manager'] = rental_manager
    app['reconciler'] = reconciler
    app['token_verifier'] = DummyVerifier()

    register_signals(app, init_database=False)  # we get the database from a fixture
    register_views(app, "/api/v1")

    return await aiohttp_client(app)
