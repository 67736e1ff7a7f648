from decimal import Decimal

from aiohttp.test_utils import TestClient

from bikerental.models import Bike, Booking
from bikerental.models.util import BookingStatus
from bikerental.serializer import JSendSchema, JSendStatus
from bikerental.serializer.fields import Many
from bikerental.serializer.models import BookingSchema, RentalSummarySchema
from tests.util import auth


class TestRentalsView:

    async def test_get_rentals(self, client: TestClient, random_admin, random_rental, random_bike):
        """Assert that an admin can get a list of all rentals."""
        response = await client.get('/api/v1/rentals', headers=auth(random_admin))
        response_schema = JSendSchema.of(rentals=Many(BookingSchema()))
        response_data = response_schema.load(await response.json())
        assert response_data["status"] == JSendStatus.SUCCESS
        assert len(response_data["data"]["rentals"]) == 1
        rental = response_data["data"]["rentals"][0]
        assert rental["bike_id"] == random_bike.id
        assert (await client.get(rental["bike_url"])).status != 404

    async def test_get_rentals_filtered(self, client: TestClient, random_admin, random_rental):
        response = await client.get('/api/v1/rentals?status=completed', headers=auth(random_admin))
        response_data = JSendSchema.of(rentals=Many(BookingSchema())).load(await response.json())
        assert response_data["data"]["rentals"] == []

    async def test_get_rentals_not_admin(self, client: TestClient, random_user):
        """Assert that only admins can list all the rentals."""
        response = await client.get('/api/v1/rentals', headers=auth(random_user))
        assert response.status == 401
        response_data = JSendSchema().load(await response.json())
        assert response_data["status"] == JSendStatus.FAIL

    async def test_create_rental(self, client: TestClient, random_user, random_bike):
        """Assert that a user can start a rental."""
        response = await client.post('/api/v1/rentals', json={
            "bike_id": random_bike.id,
            "start_latitude": 53.34,
            "start_longitude": -6.26,
            "notes": "off to work",
        }, headers=auth(random_user))
        assert response.status == 201

        response_data = JSendSchema.of(rental=BookingSchema()).load(await response.json())
        rental = response_data["data"]["rental"]
        assert rental["status"] == BookingStatus.ACTIVE
        assert rental["is_active"]
        assert rental["user_id"] == random_user.id
        assert rental["bike"]["price_per_hour"] == Decimal("12.00")
        assert rental["start_location"]["geometry"]["coordinates"] == [-6.26, 53.34]
        assert "total_cost" not in rental
        assert not (await Bike.get(id=random_bike.id)).is_available

    async def test_create_rental_missing_bike(self, client: TestClient, random_user):
        response = await client.post('/api/v1/rentals', json={"bike_id": 1234}, headers=auth(random_user))
        assert response.status == 404
        response_data = JSendSchema().load(await response.json())
        assert response_data["data"]["kind"] == "not_found"
        assert response_data["data"]["message"] == "bike not found"

    async def test_create_rental_bike_taken(self, client: TestClient, random_rental, random_bike,
                                            random_user_factory):
        """Assert that renting a bike somebody is riding is a conflict."""
        other_user = await random_user_factory()
        response = await client.post('/api/v1/rentals', json={"bike_id": random_bike.id}, headers=auth(other_user))
        assert response.status == 409
        response_data = JSendSchema().load(await response.json())
        assert response_data["status"] == JSendStatus.FAIL
        assert response_data["data"]["kind"] == "conflict"

    async def test_create_second_rental(self, client: TestClient, random_rental, random_user, random_bike_factory):
        other_bike = await random_bike_factory()
        response = await client.post('/api/v1/rentals', json={"bike_id": other_bike.id}, headers=auth(random_user))
        assert response.status == 409
        response_data = JSendSchema().load(await response.json())
        assert response_data["data"]["message"] == "active rental exists"

    async def test_create_rental_half_location(self, client: TestClient, random_user, random_bike):
        """Assert that a latitude without a longitude is refused."""
        response = await client.post('/api/v1/rentals', json={
            "bike_id": random_bike.id, "start_latitude": 53.34
        }, headers=auth(random_user))
        assert response.status == 400

    async def test_create_rental_long_notes(self, client: TestClient, random_user, random_bike):
        response = await client.post('/api/v1/rentals', json={
            "bike_id": random_bike.id, "notes": "x" * 251
        }, headers=auth(random_user))
        assert response.status == 400
        assert not await Booking.all().exists()

    async def test_create_rental_no_user(self, client: TestClient, random_bike):
        """Assert that a token without a profile cannot rent."""
        response = await client.post('/api/v1/rentals', json={"bike_id": random_bike.id},
                                     headers={"Authorization": "Bearer abcdef"})
        assert response.status == 404

    async def test_create_rental_no_token(self, client: TestClient, random_bike):
        response = await client.post('/api/v1/rentals', json={"bike_id": random_bike.id})
        assert response.status == 400

    async def test_create_rental_bad_token(self, client: TestClient, random_bike):
        response = await client.post('/api/v1/rentals', json={"bike_id": random_bike.id},
                                     headers={"Authorization": "Bearer not-hex"})
        assert response.status == 401


class TestRentalView:

    async def test_get_rental(self, client: TestClient, random_rental, random_user, random_bike):
        """Assert that a user can get their own rental."""
        response = await client.get(f'/api/v1/rentals/{random_rental.id}', headers=auth(random_user))
        response_schema = JSendSchema.of(rental=BookingSchema())
        response_data = response_schema.load(await response.json())
        assert response_data["status"] == JSendStatus.SUCCESS
        assert response_data["data"]["rental"]["id"] == random_rental.id
        assert response_data["data"]["rental"]["bike"]["id"] == random_bike.id
        assert (await client.get(response_data["data"]["rental"]["bike_url"])).status != 404

    async def test_get_rental_as_admin(self, client: TestClient, random_rental, random_admin):
        response = await client.get(f'/api/v1/rentals/{random_rental.id}', headers=auth(random_admin))
        assert response.status == 200

    async def test_get_rental_of_someone_else(self, client: TestClient, random_rental, random_user_factory):
        """Assert that a user cannot see the rentals of somebody else."""
        other_user = await random_user_factory()
        response = await client.get(f'/api/v1/rentals/{random_rental.id}', headers=auth(other_user))
        assert response.status == 403
        response_data = JSendSchema().load(await response.json())
        assert response_data["data"]["kind"] == "forbidden"

    async def test_get_missing_rental(self, client: TestClient, random_user):
        response = await client.get('/api/v1/rentals/1234', headers=auth(random_user))
        assert response.status == 404


class TestRentalCompleteView:

    async def test_complete_rental(self, client: TestClient, random_rental, random_user, random_bike, clock):
        """Assert that completing a rental bills it and frees the bike."""
        clock.advance(minutes=90)
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', json={
            "end_latitude": 51.5, "end_longitude": -0.12, "notes": "all good",
        }, headers=auth(random_user))
        assert response.status == 200

        response_schema = JSendSchema.of(rental=BookingSchema(), summary=RentalSummarySchema())
        response_data = response_schema.load(await response.json())
        rental, summary = response_data["data"]["rental"], response_data["data"]["summary"]

        assert rental["status"] == BookingStatus.COMPLETED
        assert rental["total_cost"] == Decimal("18.00")
        assert rental["notes"] == "Return: all good"
        assert "end_time" in rental
        assert summary == {
            "duration_hours": Decimal("1.50"),
            "billed_hours": Decimal("1.50"),
            "total_cost": Decimal("18.00"),
            "bike_model": random_bike.model,
        }
        assert (await Bike.get(id=random_bike.id)).is_available

    async def test_complete_rental_without_body(self, client: TestClient, random_rental, random_user, clock):
        """Assert that the first hour is always charged."""
        clock.advance(minutes=1)
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', headers=auth(random_user))
        response_data = JSendSchema.of(rental=BookingSchema(), summary=RentalSummarySchema()).load(
            await response.json()
        )
        assert response_data["data"]["summary"]["billed_hours"] == Decimal("1.00")
        assert response_data["data"]["summary"]["total_cost"] == Decimal("12.00")

    async def test_complete_rental_twice(self, client: TestClient, random_rental, random_user):
        await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', headers=auth(random_user))
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', headers=auth(random_user))
        assert response.status == 409
        response_data = JSendSchema().load(await response.json())
        assert response_data["data"]["message"] == "booking is completed"

    async def test_complete_rental_of_someone_else(self, client: TestClient, random_rental, random_admin):
        """Assert that not even an admin can complete somebody else's rental."""
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', headers=auth(random_admin))
        assert response.status == 403
        assert (await Booking.get(id=random_rental.id)).is_active

    async def test_complete_missing_rental(self, client: TestClient, random_user):
        response = await client.patch('/api/v1/rentals/1234/complete', headers=auth(random_user))
        assert response.status == 404


class TestRentalCancelView:

    async def test_cancel_rental(self, client: TestClient, random_rental, random_user, random_bike):
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/cancel', json={"reason": "flat tyre"},
                                      headers=auth(random_user))
        assert response.status == 200
        response_data = JSendSchema.of(rental=BookingSchema()).load(await response.json())
        rental = response_data["data"]["rental"]
        assert rental["status"] == BookingStatus.CANCELLED
        assert rental["notes"] == "Cancelled: flat tyre"
        assert "total_cost" not in rental
        assert (await Bike.get(id=random_bike.id)).is_available

    async def test_cancel_rental_as_admin(self, client: TestClient, random_rental, random_admin):
        """Assert that an admin can cancel any rental."""
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/cancel', headers=auth(random_admin))
        assert response.status == 200

    async def test_cancel_rental_of_someone_else(self, client: TestClient, random_rental, random_user_factory):
        other_user = await random_user_factory()
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/cancel', headers=auth(other_user))
        assert response.status == 403

    async def test_cancel_completed_rental(self, client: TestClient, random_rental, random_user):
        await client.patch(f'/api/v1/rentals/{random_rental.id}/complete', headers=auth(random_user))
        response = await client.patch(f'/api/v1/rentals/{random_rental.id}/cancel', headers=auth(random_user))
        assert response.status == 409
        assert (await Booking.get(id=random_rental.id)).status is BookingStatus.COMPLETED
