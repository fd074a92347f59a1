"""Integration tests for the bookings API: the full request-to-deletion flow."""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

from parkpulse.exceptions import (
    ConcurrentUpdateError,
    DependencyError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from parkpulse.main import status_for

BOOKINGS_URL = "/api/v1/bookings"


async def _request(client: AsyncClient, listing_id: str, headers: dict, start: str, end: str) -> dict:
    response = await client.post(
        f"/api/v1/listings/{listing_id}/bookings",
        json={"start_time": start, "end_time": end},
        headers=headers,
    )
    assert response.status_code == 201, f"Failed to request booking: {response.text}"
    return response.json()


class TestRequestBooking:
    async def test_request_creates_pending_booking(
        self, client: AsyncClient, api_listing, requester, requester_headers, notifier
    ):
        data = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        assert data["status"] == "pending"
        assert data["requester_name"] == requester.name
        assert data["requester_contact"] == requester.email
        assert data["location"] == api_listing["location"]
        assert data["booking_date"] == api_listing["available_date"]
        assert Decimal(data["total_cost"]) == Decimal("10.00")
        assert notifier.recipients[-1] == api_listing["contact_email"]

    async def test_window_outside_listing(self, client: AsyncClient, api_listing, requester_headers):
        response = await client.post(
            f"/api/v1/listings/{api_listing['id']}/bookings",
            json={"start_time": "16:00", "end_time": "18:00"},
            headers=requester_headers,
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "validation_error"

    async def test_inverted_window_rejected_by_schema(self, client: AsyncClient, api_listing, requester_headers):
        response = await client.post(
            f"/api/v1/listings/{api_listing['id']}/bookings",
            json={"start_time": "12:00", "end_time": "10:00"},
            headers=requester_headers,
        )

        assert response.status_code == 422

    async def test_unknown_listing(self, client: AsyncClient, requester_headers):
        response = await client.post(
            f"/api/v1/listings/{uuid.uuid4()}/bookings",
            json={"start_time": "10:00", "end_time": "12:00"},
            headers=requester_headers,
        )

        assert response.status_code == 404


class TestBookingFlow:
    async def test_approve_then_conflicting_approval_is_refused(
        self,
        client: AsyncClient,
        api_listing,
        owner_headers,
        requester,
        requester_headers,
        other_requester_headers,
        notifier,
    ):
        first = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")
        second = await _request(client, api_listing["id"], other_requester_headers, "11:00", "13:00")

        requests = await client.get(f"{BOOKINGS_URL}/requests", headers=owner_headers)
        assert [b["id"] for b in requests.json()["items"]] == [first["id"], second["id"]]

        approved = await client.post(f"{BOOKINGS_URL}/{first['id']}/approve", headers=owner_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "confirmed"
        assert notifier.recipients[-1] == requester.email

        refused = await client.post(f"{BOOKINGS_URL}/{second['id']}/approve", headers=owner_headers)
        assert refused.status_code == 409
        assert refused.json()["detail"]["code"] == "conflict"

        still_pending = await client.get(f"{BOOKINGS_URL}/{second['id']}", headers=other_requester_headers)
        assert still_pending.json()["status"] == "pending"

    async def test_approving_confirmed_booking_is_illegal(
        self, client: AsyncClient, api_listing, owner_headers, requester_headers
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")
        await client.post(f"{BOOKINGS_URL}/{booking['id']}/approve", headers=owner_headers)

        response = await client.post(f"{BOOKINGS_URL}/{booking['id']}/approve", headers=owner_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "illegal_transition"

    async def test_requester_cannot_approve_own_request(
        self, client: AsyncClient, api_listing, requester_headers
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        response = await client.post(f"{BOOKINGS_URL}/{booking['id']}/approve", headers=requester_headers)

        assert response.status_code == 404

    async def test_deny_notifies_requester(
        self, client: AsyncClient, api_listing, owner_headers, requester, requester_headers, notifier
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        response = await client.post(f"{BOOKINGS_URL}/{booking['id']}/deny", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "denied"
        assert notifier.recipients[-1] == requester.email
        assert "declined" in notifier.sent[-1][1]

    @pytest.mark.parametrize(
        ("canceler", "expected_status"),
        [("requester", "canceled_by_requester"), ("owner", "canceled_by_owner")],
    )
    async def test_cancel_by_either_party(
        self,
        client: AsyncClient,
        api_listing,
        owner_headers,
        requester_headers,
        canceler,
        expected_status,
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")
        await client.post(f"{BOOKINGS_URL}/{booking['id']}/approve", headers=owner_headers)
        headers = requester_headers if canceler == "requester" else owner_headers

        response = await client.post(f"{BOOKINGS_URL}/{booking['id']}/cancel", headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == expected_status

    async def test_delete_only_after_finish(self, client: AsyncClient, api_listing, requester_headers):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        too_early = await client.delete(f"{BOOKINGS_URL}/{booking['id']}", headers=requester_headers)
        assert too_early.status_code == 409
        assert too_early.json()["detail"]["code"] == "illegal_transition"

        await client.post(f"{BOOKINGS_URL}/{booking['id']}/cancel", headers=requester_headers)
        deleted = await client.delete(f"{BOOKINGS_URL}/{booking['id']}", headers=requester_headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Booking deleted"}

        gone = await client.get(f"{BOOKINGS_URL}/{booking['id']}", headers=requester_headers)
        assert gone.status_code == 404

    async def test_owner_cannot_delete(self, client: AsyncClient, api_listing, owner_headers, requester_headers):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")
        await client.post(f"{BOOKINGS_URL}/{booking['id']}/deny", headers=owner_headers)

        response = await client.delete(f"{BOOKINGS_URL}/{booking['id']}", headers=owner_headers)

        assert response.status_code == 404


class TestVisibility:
    async def test_stranger_cannot_see_booking(
        self, client: AsyncClient, api_listing, requester_headers, other_requester_headers
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        response = await client.get(f"{BOOKINGS_URL}/{booking['id']}", headers=other_requester_headers)

        assert response.status_code == 404

    async def test_my_bookings_lists_only_mine(
        self, client: AsyncClient, api_listing, requester_headers, other_requester_headers
    ):
        mine = await _request(client, api_listing["id"], requester_headers, "10:00", "11:00")
        await _request(client, api_listing["id"], other_requester_headers, "12:00", "13:00")

        response = await client.get(BOOKINGS_URL, headers=requester_headers)

        assert response.status_code == 200
        assert [b["id"] for b in response.json()["items"]] == [mine["id"]]


class TestFailureIsolation:
    async def test_notifier_failure_does_not_fail_the_transition(
        self, client: AsyncClient, api_listing, owner_headers, requester_headers, notifier, monkeypatch
    ):
        booking = await _request(client, api_listing["id"], requester_headers, "10:00", "12:00")

        async def broken_send(address, subject, body):
            raise ConnectionError("relay down")

        monkeypatch.setattr(notifier, "send", broken_send)

        response = await client.post(f"{BOOKINGS_URL}/{booking['id']}/approve", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ValidationError("bad time"), 422),
            (NotFoundError("gone"), 404),
            (IllegalTransitionError("denied", "approve"), 409),
            (ConcurrentUpdateError("changed"), 409),
            (DependencyError("store down"), 503),
        ],
    )
    def test_status_for(self, error, expected):
        assert status_for(error) == expected


class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.json()["docs"] == "/docs"
