"""HTTP tests for /api/bookings and the back-office booking endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from cleanpro.domain.bookings.repository import BookingRepository
from cleanpro.main import GENERIC_ERROR_MESSAGE, app
from cleanpro.models import Booking
from tests.conftest import auth_header, booking_payload, make_admin, make_customer, make_service


@pytest.fixture
def customer(db):
    return make_customer(db)


@pytest.fixture
def service(db):
    return make_service(db)


@pytest.fixture
def admin(db):
    return make_admin(db)


def book(client, customer, service_id, **overrides):
    """POST /api/bookings as the given customer"""
    return client.post(
        "/api/bookings", json=booking_payload(customer.id, service_id, **overrides), headers=auth_header(customer)
    )


class TestCreateBookingEndpoint:
    def test_happy_path(self, client, customer, service):
        response = book(client, customer, service.id)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["nextSteps"]
        booking = body["booking"]
        assert booking["Status"] == "requested"
        assert booking["Date"] == "2099-01-01"
        assert booking["Time"] == "09:00"
        assert booking["Address"] == "1 Main, X, Y 0001"
        assert booking["Customer"] == {
            "ID": customer.id,
            "Full_Name": "Jane Doe",
            "Email": "jane@example.com",
            "Phone": "5551234567",
        }
        assert booking["Service"]["Name"] == "Deep Cleaning"
        assert booking["Service"]["Duration"] == 180

    def test_property_size_may_be_numeric(self, client, customer, service):
        response = client.post(
            "/api/bookings",
            json=booking_payload(customer.id, service.id, Property_Size=1800, Cleaning_Frequency="weekly"),
        )
        assert response.status_code == 201
        assert response.json()["booking"]["Property_Size"] == "1800"

    def test_past_date(self, client, db, customer, service):
        response = book(client, customer, service.id, Date="2000-01-01")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "past dates" in body["message"]
        assert db.query(Booking).count() == 0

    def test_incomplete_address(self, client, db, customer, service):
        payload = booking_payload(customer.id, service.id)
        del payload["Address_City"]
        response = client.post("/api/bookings", json=payload, headers=auth_header(customer))

        assert response.status_code == 400
        assert "complete address" in response.json()["message"]
        assert db.query(Booking).count() == 0

    def test_missing_customer_is_unauthenticated(self, client, db, service):
        response = client.post("/api/bookings", json=booking_payload(None, service.id))

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert db.query(Booking).count() == 0

    def test_anonymous_caller_cannot_book_for_a_named_customer(self, client, db, customer, service):
        response = client.post("/api/bookings", json=booking_payload(customer.id, service.id))

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Please log in to book a service."}
        assert db.query(Booking).count() == 0

    def test_missing_service_and_date(self, client, customer):
        response = client.post("/api/bookings", json={"Customer_ID": customer.id}, headers=auth_header(customer))
        assert response.status_code == 400
        assert response.json()["message"] == "Service_ID and Date are required."

    def test_unavailable_service(self, client, db, customer):
        unavailable = make_service(db, name="Pressure Washing", is_available=False)
        response = book(client, customer, unavailable.id)
        assert response.status_code == 400
        assert "unavailable" in response.json()["message"]

    def test_unknown_customer_and_service(self, client, customer, service, admin):
        unknown_customer = client.post(
            "/api/bookings", json=booking_payload(999, service.id), headers=auth_header(admin)
        )
        assert unknown_customer.status_code == 404
        assert book(client, customer, 999).status_code == 404

    def test_duplicate_then_rebook_after_cancel(self, client, db, customer, service):
        first = book(client, customer, service.id)
        assert first.status_code == 201

        duplicate = book(client, customer, service.id)
        assert duplicate.status_code == 409
        assert duplicate.json()["success"] is False

        booking_id = first.json()["booking"]["ID"]
        cancelled = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_header(customer))
        assert cancelled.status_code == 200
        assert cancelled.json()["booking"]["Status"] == "cancelled"

        again = book(client, customer, service.id)
        assert again.status_code == 201
        assert db.query(Booking).count() == 2

    def test_token_supplies_customer(self, client, customer, service):
        response = client.post("/api/bookings", json=booking_payload(None, service.id), headers=auth_header(customer))
        assert response.status_code == 201
        assert response.json()["booking"]["Customer_ID"] == customer.id

    def test_customer_token_cannot_book_for_another_customer(self, client, db, customer, service):
        other = make_customer(db, email="other@example.com", full_name="Other Person")
        response = client.post(
            "/api/bookings", json=booking_payload(other.id, service.id), headers=auth_header(customer)
        )
        assert response.status_code == 401

    def test_admin_can_book_for_a_customer(self, client, customer, service, admin):
        response = client.post(
            "/api/bookings", json=booking_payload(customer.id, service.id), headers=auth_header(admin)
        )
        assert response.status_code == 201

    def test_invalid_token_is_rejected(self, client, customer, service):
        response = client.post(
            "/api/bookings",
            json=booking_payload(customer.id, service.id),
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_non_positive_duration(self, client, db, customer, service):
        response = book(client, customer, service.id, Duration=0)
        assert response.status_code == 400
        assert response.json()["message"] == "Duration must be a positive number of minutes."
        assert db.query(Booking).count() == 0

    def test_anonymous_request_with_bad_duration_is_unauthenticated(self, client, service):
        response = client.post("/api/bookings", json=booking_payload(None, service.id, Duration=0))
        assert response.status_code == 401

    def test_schema_errors_are_listed(self, client, customer, service):
        response = book(client, customer, service.id, Duration="ninety")
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation error"
        assert any(error.startswith("Duration") for error in body["errors"])


class TestBookingStorageFailures:
    def test_database_outage_is_a_generic_500(self, client, db, customer, service, monkeypatch):
        def fail(*args, **kwargs):
            raise OperationalError("INSERT INTO bookings", {}, Exception("secret internal detail"))

        monkeypatch.setattr(BookingRepository, "insert_booking", staticmethod(fail))
        response = book(client, customer, service.id)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Unable to create your booking right now. Please try again later.",
        }
        assert "secret internal detail" not in response.text
        assert db.query(Booking).count() == 0

    def test_unexpected_error_does_not_leak_internals(self, client, customer, service, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("secret internal detail")

        monkeypatch.setattr(BookingRepository, "insert_booking", staticmethod(explode))
        # The client fixture installs the test database; this one also renders unhandled errors
        unguarded = TestClient(app, raise_server_exceptions=False)
        response = unguarded.post(
            "/api/bookings", json=booking_payload(customer.id, service.id), headers=auth_header(customer)
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": GENERIC_ERROR_MESSAGE}
        assert "secret internal detail" not in response.text


class TestBookingFormHelpers:
    def test_precheck_valid(self, client):
        payload = booking_payload(None, 1, Email="jane@example.com")
        response = client.post("/api/bookings/precheck", json=payload)
        assert response.status_code == 200
        assert response.json() == {"valid": True, "errors": []}

    def test_precheck_collects_errors(self, client):
        response = client.post(
            "/api/bookings/precheck",
            json={"Date": "2000-01-01", "Address_Street": "1 Main", "Email": "nope"},
        )
        body = response.json()
        assert body["valid"] is False
        assert "Please select a service." in body["errors"]
        assert "Please enter a valid email address." in body["errors"]
        assert any("past dates" in error for error in body["errors"])

    def test_policy(self, client):
        body = client.get("/api/bookings/policy").json()
        assert body["defaultTime"] == "09:00"
        assert body["sameDayCutoff"] == "12:00"
        assert body["sameDayCutoffEnforced"] is False
        assert body["excludedStatuses"] == ["cancelled", "rejected"]
        assert "in-progress" in body["transitions"]["confirmed"]

    def test_check_availability(self, client, customer, service):
        params = {"Service_ID": service.id, "Date": "2099-01-01"}
        headers = auth_header(customer)
        url = "/api/bookings/check-availability"
        assert client.get(url, params=params, headers=headers).json()["available"] is True

        book(client, customer, service.id)
        body = client.get(url, params=params, headers=headers).json()
        assert body["available"] is False
        assert body["reason"] == "duplicate"

        past = client.get(url, params={**params, "Date": "2000-01-01"}).json()
        assert past["reason"] == "past_date"

    def test_anonymous_caller_learns_nothing_about_a_customer(self, client, customer, service):
        book(client, customer, service.id)
        params = {"Service_ID": service.id, "Date": "2099-01-01", "Customer_ID": customer.id}

        body = client.get("/api/bookings/check-availability", params=params).json()
        assert body["available"] is True
        assert "existingBookingId" not in body

    def test_customer_is_checked_as_themselves(self, client, db, customer, service):
        book(client, customer, service.id)
        other = make_customer(db, email="other@example.com", full_name="Other Person")
        params = {"Service_ID": service.id, "Date": "2099-01-01", "Customer_ID": customer.id}

        body = client.get("/api/bookings/check-availability", params=params, headers=auth_header(other)).json()
        assert body["available"] is True
        assert "existingBookingId" not in body

    def test_admin_may_check_any_customer(self, client, customer, service, admin):
        booking_id = book(client, customer, service.id).json()["booking"]["ID"]
        params = {"Service_ID": service.id, "Date": "2099-01-01", "Customer_ID": customer.id}

        body = client.get("/api/bookings/check-availability", params=params, headers=auth_header(admin)).json()
        assert body["available"] is False
        assert body["existingBookingId"] == booking_id

    def test_check_availability_unknown_service(self, client):
        response = client.get("/api/bookings/check-availability", params={"Service_ID": 5, "Date": "2099-01-01"})
        assert response.status_code == 404


class TestCustomerBookings:
    def test_list_and_get_own_bookings(self, client, db, customer, service):
        created = book(client, customer, service.id).json()["booking"]

        listed = client.get("/api/bookings", headers=auth_header(customer))
        assert listed.status_code == 200
        assert [b["ID"] for b in listed.json()["bookings"]] == [created["ID"]]

        fetched = client.get(f"/api/bookings/{created['ID']}", headers=auth_header(customer))
        assert fetched.json()["booking"]["Address"] == "1 Main, X, Y 0001"

        other = make_customer(db, email="other@example.com", full_name="Other Person")
        assert client.get(f"/api/bookings/{created['ID']}", headers=auth_header(other)).status_code == 404

    def test_requires_login(self, client):
        response = client.get("/api/bookings")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_admin_token_is_not_a_customer(self, client, admin):
        assert client.get("/api/bookings", headers=auth_header(admin)).status_code == 403


class TestBackOfficeBookings:
    def _book(self, client, customer, service, **overrides):
        response = book(client, customer, service.id, **overrides)
        return response.json()["booking"]["ID"]

    def test_requires_admin(self, client, customer):
        assert client.get("/api/admin/bookings").status_code == 401
        assert client.get("/api/admin/bookings", headers=auth_header(customer)).status_code == 403

    def test_list_with_pagination(self, client, customer, service, admin):
        self._book(client, customer, service)
        self._book(client, customer, service, Date="2099-01-02")

        body = client.get("/api/admin/bookings", params={"limit": 1}, headers=auth_header(admin)).json()
        assert len(body["bookings"]) == 1
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["totalPages"] == 2

    def test_status_workflow(self, client, customer, service, admin):
        booking_id = self._book(client, customer, service)
        url = f"/api/admin/bookings/{booking_id}/status"
        headers = auth_header(admin)

        assert client.put(url, json={"Status": "confirmed"}, headers=headers).status_code == 200
        invalid = client.put(url, json={"Status": "completed"}, headers=headers)
        assert invalid.status_code == 400
        assert "Cannot change booking status" in invalid.json()["message"]
        assert client.put(url, json={"Status": "in-progress"}, headers=headers).status_code == 200
        done = client.put(url, json={"Status": "completed"}, headers=headers)
        assert done.json()["booking"]["Status"] == "completed"

    def test_quote_and_payments(self, client, customer, service, admin):
        booking_id = self._book(client, customer, service)
        headers = auth_header(admin)

        quote = client.post(
            f"/api/admin/bookings/{booking_id}/quote", json={"Amount": 220, "Notes": "Two floors"}, headers=headers
        )
        assert quote.status_code == 201
        assert quote.json()["quotation"]["Amount"] == 220

        booking = client.get(f"/api/admin/bookings/{booking_id}", headers=headers).json()["booking"]
        assert booking["Quoted_Amount"] == 220

        assert (
            client.post(f"/api/admin/bookings/{booking_id}/quote", json={"Amount": 0}, headers=headers).status_code
            == 400
        )

        payment = client.post(
            f"/api/admin/bookings/{booking_id}/payments",
            json={"Amount": 220, "Method": "bank_transfer"},
            headers=headers,
        )
        assert payment.status_code == 201
        assert payment.json()["payment"]["Method"] == "bank_transfer"

        bad_method = client.post(
            f"/api/admin/bookings/{booking_id}/payments", json={"Amount": 5, "Method": "bitcoin"}, headers=headers
        )
        assert bad_method.status_code == 400

        payments = client.get("/api/admin/payments", headers=headers).json()["payments"]
        assert len(payments) == 1

        stats = client.get("/api/admin/dashboard/stats", headers=headers).json()["stats"]
        assert stats["totalRevenue"] == 220
        assert stats["totalBookings"] == 1

    def test_delete_booking(self, client, customer, service, admin):
        booking_id = self._book(client, customer, service)
        headers = auth_header(admin)

        assert client.delete(f"/api/admin/bookings/{booking_id}", headers=headers).status_code == 200
        assert client.get(f"/api/admin/bookings/{booking_id}", headers=headers).status_code == 404

    def test_first_login_admin_is_blocked(self, client, db):
        pending = make_admin(db, email="new@cleanpro.example", role="sub_admin", password=None, first_login=True)
        assert client.get("/api/admin/bookings", headers=auth_header(pending)).status_code == 403


class TestBackOfficeReports:
    def _quote(self, client, admin, booking_id, amount):
        response = client.post(
            f"/api/admin/bookings/{booking_id}/quote", json={"Amount": amount}, headers=auth_header(admin)
        )
        assert response.status_code == 201
        return response.json()["quotation"]

    def test_analytics(self, client, customer, service, admin):
        first = book(client, customer, service.id, Date="2099-03-01").json()["booking"]["ID"]
        self._quote(client, admin, first, 120)
        book(client, customer, service.id, Date="2099-03-15")
        dropped = book(client, customer, service.id, Date="2099-04-02").json()["booking"]["ID"]
        client.post(f"/api/bookings/{dropped}/cancel", headers=auth_header(customer))

        url = "/api/admin/dashboard/analytics"
        response = client.get(url, params={"period": "monthly"}, headers=auth_header(admin))
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "analytics": [{"period": "2099-03", "bookings": 2, "revenue": 120.0}],
            "period": "monthly",
        }

        daily = client.get(url, headers=auth_header(admin)).json()
        assert daily["period"] == "daily"
        assert [row["period"] for row in daily["analytics"]] == ["2099-03-01", "2099-03-15"]

    def test_analytics_rejects_unknown_period(self, client, admin):
        response = client.get("/api/admin/dashboard/analytics", params={"period": "hourly"}, headers=auth_header(admin))
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_analytics_requires_admin(self, client, customer):
        response = client.get("/api/admin/dashboard/analytics", headers=auth_header(customer))
        assert response.status_code == 403

    def test_quotations(self, client, customer, service, admin):
        headers = auth_header(admin)
        booking_id = book(client, customer, service.id).json()["booking"]["ID"]
        created = self._quote(client, admin, booking_id, 220)
        assert created["Customer"]["Full_Name"] == "Jane Doe"
        assert created["Service"]["Name"] == "Deep Cleaning"

        listed = client.get("/api/admin/quotations", params={"search": "jane"}, headers=headers).json()
        assert [q["ID"] for q in listed["quotations"]] == [created["ID"]]
        assert listed["pagination"]["total"] == 1
        nobody = client.get("/api/admin/quotations", params={"search": "nobody"}, headers=headers).json()
        assert nobody["quotations"] == []

        fetched = client.get(f"/api/admin/quotations/{created['ID']}", headers=headers).json()["quotation"]
        assert fetched["Amount"] == 220
        assert fetched["Status"] == "pending"

        stats = client.get("/api/admin/quotations/stats", headers=headers).json()["stats"]
        assert stats["pendingQuotations"] == 1
        assert stats["totalQuotations"] == 1

        accepted = client.put(
            f"/api/admin/quotations/{created['ID']}/status", json={"Status": "accepted"}, headers=headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["quotation"]["Status"] == "accepted"

        stats = client.get("/api/admin/quotations/stats", headers=headers).json()["stats"]
        assert stats["pendingQuotations"] == 0
        assert stats["byStatus"]["accepted"] == 1

        bad_status = client.put(
            f"/api/admin/quotations/{created['ID']}/status", json={"Status": "maybe"}, headers=headers
        )
        assert bad_status.status_code == 400

    def test_unknown_quotation(self, client, admin):
        response = client.get("/api/admin/quotations/999", headers=auth_header(admin))
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Quotation not found."}

    def test_quotations_require_admin(self, client, customer):
        assert client.get("/api/admin/quotations", headers=auth_header(customer)).status_code == 403
        assert client.get("/api/admin/quotations/stats").status_code == 401
