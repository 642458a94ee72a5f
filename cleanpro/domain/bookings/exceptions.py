"""Booking request errors

Each failure kind of the booking pipeline is its own HTTPException subclass so the
global handler in main.py renders it as ``{success: false, message, errors?}``.
"""

from typing import Optional

from fastapi import HTTPException


class BookingRequestError(HTTPException):
    status_code = 400
    message = "Invalid booking request."

    def __init__(self, message: Optional[str] = None, errors: Optional[list[str]] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)
        self.errors = errors


class Unauthenticated(BookingRequestError):
    status_code = 401
    message = "Please log in to book a service."


class MissingField(BookingRequestError):
    message = "Service_ID and Date are required."


class IncompleteAddress(BookingRequestError):
    message = "A complete address is required (street, city, state and postal code)."


class InvalidDate(BookingRequestError):
    message = "Invalid date format. Please use YYYY-MM-DD."


class InvalidTime(BookingRequestError):
    message = "Invalid time format. Please use HH:MM."


class PastDate(BookingRequestError):
    message = "Cannot book for past dates. Please select today or a future date."


class SameDayCutoff(BookingRequestError):
    message = "Same-day bookings must be made before 12:00. Please select tomorrow or a future date."


class TimeAlreadyPassed(BookingRequestError):
    message = "Selected time has already passed. Please choose a future time."


class InvalidDuration(BookingRequestError):
    message = "Duration must be a positive number of minutes."


class CustomerNotFound(BookingRequestError):
    status_code = 404
    message = "Customer not found."


class ServiceNotFound(BookingRequestError):
    status_code = 404
    message = "Service not found."


class ServiceUnavailable(BookingRequestError):
    message = "This service is currently unavailable for booking."


class DuplicateBooking(BookingRequestError):
    status_code = 409
    message = "You already have a booking request for this service on the selected date."


class InvalidReference(BookingRequestError):
    message = "Invalid reference: the selected customer or service does not exist."


class StorageValidationError(BookingRequestError):
    message = "Validation error."


class BookingStorageError(BookingRequestError):
    status_code = 500
    message = "Unable to create your booking right now. Please try again later."
