"""Bookings domain - booking request validation, customer bookings and back-office management"""
