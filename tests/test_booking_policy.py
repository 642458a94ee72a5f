"""Tests for the shared booking date/time rules."""

from datetime import date, datetime, timedelta, timezone

import pytest

from cleanpro.domain.bookings import policy


class TestNormalizeDate:
    def test_iso_date_passes_through(self):
        assert policy.normalize_date("2099-01-01") == "2099-01-01"

    def test_datetime_strings_keep_the_written_day(self):
        assert policy.normalize_date("2099-01-01T23:30:00Z") == "2099-01-01"
        assert policy.normalize_date("2099-01-01 08:00") == "2099-01-01"

    def test_date_objects(self):
        assert policy.normalize_date(date(2030, 2, 3)) == "2030-02-03"
        assert policy.normalize_date(datetime(2030, 2, 3, 18, 45)) == "2030-02-03"

    @pytest.mark.parametrize("value", ["", "   ", None, "not-a-date", "2099-02-30", "01/02/2099"])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            policy.normalize_date(value)


class TestPastDate:
    def test_today_uses_utc(self):
        now = datetime(2030, 6, 1, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        # 01:00 at UTC+5 is still the previous day in UTC
        assert policy.today_iso(now) == "2030-05-31"

    def test_today_is_not_past(self):
        assert not policy.is_past_date("2030-06-01", "2030-06-01")

    def test_yesterday_is_past(self):
        assert policy.is_past_date("2030-05-31", "2030-06-01")

    def test_far_future_is_not_past(self):
        assert not policy.is_past_date("2099-01-01")


class TestParseTime:
    def test_blank_uses_default(self):
        assert policy.parse_time(None) == "09:00"
        assert policy.parse_time("  ") == "09:00"
        assert policy.parse_time("", default="10:30") == "10:30"

    def test_normalizes_to_hh_mm(self):
        assert policy.parse_time("7:05") == "07:05"
        assert policy.parse_time("14:30:00") == "14:30"

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "9"])
    def test_invalid_times_raise(self, value):
        with pytest.raises(ValueError):
            policy.parse_time(value)


class TestSameDayRules:
    def test_cutoff_applies_only_to_today(self):
        now = datetime(2030, 6, 1, 13, 0)
        assert policy.same_day_cutoff_violation("2030-06-01", now)
        assert not policy.same_day_cutoff_violation("2030-06-02", now)

    def test_cutoff_boundary(self):
        assert not policy.same_day_cutoff_violation("2030-06-01", datetime(2030, 6, 1, 11, 59))
        assert policy.same_day_cutoff_violation("2030-06-01", datetime(2030, 6, 1, 12, 0))

    def test_custom_cutoff(self):
        now = datetime(2030, 6, 1, 15, 0)
        assert not policy.same_day_cutoff_violation("2030-06-01", now, cutoff="16:00")

    def test_time_already_passed(self):
        now = datetime(2030, 6, 1, 10, 15)
        assert policy.time_already_passed("2030-06-01", "10:15", now)
        assert policy.time_already_passed("2030-06-01", "09:00", now)
        assert not policy.time_already_passed("2030-06-01", "10:30", now)
        assert not policy.time_already_passed("2030-06-02", "08:00", now)
        assert not policy.time_already_passed("2030-06-01", None, now)


class TestHelpers:
    def test_compose_address_trims_parts(self):
        assert policy.compose_address(" 1 Main ", "X", " Y", "0001 ") == "1 Main, X, Y 0001"

    def test_clean_optional(self):
        assert policy.clean_optional("  ") is None
        assert policy.clean_optional(None) is None
        assert policy.clean_optional(" Pets at home ") == "Pets at home"
        assert policy.clean_optional(1200) == "1200"

    def test_transitions(self):
        assert policy.can_transition("requested", "confirmed")
        assert policy.can_transition("confirmed", "in-progress")
        assert policy.can_transition("in-progress", "completed")
        assert policy.can_transition("requested", "rejected")
        assert not policy.can_transition("requested", "completed")
        assert not policy.can_transition("completed", "cancelled")
        assert not policy.can_transition("cancelled", "requested")

    def test_only_cancelled_and_rejected_are_excluded(self):
        assert policy.TERMINAL_EXCLUDED_STATUSES == {"cancelled", "rejected"}

    @pytest.mark.parametrize(
        "period, expected",
        [
            ("daily", "2030-06-01"),
            ("weekly", "2030-W22"),
            ("monthly", "2030-06"),
        ],
    )
    def test_analytics_period_key(self, period, expected):
        assert policy.analytics_period_key(date(2030, 6, 1), period) == expected

    def test_weekly_key_uses_iso_year(self):
        # 2029-12-31 is the Monday of ISO week 1 of 2030
        assert policy.analytics_period_key(date(2029, 12, 31), "weekly") == "2030-W01"

    def test_unknown_analytics_period(self):
        with pytest.raises(ValueError):
            policy.analytics_period_key(date(2030, 6, 1), "yearly")


class TestPrecheckErrors:
    def _errors(self, **overrides):
        fields = {
            "service_id": 1,
            "date_value": "2030-06-02",
            "time_value": None,
            "street": "1 Main",
            "city": "X",
            "state": "Y",
            "postal_code": "0001",
            "email": "jane@example.com",
            "now": datetime(2030, 6, 1, 9, 0),
        }
        fields.update(overrides)
        return policy.precheck_errors(**fields)

    def test_valid_form_has_no_errors(self):
        assert self._errors() == []

    def test_reports_every_problem_at_once(self):
        errors = self._errors(service_id=None, city="  ", email="not-an-email", date_value=None)
        assert "Please select a service." in errors
        assert "Please provide a complete address (street, city, state and postal code)." in errors
        assert "Please enter a valid email address." in errors
        assert "Please select a booking date." in errors

    def test_bad_postal_code(self):
        assert self._errors(postal_code="#") == ["Please enter a valid postal code."]

    def test_past_date(self):
        assert self._errors(date_value="2030-05-31") == [policy.PAST_DATE_MESSAGE]

    def test_same_day_after_cutoff(self):
        errors = self._errors(date_value="2030-06-01", now=datetime(2030, 6, 1, 12, 30))
        assert errors == [policy.SAME_DAY_CUTOFF_MESSAGE.format(cutoff="12:00")]

    def test_same_day_time_already_passed(self):
        errors = self._errors(date_value="2030-06-01", time_value="08:00")
        assert errors == [policy.TIME_PASSED_MESSAGE]

    def test_invalid_time(self):
        assert self._errors(time_value="25:00") == ["Please enter a valid time (HH:MM)."]
