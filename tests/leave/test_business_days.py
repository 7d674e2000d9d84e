from datetime import date, timedelta

from hrm_system.leave.business_days import count_business_days

MONDAY = date(2024, 1, 8)
FRIDAY = date(2024, 1, 12)
SATURDAY = date(2024, 1, 13)


def test_single_weekday_counts_one():
    assert count_business_days(MONDAY, MONDAY) == 1


def test_single_weekend_day_counts_zero():
    assert count_business_days(SATURDAY, SATURDAY) == 0


def test_single_holiday_counts_zero():
    assert count_business_days(MONDAY, MONDAY, {"2024-01-08"}) == 0


def test_plain_week_counts_five():
    assert count_business_days(MONDAY, FRIDAY) == 5


def test_weekend_inside_range_is_skipped():
    assert count_business_days(MONDAY, MONDAY + timedelta(days=13)) == 10


def test_reversed_range_counts_zero():
    assert count_business_days(FRIDAY, MONDAY) == 0


def test_adding_a_holiday_never_increases_the_count():
    start, end = MONDAY, MONDAY + timedelta(days=13)
    base = count_business_days(start, end)

    day = start
    while day <= end:
        with_holiday = count_business_days(start, end, {day.isoformat()})
        if day.weekday() >= 5:
            assert with_holiday == base
        else:
            assert with_holiday == base - 1
        day += timedelta(days=1)
