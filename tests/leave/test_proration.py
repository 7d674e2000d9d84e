from datetime import date

from hrm_system.leave.policy import AccrualPolicy, LeaveTypePolicy
from hrm_system.leave.proration import entitlement_for, prorate_entitlement

ACCRUING = LeaveTypePolicy(20, 5, AccrualPolicy(enabled=True))
FLAT = LeaveTypePolicy(10, 0)


def test_january_accrual_rounds_to_nearest_day():
    assert prorate_entitlement(20, date(2024, 1, 15)) == 2
    assert prorate_entitlement(5, date(2024, 1, 15)) == 0


def test_exact_half_rounds_up():
    assert prorate_entitlement(6, date(2024, 1, 31)) == 1


def test_entitlement_is_monotonic_through_the_year():
    for hire_date in (None, date(2019, 3, 1), date(2024, 4, 20)):
        previous = -1
        for month in range(1, 13):
            current = prorate_entitlement(20, date(2024, month, 10), hire_date)
            assert current >= previous
            previous = current


def test_full_year_by_december():
    assert prorate_entitlement(20, date(2024, 12, 31)) == 20


def test_mid_year_hire_counts_from_the_hire_month():
    # April through June: 3 months
    assert prorate_entitlement(12, date(2024, 6, 1), date(2024, 4, 20)) == 3


def test_hire_after_as_of_yields_nothing():
    assert prorate_entitlement(20, date(2024, 3, 1), date(2024, 5, 1)) == 0


def test_non_accruing_type_for_prior_year_hire_is_full():
    assert entitlement_for(FLAT, date(2024, 1, 5), date(2020, 1, 1)) == 10
    assert entitlement_for(FLAT, date(2024, 1, 5), None) == 10


def test_non_accruing_type_is_prorated_for_hires_this_year():
    assert entitlement_for(FLAT, date(2024, 6, 30), date(2024, 1, 1)) == 5


def test_accruing_type_is_prorated_regardless_of_hire_date():
    assert entitlement_for(ACCRUING, date(2024, 1, 5), date(2023, 6, 1)) == 2
    assert entitlement_for(ACCRUING, date(2024, 6, 5), None) == 10
