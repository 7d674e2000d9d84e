from datetime import date

from hrm_system.core.enums import LeaveType
from hrm_system.leave.balance import LeaveUsageSummary, calculate_balances
from hrm_system.leave.policy import resolve_leave_policy

DEFAULTS = resolve_leave_policy(None)


def test_every_type_plus_casual_alias():
    balances = calculate_balances(as_of=date(2024, 3, 1), settings=DEFAULTS, usage=LeaveUsageSummary())

    assert set(balances) == {t.value for t in LeaveType} | {"casual"}
    assert balances["casual"] == balances["personal"]


def test_carry_forward_capped_by_policy_and_prior_usage():
    usage = LeaveUsageSummary(used_days_by_type_previous_year={LeaveType.ANNUAL: 17})
    annual = calculate_balances(
        as_of=date(2024, 3, 1),
        settings=DEFAULTS,
        usage=usage,
        hire_date=date(2018, 5, 1),
    )["annual"]

    assert annual.carry_forward == 3
    assert annual.entitlement == 5
    assert annual.total == 8

    fresh = calculate_balances(as_of=date(2024, 3, 1), settings=DEFAULTS, usage=LeaveUsageSummary())["annual"]
    assert fresh.carry_forward == 5


def test_no_carry_forward_without_a_full_prior_year():
    annual = calculate_balances(
        as_of=date(2024, 1, 5),
        settings=DEFAULTS,
        usage=LeaveUsageSummary(),
        hire_date=date(2023, 6, 1),
    )["annual"]

    assert annual.carry_forward == 0
    assert annual.entitlement == 2
    assert annual.remaining == 2


def test_remaining_never_negative():
    for used in (0, 3, 10, 11, 50):
        usage = LeaveUsageSummary(used_days_by_type={LeaveType.SICK: used, LeaveType.UNPAID: used})
        balances = calculate_balances(as_of=date(2024, 7, 1), settings=DEFAULTS, usage=usage)

        assert balances["sick"].remaining == max(0, 10 - used)
        assert balances["sick"].used == used
        assert balances["unpaid"].remaining == 0
        assert all(item.remaining >= 0 for item in balances.values())
