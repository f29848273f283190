"""
Credit card billing cycles and balance projection.

Quick Start:
    >>> from rosacash.billing import assign_billing_period, project_balance
    >>>
    >>> assign_billing_period(date(2025, 1, 6), closing_day=5)
    (2, 2025)
    >>> result = project_balance(Decimal("1000"), rules, [], date(2025, 1, 1), date(2025, 3, 31))
    >>> print(result.projected_balance)
"""
from rosacash.billing.engine import (
    assign_billing_period,
    billing_period_index,
    invoice_due_date,
    aggregate_bill_for_period,
    is_bill_fully_paid,
    partition_bills,
    compute_balance_as_of,
    project_balance,
    is_already_launched,
    mark_bill_paid,
)
from rosacash.billing.models import (
    BillingPeriod,
    BillStatus,
    BillPartition,
    BalanceResult,
    ProjectionResult,
)

__all__ = [
    "assign_billing_period",
    "billing_period_index",
    "invoice_due_date",
    "aggregate_bill_for_period",
    "is_bill_fully_paid",
    "partition_bills",
    "compute_balance_as_of",
    "project_balance",
    "is_already_launched",
    "mark_bill_paid",
    "BillingPeriod",
    "BillStatus",
    "BillPartition",
    "BalanceResult",
    "ProjectionResult",
]
