"""Helpers for the monthly revenue series of the overview"""
from datetime import date
from decimal import Decimal

OVERVIEW_MONTHS = 12


def last_months(today, count=OVERVIEW_MONTHS):
    """First day of the last `count` months, oldest first, ending with today's month"""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def build_monthly_revenue(revenue_by_month, today, count=OVERVIEW_MONTHS):
    """
    Zero-filled revenue series.

    `revenue_by_month` maps (year, month) to a revenue amount. Each point is
    {'month_label': 'Jan 2024', 'month_date': '2024-01-01', 'revenue': float}.
    """
    points = []
    for month_start in last_months(today, count):
        revenue = revenue_by_month.get((month_start.year, month_start.month)) or Decimal('0.00')
        points.append({
            'month_label': month_start.strftime('%b %Y'),
            'month_date': month_start.isoformat(),
            'revenue': float(revenue),
        })
    return points
