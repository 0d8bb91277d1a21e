"""
Per-user analytics over loans, transactions and holdings, aggregated with pandas.
"""
from decimal import Decimal

import pandas as pd
from django.conf import settings

from liquify_app.models import Loan, MutualFund, Transaction
from liquify_app.services.eligibility import eligible_ltv
from liquify_app.services.emi import outstanding_balance

TIMEFRAMES = {
    'monthly': 'M',
    'quarterly': 'Q',
    'yearly': 'Y',
}


def _frame(queryset, fields):
    df = pd.DataFrame.from_records(list(queryset.values(*fields)), columns=fields)
    return df


def _to_local_periods(series: pd.Series, freq: str) -> pd.Series:
    stamps = pd.to_datetime(series, utc=True).dt.tz_convert(settings.TIME_ZONE).dt.tz_localize(None)
    return stamps.dt.to_period(freq)


def loan_trends(user, timeframe: str = 'monthly') -> dict:
    """Disbursed principal and EMI repayments per period."""
    freq = TIMEFRAMES[timeframe]
    df = _frame(
        Transaction.objects.filter(
            user=user,
            transaction_type__in=[Transaction.TYPE_LOAN_DISBURSEMENT, Transaction.TYPE_EMI_PAYMENT],
        ),
        ['transaction_type', 'amount', 'transaction_date'],
    )
    if df.empty:
        return {'labels': [], 'disbursed': [], 'repayments': []}

    df['amount'] = df['amount'].astype(float)
    df['period'] = _to_local_periods(df['transaction_date'], freq)
    table = df.pivot_table(
        index='period', columns='transaction_type', values='amount',
        aggfunc='sum', fill_value=0.0,
    ).sort_index()
    for column in (Transaction.TYPE_LOAN_DISBURSEMENT, Transaction.TYPE_EMI_PAYMENT):
        if column not in table.columns:
            table[column] = 0.0
    return {
        'labels': [str(p) for p in table.index],
        'disbursed': [round(float(v), 2) for v in table[Transaction.TYPE_LOAN_DISBURSEMENT]],
        'repayments': [round(float(v), 2) for v in table[Transaction.TYPE_EMI_PAYMENT]],
    }


def loan_distribution(user) -> dict:
    """Share of borrowed principal by loan type, in percent."""
    df = _frame(Loan.objects.filter(user=user), ['loan_type', 'loan_amount'])
    if df.empty:
        return {'types': [], 'values': []}
    df['loan_amount'] = df['loan_amount'].astype(float)
    totals = df.groupby('loan_type')['loan_amount'].sum().sort_values(ascending=False)
    grand_total = totals.sum()
    shares = (totals / grand_total * 100).round(1) if grand_total else totals * 0
    return {
        'types': list(shares.index),
        'values': [float(v) for v in shares],
    }


def portfolio(user) -> dict:
    df = _frame(MutualFund.objects.filter(user=user), ['fund_name', 'total_value'])
    if df.empty:
        return {'funds': [], 'values': [], 'shares': [], 'total_value': 0.0}
    df['total_value'] = df['total_value'].astype(float)
    total = float(df['total_value'].sum())
    shares = (df['total_value'] / total * 100).round(1) if total else df['total_value'] * 0
    return {
        'funds': df['fund_name'].tolist(),
        'values': [round(float(v), 2) for v in df['total_value']],
        'shares': [float(v) for v in shares],
        'total_value': round(total, 2),
    }


def financial_health(user) -> dict:
    loans = list(Loan.objects.filter(user=user))
    fund_value = sum((f.total_value for f in MutualFund.objects.filter(user=user)), Decimal('0'))
    borrowed = sum((loan.loan_amount for loan in loans), Decimal('0'))
    credit_line = fund_value * eligible_ltv()

    active = [loan for loan in loans if loan.status == Loan.STATUS_ACTIVE]
    outstanding = sum(
        outstanding_balance(
            float(loan.loan_amount), float(loan.interest_rate), loan.tenure,
            loan.emis_paid, float(loan.emi_amount),
        )
        for loan in active
    )
    total_emis = sum(loan.total_emis for loan in loans)
    paid_emis = sum(loan.emis_paid for loan in loans if loan.status != Loan.STATUS_PENDING)

    return {
        'credit_utilization': round(float(borrowed / credit_line * 100), 1) if credit_line else 0.0,
        'outstanding_principal': round(float(outstanding), 2),
        'monthly_emi_commitment': round(float(sum((loan.emi_amount for loan in active), Decimal('0'))), 2),
        'repayment_progress': round(paid_emis / total_emis * 100, 1) if total_emis else 0.0,
    }


def build_summary(user, timeframe: str = 'monthly') -> dict:
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"Unknown timeframe: {timeframe}")
    return {
        'timeframe': timeframe,
        'loan_trends': loan_trends(user, timeframe),
        'loan_distribution': loan_distribution(user),
        'portfolio': portfolio(user),
        'financial_health': financial_health(user),
    }
