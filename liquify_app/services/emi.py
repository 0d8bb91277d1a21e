"""
Compound-interest monthly installment (EMI) calculation.
EMI = P * r * (1+r)^n / ((1+r)^n - 1)
where r = annual_rate / (12 * 100), P = principal, n = tenure in months.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional


def annuity_payment(loan_amount: float, annual_interest_rate: float, tenure_months: int) -> float:
    """Exact monthly installment, unrounded."""
    if tenure_months <= 0:
        return 0.0
    if annual_interest_rate <= 0:
        return float(loan_amount) / tenure_months
    p = float(loan_amount)
    r = float(annual_interest_rate) / (12 * 100)
    n = int(tenure_months)
    factor = (1 + r) ** n
    return p * r * factor / (factor - 1)


def calculate_emi(loan_amount: float, annual_interest_rate: float, tenure_months: int) -> float:
    """Return monthly EMI. Uses compound interest formula."""
    return round(annuity_payment(loan_amount, annual_interest_rate, tenure_months), 2)


def round_rupees(value) -> int:
    """Round half-up to a whole rupee."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def total_interest(loan_amount: float, emi: float, tenure_months: int) -> float:
    return float(emi) * int(tenure_months) - float(loan_amount)


def amortization_schedule(
    loan_amount: float,
    annual_interest_rate: float,
    tenure_months: int,
    emi: Optional[float] = None,
) -> List[dict]:
    """
    Month-by-month repayment rows: month, emi, interest, principal, balance.

    Interest accrues on the opening balance each month. The last installment
    is trimmed (or topped up) so the closing balance lands on exactly zero.
    """
    if tenure_months <= 0:
        return []
    if emi is None:
        emi = calculate_emi(loan_amount, annual_interest_rate, tenure_months)
    r = float(annual_interest_rate) / (12 * 100)
    balance = float(loan_amount)
    rows = []
    for month in range(1, int(tenure_months) + 1):
        interest = round(balance * r, 2)
        payment = float(emi)
        if month == tenure_months or payment - interest >= balance:
            payment = round(balance + interest, 2)
        principal = round(payment - interest, 2)
        balance = round(balance - principal, 2)
        rows.append({
            'month': month,
            'emi': payment,
            'interest': interest,
            'principal': principal,
            'balance': max(balance, 0.0),
        })
        if balance <= 0:
            break
    return rows


def outstanding_balance(
    loan_amount: float,
    annual_interest_rate: float,
    tenure_months: int,
    emis_paid: int,
    emi: Optional[float] = None,
) -> float:
    """Principal still owed after `emis_paid` installments."""
    if emis_paid <= 0:
        return round(float(loan_amount), 2)
    rows = amortization_schedule(loan_amount, annual_interest_rate, tenure_months, emi)
    if emis_paid >= len(rows):
        return 0.0
    return rows[emis_paid - 1]['balance']
