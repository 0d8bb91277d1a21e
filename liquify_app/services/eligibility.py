"""
Collateral-backed loan eligibility.
Calculator quotes use 70% of the holding value; applications may pledge up to
80% of a fund's value across its pending and active loans.
"""
from decimal import Decimal
from typing import NamedTuple

from django.conf import settings
from django.db.models import Sum

from liquify_app.models import Loan, MutualFund
from liquify_app.services.emi import annuity_payment, round_rupees, total_interest


DEFAULT_ELIGIBLE_LTV = Decimal('0.70')
DEFAULT_MAX_LTV = Decimal('0.80')


class EligibilityResult(NamedTuple):
    approval: bool
    max_amount: Decimal
    message: str = ''


class LoanQuote(NamedTuple):
    eligible_amount: int
    emi_amount: int
    total_interest: int


def eligible_ltv() -> Decimal:
    return Decimal(str(getattr(settings, 'LIQUIFY_ELIGIBLE_LTV', DEFAULT_ELIGIBLE_LTV)))


def max_ltv() -> Decimal:
    return Decimal(str(getattr(settings, 'LIQUIFY_MAX_LTV', DEFAULT_MAX_LTV)))


def available_credit(total_fund_value, total_borrowed) -> Decimal:
    """Unused credit line: 70% of holdings less everything already borrowed."""
    headroom = Decimal(str(total_fund_value)) * eligible_ltv() - Decimal(str(total_borrowed))
    return max(Decimal('0'), headroom)


def pledged_amount(fund: MutualFund) -> Decimal:
    """Principal of pending and active loans secured by this fund."""
    total = Loan.objects.filter(
        collateral=fund,
        status__in=[Loan.STATUS_PENDING, Loan.STATUS_ACTIVE],
    ).aggregate(s=Sum('loan_amount'))['s']
    return total or Decimal('0')


def check_collateral(fund: MutualFund, loan_amount) -> EligibilityResult:
    """
    Returns whether `loan_amount` fits under the fund's pledge ceiling, the
    largest amount that would fit, and a message when it does not.
    """
    ceiling = Decimal(str(fund.total_value)) * max_ltv()
    max_amount = max(Decimal('0'), ceiling - pledged_amount(fund)).quantize(Decimal('0.01'))
    amount = Decimal(str(loan_amount))
    if amount <= 0:
        return EligibilityResult(False, max_amount, 'Loan amount must be positive')
    if amount > max_amount:
        percent = int(max_ltv() * 100)
        return EligibilityResult(
            False, max_amount,
            f'Loan amount exceeds {percent}% of the collateral value '
            f'(maximum available: {max_amount})'
        )
    return EligibilityResult(True, max_amount)


def quote(mutual_fund_value, interest_rate, tenure: int) -> LoanQuote:
    """Eligible amount, EMI and total interest for a holding, in whole rupees."""
    eligible = float(Decimal(str(mutual_fund_value)) * eligible_ltv())
    emi = annuity_payment(eligible, float(interest_rate), tenure)
    return LoanQuote(
        eligible_amount=round_rupees(eligible),
        emi_amount=round_rupees(emi),
        total_interest=round_rupees(total_interest(eligible, emi, tenure)),
    )
