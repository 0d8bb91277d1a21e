"""
Loan lifecycle: pending -> active -> closed.

Applications start pending, staff approval activates and disburses them, and
each EMI payment counts down remaining installments until the loan closes.
"""
import logging
import secrets
import string
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework import status

from liquify_app.models import BankAccount, Loan, MutualFund, Transaction
from liquify_app.services.eligibility import check_collateral
from liquify_app.services.emi import annuity_payment, round_rupees

logger = logging.getLogger(__name__)

LOAN_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_PROCESSING_FEE_RATE = Decimal('0.02')
LOAN_NUMBER_ATTEMPTS = 5


class LoanWorkflowError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail):
        super().__init__(detail)
        self.detail = detail


class NotFound(LoanWorkflowError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(LoanWorkflowError):
    status_code = status.HTTP_403_FORBIDDEN


def generate_loan_number() -> str:
    while True:
        candidate = 'LN' + ''.join(secrets.choice(LOAN_NUMBER_ALPHABET) for _ in range(6))
        if not Loan.objects.filter(loan_number=candidate).exists():
            return candidate


def get_user_loan(user, loan_id: int, for_update=False) -> Loan:
    if for_update:
        queryset = Loan.objects.select_for_update()
    else:
        queryset = Loan.objects.select_related('collateral')
    loan = queryset.filter(pk=loan_id).first()
    if loan is None:
        raise NotFound('Loan not found')
    if loan.user_id != user.pk:
        raise Forbidden('Unauthorized access to this loan')
    return loan


@transaction.atomic
def apply_for_loan(user, data: dict) -> Loan:
    """
    Create a pending loan secured by one of the user's mutual funds.

    The fund row stays locked until commit so concurrent applications against
    it see each other's pledges.
    """
    fund = MutualFund.objects.select_for_update().filter(pk=data['mutual_fund_id']).first()
    if fund is None:
        raise NotFound('Mutual fund not found')
    if fund.user_id != user.pk:
        raise Forbidden('Unauthorized access to this mutual fund')

    bank_account = None
    if data.get('bank_account_id') is not None:
        bank_account = BankAccount.objects.filter(pk=data['bank_account_id']).first()
        if bank_account is None:
            raise NotFound('Bank account not found')
        if bank_account.user_id != user.pk:
            raise Forbidden('Unauthorized access to this bank account')

    loan_amount = Decimal(str(data['loan_amount']))
    result = check_collateral(fund, loan_amount)
    if not result.approval:
        raise LoanWorkflowError(result.message)

    tenure = data['tenure']
    interest_rate = Decimal(str(data['interest_rate']))
    emi = round_rupees(annuity_payment(float(loan_amount), float(interest_rate), tenure))

    fields = dict(
        user=user,
        loan_type=data['loan_type'],
        loan_amount=loan_amount,
        interest_rate=interest_rate,
        interest_type=data.get('interest_type') or Loan.INTEREST_FIXED,
        emi_amount=emi,
        tenure=tenure,
        collateral=fund,
        bank_account=bank_account,
        purpose=data.get('purpose') or '',
        status=Loan.STATUS_PENDING,
        remaining_emis=tenure,
        total_emis=tenure,
    )
    for attempt in range(LOAN_NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                loan = Loan.objects.create(loan_number=generate_loan_number(), **fields)
            break
        except IntegrityError:
            logger.warning("Loan number collision, retrying (attempt %s)", attempt + 1)
    else:
        raise LoanWorkflowError('Could not allocate a loan number')
    logger.info("Loan %s applied by user %s for %s", loan.loan_number, user.pk, loan_amount)
    return loan


def processing_fee(loan_amount) -> int:
    rate = Decimal(str(getattr(settings, 'LIQUIFY_PROCESSING_FEE_RATE', DEFAULT_PROCESSING_FEE_RATE)))
    return round_rupees(Decimal(str(loan_amount)) * rate)


@transaction.atomic
def approve_loan(loan_id: int) -> Loan:
    """Activate a pending loan and record its disbursement and processing fee."""
    loan = Loan.objects.select_for_update().filter(pk=loan_id).first()
    if loan is None:
        raise NotFound('Loan not found')
    if loan.status != Loan.STATUS_PENDING:
        raise LoanWorkflowError('Only pending loans can be approved')

    now = timezone.now()
    loan.status = Loan.STATUS_ACTIVE
    loan.approval_date = now
    loan.next_emi_date = now + relativedelta(months=1)
    loan.save(update_fields=['status', 'approval_date', 'next_emi_date'])

    Transaction.objects.create(
        user_id=loan.user_id,
        loan=loan,
        transaction_type=Transaction.TYPE_LOAN_DISBURSEMENT,
        amount=loan.loan_amount,
        transaction_date=now,
        description='Loan Disbursement',
    )
    fee = processing_fee(loan.loan_amount)
    if fee > 0:
        Transaction.objects.create(
            user_id=loan.user_id,
            loan=loan,
            transaction_type=Transaction.TYPE_FEE,
            amount=fee,
            transaction_date=now,
            description='Processing Fee',
        )
    logger.info("Loan %s approved and disbursed", loan.loan_number)
    return loan


@transaction.atomic
def pay_emi(user, loan_id: int):
    """Record one EMI payment; closes the loan when none remain."""
    loan = get_user_loan(user, loan_id, for_update=True)
    if loan.status != Loan.STATUS_ACTIVE:
        raise LoanWorkflowError('Can only pay EMI for active loans')
    if not loan.remaining_emis or loan.remaining_emis <= 0:
        raise LoanWorkflowError('All EMIs have been paid')

    now = timezone.now()
    payment = Transaction.objects.create(
        user_id=loan.user_id,
        loan=loan,
        transaction_type=Transaction.TYPE_EMI_PAYMENT,
        amount=loan.emi_amount,
        transaction_date=now,
        description=f"EMI Payment for {timezone.localtime(now):%B}",
    )

    loan.remaining_emis -= 1
    fields = ['remaining_emis']
    if loan.remaining_emis <= 0:
        loan.status = Loan.STATUS_CLOSED
        fields.append('status')
        logger.info("Loan %s closed after final EMI", loan.loan_number)
    else:
        loan.next_emi_date = now + relativedelta(months=1)
        fields.append('next_emi_date')
    loan.save(update_fields=fields)
    return payment, loan
