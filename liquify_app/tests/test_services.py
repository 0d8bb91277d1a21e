"""Unit tests for EMI, collateral eligibility and the loan workflow."""
import re
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings

from liquify_app.models import BankAccount, Loan, MutualFund, Transaction, User
from liquify_app.services import lending
from liquify_app.services.eligibility import available_credit, check_collateral, quote
from liquify_app.services.emi import (
    amortization_schedule,
    annuity_payment,
    calculate_emi,
    outstanding_balance,
    round_rupees,
)


class EMICalculatorTests(TestCase):
    """Tests for compound-interest EMI calculation."""

    def test_emi_positive_rate_and_tenure(self):
        emi = calculate_emi(loan_amount=100_000, annual_interest_rate=12, tenure_months=12)
        self.assertGreater(emi, 0)
        self.assertAlmostEqual(emi, 8884.88, places=1)

    def test_emi_zero_tenure_returns_zero(self):
        self.assertEqual(calculate_emi(100_000, 10, 0), 0.0)
        self.assertEqual(calculate_emi(100_000, 10, -1), 0.0)

    def test_emi_zero_interest_is_principal_over_tenure(self):
        emi = calculate_emi(loan_amount=120_000, annual_interest_rate=0, tenure_months=12)
        self.assertEqual(emi, 10_000.0)

    def test_emi_returns_rounded_two_decimals(self):
        emi = calculate_emi(50_000, 15, 6)
        self.assertEqual(round(emi, 2), emi)

    def test_round_rupees_rounds_half_up(self):
        self.assertEqual(round_rupees(8884.88), 8885)
        self.assertEqual(round_rupees(2.5), 3)
        self.assertEqual(round_rupees(Decimal('10.49')), 10)

    def test_whole_rupee_emi_rounds_the_exact_installment(self):
        # 8889.499 would become 8889.50 at two places, then 8890
        exact = annuity_payment(100_052, 12, 12)
        self.assertAlmostEqual(exact, 8889.499, places=2)
        self.assertEqual(calculate_emi(100_052, 12, 12), 8889.5)
        self.assertEqual(round_rupees(exact), 8889)


class AmortizationScheduleTests(TestCase):

    def test_schedule_pays_off_principal(self):
        rows = amortization_schedule(100_000, 12, 12)
        self.assertEqual(len(rows), 12)
        self.assertEqual(rows[0]['interest'], 1000.0)
        self.assertEqual(rows[-1]['balance'], 0.0)
        self.assertAlmostEqual(sum(r['principal'] for r in rows), 100_000, places=2)

    def test_balance_decreases_every_month(self):
        rows = amortization_schedule(250_000, 10.5, 24)
        balances = [r['balance'] for r in rows]
        self.assertEqual(balances, sorted(balances, reverse=True))

    def test_rounded_up_emi_trims_last_installment(self):
        rows = amortization_schedule(100_000, 12, 12, emi=8885)
        self.assertEqual(rows[-1]['balance'], 0.0)
        self.assertLess(rows[-1]['emi'], 8885)

    def test_zero_rate_schedule_is_even(self):
        rows = amortization_schedule(120_000, 0, 12)
        self.assertTrue(all(r['interest'] == 0 for r in rows))
        self.assertEqual(rows[0]['principal'], 10_000.0)

    def test_empty_for_non_positive_tenure(self):
        self.assertEqual(amortization_schedule(100_000, 12, 0), [])

    def test_outstanding_balance(self):
        self.assertEqual(outstanding_balance(100_000, 12, 12, 0), 100_000)
        self.assertEqual(outstanding_balance(100_000, 12, 12, 12), 0.0)
        midway = outstanding_balance(100_000, 12, 12, 6)
        self.assertGreater(midway, 0)
        self.assertLess(midway, 100_000)


class EligibilityTests(TestCase):
    """Tests for collateral ceilings and calculator quotes."""

    def setUp(self):
        self.user = User.objects.create_user(
            username='collateral', email='c@example.com', password='secret123', full_name='C User'
        )
        self.fund = MutualFund.objects.create(
            user=self.user, fund_name='Index Fund', units=Decimal('1000'),
            unit_price=Decimal('100'), total_value=Decimal('100000'),
        )

    def _loan(self, amount, status):
        return Loan.objects.create(
            user=self.user, loan_number=f'LN{Loan.objects.count():06d}', loan_type='Personal Loan',
            loan_amount=Decimal(amount), interest_rate=Decimal('12'), emi_amount=Decimal('1000'),
            tenure=12, collateral=self.fund, status=status, remaining_emis=12, total_emis=12,
        )

    def test_amount_within_eighty_percent_is_approved(self):
        result = check_collateral(self.fund, 80_000)
        self.assertTrue(result.approval)
        self.assertEqual(result.max_amount, Decimal('80000.00'))

    def test_amount_over_ceiling_is_rejected(self):
        result = check_collateral(self.fund, 80_001)
        self.assertFalse(result.approval)
        self.assertIn('80%', result.message)

    def test_pending_and_active_loans_consume_ceiling(self):
        self._loan('30000', Loan.STATUS_PENDING)
        self._loan('20000', Loan.STATUS_ACTIVE)
        result = check_collateral(self.fund, 40_000)
        self.assertFalse(result.approval)
        self.assertEqual(result.max_amount, Decimal('30000.00'))

    def test_closed_loans_release_collateral(self):
        self._loan('80000', Loan.STATUS_CLOSED)
        self.assertTrue(check_collateral(self.fund, 80_000).approval)

    def test_available_credit(self):
        self.assertEqual(available_credit(Decimal('747500'), Decimal('378500')), Decimal('144750'))
        self.assertEqual(available_credit(100, 500), Decimal('0'))

    def test_quote_uses_seventy_percent(self):
        result = quote(500_000, 12, 12)
        self.assertEqual(result.eligible_amount, 350_000)
        self.assertEqual(result.emi_amount, 31097)
        self.assertEqual(result.total_interest, 23165)

    def test_quote_interest_uses_exact_installment(self):
        result = quote(100_002, 12, 240)
        self.assertEqual(result.total_interest, 114985)

    @override_settings(LIQUIFY_ELIGIBLE_LTV=Decimal('0.5'))
    def test_quote_follows_configured_ratio(self):
        self.assertEqual(quote(100_000, 12, 12).eligible_amount, 50_000)


class LoanWorkflowTests(TestCase):
    """Tests for the pending -> active -> closed lifecycle."""

    def setUp(self):
        self.user = User.objects.create_user(
            username='borrower', email='b@example.com', password='secret123', full_name='Bo Rower'
        )
        self.other = User.objects.create_user(
            username='other', email='o@example.com', password='secret123', full_name='Other'
        )
        self.fund = MutualFund.objects.create(
            user=self.user, fund_name='Bluechip', units=Decimal('10000'),
            unit_price=Decimal('20'), total_value=Decimal('200000'),
        )
        self.application = {
            'mutual_fund_id': self.fund.pk,
            'loan_amount': Decimal('100000'),
            'loan_type': 'Personal Loan',
            'tenure': 12,
            'interest_rate': Decimal('12'),
        }

    def test_apply_creates_pending_loan(self):
        loan = lending.apply_for_loan(self.user, self.application)
        self.assertEqual(loan.status, Loan.STATUS_PENDING)
        self.assertRegex(loan.loan_number, r'^LN[A-Z0-9]{6}$')
        self.assertEqual(loan.emi_amount, 8885)
        self.assertEqual(loan.remaining_emis, 12)
        self.assertEqual(loan.total_emis, 12)
        self.assertEqual(loan.collateral, self.fund)
        self.assertEqual(loan.interest_type, Loan.INTEREST_FIXED)

    def test_apply_with_missing_fund(self):
        with self.assertRaises(lending.NotFound):
            lending.apply_for_loan(self.user, dict(self.application, mutual_fund_id=99999))

    def test_apply_with_someone_elses_fund(self):
        with self.assertRaises(lending.Forbidden):
            lending.apply_for_loan(self.other, self.application)

    def test_apply_with_someone_elses_bank_account(self):
        account = BankAccount.objects.create(
            user=self.other, account_number='111', bank_name='X', ifsc_code='XXXX0000001'
        )
        with self.assertRaises(lending.Forbidden):
            lending.apply_for_loan(self.user, dict(self.application, bank_account_id=account.pk))

    def test_apply_over_collateral_ceiling(self):
        with self.assertRaises(lending.LoanWorkflowError) as ctx:
            lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('170000')))
        self.assertEqual(ctx.exception.status_code, 400)

    def test_apply_stores_exact_emi_rounded_once(self):
        loan = lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('100052')))
        self.assertEqual(loan.emi_amount, 8889)

    def test_apply_retries_on_loan_number_collision(self):
        lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('10000')))
        taken = Loan.objects.get().loan_number
        with mock.patch.object(lending, 'generate_loan_number', side_effect=[taken, 'LNFRESH1']):
            with self.assertLogs('liquify_app.services.lending', level='WARNING'):
                loan = lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('10000')))
        self.assertEqual(loan.loan_number, 'LNFRESH1')
        self.assertEqual(Loan.objects.count(), 2)

    def test_apply_gives_up_after_repeated_collisions(self):
        lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('10000')))
        taken = Loan.objects.get().loan_number
        with mock.patch.object(lending, 'generate_loan_number', return_value=taken):
            with self.assertLogs('liquify_app.services.lending', level='WARNING'):
                with self.assertRaises(lending.LoanWorkflowError):
                    lending.apply_for_loan(self.user, dict(self.application, loan_amount=Decimal('10000')))
        self.assertEqual(Loan.objects.count(), 1)

    def test_apply_locks_collateral_fund(self):
        with mock.patch.object(
            MutualFund.objects, 'select_for_update', wraps=MutualFund.objects.select_for_update
        ) as locked:
            lending.apply_for_loan(self.user, self.application)
        locked.assert_called_once_with()

    def test_loan_numbers_are_unique(self):
        numbers = {lending.generate_loan_number() for _ in range(50)}
        self.assertEqual(len(numbers), 50)
        self.assertTrue(all(re.match(r'^LN[A-Z0-9]{6}$', n) for n in numbers))

    def test_approve_disburses_and_charges_fee(self):
        loan = lending.apply_for_loan(self.user, self.application)
        loan = lending.approve_loan(loan.pk)
        self.assertEqual(loan.status, Loan.STATUS_ACTIVE)
        self.assertIsNotNone(loan.approval_date)
        self.assertGreater(loan.next_emi_date - loan.approval_date, timedelta(days=27))
        amounts = {
            t.transaction_type: t.amount for t in Transaction.objects.filter(loan=loan)
        }
        self.assertEqual(amounts[Transaction.TYPE_LOAN_DISBURSEMENT], Decimal('100000'))
        self.assertEqual(amounts[Transaction.TYPE_FEE], Decimal('2000'))

    def test_approve_twice_is_rejected(self):
        loan = lending.apply_for_loan(self.user, self.application)
        lending.approve_loan(loan.pk)
        with self.assertRaises(lending.LoanWorkflowError):
            lending.approve_loan(loan.pk)

    def test_pay_emi_requires_active_loan(self):
        loan = lending.apply_for_loan(self.user, self.application)
        with self.assertRaises(lending.LoanWorkflowError) as ctx:
            lending.pay_emi(self.user, loan.pk)
        self.assertIn('active', ctx.exception.detail)

    def test_pay_emi_counts_down(self):
        loan = lending.apply_for_loan(self.user, self.application)
        lending.approve_loan(loan.pk)
        payment, loan = lending.pay_emi(self.user, loan.pk)
        self.assertEqual(payment.transaction_type, Transaction.TYPE_EMI_PAYMENT)
        self.assertEqual(payment.amount, loan.emi_amount)
        self.assertTrue(payment.description.startswith('EMI Payment for '))
        self.assertEqual(loan.remaining_emis, 11)
        self.assertEqual(loan.status, Loan.STATUS_ACTIVE)

    def test_final_emi_closes_loan(self):
        loan = lending.apply_for_loan(self.user, self.application)
        lending.approve_loan(loan.pk)
        Loan.objects.filter(pk=loan.pk).update(remaining_emis=1)
        _, loan = lending.pay_emi(self.user, loan.pk)
        self.assertEqual(loan.remaining_emis, 0)
        self.assertEqual(loan.status, Loan.STATUS_CLOSED)
        with self.assertRaises(lending.LoanWorkflowError):
            lending.pay_emi(self.user, loan.pk)

    def test_pay_emi_with_none_remaining(self):
        loan = lending.apply_for_loan(self.user, self.application)
        lending.approve_loan(loan.pk)
        Loan.objects.filter(pk=loan.pk).update(remaining_emis=0)
        with self.assertRaises(lending.LoanWorkflowError) as ctx:
            lending.pay_emi(self.user, loan.pk)
        self.assertEqual(ctx.exception.detail, 'All EMIs have been paid')

    def test_pay_emi_on_someone_elses_loan(self):
        loan = lending.apply_for_loan(self.user, self.application)
        lending.approve_loan(loan.pk)
        with self.assertRaises(lending.Forbidden):
            lending.pay_emi(self.other, loan.pk)
