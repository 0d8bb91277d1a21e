"""Tests for the pandas analytics summaries."""
from django.test import TestCase

from liquify_app.models import Loan, User
from liquify_app.services import analytics

from .test_views import PortfolioFixtureMixin


class FinancialHealthTests(PortfolioFixtureMixin, TestCase):

    def test_financial_health(self):
        health = analytics.financial_health(self.user)
        # 378500 borrowed against a 70% credit line on 747500 of holdings
        self.assertEqual(health['credit_utilization'], 72.3)
        self.assertEqual(health['monthly_emi_commitment'], 32500.0)
        self.assertAlmostEqual(health['repayment_progress'], 43.75, delta=0.1)
        self.assertGreater(health['outstanding_principal'], 0)
        self.assertLess(health['outstanding_principal'], 378500)

    def test_closed_loans_have_nothing_outstanding(self):
        Loan.objects.update(status=Loan.STATUS_CLOSED, remaining_emis=0)
        health = analytics.financial_health(self.user)
        self.assertEqual(health['outstanding_principal'], 0.0)
        self.assertEqual(health['monthly_emi_commitment'], 0.0)
        self.assertEqual(health['repayment_progress'], 100.0)

    def test_distribution_shares(self):
        distribution = analytics.loan_distribution(self.user)
        self.assertEqual(distribution['values'], [66.1, 33.9])


class EmptyAnalyticsTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username='fresh', email='f@example.com', password='secret123', full_name='Fresh'
        )

    def test_empty_user_summary(self):
        summary = analytics.build_summary(self.user, 'quarterly')
        self.assertEqual(summary['loan_trends'], {'labels': [], 'disbursed': [], 'repayments': []})
        self.assertEqual(summary['loan_distribution'], {'types': [], 'values': []})
        self.assertEqual(summary['portfolio']['total_value'], 0.0)
        self.assertEqual(summary['financial_health']['credit_utilization'], 0.0)

    def test_unknown_timeframe_raises(self):
        with self.assertRaises(ValueError):
            analytics.build_summary(self.user, 'daily')
