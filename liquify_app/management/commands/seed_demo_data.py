import os

from celery import chain
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from liquify_app.models import BankAccount, KycDetail
from liquify_app.tasks import (
    ingest_funds_from_csv,
    ingest_loans_from_csv,
    ingest_transactions_from_csv,
)

DEMO_PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Create the demo user and enqueue Celery tasks to ingest the demo portfolio CSVs'

    def add_arguments(self, parser):
        parser.add_argument(
            '--sync',
            action='store_true',
            help='Run ingestion synchronously instead of via Celery',
        )
        parser.add_argument('--username', default='johndoe')
        parser.add_argument(
            '--data-dir',
            default=None,
            help='Directory holding demo_funds.csv, demo_loans.csv and demo_transactions.csv',
        )

    @transaction.atomic
    def create_demo_user(self, username):
        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                'full_name': 'John Doe',
                'email': f'{username}@example.com',
                'phone_number': '9876543210',
                'is_kyc_verified': True,
            },
        )
        if created:
            user.set_password(DEMO_PASSWORD)
            user.save(update_fields=['password'])
        BankAccount.objects.get_or_create(
            user=user,
            account_number='12345678901',
            defaults={'bank_name': 'HDFC Bank', 'ifsc_code': 'HDFC0001234', 'is_default': True},
        )
        KycDetail.objects.get_or_create(
            user=user,
            defaults={
                'id_type': 'Aadhaar',
                'id_number': '123456789012',
                'address_proof': 'Utility Bill',
                'status': KycDetail.STATUS_VERIFIED,
                'verification_date': timezone.now(),
            },
        )
        return user, created

    def handle(self, *args, **options):
        username = options['username']
        data_dir = options['data_dir'] or getattr(settings, 'DEMO_DATA_DIR', None) or os.path.join(
            settings.BASE_DIR, 'data'
        )
        paths = [
            os.path.join(data_dir, name)
            for name in ('demo_funds.csv', 'demo_loans.csv', 'demo_transactions.csv')
        ]
        for path in paths:
            if not os.path.isfile(path):
                self.stdout.write(self.style.WARNING(f'Demo file not found: {path}'))

        user, created = self.create_demo_user(username)
        if created:
            self.stdout.write(f'Created demo user {user.username} (password: {DEMO_PASSWORD})')
        else:
            self.stdout.write(f'Demo user {user.username} already exists')

        funds_path, loans_path, transactions_path = paths
        if options['sync']:
            self.stdout.write('Running ingestion synchronously...')
            self.stdout.write(f'Funds: {ingest_funds_from_csv(funds_path, username)}')
            self.stdout.write(f'Loans: {ingest_loans_from_csv(loans_path, username)}')
            self.stdout.write(f'Transactions: {ingest_transactions_from_csv(transactions_path, username)}')
            self.stdout.write(self.style.SUCCESS('Done.'))
            return

        self.stdout.write('Enqueueing Celery tasks...')
        # Loans reference funds and transactions reference loans, so run in order.
        chain(
            ingest_funds_from_csv.si(funds_path, username),
            ingest_loans_from_csv.si(loans_path, username),
            ingest_transactions_from_csv.si(transactions_path, username),
        ).delay()
        self.stdout.write(self.style.SUCCESS(
            'Tasks enqueued. Ensure Celery worker is running to process them.'
        ))
