import logging
from datetime import datetime
from decimal import Decimal

import pandas as pd
from celery import shared_task
from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import Loan, MutualFund, Transaction

logger = logging.getLogger(__name__)


def _read_csv(file_path: str) -> pd.DataFrame:
    df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    # Normalize column names: lowercase, strip, replace spaces with underscore
    df.columns = [str(c).strip().lower().replace(' ', '_') for c in df.columns]
    return df


def _get_user(username: str):
    return get_user_model().objects.filter(username=username).first()


def _parse_datetime(val):
    if val is None or (isinstance(val, str) and not val.strip()):
        return None
    if isinstance(val, datetime):
        parsed = val
    else:
        parsed = pd.to_datetime(str(val).strip()).to_pydatetime()
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _optional_int(val):
    val = str(val).strip()
    return int(val) if val else None


@shared_task
def ingest_funds_from_csv(file_path: str, username: str) -> dict:
    """Read a holdings CSV and upsert the user's mutual funds by name."""
    user = _get_user(username)
    if user is None:
        return {'ok': False, 'error': f'User {username} not found', 'created': 0, 'updated': 0}
    try:
        df = _read_csv(file_path)
    except (OSError, pd.errors.ParserError) as e:
        logger.exception("Failed to read fund CSV: %s", file_path)
        return {'ok': False, 'error': str(e), 'created': 0, 'updated': 0}

    created = updated = 0
    for _, row in df.iterrows():
        try:
            fund_name = row['fund_name'].strip()
            if not fund_name:
                continue
            units = Decimal(row['units'])
            unit_price = Decimal(row['unit_price'])
            total_value = Decimal(row.get('total_value') or units * unit_price).quantize(Decimal('0.01'))
            _, was_created = MutualFund.objects.update_or_create(
                user=user,
                fund_name=fund_name,
                defaults={
                    'units': units,
                    'unit_price': unit_price,
                    'total_value': total_value,
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1
        except Exception as e:
            logger.warning("Skip fund row %s: %s", row.to_dict(), e)
            continue
    return {'ok': True, 'created': created, 'updated': updated}


@shared_task
def ingest_loans_from_csv(file_path: str, username: str) -> dict:
    """Read a loans CSV and upsert by loan number; collateral is matched by fund name."""
    user = _get_user(username)
    if user is None:
        return {'ok': False, 'error': f'User {username} not found', 'created': 0, 'updated': 0}
    try:
        df = _read_csv(file_path)
    except (OSError, pd.errors.ParserError) as e:
        logger.exception("Failed to read loan CSV: %s", file_path)
        return {'ok': False, 'error': str(e), 'created': 0, 'updated': 0}

    created = updated = 0
    for _, row in df.iterrows():
        try:
            loan_number = row['loan_number'].strip()
            tenure = int(row['tenure'])
            total_emis = _optional_int(row.get('total_emis', '')) or tenure
            remaining_emis = _optional_int(row.get('remaining_emis', ''))
            if remaining_emis is None:
                remaining_emis = total_emis
            remaining_emis = max(0, min(total_emis, remaining_emis))

            collateral = None
            fund_name = row.get('collateral_fund', '').strip()
            if fund_name:
                collateral = MutualFund.objects.filter(user=user, fund_name=fund_name).first()
                if collateral is None:
                    logger.warning("Fund %s not found for loan %s", fund_name, loan_number)
                    continue

            status = row.get('status', '').strip() or Loan.STATUS_PENDING
            if status not in dict(Loan.STATUS_CHOICES):
                raise ValueError(f'unknown status {status!r}')

            _, was_created = Loan.objects.update_or_create(
                loan_number=loan_number,
                defaults={
                    'user': user,
                    'loan_type': row['loan_type'].strip(),
                    'loan_amount': Decimal(row['loan_amount']),
                    'interest_rate': Decimal(row['interest_rate']),
                    'emi_amount': Decimal(row['emi_amount']),
                    'tenure': tenure,
                    'collateral': collateral,
                    'status': status,
                    'approval_date': _parse_datetime(row.get('approval_date')),
                    'next_emi_date': _parse_datetime(row.get('next_emi_date')),
                    'remaining_emis': remaining_emis,
                    'total_emis': total_emis,
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1
        except Exception as e:
            logger.warning("Skip loan row %s: %s", row.to_dict(), e)
            continue
    return {'ok': True, 'created': created, 'updated': updated}


@shared_task
def ingest_transactions_from_csv(file_path: str, username: str) -> dict:
    """Read a transactions CSV; rows already present (same loan, type, amount, date) are updated."""
    user = _get_user(username)
    if user is None:
        return {'ok': False, 'error': f'User {username} not found', 'created': 0, 'updated': 0}
    try:
        df = _read_csv(file_path)
    except (OSError, pd.errors.ParserError) as e:
        logger.exception("Failed to read transaction CSV: %s", file_path)
        return {'ok': False, 'error': str(e), 'created': 0, 'updated': 0}

    created = updated = 0
    for _, row in df.iterrows():
        try:
            transaction_type = row['transaction_type'].strip()
            if transaction_type not in dict(Transaction.TYPE_CHOICES):
                raise ValueError(f'unknown transaction type {transaction_type!r}')

            loan = None
            loan_number = row.get('loan_number', '').strip()
            if loan_number:
                loan = Loan.objects.filter(user=user, loan_number=loan_number).first()
                if loan is None:
                    logger.warning("Loan %s not found for transaction row", loan_number)
                    continue

            _, was_created = Transaction.objects.update_or_create(
                user=user,
                loan=loan,
                transaction_type=transaction_type,
                amount=Decimal(row['amount']),
                transaction_date=_parse_datetime(row['transaction_date']) or timezone.now(),
                defaults={'description': row.get('description', '').strip()},
            )
            if was_created:
                created += 1
            else:
                updated += 1
        except Exception as e:
            logger.warning("Skip transaction row %s: %s", row.to_dict(), e)
            continue
    return {'ok': True, 'created': created, 'updated': updated}
