from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    full_name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=20, blank=True, default='')
    is_kyc_verified = models.BooleanField(default=False)

    class Meta:
        db_table = 'liquify_app_user'

    @property
    def created_at(self):
        return self.date_joined


class MutualFund(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='mutual_funds')
    fund_name = models.CharField(max_length=200)
    units = models.DecimalField(max_digits=15, decimal_places=4)
    unit_price = models.DecimalField(max_digits=12, decimal_places=4)
    total_value = models.DecimalField(max_digits=15, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'liquify_app_mutual_fund'
        ordering = ['id']

    def __str__(self):
        return self.fund_name


class BankAccount(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bank_accounts')
    account_number = models.CharField(max_length=34)
    bank_name = models.CharField(max_length=100)
    ifsc_code = models.CharField(max_length=11)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'liquify_app_bank_account'
        ordering = ['id']

    def __str__(self):
        return f"{self.bank_name} {self.account_number[-4:]}"


class Loan(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_CLOSED = 'closed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CLOSED, 'Closed'),
    ]

    INTEREST_FIXED = 'fixed'
    INTEREST_FLOATING = 'floating'
    INTEREST_TYPE_CHOICES = [
        (INTEREST_FIXED, 'Fixed'),
        (INTEREST_FLOATING, 'Floating'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='loans')
    loan_number = models.CharField(max_length=16, unique=True)
    loan_type = models.CharField(max_length=100)
    loan_amount = models.DecimalField(max_digits=15, decimal_places=2)
    interest_rate = models.DecimalField(max_digits=6, decimal_places=2)
    interest_type = models.CharField(
        max_length=10, choices=INTEREST_TYPE_CHOICES, default=INTEREST_FIXED
    )
    emi_amount = models.DecimalField(max_digits=15, decimal_places=2)
    tenure = models.IntegerField()
    collateral = models.ForeignKey(
        MutualFund, on_delete=models.SET_NULL, null=True, blank=True, related_name='loans'
    )
    bank_account = models.ForeignKey(
        BankAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='loans'
    )
    purpose = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    approval_date = models.DateTimeField(null=True, blank=True)
    next_emi_date = models.DateTimeField(null=True, blank=True)
    remaining_emis = models.IntegerField(null=True, blank=True)
    total_emis = models.IntegerField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'liquify_app_loan'
        ordering = ['id']

    def __str__(self):
        return self.loan_number

    @property
    def emis_paid(self):
        return max(0, self.total_emis - (self.remaining_emis or 0))


class Transaction(models.Model):
    TYPE_EMI_PAYMENT = 'emi_payment'
    TYPE_LOAN_DISBURSEMENT = 'loan_disbursement'
    TYPE_FEE = 'fee'
    TYPE_CHOICES = [
        (TYPE_EMI_PAYMENT, 'EMI Payment'),
        (TYPE_LOAN_DISBURSEMENT, 'Loan Disbursement'),
        (TYPE_FEE, 'Processing Fee'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='transactions')
    loan = models.ForeignKey(
        Loan, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions'
    )
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    transaction_date = models.DateTimeField(default=timezone.now)
    description = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        db_table = 'liquify_app_transaction'
        ordering = ['-transaction_date', '-id']


class KycDetail(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_VERIFIED = 'verified'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_VERIFIED, 'Verified'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='kyc')
    id_type = models.CharField(max_length=50)
    id_number = models.CharField(max_length=50)
    address_proof = models.CharField(max_length=100, blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    submission_date = models.DateTimeField(default=timezone.now)
    verification_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'liquify_app_kyc_detail'
