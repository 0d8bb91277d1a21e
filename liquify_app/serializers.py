from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .models import BankAccount, KycDetail, Loan, MutualFund, Transaction

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    created_at = serializers.DateTimeField(source='date_joined', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'full_name', 'email', 'phone_number',
            'is_kyc_verified', 'created_at',
        ]


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(
        min_length=3, max_length=150,
        error_messages={'min_length': 'Username must be at least 3 characters'},
        validators=[UniqueValidator(queryset=User.objects.all(), message='Username already exists')],
    )
    password = serializers.CharField(
        min_length=6, write_only=True,
        error_messages={'min_length': 'Password must be at least 6 characters'},
    )
    full_name = serializers.CharField(min_length=2, max_length=150)
    email = serializers.EmailField(
        validators=[UniqueValidator(queryset=User.objects.all(), message='Email already exists')],
    )
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data['username'],
            email=validated_data['email'],
            password=validated_data['password'],
            full_name=validated_data['full_name'],
            phone_number=validated_data.get('phone_number', ''),
        )


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(
        min_length=3,
        error_messages={'min_length': 'Username must be at least 3 characters'},
    )
    password = serializers.CharField(
        min_length=6, trim_whitespace=False,
        error_messages={'min_length': 'Password must be at least 6 characters'},
    )


class MutualFundSerializer(serializers.ModelSerializer):
    total_value = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)

    class Meta:
        model = MutualFund
        fields = ['id', 'user_id', 'fund_name', 'units', 'unit_price', 'total_value', 'created_at']
        read_only_fields = ['id', 'user_id', 'created_at']

    def validate(self, attrs):
        if attrs['units'] <= 0 or attrs['unit_price'] <= 0:
            raise serializers.ValidationError('Units and unit price must be positive')
        if attrs.get('total_value') is None:
            attrs['total_value'] = (attrs['units'] * attrs['unit_price']).quantize(Decimal('0.01'))
        return attrs


class BankAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankAccount
        fields = ['id', 'user_id', 'account_number', 'bank_name', 'ifsc_code', 'is_default', 'created_at']
        read_only_fields = ['id', 'user_id', 'created_at']


class KycDetailSerializer(serializers.ModelSerializer):
    class Meta:
        model = KycDetail
        fields = [
            'id', 'user_id', 'id_type', 'id_number', 'address_proof',
            'status', 'submission_date', 'verification_date',
        ]
        read_only_fields = ['id', 'user_id', 'status', 'submission_date', 'verification_date']


class KycStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[KycDetail.STATUS_VERIFIED, KycDetail.STATUS_REJECTED])


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            'id', 'user_id', 'loan_id', 'transaction_type', 'amount',
            'transaction_date', 'description',
        ]


class LoanSerializer(serializers.ModelSerializer):
    collateral_id = serializers.IntegerField(read_only=True)
    bank_account_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Loan
        fields = [
            'id', 'user_id', 'loan_number', 'loan_type', 'loan_amount',
            'interest_rate', 'interest_type', 'emi_amount', 'tenure',
            'collateral_id', 'bank_account_id', 'purpose', 'status',
            'approval_date', 'next_emi_date', 'remaining_emis', 'total_emis',
            'created_at',
        ]


class LoanDetailSerializer(LoanSerializer):
    collateral = MutualFundSerializer(read_only=True)
    transactions = TransactionSerializer(many=True, read_only=True)

    class Meta(LoanSerializer.Meta):
        fields = LoanSerializer.Meta.fields + ['collateral', 'transactions']


class LoanApplicationSerializer(serializers.Serializer):
    mutual_fund_id = serializers.IntegerField()
    loan_amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('1'))
    loan_type = serializers.CharField(max_length=100)
    tenure = serializers.IntegerField(min_value=1, max_value=360)
    interest_rate = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100')
    )
    interest_type = serializers.ChoiceField(
        choices=[Loan.INTEREST_FIXED, Loan.INTEREST_FLOATING], required=False
    )
    bank_account_id = serializers.IntegerField(required=False, allow_null=True)
    purpose = serializers.CharField(max_length=255, required=False, allow_blank=True)


class LoanEligibilitySerializer(serializers.Serializer):
    mutual_fund_value = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0.01')
    )
    loan_duration = serializers.IntegerField(min_value=1, max_value=360)
    interest_rate = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100')
    )


class ScheduleRowSerializer(serializers.Serializer):
    month = serializers.IntegerField()
    emi = serializers.FloatField()
    interest = serializers.FloatField()
    principal = serializers.FloatField()
    balance = serializers.FloatField()
