import logging
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model, login, logout
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import BankAccount, KycDetail, Loan, MutualFund, Transaction
from .serializers import (
    BankAccountSerializer,
    KycDetailSerializer,
    KycStatusSerializer,
    LoanApplicationSerializer,
    LoanDetailSerializer,
    LoanEligibilitySerializer,
    LoanSerializer,
    LoginSerializer,
    MutualFundSerializer,
    RegisterSerializer,
    ScheduleRowSerializer,
    TransactionSerializer,
    UserSerializer,
)
from .services import analytics, lending
from .services.eligibility import available_credit, quote
from .services.emi import amortization_schedule

logger = logging.getLogger(__name__)
User = get_user_model()


def workflow_error_response(exc):
    return Response({'detail': exc.detail}, status=exc.status_code)


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        logger.info("Registered user %s", user.username)
        return Response({'user': UserSerializer(user).data}, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        if not User.objects.filter(username=data['username']).exists():
            return Response({'detail': 'Incorrect username'}, status=status.HTTP_401_UNAUTHORIZED)
        user = authenticate(request, username=data['username'], password=data['password'])
        if user is None:
            return Response({'detail': 'Incorrect password'}, status=status.HTTP_401_UNAUTHORIZED)
        login(request, user)
        return Response({'user': UserSerializer(user).data}, status=status.HTTP_200_OK)


class SessionView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        if request.user.is_authenticated:
            return Response({'user': UserSerializer(request.user).data}, status=status.HTTP_200_OK)
        return Response({'detail': 'Not authenticated'}, status=status.HTTP_401_UNAUTHORIZED)


class LogoutView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        logout(request)
        return Response({'message': 'Logged out successfully'}, status=status.HTTP_200_OK)


class DashboardView(APIView):
    def get(self, request):
        user = request.user
        loans = Loan.objects.filter(user=user)
        funds = MutualFund.objects.filter(user=user)
        recent = Transaction.objects.filter(user=user)[
            :getattr(settings, 'LIQUIFY_RECENT_TRANSACTIONS', 5)
        ]
        kyc = KycDetail.objects.filter(user=user).first()

        total_borrowed = loans.aggregate(s=Sum('loan_amount'))['s'] or Decimal('0')
        total_fund_value = funds.aggregate(s=Sum('total_value'))['s'] or Decimal('0')
        active_loans = loans.filter(status=Loan.STATUS_ACTIVE)
        next_due = active_loans.exclude(next_emi_date=None).order_by('next_emi_date').first()
        if next_due is None:
            next_due = active_loans.first()
        next_emi_due = None
        if next_due is not None:
            due = LoanSerializer(next_due).data
            next_emi_due = {
                'amount': due['emi_amount'],
                'date': due['next_emi_date'],
                'loan_id': due['id'],
                'loan_number': due['loan_number'],
            }

        return Response(
            {
                'total_borrowed': float(total_borrowed),
                'available_credit': float(available_credit(total_fund_value, total_borrowed)),
                'active_loans': active_loans.count(),
                'next_emi_due': next_emi_due,
                'loans': LoanSerializer(loans, many=True).data,
                'mutual_funds': MutualFundSerializer(funds, many=True).data,
                'recent_transactions': TransactionSerializer(recent, many=True).data,
                'kyc_status': kyc.status if kyc else 'not_submitted',
            },
            status=status.HTTP_200_OK,
        )


class LoanListView(APIView):
    def get(self, request):
        loans = Loan.objects.filter(user=request.user)
        return Response(LoanSerializer(loans, many=True).data, status=status.HTTP_200_OK)


class LoanDetailView(APIView):
    def get(self, request, loan_id):
        try:
            loan = lending.get_user_loan(request.user, loan_id)
        except lending.LoanWorkflowError as exc:
            return workflow_error_response(exc)
        return Response(LoanDetailSerializer(loan).data, status=status.HTTP_200_OK)


class LoanScheduleView(APIView):
    def get(self, request, loan_id):
        try:
            loan = lending.get_user_loan(request.user, loan_id)
        except lending.LoanWorkflowError as exc:
            return workflow_error_response(exc)
        rows = amortization_schedule(
            float(loan.loan_amount), float(loan.interest_rate), loan.tenure, float(loan.emi_amount)
        )
        return Response(
            {
                'loan_id': loan.pk,
                'loan_number': loan.loan_number,
                'emis_paid': loan.emis_paid,
                'schedule': ScheduleRowSerializer(rows, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class LoanApplyView(APIView):
    def post(self, request):
        serializer = LoanApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            loan = lending.apply_for_loan(request.user, serializer.validated_data)
        except lending.LoanWorkflowError as exc:
            return workflow_error_response(exc)
        return Response(LoanSerializer(loan).data, status=status.HTTP_201_CREATED)


class LoanApproveView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, loan_id):
        try:
            loan = lending.approve_loan(loan_id)
        except lending.LoanWorkflowError as exc:
            return workflow_error_response(exc)
        return Response(LoanSerializer(loan).data, status=status.HTTP_200_OK)


class PayEmiView(APIView):
    def post(self, request, loan_id):
        try:
            payment, loan = lending.pay_emi(request.user, loan_id)
        except lending.LoanWorkflowError as exc:
            return workflow_error_response(exc)
        return Response(
            {
                'transaction': TransactionSerializer(payment).data,
                'loan': LoanSerializer(loan).data,
            },
            status=status.HTTP_200_OK,
        )


class MutualFundListView(APIView):
    def get(self, request):
        funds = MutualFund.objects.filter(user=request.user)
        return Response(MutualFundSerializer(funds, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = MutualFundSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        fund = serializer.save(user=request.user)
        return Response(MutualFundSerializer(fund).data, status=status.HTTP_201_CREATED)


class TransactionListView(APIView):
    def get(self, request):
        transactions = Transaction.objects.filter(user=request.user)
        transaction_type = request.query_params.get('type')
        if transaction_type and transaction_type != 'all':
            transactions = transactions.filter(transaction_type=transaction_type)
        limit = request.query_params.get('limit')
        if limit:
            if not limit.isdigit():
                return Response(
                    {'detail': 'limit must be a positive integer'},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            if int(limit) > 0:
                transactions = transactions[:int(limit)]
        return Response(TransactionSerializer(transactions, many=True).data, status=status.HTTP_200_OK)


class BankAccountListView(APIView):
    def get(self, request):
        accounts = BankAccount.objects.filter(user=request.user)
        return Response(BankAccountSerializer(accounts, many=True).data, status=status.HTTP_200_OK)

    @transaction.atomic
    def post(self, request):
        serializer = BankAccountSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        account = serializer.save(user=request.user)
        if account.is_default:
            BankAccount.objects.filter(user=request.user, is_default=True).exclude(
                pk=account.pk
            ).update(is_default=False)
        return Response(BankAccountSerializer(account).data, status=status.HTTP_201_CREATED)


class BankAccountDefaultView(APIView):
    @transaction.atomic
    def put(self, request, account_id):
        account = BankAccount.objects.filter(pk=account_id, user=request.user).first()
        if account is None:
            return Response({'detail': 'Bank account not found'}, status=status.HTTP_404_NOT_FOUND)
        BankAccount.objects.filter(user=request.user, is_default=True).exclude(
            pk=account.pk
        ).update(is_default=False)
        account.is_default = True
        account.save(update_fields=['is_default'])
        return Response(BankAccountSerializer(account).data, status=status.HTTP_200_OK)


class KycView(APIView):
    def get(self, request):
        kyc = KycDetail.objects.filter(user=request.user).first()
        if kyc is None:
            return Response({'detail': 'KYC details not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(KycDetailSerializer(kyc).data, status=status.HTTP_200_OK)

    def post(self, request):
        if KycDetail.objects.filter(user=request.user).exists():
            return Response(
                {'detail': 'KYC details already submitted'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        serializer = KycDetailSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            with transaction.atomic():
                kyc = serializer.save(user=request.user, status=KycDetail.STATUS_PENDING)
        except IntegrityError:
            return Response(
                {'detail': 'KYC details already submitted'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(KycDetailSerializer(kyc).data, status=status.HTTP_201_CREATED)


class KycStatusView(APIView):
    permission_classes = [IsAdminUser]

    @transaction.atomic
    def put(self, request, kyc_id):
        kyc = KycDetail.objects.select_related('user').filter(pk=kyc_id).first()
        if kyc is None:
            return Response({'detail': 'KYC details not found'}, status=status.HTTP_404_NOT_FOUND)
        serializer = KycStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        kyc.status = serializer.validated_data['status']
        kyc.verification_date = timezone.now()
        kyc.save(update_fields=['status', 'verification_date'])
        kyc.user.is_kyc_verified = kyc.status == KycDetail.STATUS_VERIFIED
        kyc.user.save(update_fields=['is_kyc_verified'])
        logger.info("KYC %s for user %s marked %s", kyc.pk, kyc.user_id, kyc.status)
        return Response(KycDetailSerializer(kyc).data, status=status.HTTP_200_OK)


class LoanEligibilityView(APIView):
    def post(self, request):
        serializer = LoanEligibilitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        result = quote(data['mutual_fund_value'], data['interest_rate'], data['loan_duration'])
        return Response(
            {
                'eligible_amount': result.eligible_amount,
                'emi_amount': result.emi_amount,
                'total_interest': result.total_interest,
            },
            status=status.HTTP_200_OK,
        )


class AnalyticsView(APIView):
    def get(self, request):
        timeframe = request.query_params.get('timeframe', 'monthly')
        if timeframe not in analytics.TIMEFRAMES:
            return Response(
                {'detail': f"timeframe must be one of: {', '.join(analytics.TIMEFRAMES)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(analytics.build_summary(request.user, timeframe), status=status.HTTP_200_OK)
