from django.urls import path

from . import views

urlpatterns = [
    path('auth/register', views.RegisterView.as_view(), name='register'),
    path('auth/login', views.LoginView.as_view(), name='login'),
    path('auth/session', views.SessionView.as_view(), name='session'),
    path('auth/logout', views.LogoutView.as_view(), name='logout'),
    path('dashboard', views.DashboardView.as_view(), name='dashboard'),
    path('loans', views.LoanListView.as_view(), name='loan-list'),
    path('loans/apply', views.LoanApplyView.as_view(), name='loan-apply'),
    path('loans/<int:loan_id>', views.LoanDetailView.as_view(), name='loan-detail'),
    path('loans/<int:loan_id>/schedule', views.LoanScheduleView.as_view(), name='loan-schedule'),
    path('loans/<int:loan_id>/approve', views.LoanApproveView.as_view(), name='loan-approve'),
    path('loans/<int:loan_id>/pay-emi', views.PayEmiView.as_view(), name='loan-pay-emi'),
    path('mutual-funds', views.MutualFundListView.as_view(), name='mutual-fund-list'),
    path('transactions', views.TransactionListView.as_view(), name='transaction-list'),
    path('bank-accounts', views.BankAccountListView.as_view(), name='bank-account-list'),
    path('bank-accounts/<int:account_id>/default', views.BankAccountDefaultView.as_view(), name='bank-account-default'),
    path('kyc', views.KycView.as_view(), name='kyc'),
    path('kyc/<int:kyc_id>/status', views.KycStatusView.as_view(), name='kyc-status'),
    path('loan-eligibility', views.LoanEligibilityView.as_view(), name='loan-eligibility'),
    path('analytics', views.AnalyticsView.as_view(), name='analytics'),
]
