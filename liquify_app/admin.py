from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import BankAccount, KycDetail, Loan, MutualFund, Transaction, User


@admin.register(User)
class LiquifyUserAdmin(UserAdmin):
    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {'fields': ('full_name', 'phone_number', 'is_kyc_verified')}),
    )
    list_display = ('username', 'full_name', 'email', 'is_kyc_verified', 'is_staff')


@admin.register(Loan)
class LoanAdmin(admin.ModelAdmin):
    list_display = ('loan_number', 'user', 'loan_type', 'loan_amount', 'status', 'remaining_emis')
    list_filter = ('status', 'loan_type')
    search_fields = ('loan_number', 'user__username')


admin.site.register(MutualFund)
admin.site.register(Transaction)
admin.site.register(BankAccount)
admin.site.register(KycDetail)
