from django.contrib import admin
from .models import GymSettlement, ButcherSettlement


class ReadOnlySettlementAdmin(admin.ModelAdmin):
    """
    Settlements are closed records; the admin only browses them.
    """
    list_display = ('id', 'order_count', 'total_cents', 'created_by', 'created_at')
    list_filter = ('created_at',)
    readonly_fields = ('id', 'created_by', 'created_at', 'order_count', 'total_cents', 'notes')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(GymSettlement)
class GymSettlementAdmin(ReadOnlySettlementAdmin):
    list_display = ('id', 'gym', 'order_count', 'total_cents', 'created_by', 'created_at')
    list_filter = ('gym', 'created_at')


@admin.register(ButcherSettlement)
class ButcherSettlementAdmin(ReadOnlySettlementAdmin):
    pass
