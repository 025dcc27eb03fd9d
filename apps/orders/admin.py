import json
from django.contrib import admin
from django.utils.html import format_html
from .models import Order, OrderLine, OrderTimeline


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    readonly_fields = (
        'product_name', 'species', 'part', 'variant_size_grams',
        'base_price_cents', 'quantity', 'state', 'version',
    )
    exclude = ('options',)

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class OrderTimelineInline(admin.TabularInline):
    model = OrderTimeline
    extra = 0
    readonly_fields = ('timestamp', 'line', 'from_state', 'to_state', 'note', 'created_by')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Browse-only: state changes go through the butcher/gym endpoints
    so the transition tables and version checks always apply.
    """
    list_display = (
        'short_code', 'user', 'state', 'total_cents', 'pickup_gym_name',
        'gym_settlement', 'butcher_settlement', 'created_at',
    )
    list_filter = ('state', 'pickup_gym', 'created_at')
    search_fields = ('short_code', 'id', 'user__email')
    inlines = [OrderLineInline, OrderTimelineInline]

    readonly_fields = (
        'id', 'short_code', 'user', 'state', 'subtotal_cents', 'total_cents',
        'pickup_gym', 'pickup_gym_name', 'pickup_when', 'notes',
        'arrived_at', 'picked_up_at', 'version',
        'gym_settlement', 'butcher_settlement', 'created_at', 'updated_at',
    )

    fieldsets = (
        ('Order Details', {
            'fields': ('short_code', 'id', 'state', 'user', 'notes')
        }),
        ('Financials', {
            'fields': ('subtotal_cents', 'total_cents', 'gym_settlement', 'butcher_settlement')
        }),
        ('Pickup', {
            'fields': ('pickup_gym', 'pickup_gym_name', 'pickup_when', 'arrived_at', 'picked_up_at')
        }),
        ('System Data', {
            'fields': ('version', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False


@admin.register(OrderLine)
class OrderLineAdmin(admin.ModelAdmin):
    list_display = ('order', 'product_name', 'quantity', 'state', 'base_price_cents')
    list_filter = ('state', 'species')
    search_fields = ('order__short_code', 'product_name')
    readonly_fields = ('formatted_options',)
    exclude = ('options',)

    def formatted_options(self, obj):
        if not obj.options:
            return "-"
        content = json.dumps(obj.options, indent=2)
        return format_html("<pre>{}</pre>", content)

    formatted_options.short_description = "Options Snapshot"
