from django.contrib import admin
from .models import Gym, GymAdmin


class GymAdminInline(admin.TabularInline):
    model = GymAdmin
    extra = 0
    autocomplete_fields = ('user',)


@admin.register(Gym)
class GymModelAdmin(admin.ModelAdmin):
    list_display = ('name', 'address', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'address')
    inlines = [GymAdminInline]
