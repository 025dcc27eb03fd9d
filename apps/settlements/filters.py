import django_filters

from .models import GymSettlement


class GymSettlementFilter(django_filters.FilterSet):
    gym_id = django_filters.UUIDFilter(field_name='gym_id')
    created_after = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lt')

    class Meta:
        model = GymSettlement
        fields = []
