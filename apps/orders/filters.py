import django_filters

from .models import Order, OrderLine, OrderState, LineState


class ButcherOrderFilter(django_filters.FilterSet):
    state = django_filters.MultipleChoiceFilter(choices=OrderState.choices)

    class Meta:
        model = Order
        fields = ['pickup_gym']


class GymOrderFilter(django_filters.FilterSet):
    state = django_filters.MultipleChoiceFilter(choices=OrderState.choices)
    gym_id = django_filters.UUIDFilter(field_name='pickup_gym_id')

    class Meta:
        model = Order
        fields = []


class LineQueueFilter(django_filters.FilterSet):
    line_state = django_filters.MultipleChoiceFilter(field_name='state', choices=LineState.choices)
    order_state = django_filters.MultipleChoiceFilter(field_name='order__state', choices=OrderState.choices)

    class Meta:
        model = OrderLine
        fields = ['species']
