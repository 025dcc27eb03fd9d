import logging
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.accounts.services import RoleService
from apps.orders.models import Order, OrderState
from apps.utils.exceptions import SettlementConflict
from .models import GymSettlement, ButcherSettlement

logger = logging.getLogger(__name__)


class SettlementBatcher:
    """
    Closes every eligible order into one immutable settlement.

    Flow (single transaction):
    1. Lock and read the eligible rows
    2. Freeze count and total into a new settlement record
    3. Claim the rows with `UPDATE ... WHERE <fk> IS NULL`
    4. Claimed count must equal the selection, otherwise roll back
    """
    settlement_model = None
    order_field = None

    def eligible_queryset(self, **scope):
        raise NotImplementedError

    def settlement_kwargs(self, **scope):
        return {}

    def _select_eligible(self, queryset):
        return list(
            queryset.select_for_update()
            .order_by("created_at")
            .values_list("id", "total_cents")
        )

    def preview(self, **scope):
        queryset = self.eligible_queryset(**scope).order_by("created_at")
        rows = list(queryset.values("id", "short_code", "total_cents"))
        sample_size = settings.SETTLEMENT_PREVIEW_SAMPLE_SIZE
        return {
            "ok": True,
            "dry_run": True,
            "eligible_count": len(rows),
            "total_cents": sum(r["total_cents"] for r in rows),
            "sample": [
                {"id": str(r["id"]), "short_code": r["short_code"], "total_cents": r["total_cents"]}
                for r in rows[:sample_size]
            ],
        }

    def settle(self, actor, notes="", dry_run=False, **scope):
        if dry_run:
            return self.preview(**scope)

        with transaction.atomic():
            selection = self._select_eligible(self.eligible_queryset(**scope))
            if not selection:
                return {"ok": True, "settlement_id": None, "count": 0, "total_cents": 0}

            order_ids = [order_id for order_id, _ in selection]
            total = sum(cents for _, cents in selection)

            settlement = self.settlement_model.objects.create(
                created_by=actor,
                order_count=len(order_ids),
                total_cents=total,
                notes=notes or "",
                **self.settlement_kwargs(**scope),
            )

            claimed = (
                self.eligible_queryset(**scope)
                .filter(id__in=order_ids)
                .update(**{self.order_field: settlement, "updated_at": timezone.now()})
            )
            if claimed != len(order_ids):
                logger.warning(
                    f"{self.settlement_model.__name__} claim mismatch: selected {len(order_ids)}, claimed {claimed}",
                    extra={"user_id": actor.id},
                )
                raise SettlementConflict(
                    "Some orders were settled concurrently. Reload and retry.",
                    extra={"selected": len(order_ids), "claimed": claimed},
                )

        logger.info(
            f"{self.settlement_model.__name__} {settlement.id}: {len(order_ids)} orders, {total} cents",
            extra={"settlement_id": settlement.id, "user_id": actor.id},
        )
        return {
            "ok": True,
            "settlement_id": str(settlement.id),
            "count": len(order_ids),
            "total_cents": total,
        }


class GymSettlementBatcher(SettlementBatcher):
    settlement_model = GymSettlement
    order_field = "gym_settlement"

    def eligible_queryset(self, gym_id=None):
        return Order.objects.filter(
            state=OrderState.PICKED_UP,
            gym_settlement__isnull=True,
            pickup_gym_id=gym_id,
        )

    def settlement_kwargs(self, gym_id=None):
        return {"gym_id": gym_id}

    @staticmethod
    def resolve_gym_id(actor, gym_id=None):
        """
        Explicit gym must be one the actor administers. Without one, fall
        back to the actor's only gym, then to the only gym with unsettled orders.
        """
        gym_ids = RoleService.get_admin_gym_ids(actor)
        if gym_id is not None:
            if gym_id not in gym_ids:
                raise PermissionDenied("You are not an administrator of this gym.")
            return gym_id

        if len(gym_ids) == 1:
            return gym_ids[0]

        pending = list(
            Order.objects.filter(
                state=OrderState.PICKED_UP,
                gym_settlement__isnull=True,
                pickup_gym_id__in=gym_ids,
            ).order_by().values_list("pickup_gym_id", flat=True).distinct()
        )
        if len(pending) == 1:
            return pending[0]
        raise ValidationError({"gym_id": ["No permitted gym selected"]})

    def settle_for(self, actor, gym_id=None, notes="", dry_run=False):
        resolved = self.resolve_gym_id(actor, gym_id)
        return self.settle(actor, notes=notes, dry_run=dry_run, gym_id=resolved)


class ButcherSettlementBatcher(SettlementBatcher):
    settlement_model = ButcherSettlement
    order_field = "butcher_settlement"

    def eligible_queryset(self):
        # Only money the gyms have already closed out
        return Order.objects.filter(
            state=OrderState.PICKED_UP,
            gym_settlement__isnull=False,
            butcher_settlement__isnull=True,
        )
