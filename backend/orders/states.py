"""
Order and item lifecycles.

Forward progress is strictly sequential; ``cancelado`` is reachable from any
non-terminal state. The order's overall state is derived from its items
with ``derive_order_state`` and never moves backwards.
"""
from django.db import models
from django.utils.translation import gettext_lazy as _


class OrderState(models.TextChoices):
    PENDIENTE_CONFIRMACION = "pendiente_confirmacion", _("Pending confirmation")
    CONFIRMADO = "confirmado", _("Confirmed")
    EN_PREPARACION = "en_preparacion", _("In preparation")
    LISTO = "listo", _("Ready")
    ENTREGADO = "entregado", _("Delivered")
    CANCELADO = "cancelado", _("Cancelled")


class ItemState(models.TextChoices):
    PENDIENTE = "pendiente", _("Pending")
    PREPARANDO = "preparando", _("Preparing")
    LISTO = "listo", _("Ready")
    ENTREGADO = "entregado", _("Delivered")
    CANCELADO = "cancelado", _("Cancelled")


ORDER_PROGRESSION = [
    OrderState.PENDIENTE_CONFIRMACION,
    OrderState.CONFIRMADO,
    OrderState.EN_PREPARACION,
    OrderState.LISTO,
    OrderState.ENTREGADO,
]

ITEM_PROGRESSION = [
    ItemState.PENDIENTE,
    ItemState.PREPARANDO,
    ItemState.LISTO,
    ItemState.ENTREGADO,
]

ORDER_TERMINAL_STATES = frozenset({OrderState.ENTREGADO, OrderState.CANCELADO})
ITEM_TERMINAL_STATES = frozenset({ItemState.ENTREGADO, ItemState.CANCELADO})

VALID_ORDER_TRANSITIONS = {
    OrderState.PENDIENTE_CONFIRMACION: [OrderState.CONFIRMADO, OrderState.CANCELADO],
    OrderState.CONFIRMADO: [OrderState.EN_PREPARACION, OrderState.CANCELADO],
    OrderState.EN_PREPARACION: [OrderState.LISTO, OrderState.CANCELADO],
    OrderState.LISTO: [OrderState.ENTREGADO, OrderState.CANCELADO],
    OrderState.ENTREGADO: [],
    OrderState.CANCELADO: [],
}

VALID_ITEM_TRANSITIONS = {
    ItemState.PENDIENTE: [ItemState.PREPARANDO, ItemState.CANCELADO],
    ItemState.PREPARANDO: [ItemState.LISTO, ItemState.CANCELADO],
    ItemState.LISTO: [ItemState.ENTREGADO, ItemState.CANCELADO],
    ItemState.ENTREGADO: [],
    ItemState.CANCELADO: [],
}

# Lowest order stage implied by one item stage; a pending item implies nothing.
ITEM_STAGE_TO_ORDER_STAGE = {
    ItemState.PENDIENTE: None,
    ItemState.PREPARANDO: OrderState.EN_PREPARACION,
    ItemState.LISTO: OrderState.LISTO,
    ItemState.ENTREGADO: OrderState.ENTREGADO,
}

# Stage lagging items are brought up to when staff advance the whole order.
ORDER_STAGE_TO_ITEM_FLOOR = {
    OrderState.EN_PREPARACION: ItemState.PREPARANDO,
    OrderState.LISTO: ItemState.LISTO,
    OrderState.ENTREGADO: ItemState.ENTREGADO,
}


def order_rank(state):
    return ORDER_PROGRESSION.index(state)


def item_rank(state):
    return ITEM_PROGRESSION.index(state)


def can_transition_order(current, target):
    return target in VALID_ORDER_TRANSITIONS.get(current, [])


def can_transition_item(current, target):
    return target in VALID_ITEM_TRANSITIONS.get(current, [])


def derive_order_state(current, item_states):
    """
    Overall order state implied by ``item_states``, clamped so it never
    falls behind ``current``.

    - every item cancelled           -> cancelado
    - otherwise, over the non-cancelled items:
        all at preparando or beyond  -> stage of the least advanced item
        some pending, some started   -> en_preparacion
        all pending                  -> unchanged
    """
    current = OrderState(current)
    if current in ORDER_TERMINAL_STATES:
        return current

    states = [ItemState(state) for state in item_states]
    if not states:
        return current

    active = [state for state in states if state != ItemState.CANCELADO]
    if not active:
        return OrderState.CANCELADO

    implied = [ITEM_STAGE_TO_ORDER_STAGE[state] for state in active]
    started = [stage for stage in implied if stage is not None]

    if not started:
        candidate = current
    elif len(started) < len(implied):
        candidate = OrderState.EN_PREPARACION
    else:
        candidate = min(started, key=order_rank)

    return max(current, candidate, key=order_rank)
