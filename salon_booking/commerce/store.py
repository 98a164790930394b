"""
Cart store: holds the current cart value and persists a snapshot after
every change through an injected backend.

The reducers in ``salon_booking.commerce.cart`` stay pure; this is the
only place that keeps state. Callers supply a ``CartPersistence``
(browser storage bridge, cache, database row); ``InMemoryCartPersistence``
serves tests and single-process use.

Usage:
    store = CartStore(InMemoryCartPersistence(), key="session-123")
    store.dispatch(add_item_to_cart, item_input, product)
    store.dispatch(apply_discount, discount)
    store.cart.totals.total_cents
"""

import logging
from typing import Callable, Optional, Protocol

from pydantic import ValidationError

from salon_booking.commerce.cart import create_empty_cart
from salon_booking.schemas.cart_schema import Cart

logger = logging.getLogger(__name__)


class CartPersistence(Protocol):
    def load(self, key: str) -> Optional[str]: ...

    def save(self, key: str, payload: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCartPersistence:
    """Dict-backed persistence. ``reset()`` clears it for test isolation."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def save(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def reset(self) -> None:
        self._data.clear()


class CartStore:
    """Applies cart reducers and persists the resulting snapshot."""

    def __init__(self, persistence: CartPersistence, key: str) -> None:
        self._persistence = persistence
        self._key = key
        self._cart = self._restore()

    @property
    def cart(self) -> Cart:
        return self._cart

    def _restore(self) -> Cart:
        payload = self._persistence.load(self._key)
        if payload is None:
            return create_empty_cart()
        try:
            return Cart.model_validate_json(payload)
        except ValidationError:
            logger.warning("Discarding unreadable cart snapshot for '%s'", self._key)
            return create_empty_cart()

    def dispatch(self, reducer: Callable[..., Cart], *args, **kwargs) -> Cart:
        """Apply ``reducer(cart, *args, **kwargs)`` and persist the result."""
        new_cart = reducer(self._cart, *args, **kwargs)
        if new_cart is not self._cart:
            self._cart = new_cart
            self._persistence.save(self._key, new_cart.model_dump_json())
        return self._cart

    def reset(self) -> Cart:
        """Forget the stored cart and start an empty one."""
        self._persistence.delete(self._key)
        self._cart = create_empty_cart()
        return self._cart
