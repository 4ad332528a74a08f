"""
Sales Service - checkout processing with recipe-based inventory consumption

A checkout is one batch: the sale row, every ingredient stock change and the
consumption summary are staged in a single session and committed together.

Failure policy (availability over consistency):
- If anything in the batch fails (missing ingredient, stale stock row, commit
  error) the session is rolled back and the sale alone is written in its own
  transaction. The sale is kept, stock is not decremented, and the result is
  flagged degraded.
- If that fallback write fails as well, the original error is raised.
- There is exactly one fallback attempt and no retry loop.

Concurrency:
- Stock is read, computed and overwritten (no atomic decrement). The
  InventoryItem version_id turns a write computed from a stale read into a
  StaleDataError at commit, which lands in the fallback above: the later sale
  is recorded degraded and its decrement is lost.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from flask import current_app

from ..extensions import db
from ..models import Product, Recipe, Sale, SaleLine, PaymentMethod, AdjustmentOperation
from ..quantities import ZERO, quantity_to_json, round_cents, to_quantity
from ..time_utils import range_start, utcnow
from ..validation import ValidationError
from .inventory_service import AdjustmentLog, InventoryItemNotFound, InventoryStore, StockChange
from .products_service import ProductStore
from .recipe_service import RecipeStore


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleState(str, Enum):
    BUILDING = "building"
    STAGED = "staged"
    COMMITTED = "committed"
    BATCH_FAILED = "batch_failed"
    FALLBACK_COMMITTED = "fallback_committed"
    FALLBACK_FAILED = "fallback_failed"


@dataclass(frozen=True)
class CartItem:
    sku: str
    name: str
    price_cents: int
    quantity: int
    product_id: str | None = None
    has_recipe: bool = False
    recipe_id: str | None = None

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        return cls(
            sku=product.sku,
            name=product.name,
            price_cents=product.price_cents,
            quantity=quantity,
            product_id=product.sku,
            has_recipe=bool(product.has_recipe),
            recipe_id=product.recipe_id,
        )

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity


@dataclass(frozen=True)
class PaymentDetails:
    payment_method: str = PaymentMethod.CASH.value
    amount_received_cents: int = 0
    reference_number: str = ""


@dataclass(frozen=True)
class ConsumedIngredient:
    sku: str
    name: str
    quantity: Decimal
    unit: str
    previous_stock: Decimal
    new_stock: Decimal

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "name": self.name,
            "quantity": quantity_to_json(self.quantity),
            "unit": self.unit,
            "previous_stock": quantity_to_json(self.previous_stock),
            "new_stock": quantity_to_json(self.new_stock),
        }


@dataclass(frozen=True)
class ProductConsumption:
    product_sku: str
    product_name: str
    quantity: int
    recipe_id: str
    recipe_name: str
    consumed_ingredients: tuple[ConsumedIngredient, ...]

    def to_dict(self) -> dict:
        return {
            "product_sku": self.product_sku,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "consumed_ingredients": [c.to_dict() for c in self.consumed_ingredients],
        }


@dataclass(frozen=True)
class SaleResult:
    """
    Outcome of process_sale.

    committed: the sale row exists.
    degraded: the sale was recorded by the fallback path without inventory effects;
    reason carries the error that failed the batch.
    """
    sale_id: str
    state: SaleState
    total_cents: int
    inventory_consumed: list[dict] = field(default_factory=list)
    reason: str | None = None

    @property
    def committed(self) -> bool:
        return self.state in (SaleState.COMMITTED, SaleState.FALLBACK_COMMITTED)

    @property
    def degraded(self) -> bool:
        return self.state is SaleState.FALLBACK_COMMITTED

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "state": self.state.value,
            "committed": self.committed,
            "degraded": self.degraded,
            "reason": self.reason,
            "total_cents": self.total_cents,
            "inventory_consumed": self.inventory_consumed,
        }


def _require_positive_quantity(quantity, label: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(f"Quantity for {label} must be a positive integer")


def generate_sale_id(now: datetime | None = None) -> str:
    """SALE-<YYYYMMDD>-<HHMMSS>-<millis>; unique unless two sales share a millisecond."""
    now = now or utcnow()
    return f"SALE-{now:%Y%m%d}-{now:%H%M%S}-{now.microsecond // 1000:03d}"


def sale_total_cents(items) -> int:
    """Sum of price * quantity; no tax or discount at persistence time."""
    return sum(item.price_cents * item.quantity for item in items)


class SaleProcessor:
    """
    Orchestrates a checkout against injected stores.

    All collaborators share one session so the sale and its stock changes
    commit as a single batch. Nothing here reaches for a module-level store;
    pass a different session (or stores) to run against another database.
    """

    def __init__(
        self,
        session=None,
        *,
        inventory: InventoryStore | None = None,
        recipes: RecipeStore | None = None,
        adjustments: AdjustmentLog | None = None,
        clock=utcnow,
    ):
        self.session = session or db.session
        self.adjustments = adjustments or AdjustmentLog(self.session)
        self.inventory = inventory or InventoryStore(self.session, adjustments=self.adjustments)
        self.recipes = recipes or RecipeStore(self.session)
        self.clock = clock
        self.last_state: SaleState | None = None
        self.pending_log_entries: list[dict] = []

    def _build_sale(self, sale_id: str, items: list[CartItem], payment: PaymentDetails, now: datetime) -> Sale:
        sale = Sale(
            sale_id=sale_id,
            total_cents=sale_total_cents(items),
            payment_method=payment.payment_method,
            amount_received_cents=payment.amount_received_cents or 0,
            reference_number=payment.reference_number or "",
            inventory_consumed=[],
            created_at=now,
        )
        sale.lines = [
            SaleLine(
                position=position,
                product_id=item.product_id,
                sku=item.sku,
                name=item.name,
                price_cents=item.price_cents,
                quantity=item.quantity,
                has_recipe=item.has_recipe,
                recipe_id=item.recipe_id,
            )
            for position, item in enumerate(items)
        ]
        return sale

    def _stage_recipe_consumption(
        self,
        recipe: Recipe,
        quantity: int,
        *,
        reason: str,
        sale_id: str | None = None,
    ) -> tuple[list[ConsumedIngredient], list[dict]]:
        """
        Stage stock decrements for `quantity` units of a recipe, in ingredient order.

        Nothing is committed. Returns the consumption records and the
        adjustment log entries to write once the batch is committed.
        Raises InventoryItemNotFound if an ingredient SKU does not resolve.
        """
        consumed: list[ConsumedIngredient] = []
        log_entries: list[dict] = []

        for ingredient in recipe.ingredients:
            item = self.inventory.get(ingredient.sku)
            if item is None:
                raise InventoryItemNotFound(ingredient.sku)

            consumed_quantity = to_quantity(ingredient.quantity) * quantity
            previous = to_quantity(item.current_stock)
            new_stock = self.inventory.stage_stock(item, max(ZERO, previous - consumed_quantity))

            consumed.append(ConsumedIngredient(
                sku=ingredient.sku,
                name=ingredient.name,
                quantity=consumed_quantity,
                unit=ingredient.unit,
                previous_stock=previous,
                new_stock=new_stock,
            ))
            change = StockChange(
                sku=ingredient.sku,
                item_name=item.name,
                previous_stock=previous,
                new_stock=new_stock,
                quantity=consumed_quantity,
                operation=AdjustmentOperation.SUBTRACT,
            )
            log_entries.append(change.log_entry(reason=reason, recipe_id=recipe.id, sale_id=sale_id))

        return consumed, log_entries

    def consume_inventory_from_recipe(
        self,
        recipe_id: str,
        quantity: int,
        sale_id: str | None = None,
        commit: bool = True,
    ) -> list[ConsumedIngredient]:
        """
        Consume `quantity` units of one recipe.

        With commit=True this is its own batch: on any failure nothing is
        written, and the adjustment log is appended after the commit.
        With commit=False the decrements are only staged on the session and the
        log entries are held in pending_log_entries for the caller's commit.

        Raises ValidationError for a non-positive quantity,
        RecipeNotFound / InventoryItemNotFound for unresolved ids.
        """
        _require_positive_quantity(quantity, recipe_id)
        recipe = self.recipes.require(recipe_id)
        if sale_id:
            reason = f"Sale consumption: {recipe.name}"
        else:
            reason = f"Recipe consumption: {recipe.name}"

        if not commit:
            consumed, log_entries = self._stage_recipe_consumption(
                recipe, quantity, reason=reason, sale_id=sale_id,
            )
            self.pending_log_entries.extend(log_entries)
            return consumed

        try:
            consumed, log_entries = self._stage_recipe_consumption(
                recipe, quantity, reason=reason, sale_id=sale_id,
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.adjustments.append(log_entries)
        return consumed

    def process_sale(self, cart_items, payment: PaymentDetails) -> SaleResult:
        """
        Record a checkout and consume recipe ingredients for every recipe line.

        BUILDING -> STAGED -> COMMITTED, or on batch failure
        BATCH_FAILED -> FALLBACK_COMMITTED (sale kept, no stock change) /
        FALLBACK_FAILED (original error raised).
        """
        now = self.clock()
        sale_id = generate_sale_id(now)
        items = list(cart_items)
        for item in items:
            _require_positive_quantity(item.quantity, item.sku)
        total_cents = sale_total_cents(items)
        self.last_state = SaleState.BUILDING
        self.pending_log_entries = []

        try:
            sale = self._build_sale(sale_id, items, payment, now)
            self.session.add(sale)
            self.last_state = SaleState.STAGED

            consumption: list[ProductConsumption] = []
            for item in items:
                if not (item.has_recipe and item.recipe_id):
                    continue

                recipe = self.recipes.get_by_id(item.recipe_id)
                if recipe is None:
                    current_app.logger.warning(
                        "Recipe %s for %s not found; sale %s consumes nothing for it",
                        item.recipe_id, item.sku, sale_id,
                    )
                    continue

                consumed = self.consume_inventory_from_recipe(
                    recipe.id, item.quantity, sale_id=sale_id, commit=False,
                )
                consumption.append(ProductConsumption(
                    product_sku=item.sku,
                    product_name=item.name,
                    quantity=item.quantity,
                    recipe_id=recipe.id,
                    recipe_name=recipe.name,
                    consumed_ingredients=tuple(consumed),
                ))

            inventory_consumed = [c.to_dict() for c in consumption]
            sale.inventory_consumed = inventory_consumed
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            self.last_state = SaleState.BATCH_FAILED
            self.pending_log_entries = []
            current_app.logger.warning(
                "Batch write for sale %s failed (%s); recording sale without inventory effects",
                sale_id, exc,
            )
            return self._record_without_inventory(sale_id, items, payment, now, exc)

        self.last_state = SaleState.COMMITTED
        log_entries, self.pending_log_entries = self.pending_log_entries, []
        self.adjustments.append(log_entries)
        return SaleResult(
            sale_id=sale_id,
            state=SaleState.COMMITTED,
            total_cents=total_cents,
            inventory_consumed=inventory_consumed,
        )

    def _record_without_inventory(
        self,
        sale_id: str,
        items: list[CartItem],
        payment: PaymentDetails,
        now: datetime,
        error: Exception,
    ) -> SaleResult:
        try:
            self.session.add(self._build_sale(sale_id, items, payment, now))
            self.session.commit()
        except Exception:
            self.session.rollback()
            self.last_state = SaleState.FALLBACK_FAILED
            current_app.logger.exception("Fallback write for sale %s failed", sale_id)
            raise error

        self.last_state = SaleState.FALLBACK_COMMITTED
        return SaleResult(
            sale_id=sale_id,
            state=SaleState.FALLBACK_COMMITTED,
            total_cents=sale_total_cents(items),
            inventory_consumed=[],
            reason=str(error),
        )


def build_cart(lines: list[tuple[str, int]], products: ProductStore | None = None) -> list[CartItem]:
    """
    Resolve (sku, quantity) checkout lines against the catalog.

    Prices and recipe links come from the product record, not the client.
    """
    products = products or ProductStore()
    cart = []
    missing = []
    for sku, quantity in lines:
        product = products.get(sku)
        if product is None:
            missing.append(sku)
            continue
        if product.status != "active":
            raise SaleError(f"Product {sku} is not active", details={"sku": sku})
        cart.append(CartItem.from_product(product, quantity))

    if missing:
        raise SaleError("Unknown products in cart", details={"skus": missing})
    return cart


@dataclass(frozen=True)
class CheckoutQuote:
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    amount_received_cents: int
    change_cents: int

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "amount_received_cents": self.amount_received_cents,
            "change_cents": self.change_cents,
        }


def quote_checkout(items, payment: PaymentDetails, tax_rate_bps: int | None = None) -> CheckoutQuote:
    """
    Customer-facing totals with the fixed checkout tax, plus payment checks.

    - Cash must cover the taxed total.
    - GCash requires a reference number.
    The tax is display-only; process_sale stores the untaxed total.
    """
    if tax_rate_bps is None:
        tax_rate_bps = current_app.config.get("CHECKOUT_TAX_RATE_BPS", 1200)

    subtotal = sale_total_cents(items)
    tax = round_cents(Decimal(subtotal) * tax_rate_bps / Decimal(10_000))
    total = subtotal + tax

    method = PaymentMethod(payment.payment_method)
    received = payment.amount_received_cents or 0
    if method is PaymentMethod.CASH and received < total:
        raise SaleError(
            "Cash amount must be greater than or equal to total amount",
            details={"total_cents": total, "amount_received_cents": received},
        )
    if method is PaymentMethod.GCASH and not (payment.reference_number or "").strip():
        raise SaleError("GCash reference number is required")

    change = received - total if method is PaymentMethod.CASH else 0
    return CheckoutQuote(
        subtotal_cents=subtotal,
        tax_cents=tax,
        total_cents=total,
        amount_received_cents=received,
        change_cents=change,
    )


def get_sale(sale_id: str, session=None) -> Sale | None:
    session = session or db.session
    return session.get(Sale, sale_id)


def list_sales(date_range: str | None = None, limit: int | None = None, session=None) -> list[Sale]:
    """Newest first; date_range is today, week, month, or None for all."""
    if limit is not None and limit <= 0:
        raise ValidationError("limit must be > 0")
    session = session or db.session
    query = session.query(Sale)
    start = range_start(date_range)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    query = query.order_by(Sale.created_at.desc(), Sale.sale_id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def list_sales_between(start: datetime, end: datetime, session=None) -> list[Sale]:
    session = session or db.session
    return (
        session.query(Sale)
        .filter(Sale.created_at >= start, Sale.created_at <= end)
        .order_by(Sale.created_at.desc(), Sale.sale_id.desc())
        .all()
    )
