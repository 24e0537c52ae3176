# Overview: Flask CLI command groups for bootstrap, recording sales and ledger inspection.

# backend/tillbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "tillbook:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--tenant "Demo Store"]
#   Create tables plus a demo tenant, owner user and a few products (idempotent).
#
# Sales:
# - python -m flask sales record --tenant-id 1 --user-id 1 --item 1:2 --item 3:1 [--discount 500] [--payment-method cash]
#   Record a sale at current product prices and print the invoice.
#
# Ledger:
# - python -m flask ledger add --tenant-id 1 --type expense --amount 250000 --description "Rent" [--category Rent] [--user-id 1]
# - python -m flask ledger list --tenant-id 1 [--type income] [--limit 20]
# - python -m flask ledger summary --tenant-id 1 [--start 2026-10-01] [--end 2026-11-01]

from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import SaleError
from .extensions import db
from .models import ENTRY_TYPES, PAYMENT_METHODS, Product, Tenant, User
from .services import sales_service
from .services.catalog_service import get_products, low_stock_products
from .services.ledger_service import record_ledger_entry
from .services.reporting_service import ledger_summary, list_ledger_entries, sales_for_day
from .services.sales_service import EngineOptions
from .services.tenant_service import TenantScope
from .time_utils import parse_iso_datetime, utcnow

DEMO_PRODUCTS = [
    ("KOPI-001", "Kopi Susu", Decimal("18000"), Decimal("9000"), 40, 5),
    ("TEH-001", "Teh Manis", Decimal("8000"), Decimal("3000"), 60, 10),
    ("ROTI-001", "Roti Bakar", Decimal("15000"), Decimal("7000"), 12, 3),
]


def _parse_item(value: str) -> tuple[int, int]:
    try:
        product_id, quantity = value.split(":", 1)
        return int(product_id), int(quantity)
    except ValueError:
        raise click.BadParameter(f"expected PRODUCT_ID:QTY, got {value!r}") from None


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--tenant', 'tenant_name', default='Demo Store', help='Tenant name')
@click.option('--owner-email', default='owner@tillbook.local', help='Owner user email')
@with_appcontext
def init_system(tenant_name, owner_email):
    """Create tables, a demo tenant, its owner and sample products."""
    click.echo("START Initializing tillbook...")
    db.create_all()

    tenant = db.session.query(Tenant).filter_by(name=tenant_name).first()
    if not tenant:
        tenant = Tenant(name=tenant_name, is_active=True)
        db.session.add(tenant)
        db.session.commit()
        click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id})")
    else:
        click.echo(f"PASS Using existing tenant: {tenant.name} (ID: {tenant.id})")

    owner = db.session.query(User).filter_by(tenant_id=tenant.id, email=owner_email).first()
    if not owner:
        owner = User(tenant_id=tenant.id, name="Owner", email=owner_email, role="owner")
        db.session.add(owner)
        db.session.commit()
        click.echo(f"PASS Created owner: {owner.email} (ID: {owner.id})")
    else:
        click.echo(f"PASS Using existing owner: {owner.email} (ID: {owner.id})")

    for sku, name, sell_price, buy_price, stock, min_stock in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(tenant_id=tenant.id, sku=sku).first():
            continue
        db.session.add(Product(
            tenant_id=tenant.id,
            sku=sku,
            name=name,
            sell_price=sell_price,
            buy_price=buy_price,
            stock=stock,
            min_stock=min_stock,
        ))
    db.session.commit()
    click.echo(f"PASS Products ready: {len(DEMO_PRODUCTS)}")
    click.echo("DONE")


@click.group('sales')
def sales_group():
    """Sale recording commands."""


@sales_group.command('record')
@click.option('--tenant-id', type=int, required=True)
@click.option('--user-id', type=int, required=True)
@click.option('--item', 'items', multiple=True, required=True, help='PRODUCT_ID:QTY (repeatable)')
@click.option('--discount', default='0', help='Discount amount')
@click.option('--payment-method', type=click.Choice(PAYMENT_METHODS), default='cash')
@click.option('--customer-name', default=None)
@with_appcontext
def record_sale_command(tenant_id, user_id, items, discount, payment_method, customer_name):
    """Record a sale at current product prices."""
    scope = TenantScope(db.session, tenant_id)
    parsed = [_parse_item(value) for value in items]
    prices = {p.id: p.sell_price for p in get_products(scope, [pid for pid, _ in parsed])}
    db.session.rollback()  # release the read before the sale opens its own transaction

    cart = [
        {"product_id": pid, "quantity": qty, "unit_price": prices.get(pid, 0)}
        for pid, qty in parsed
    ]
    try:
        result = sales_service.record_sale(
            db.session,
            tenant_id,
            user_id,
            cart,
            customer={"customer_name": customer_name},
            payment_method=payment_method,
            discount_amount=discount,
            options=EngineOptions.from_config(current_app.config),
        )
    except SaleError as e:
        raise click.ClickException(f"{e.code}: {e}") from e

    sale = result.sale
    click.echo(f"PASS Invoice {sale.invoice_number}")
    for item in result.items:
        click.echo(f"  {item.product.name:<24} {item.quantity:>4} x {item.unit_price} = {item.total_price}")
    click.echo(f"  total {sale.total_amount}  discount {sale.discount_amount}  final {sale.final_amount}")

    for product in low_stock_products(scope, [pid for pid, _ in parsed]):
        click.echo(f"WARN  Low stock: {product.name} ({product.stock} left, minimum {product.min_stock})")


@click.group('ledger')
def ledger_group():
    """Ledger commands."""


@ledger_group.command('list')
@click.option('--tenant-id', type=int, required=True)
@click.option('--type', 'entry_type', type=click.Choice(ENTRY_TYPES), default=None)
@click.option('--limit', type=int, default=20)
@with_appcontext
def list_ledger_command(tenant_id, entry_type, limit):
    """List recent ledger entries."""
    entries = list_ledger_entries(TenantScope(db.session, tenant_id), entry_type, limit=limit)
    if not entries:
        click.echo("No ledger entries.")
        return
    for entry in entries:
        click.echo(
            f"{entry.id:>6}  {entry.entry_type:<8} {entry.amount:>14}  "
            f"{entry.category or '-':<12} {entry.description}"
        )


@ledger_group.command('add')
@click.option('--tenant-id', type=int, required=True)
@click.option('--type', 'entry_type', type=click.Choice(ENTRY_TYPES), required=True)
@click.option('--amount', required=True, help='Positive amount, e.g. 250000 or 4500.25')
@click.option('--description', required=True)
@click.option('--category', default=None, help='e.g. Rent, Supplies')
@click.option('--user-id', type=int, default=None, help='Acting user (must belong to the tenant)')
@with_appcontext
def add_ledger_command(tenant_id, entry_type, amount, description, category, user_id):
    """Record a manual income or expense entry."""
    try:
        entry = record_ledger_entry(
            TenantScope(db.session, tenant_id),
            entry_type=entry_type,
            amount=amount,
            description=description,
            category=category,
            created_by=user_id,
        )
    except SaleError as e:
        db.session.rollback()
        raise click.ClickException(f"{e.code}: {e}") from e

    click.echo(f"PASS Recorded {entry.entry_type} #{entry.id}: {entry.amount} {entry.description}")


@ledger_group.command('summary')
@click.option('--tenant-id', type=int, required=True)
@click.option('--start', default=None, help='ISO date/datetime, inclusive')
@click.option('--end', default=None, help='ISO date/datetime, exclusive')
@with_appcontext
def ledger_summary_command(tenant_id, start, end):
    """Income, expense and balance, plus today's paid sales."""
    scope = TenantScope(db.session, tenant_id)
    try:
        summary = ledger_summary(scope, parse_iso_datetime(start), parse_iso_datetime(end))
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    today = sales_for_day(scope, utcnow().date())

    click.echo(f"Income:  {summary.income}")
    click.echo(f"Expense: {summary.expense}")
    click.echo(f"Balance: {summary.balance}")
    click.echo(f"Today:   {today['count']} sales, {today['total']}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(ledger_group)
