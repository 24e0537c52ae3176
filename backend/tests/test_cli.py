# Overview: Pytest coverage for the flask CLI command groups.

from decimal import Decimal

import pytest

from tillbook.models import LedgerEntry, Product, Tenant, User


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


class TestSystemInit:
    def test_creates_demo_tenant(self, runner, db_session):
        result = runner.invoke(args=["system", "init", "--tenant", "Warung Demo"])

        assert result.exit_code == 0, result.output
        assert "PASS Created tenant: Warung Demo" in result.output
        tenant = db_session.query(Tenant).filter_by(name="Warung Demo").one()
        assert db_session.query(User).filter_by(tenant_id=tenant.id, role="owner").count() == 1
        assert db_session.query(Product).filter_by(tenant_id=tenant.id).count() == 3

    def test_is_idempotent(self, runner, db_session):
        runner.invoke(args=["system", "init"])
        result = runner.invoke(args=["system", "init"])

        assert result.exit_code == 0, result.output
        assert "Using existing tenant" in result.output
        assert db_session.query(Product).count() == 3


class TestSalesRecord:
    def test_records_at_current_prices(self, runner, db_session, tenant_a, owner_a, make_product):
        product = make_product(tenant_a, price="15000", stock=4, min_stock=2, name="Roti Bakar")

        result = runner.invoke(args=[
            "sales", "record",
            "--tenant-id", str(tenant_a.id),
            "--user-id", str(owner_a.id),
            "--item", f"{product.id}:2",
            "--discount", "1000",
        ])

        assert result.exit_code == 0, result.output
        assert "PASS Invoice INV-" in result.output
        assert "final 29000.00" in result.output
        assert "WARN  Low stock: Roti Bakar" in result.output
        assert db_session.get(Product, product.id).stock == 2
        assert db_session.query(LedgerEntry).count() == 1

    def test_sale_error_exits_nonzero(self, runner, db_session, tenant_a, owner_a, product_a):
        result = runner.invoke(args=[
            "sales", "record",
            "--tenant-id", str(tenant_a.id),
            "--user-id", str(owner_a.id),
            "--item", f"{product_a.id}:50",
        ])

        assert result.exit_code == 1
        assert "insufficient_stock" in result.output
        assert db_session.get(Product, product_a.id).stock == 5

    def test_bad_item_format(self, runner, tenant_a, owner_a):
        result = runner.invoke(args=[
            "sales", "record",
            "--tenant-id", str(tenant_a.id),
            "--user-id", str(owner_a.id),
            "--item", "oops",
        ])

        assert result.exit_code == 2
        assert "PRODUCT_ID:QTY" in result.output


class TestLedgerCommands:
    def test_list_and_summary(self, runner, db_session, tenant_a, owner_a, product_a):
        runner.invoke(args=[
            "sales", "record",
            "--tenant-id", str(tenant_a.id),
            "--user-id", str(owner_a.id),
            "--item", f"{product_a.id}:1",
        ])

        listing = runner.invoke(args=["ledger", "list", "--tenant-id", str(tenant_a.id)])
        assert listing.exit_code == 0, listing.output
        assert "income" in listing.output
        assert "Sales" in listing.output

        summary = runner.invoke(args=["ledger", "summary", "--tenant-id", str(tenant_a.id)])
        assert summary.exit_code == 0, summary.output
        assert "Income:  10000.00" in summary.output
        assert "Balance: 10000.00" in summary.output
        assert "Today:   1 sales, 10000.00" in summary.output

    def test_add_expense(self, runner, db_session, tenant_a, owner_a):
        result = runner.invoke(args=[
            "ledger", "add",
            "--tenant-id", str(tenant_a.id),
            "--type", "expense",
            "--amount", "250000",
            "--description", "Sewa kios",
            "--category", "Rent",
            "--user-id", str(owner_a.id),
        ])

        assert result.exit_code == 0, result.output
        assert "PASS Recorded expense" in result.output
        entry = db_session.query(LedgerEntry).one()
        assert entry.amount == Decimal("250000")
        assert entry.category == "Rent"
        assert entry.created_by == owner_a.id

        summary = runner.invoke(args=["ledger", "summary", "--tenant-id", str(tenant_a.id)])
        assert "Expense: 250000.00" in summary.output

    @pytest.mark.parametrize("extra, code", [
        (["--amount", "0"], "validation_error"),
        (["--amount", "10", "--user-id", "99999"], "tenant_access_denied"),
    ])
    def test_add_rejected(self, runner, db_session, tenant_a, extra, code):
        result = runner.invoke(args=[
            "ledger", "add", "--tenant-id", str(tenant_a.id), "--type", "income", "--description", "Tip",
        ] + extra)

        assert result.exit_code == 1
        assert code in result.output
        assert db_session.query(LedgerEntry).count() == 0

    def test_empty_list(self, runner, tenant_a):
        result = runner.invoke(args=["ledger", "list", "--tenant-id", str(tenant_a.id)])

        assert result.exit_code == 0
        assert "No ledger entries." in result.output

    def test_bad_date(self, runner, tenant_a):
        result = runner.invoke(args=["ledger", "summary", "--tenant-id", str(tenant_a.id), "--start", "yesterday"])

        assert result.exit_code == 2
