"""
Sale commit tests.

Verifies:
- Stock is decremented by exactly the sold quantity
- Insufficient stock aborts the whole sale with no rows written
- Invoice numbers are sequential per branch and day
- Commits are not idempotent
- Customers are reused by phone number or created once
- Invalid input is rejected before the database is touched
"""

from decimal import Decimal

import pytest

from alfapos.errors import InsufficientStockError, NotFoundError, StorageError, ValidationError
from alfapos.models import Customer, InvoiceSequence, Transaction, TransactionItem
from alfapos.services.invoice_service import format_invoice_number
from alfapos.services.transaction_service import CustomerData, LineItem, commit_transaction
from alfapos.time_utils import store_today


def _cart(product_id, quantity=2, price=100):
    return [{
        "product_id": product_id,
        "quantity": quantity,
        "price_per_item": price,
        "subtotal": price * quantity,
    }]


def _commit(branch_code, items, total=None, payment_method="Cash", **kwargs):
    if total is None:
        total = sum(Decimal(str(i["subtotal"])) for i in items)
    return commit_transaction(
        branch_code=branch_code,
        user_id=None,
        items=items,
        total_amount=total,
        payment_method=payment_method,
        **kwargs,
    )


class TestSuccessfulCommit:

    def test_first_sale_of_the_day(self, db_session, branch, make_product, stock_of):
        product = make_product(name="Frame Rayban", stock=5, branch=branch, id=7)

        result = _commit("TBB", _cart(7), amount_received=200, change_amount=0)

        assert stock_of(product.id, branch.id) == 3
        assert result.invoice_number == format_invoice_number("TBB", store_today(), 1)
        assert result.invoice_number.endswith("-001")
        assert result.invoice_number.startswith("INV-TBB-")

        tx = db_session.get(Transaction, result.transaction_id)
        assert tx.branch_code == "TBB"
        assert tx.total_amount == Decimal("200.00")
        assert tx.amount_received == Decimal("200.00")
        assert tx.change_amount == Decimal("0.00")
        assert [(i.product_id, i.quantity) for i in tx.items] == [(7, 2)]

    def test_every_line_is_decremented(self, db_session, branch, make_product, stock_of):
        frame = make_product(name="Frame", stock=4, branch=branch)
        lens = make_product(name="Lens", stock=10, branch=branch, price="50.00")

        items = [
            {"product_id": frame.id, "quantity": 1, "price_per_item": 100, "subtotal": 100},
            {"product_id": lens.id, "quantity": 2, "price_per_item": 50, "subtotal": 100},
        ]
        _commit("TBB", items)

        assert stock_of(frame.id, branch.id) == 3
        assert stock_of(lens.id, branch.id) == 8
        assert db_session.query(TransactionItem).count() == 2

    def test_accepts_camel_case_items(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=3, branch=branch)
        items = [{"productId": product.id, "quantity": 1, "pricePerItem": "100", "subtotal": "100"}]

        _commit("TBB", items)

        assert stock_of(product.id, branch.id) == 2

    def test_duplicate_lines_are_checked_together(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=3, branch=branch)
        items = _cart(product.id, quantity=2) + _cart(product.id, quantity=2)

        with pytest.raises(InsufficientStockError) as exc:
            _commit("TBB", items)
        assert exc.value.details["requested_quantity"] == 4
        assert stock_of(product.id, branch.id) == 3

        _commit("TBB", _cart(product.id, quantity=1) + _cart(product.id, quantity=2))
        assert stock_of(product.id, branch.id) == 0

    def test_item_name_is_a_snapshot(self, db_session, branch, make_product):
        product = make_product(name="Old Name", stock=5, branch=branch)
        items = [dict(_cart(product.id)[0], product_name="Client Name")]

        result = _commit("TBB", items)

        product.name = "New Name"
        db_session.commit()

        item = db_session.query(TransactionItem).filter_by(transaction_id=result.transaction_id).one()
        assert item.product_name == "Old Name"


class TestInsufficientStock:

    def test_nothing_is_written(self, db_session, branch, make_product, stock_of):
        product = make_product(name="Frame Rayban", stock=1, branch=branch, id=7)

        with pytest.raises(InsufficientStockError) as exc:
            _commit("TBB", _cart(7))

        assert "Frame Rayban" in exc.value.message
        assert exc.value.details["available_quantity"] == 1
        assert stock_of(product.id, branch.id) == 1
        assert db_session.query(Transaction).count() == 0
        assert db_session.query(TransactionItem).count() == 0
        assert db_session.query(InvoiceSequence).count() == 0

    def test_missing_inventory_row_means_zero(self, db_session, branch, make_product):
        product = make_product(stock=None)

        with pytest.raises(InsufficientStockError) as exc:
            _commit("TBB", _cart(product.id, quantity=1))
        assert exc.value.details["available_quantity"] == 0

    def test_one_short_line_rolls_back_the_others(self, db_session, branch, make_product, stock_of):
        plenty = make_product(name="Plenty", stock=10, branch=branch)
        short = make_product(name="Short", stock=0, branch=branch)

        items = _cart(plenty.id, quantity=1) + _cart(short.id, quantity=1)
        with pytest.raises(InsufficientStockError):
            _commit("TBB", items)

        assert stock_of(plenty.id, branch.id) == 10

    def test_customer_is_not_created(self, db_session, branch, make_product):
        product = make_product(stock=0, branch=branch)

        with pytest.raises(InsufficientStockError):
            _commit(
                "TBB",
                _cart(product.id),
                customer_data={"name": "Budi", "phone_number": "0811111111"},
            )

        assert db_session.query(Customer).count() == 0


class TestInvoiceNumbers:

    def test_sequential_commits_increment_by_one(self, db_session, branch, make_product):
        product = make_product(stock=10, branch=branch)

        first = _commit("TBB", _cart(product.id, quantity=1))
        second = _commit("TBB", _cart(product.id, quantity=1))

        assert first.invoice_number != second.invoice_number
        assert int(second.invoice_number.rsplit("-", 1)[1]) == int(first.invoice_number.rsplit("-", 1)[1]) + 1

    def test_branches_are_numbered_independently(self, db_session, branch, other_branch, make_product):
        tbb = make_product(name="Frame A", stock=5, branch=branch)
        bdg = make_product(name="Frame B", stock=5, branch=other_branch)

        _commit("TBB", _cart(tbb.id, quantity=1))
        result = _commit("BDG", _cart(bdg.id, quantity=1))

        assert result.invoice_number == format_invoice_number("BDG", store_today(), 1)

    def test_not_idempotent(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=10, branch=branch)
        items = _cart(product.id, quantity=2)

        first = _commit("TBB", items)
        second = _commit("TBB", items)

        assert first.transaction_id != second.transaction_id
        assert first.invoice_number != second.invoice_number
        assert stock_of(product.id, branch.id) == 6


class TestCustomers:

    def test_existing_phone_is_reused(self, db_session, branch, make_product):
        product = make_product(stock=5, branch=branch)
        customer = Customer(name="Budi", phone_number="0811111111")
        db_session.add(customer)
        db_session.commit()

        result = _commit(
            "TBB",
            _cart(product.id, quantity=1),
            customer_data={"name": "Someone Else", "phoneNumber": "0811111111"},
        )

        assert db_session.query(Customer).count() == 1
        assert db_session.get(Transaction, result.transaction_id).customer_id == customer.id

    def test_new_phone_with_name_creates_one_customer(self, db_session, branch, make_product):
        product = make_product(stock=5, branch=branch)
        data = {
            "name": "Siti",
            "phone_number": "0822222222",
            "address": "Jl. Tebet Raya 1",
            "date_of_birth": "1990-04-12T00:00:00.000",
        }

        first = _commit("TBB", _cart(product.id, quantity=1), customer_data=data)
        second = _commit("TBB", _cart(product.id, quantity=1), customer_data=data)

        customers = db_session.query(Customer).all()
        assert len(customers) == 1
        assert customers[0].date_of_birth.isoformat() == "1990-04-12"
        assert db_session.get(Transaction, first.transaction_id).customer_id == customers[0].id
        assert db_session.get(Transaction, second.transaction_id).customer_id == customers[0].id

    def test_unparseable_birth_date_is_dropped(self, db_session, branch, make_product):
        product = make_product(stock=5, branch=branch)

        _commit(
            "TBB",
            _cart(product.id, quantity=1),
            customer_data={"name": "Andi", "phone_number": "0833", "date_of_birth": "not a date"},
        )

        assert db_session.query(Customer).one().date_of_birth is None

    def test_phone_without_name_links_nothing(self, db_session, branch, make_product):
        product = make_product(stock=5, branch=branch)

        result = _commit("TBB", _cart(product.id, quantity=1), customer_data={"phone_number": "0844"})

        assert db_session.query(Customer).count() == 0
        assert db_session.get(Transaction, result.transaction_id).customer_id is None

    def test_no_phone_means_no_customer(self, db_session, branch, make_product):
        product = make_product(stock=5, branch=branch)

        result = _commit("TBB", _cart(product.id, quantity=1), customer_data={"name": "Walk-in"})

        assert db_session.query(Customer).count() == 0
        assert db_session.get(Transaction, result.transaction_id).customer_id is None


class TestRejectedInput:

    @pytest.mark.parametrize("items", [[], None, "not a list"])
    def test_items_required(self, db_session, branch, items):
        with pytest.raises(ValidationError):
            commit_transaction(branch_code="TBB", user_id=None, items=items, total_amount=0, payment_method="Cash")

    def test_total_required(self, db_session, branch):
        with pytest.raises(ValidationError):
            commit_transaction(branch_code="TBB", user_id=None, items=_cart(1), total_amount=None, payment_method="Cash")

    def test_payment_method_required(self, db_session, branch):
        with pytest.raises(ValidationError):
            commit_transaction(branch_code="TBB", user_id=None, items=_cart(1), total_amount=200, payment_method="")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2.0", True])
    def test_quantity_must_be_positive_integer(self, db_session, branch, quantity):
        items = [{"product_id": 1, "quantity": quantity, "price_per_item": 100, "subtotal": 100}]
        with pytest.raises(ValidationError):
            _commit("TBB", items, total=100)

    @pytest.mark.parametrize("product_id", [10 ** 30, -(10 ** 30), str(2 ** 63)])
    def test_product_id_out_of_range(self, db_session, branch, product_id):
        items = [{"product_id": product_id, "quantity": 1, "price_per_item": 1, "subtotal": 1}]
        with pytest.raises(ValidationError):
            _commit("TBB", items, total=1)

    def test_quantity_out_of_range(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=5, branch=branch)
        items = [{"product_id": product.id, "quantity": 10 ** 30, "price_per_item": 0, "subtotal": 0}]
        with pytest.raises(ValidationError):
            _commit("TBB", items, total=0)
        assert stock_of(product.id, branch.id) == 5

    @pytest.mark.parametrize("raw", [
        LineItem(product_id=1, quantity=0, price_per_item=Decimal("1"), subtotal=Decimal("0")),
        ["product_id", 1],
    ])
    def test_items_must_be_objects(self, db_session, branch, raw):
        with pytest.raises(ValidationError):
            _commit("TBB", [raw], total=0)

    def test_customer_data_must_be_an_object(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=5, branch=branch)
        customer = CustomerData(phone_number="0811", name="Budi")
        with pytest.raises(ValidationError):
            _commit("TBB", _cart(product.id, quantity=1), customer_data=customer)
        assert stock_of(product.id, branch.id) == 5

    def test_missing_item_field(self, db_session, branch):
        with pytest.raises(ValidationError):
            _commit("TBB", [{"product_id": 1, "quantity": 1, "subtotal": 100}], total=100)

    def test_total_must_match_subtotals(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=5, branch=branch)

        with pytest.raises(ValidationError) as exc:
            _commit("TBB", _cart(product.id), total=150)

        assert exc.value.details == {"total_amount": "150.00", "items_subtotal": "200.00"}
        assert stock_of(product.id, branch.id) == 5

    def test_unknown_branch(self, db_session, branch, make_product, stock_of):
        product = make_product(stock=5, branch=branch)

        with pytest.raises(NotFoundError):
            _commit("XXX", _cart(product.id))

        assert stock_of(product.id, branch.id) == 5
        assert db_session.query(Transaction).count() == 0

    def test_unknown_product(self, db_session, branch):
        with pytest.raises(NotFoundError) as exc:
            _commit("TBB", _cart(999))
        assert exc.value.details == {"product_ids": [999]}


def test_storage_failure_is_wrapped(db_session, branch, make_product, stock_of, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from alfapos.services import transaction_service

    product = make_product(stock=5, branch=branch)

    def broken(**kwargs):
        raise OperationalError("UPDATE invoice_sequences", {}, Exception("database is locked"))

    monkeypatch.setattr(transaction_service, "next_invoice_number", broken)

    with pytest.raises(StorageError) as exc:
        _commit(
            "TBB",
            _cart(product.id, quantity=1),
            customer_data={"name": "Rina", "phone_number": "0855555555"},
        )

    assert exc.value.message == "Failed to save transaction"
    assert stock_of(product.id, branch.id) == 5
    assert db_session.query(Transaction).count() == 0
    # Customer inserted before the failure is rolled back with the sale
    assert db_session.query(Customer).count() == 0
