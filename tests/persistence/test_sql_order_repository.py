"""Integration tests for SqlOrderRepository against a real SQLite file."""

import pytest

from orderstore.domain.exceptions import (
    EntityNotFoundError,
    TransactionFailedError,
    UpdateFailedError,
    ValidationError,
)
from orderstore.domain.model.order import OrderDetailChange
from tests.fakes import count_rows, make_detail, make_order


class TestCreateOrder:

    async def test_returns_new_id(self, repo):
        order_id = await repo.create_order(make_order())
        assert isinstance(order_id, int)

    async def test_sequential_ids(self, repo):
        first = await repo.create_order(make_order())
        second = await repo.create_order(make_order("ANATR"))
        assert second == first + 1

    async def test_persists_order_fields(self, repo):
        order_id = await repo.create_order(make_order(ship_city="Berlin", freight=12.5))
        saved = await repo.get_order(order_id)
        assert saved.id == order_id
        assert saved.customer_id == "ALFKI"
        assert saved.ship_city == "Berlin"
        assert saved.freight == pytest.approx(12.5)
        assert saved.shipped_date is None

    async def test_details_keyed_by_order_and_product(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(11), make_detail(42)])
        details = await repo.get_order_details(order_id)
        assert [d.id for d in details] == [f"{order_id}/11", f"{order_id}/42"]
        assert all(d.order_id == order_id for d in details)

    async def test_order_without_details(self, repo, database_path):
        order_id = await repo.create_order(make_order())
        assert await repo.get_order_details(order_id) == []
        assert await count_rows(database_path, "OrderDetail") == 0


class TestCreateOrderAtomicity:

    async def test_invalid_product_leaves_nothing_behind(self, repo, database_path):
        with pytest.raises(TransactionFailedError):
            await repo.create_order(
                make_order(),
                [make_detail(1), make_detail(999)],  # 999 does not exist
            )
        assert await count_rows(database_path, "CustomerOrder") == 0
        assert await count_rows(database_path, "OrderDetail") == 0

    async def test_unknown_customer_rejected(self, repo, database_path):
        with pytest.raises(TransactionFailedError):
            await repo.create_order(make_order("NOPE"), [make_detail(1)])
        assert await count_rows(database_path, "CustomerOrder") == 0

    async def test_failure_does_not_affect_earlier_orders(self, repo, database_path):
        kept = await repo.create_order(make_order(), [make_detail(1)])
        with pytest.raises(TransactionFailedError):
            await repo.create_order(make_order(), [make_detail(2), make_detail(999)])

        assert await count_rows(database_path, "CustomerOrder") == 1
        assert [d.id for d in await repo.get_order_details(kept)] == [f"{kept}/1"]

    async def test_new_order_with_id_rejected(self, repo, database_path):
        with pytest.raises(ValidationError, match="cannot carry an id"):
            await repo.create_order(make_order(id=5))
        assert await count_rows(database_path, "CustomerOrder") == 0


class TestGetOrder:

    async def test_missing_order_is_none(self, repo):
        assert await repo.get_order(12345) is None

    async def test_enriched_with_names(self, repo):
        order_id = await repo.create_order(make_order(employee_id=2))
        order = await repo.get_order(order_id)
        assert order.customer_name == "Alfreds Futterkiste"
        assert order.employee_name == "Andrew Fuller"

    async def test_subtotal_sums_discounted_lines(self, repo):
        order_id = await repo.create_order(make_order(), [
            make_detail(1, quantity=2, unit_price=10, discount=0.1),
            make_detail(2, quantity=1, unit_price=5, discount=0),
        ])
        order = await repo.get_order(order_id)
        assert order.subtotal == pytest.approx(23.0)

    async def test_subtotal_is_none_without_details(self, repo):
        order_id = await repo.create_order(make_order())
        order = await repo.get_order(order_id)
        assert order.subtotal is None

    async def test_missing_references_yield_null_names(self, repo):
        order_id = await repo.create_order(make_order(customer_id=None, employee_id=None))
        order = await repo.get_order(order_id)
        assert order.customer_name is None
        assert order.employee_name is None


class TestGetOrderDetails:

    async def test_price_and_product_name(self, repo):
        order_id = await repo.create_order(
            make_order(), [make_detail(11, quantity=12, unit_price=14.0, discount=0.5)]
        )
        (line,) = await repo.get_order_details(order_id)
        assert line.product_name == "Queso Cabrales"
        assert line.price == pytest.approx(168.0)  # undiscounted
        assert line.subtotal == pytest.approx(84.0)

    async def test_unknown_order_has_no_details(self, repo):
        assert await repo.get_order_details(12345) == []

    async def test_get_order_with_details(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1), make_detail(2)])
        order, details = await repo.get_order_with_details(order_id)
        assert order.id == order_id
        assert [d.product_id for d in details] == [1, 2]

    async def test_get_order_with_details_for_missing_order(self, repo):
        assert await repo.get_order_with_details(12345) == (None, [])


class TestUpdateOrder:

    async def test_updates_fields(self, repo):
        order_id = await repo.create_order(make_order())
        await repo.update_order(order_id, {"ship_city": "Lyon", "shipped_date": "2024-03-10"})

        order = await repo.get_order(order_id)
        assert order.ship_city == "Lyon"
        assert order.shipped_date == "2024-03-10"
        assert order.ship_country == "Germany"  # untouched

    async def test_updates_details_with_order(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1, quantity=1)])
        await repo.update_order(
            order_id,
            {"freight": 1.0},
            [OrderDetailChange(id=f"{order_id}/1", quantity=5, discount=0.2)],
        )
        (line,) = await repo.get_order_details(order_id)
        assert line.quantity == 5
        assert line.discount == pytest.approx(0.2)

    async def test_missing_order_raises(self, repo):
        with pytest.raises(UpdateFailedError, match="not found"):
            await repo.update_order(12345, {"ship_city": "Lyon"})

    async def test_failed_detail_rolls_back_parent(self, repo):
        order_id = await repo.create_order(make_order(ship_city="Berlin"), [make_detail(1)])
        with pytest.raises(UpdateFailedError):
            await repo.update_order(
                order_id,
                {"ship_city": "Lyon"},
                [
                    OrderDetailChange(id=f"{order_id}/1", quantity=9),
                    OrderDetailChange(id=f"{order_id}/2", quantity=9),  # no such line
                ],
            )
        order, (line,) = await repo.get_order_with_details(order_id)
        assert order.ship_city == "Berlin"
        assert line.quantity == 1

    async def test_cannot_touch_lines_of_another_order(self, repo):
        mine = await repo.create_order(make_order(), [make_detail(1)])
        other = await repo.create_order(make_order("ANATR"), [make_detail(1, quantity=3)])
        with pytest.raises(UpdateFailedError):
            await repo.update_order(mine, {"freight": 2.0}, [OrderDetailChange(id=f"{other}/1", quantity=7)])
        (line,) = await repo.get_order_details(other)
        assert line.quantity == 3

    async def test_constraint_violation_raises_update_failed(self, repo):
        order_id = await repo.create_order(make_order())
        with pytest.raises(UpdateFailedError):
            await repo.update_order(order_id, {"customer_id": "NOPE"})
        assert (await repo.get_order(order_id)).customer_id == "ALFKI"

    async def test_no_fields_rejected(self, repo):
        order_id = await repo.create_order(make_order())
        with pytest.raises(ValidationError):
            await repo.update_order(order_id, {})

    async def test_fractional_quantity_rejected(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1, quantity=1)])
        with pytest.raises(ValidationError, match="must be an integer"):
            await repo.update_order(
                order_id, {"freight": 3.0}, [OrderDetailChange(id=f"{order_id}/1", quantity=2.5)]
            )
        order, (line,) = await repo.get_order_with_details(order_id)
        assert line.quantity == 1
        assert order.freight == pytest.approx(32.38)


class TestDeleteOrder:

    async def test_removes_order_and_details(self, repo, database_path):
        order_id = await repo.create_order(make_order(), [make_detail(1), make_detail(2)])
        assert await repo.delete_order(order_id) is True

        assert await repo.get_order(order_id) is None
        assert await count_rows(database_path, "OrderDetail", "orderid = ?", (order_id,)) == 0

    async def test_leaves_other_orders_alone(self, repo):
        doomed = await repo.create_order(make_order(), [make_detail(1)])
        kept = await repo.create_order(make_order(), [make_detail(1)])
        await repo.delete_order(doomed)
        assert len(await repo.get_order_details(kept)) == 1

    async def test_missing_order_returns_false(self, repo):
        assert await repo.delete_order(12345) is False


class TestSingleDetail:

    async def test_add_detail(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1)])
        new_id = await repo.add_order_detail(order_id, make_detail(42, quantity=2))
        assert new_id == f"{order_id}/42"
        assert [d.product_id for d in await repo.get_order_details(order_id)] == [1, 42]

    async def test_add_duplicate_product_fails(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1)])
        with pytest.raises(TransactionFailedError):
            await repo.add_order_detail(order_id, make_detail(1))

    async def test_add_to_missing_order(self, repo):
        with pytest.raises(EntityNotFoundError):
            await repo.add_order_detail(12345, make_detail(1))

    async def test_delete_detail(self, repo):
        order_id = await repo.create_order(make_order(), [make_detail(1), make_detail(2)])
        assert await repo.delete_order_detail(f"{order_id}/1") is True
        assert [d.product_id for d in await repo.get_order_details(order_id)] == [2]

    async def test_delete_missing_detail(self, repo):
        assert await repo.delete_order_detail("1/1") is False
