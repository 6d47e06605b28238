"""
Tests for the cart store
"""

import json
from decimal import Decimal

import pytest

from marketplace.cart import CartItem, CartState, CartStore
from marketplace.cart.storage import load_cart, save_cart
from marketplace.storage import MemoryKeyValueStore


class TestCartItem:
    """Tests for CartItem."""

    def test_total_uses_list_price(self, make_part):
        item = CartItem(part=make_part(price="12.50"), quantity=3)

        assert item.unit_price == Decimal("12.50")
        assert item.total_price == Decimal("37.50")

    def test_total_uses_lower_discount_price(self, make_part):
        item = CartItem(part=make_part(price="100", discount_price=Decimal("80")), quantity=2)

        assert item.unit_price == Decimal("80")
        assert item.total_price == Decimal("160.00")

    def test_higher_discount_price_is_ignored(self, make_part):
        item = CartItem(part=make_part(price="100", discount_price=Decimal("120")), quantity=1)

        assert item.unit_price == Decimal("100")


class TestCartState:
    """Tests for CartState snapshots."""

    def test_empty_state(self):
        state = CartState()

        assert state.is_empty
        assert state.total_items == 0
        assert state.total_amount == 0

    def test_totals_derived_from_items(self, make_part):
        state = CartState.from_items([
            CartItem(part=make_part("a", price="10"), quantity=2),
            CartItem(part=make_part("b", price="5.25"), quantity=4),
        ])

        assert state.total_items == 6
        assert state.total_amount == Decimal("41.00")

    def test_serialization_round_trip(self, make_part):
        state = CartState.from_items([
            CartItem(part=make_part("a", price="19.99", brand="Bosch"), quantity=2),
            CartItem(part=make_part("b", price="5", discount_price=Decimal("4.50")), quantity=1),
        ])

        restored = CartState.from_dict(json.loads(json.dumps(state.to_dict())))

        assert restored.to_dict() == state.to_dict()
        assert restored.total_items == state.total_items
        assert restored.total_amount == state.total_amount
        assert [item.part_id for item in restored.items] == ["a", "b"]

    def test_from_dict_recomputes_stored_totals(self, make_part):
        data = CartState.from_items([CartItem(part=make_part(price="10"), quantity=1)]).to_dict()
        data["totalItems"] = 99
        data["totalAmount"] = "12345.00"

        restored = CartState.from_dict(data)

        assert restored.total_items == 1
        assert restored.total_amount == Decimal("10.00")

    def test_totals_cannot_be_passed_in(self, make_part):
        item = CartItem(part=make_part(price="10"), quantity=1)

        with pytest.raises(TypeError):
            CartState(items=(item,), total_items=99, total_amount=Decimal("5"))

        state = CartState(items=[item])
        assert state.items == (item,)
        assert state.total_items == 1
        assert state.total_amount == Decimal("10.00")

    def test_from_dict_accepts_whole_float_quantity(self, make_part):
        part = make_part("a", price="3").model_dump(mode="json", by_alias=True)

        restored = CartState.from_dict({"items": [{"part": part, "quantity": 2.0}]})

        assert restored.items[0].quantity == 2
        assert isinstance(restored.items[0].quantity, int)

    def test_from_dict_merges_duplicates_and_drops_empty_lines(self, make_part):
        part = make_part("a", price="10").model_dump(mode="json", by_alias=True)
        other = make_part("b", price="1").model_dump(mode="json", by_alias=True)
        data = {"items": [
            {"part": part, "quantity": 1},
            {"part": other, "quantity": 0},
            {"part": part, "quantity": 2},
        ]}

        restored = CartState.from_dict(data)

        assert len(restored.items) == 1
        assert restored.items[0].quantity == 3


class TestCartStore:
    """Tests for CartStore operations."""

    def test_concrete_scenario(self, memory_store, make_part):
        cart = CartStore(memory_store)
        part = make_part("p1", price="100")

        state = cart.add_item(part, 2)
        assert (state.total_items, state.total_amount) == (2, Decimal("200.00"))

        state = cart.add_item(part, 1)
        assert (state.total_items, state.total_amount) == (3, Decimal("300.00"))

        state = cart.update_quantity("p1", 1)
        assert (state.total_items, state.total_amount) == (1, Decimal("100.00"))

        state = cart.remove_item("p1")
        assert (state.total_items, state.total_amount) == (0, Decimal("0.00"))

    def test_same_part_merges_into_one_line(self, memory_store, make_part):
        cart = CartStore(memory_store)

        cart.add_item(make_part("p1"), 2)
        cart.add_item(make_part("p1"), 3)

        state = cart.snapshot()
        assert len(state.items) == 1
        assert state.items[0].quantity == 5

    def test_add_defaults_to_one(self, memory_store, make_part):
        cart = CartStore(memory_store)

        cart.add_item(make_part("p1"))

        assert cart.total_items == 1

    def test_insertion_order_preserved(self, memory_store, make_part):
        cart = CartStore(memory_store)
        for part_id in ("c", "a", "b"):
            cart.add_item(make_part(part_id))
        cart.add_item(make_part("a"), 4)

        assert [item.part_id for item in cart.snapshot().items] == ["c", "a", "b"]

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_update_to_non_positive_removes(self, memory_store, make_part, quantity):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1"), 2)
        cart.add_item(make_part("p2"), 1)

        state = cart.update_quantity("p1", quantity)

        assert [item.part_id for item in state.items] == ["p2"]
        assert state.total_items == 1

    def test_update_replaces_quantity(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1", price="3"), 2)

        state = cart.update_quantity("p1", 7)

        assert state.items[0].quantity == 7
        assert state.total_amount == Decimal("21.00")

    def test_update_unknown_part_is_noop(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1"), 2)

        state = cart.update_quantity("missing", 5)

        assert state.total_items == 2

    def test_remove_absent_part_leaves_state_unchanged(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1", price="5"), 2)
        before = cart.snapshot()

        after = cart.remove_item("nope")

        assert after.to_dict() == before.to_dict()

    def test_add_non_positive_quantity_never_leaves_empty_line(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1"), 0)
        assert cart.snapshot().is_empty

        cart.add_item(make_part("p2"), 2)
        cart.add_item(make_part("p2"), -2)
        assert cart.snapshot().is_empty

    def test_clear(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1"), 2)

        state = cart.clear()

        assert state.is_empty
        assert state.total_amount == 0

    def test_totals_always_match_items(self, memory_store, make_part):
        cart = CartStore(memory_store)
        operations = [
            ("add", "a", 2), ("add", "b", 1), ("update", "a", 5), ("add", "c", 3),
            ("remove", "b", 0), ("update", "c", 0), ("add", "a", 1), ("add", "d", 2),
        ]
        for op, part_id, quantity in operations:
            if op == "add":
                cart.add_item(make_part(part_id, price="2.5", discount_price=Decimal("2")), quantity)
            elif op == "update":
                cart.update_quantity(part_id, quantity)
            else:
                cart.remove_item(part_id)

            state = cart.snapshot()
            assert state.total_items == sum(item.quantity for item in state.items)
            assert state.total_amount == sum(item.quantity * Decimal("2") for item in state.items)
            assert all(item.quantity >= 1 for item in state.items)

    def test_snapshot_is_not_live(self, memory_store, make_part):
        cart = CartStore(memory_store)
        cart.add_item(make_part("p1"), 1)

        snapshot = cart.snapshot()
        snapshot.items[0].quantity = 50

        assert cart.snapshot().items[0].quantity == 1
        assert cart.total_items == 1

    def test_added_part_is_copied(self, memory_store, make_part):
        cart = CartStore(memory_store)
        part = make_part("p1", price="10")
        cart.add_item(part, 1)

        part.price = Decimal("999")

        assert cart.total_amount == Decimal("10.00")

    def test_listeners_receive_snapshots(self, memory_store, make_part):
        cart = CartStore(memory_store)
        seen = []
        unsubscribe = cart.subscribe(lambda state: seen.append(state.total_items))

        cart.add_item(make_part("p1"), 2)
        unsubscribe()
        cart.add_item(make_part("p1"), 2)

        assert seen == [2]

    def test_failing_listener_does_not_break_cart(self, memory_store, make_part):
        cart = CartStore(memory_store)

        def broken(state):
            raise RuntimeError("render failed")

        cart.subscribe(broken)
        state = cart.add_item(make_part("p1"), 1)

        assert state.total_items == 1


class TestCartPersistence:
    """Tests for the persisted cart snapshot."""

    def test_every_mutation_is_persisted(self, memory_store, make_part):
        cart = CartStore(memory_store)

        cart.add_item(make_part("p1", price="10"), 2)

        stored = json.loads(memory_store.get("cart"))
        assert stored["totalItems"] == 2
        assert stored["items"][0]["part"]["id"] == "p1"

    def test_cart_restored_on_startup(self, memory_store, make_part):
        CartStore(memory_store).add_item(make_part("p1", price="10"), 2)

        restored = CartStore(memory_store)

        assert restored.total_items == 2
        assert restored.total_amount == Decimal("20.00")

    def test_missing_data_gives_empty_cart(self, memory_store):
        assert CartStore(memory_store).snapshot().is_empty

    @pytest.mark.parametrize("raw", [
        "{not json",
        "[]",
        '{"items": "nope"}',
        '{"items": [{"quantity": 1}]}',
        '{"items": [{"part": {"id": "x"}, "quantity": 1}]}',
        '{"items": [{"part": {"id": "x", "name": "X", "price": "1"}, "quantity": Infinity}]}',
        '{"items": [{"part": {"id": "x", "name": "X", "price": "1"}, "quantity": NaN}]}',
        '{"items": [{"part": {"id": "x", "name": "X", "price": "1"}, "quantity": 1.7}]}',
        '{"items": [{"part": {"id": "x", "name": "X", "price": "1"}, "quantity": "2"}]}',
        '{"items": [{"part": {"id": "x", "name": "X", "price": "1"}, "quantity": true}]}',
    ])
    def test_corrupt_data_gives_empty_cart(self, raw, caplog):
        store = MemoryKeyValueStore({"cart": raw})

        with caplog.at_level("WARNING"):
            cart = CartStore(store)

        assert cart.snapshot().is_empty
        assert "starting empty" in caplog.text

    def test_failing_store_never_raises(self, make_part):
        class BrokenStore:
            def get(self, key):
                raise ConnectionError("down")

            def set(self, key, value):
                raise ConnectionError("down")

            def delete(self, key):
                raise ConnectionError("down")

        cart = CartStore(BrokenStore())
        state = cart.add_item(make_part("p1"), 1)

        assert state.total_items == 1

    def test_save_and_load_helpers(self, memory_store, make_part):
        state = CartState.from_items([CartItem(part=make_part("p1", price="7"), quantity=3)])

        assert save_cart(memory_store, "custom", state) is True
        assert load_cart(memory_store, "custom").to_dict() == state.to_dict()
