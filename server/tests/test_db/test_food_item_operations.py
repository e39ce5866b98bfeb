# Food item management tests

import pytest
from datetime import timedelta

from db.errors import ItemNotFoundError, InvalidStateError


class TestCreateFoodItem:
    """Posting meals"""

    def test_create_food_item(self, food_ops, clock, sample_admin_user):
        item = food_ops.create_food_item(
            user_id=sample_admin_user,
            name="  Masala dosa ",
            canteen_name="North Canteen",
            quantity=5,
            available_until=clock() + timedelta(hours=2)
        )

        assert item['name'] == "Masala dosa"
        assert item['quantity_posted'] == 5
        assert item['quantity_available'] == 5
        assert item['is_active'] is True
        assert item['created_by'] == sample_admin_user

    def test_students_cannot_post(self, food_ops, clock, sample_students):
        with pytest.raises(PermissionError):
            food_ops.create_food_item(
                user_id=sample_students[0], name="Cake", canteen_name="North Canteen",
                quantity=1, available_until=clock() + timedelta(hours=1)
            )

    def test_quantity_must_be_positive(self, food_ops, clock, sample_admin_user):
        with pytest.raises(ValueError):
            food_ops.create_food_item(
                user_id=sample_admin_user, name="Cake", canteen_name="North Canteen",
                quantity=0, available_until=clock() + timedelta(hours=1)
            )

    def test_deadline_must_be_in_future(self, food_ops, clock, sample_admin_user):
        with pytest.raises(ValueError):
            food_ops.create_food_item(
                user_id=sample_admin_user, name="Cake", canteen_name="North Canteen",
                quantity=1, available_until=clock() - timedelta(minutes=1)
            )

    def test_name_required(self, food_ops, clock, sample_admin_user):
        with pytest.raises(ValueError):
            food_ops.create_food_item(
                user_id=sample_admin_user, name=" ", canteen_name="North Canteen",
                quantity=1, available_until=clock() + timedelta(hours=1)
            )


class TestUpdateFoodItem:
    """Editing meals"""

    def test_update_details(self, food_ops, sample_admin_user, sample_food_item):
        item = food_ops.update_food_item(
            sample_admin_user, sample_food_item,
            description="Now with raita", canteen_location="Block B"
        )

        assert item['description'] == "Now with raita"
        assert item['canteen_location'] == "Block B"
        assert item['name'] == "Vegetable biryani"

    def test_update_quantity_goes_through_ledger(self, food_ops, claim_ops, sample_admin_user,
                                                 sample_food_item, sample_students):
        claim = claim_ops.create_claim(sample_students[0], sample_food_item, 1)
        claim_ops.complete_claim(claim['claim_id'])

        item = food_ops.update_food_item(sample_admin_user, sample_food_item, quantity=6)

        assert item['quantity_posted'] == 6
        assert item['quantity_available'] == 5

    def test_quantity_below_reservations_rejected(self, food_ops, claim_ops, sample_admin_user,
                                                  sample_food_item, sample_students):
        claim_ops.create_claim(sample_students[0], sample_food_item, 2)

        with pytest.raises(InvalidStateError):
            food_ops.update_food_item(sample_admin_user, sample_food_item, quantity=1, name="Renamed")

        assert food_ops.get_food_item(sample_food_item)['name'] == "Vegetable biryani"

    def test_only_creator_may_edit(self, food_ops, support_ops, sample_food_item):
        support_ops.upsert_user("staff-002", email="south@campus.edu", role="admin")

        with pytest.raises(PermissionError):
            food_ops.update_food_item("staff-002", sample_food_item, name="Mine now")

    def test_unknown_field(self, food_ops, sample_admin_user, sample_food_item):
        with pytest.raises(ValueError):
            food_ops.update_food_item(sample_admin_user, sample_food_item, created_by="someone")

    def test_shortened_deadline_deactivates(self, food_ops, clock, sample_admin_user, sample_food_item):
        item = food_ops.update_food_item(sample_admin_user, sample_food_item, available_until=clock())

        assert item['is_active'] is False

    def test_extended_deadline_reactivates(self, food_ops, clock, sample_admin_user, sample_food_item):
        clock.advance(hours=7)
        assert food_ops.list_active_food_items() == []

        item = food_ops.update_food_item(
            sample_admin_user, sample_food_item, available_until=clock() + timedelta(hours=1)
        )

        assert item['is_active'] is True
        assert [i['food_item_id'] for i in food_ops.list_active_food_items()] == [sample_food_item]


class TestRemoveFoodItem:
    """Removing meals"""

    def test_item_without_history_is_deleted(self, food_ops, sample_admin_user, sample_food_item):
        result = food_ops.remove_food_item(sample_admin_user, sample_food_item)

        assert result == {'food_item_id': sample_food_item, 'deleted': True, 'cancelled_reservations': 0}
        with pytest.raises(ItemNotFoundError):
            food_ops.get_food_item(sample_food_item)

    def test_item_with_claims_is_withdrawn(self, food_ops, claim_ops, sample_admin_user,
                                           sample_food_item, sample_students):
        claimed = claim_ops.create_claim(sample_students[0], sample_food_item, 1)
        claim_ops.complete_claim(claimed['claim_id'])
        reserved = claim_ops.create_claim(sample_students[1], sample_food_item, 1)

        result = food_ops.remove_food_item(sample_admin_user, sample_food_item)

        assert result['deleted'] is False
        assert result['cancelled_reservations'] == 1

        item = food_ops.get_food_item(sample_food_item)
        assert item['is_active'] is False
        assert item['quantity_available'] == 0
        assert claim_ops.get_claim_by_code(reserved['claim_code'])['status'] == 'cancelled'
        assert claim_ops.get_claim_by_code(claimed['claim_code'])['status'] == 'claimed'

    def test_only_creator_may_remove(self, food_ops, sample_students, sample_food_item):
        with pytest.raises(PermissionError):
            food_ops.remove_food_item(sample_students[0], sample_food_item)


class TestListFoodItems:
    """Listings"""

    def test_list_active_items(self, food_ops, claim_ops, sample_food_item, sample_students):
        claim_ops.create_claim(sample_students[0], sample_food_item, 2)

        items = food_ops.list_active_food_items()

        assert len(items) == 1
        assert items[0]['claim_count'] == 1
        assert items[0]['actual_available_quantity'] == 1
        assert items[0]['quantity_available'] == 3
        assert items[0]['creator']['first_name'] == "Canteen"

    def test_list_excludes_sold_out_and_expired(self, food_ops, claim_ops, clock, sample_admin_user,
                                                sample_food_item, sample_students):
        short = food_ops.create_food_item(
            user_id=sample_admin_user, name="Samosa", canteen_name="North Canteen",
            quantity=1, available_until=clock() + timedelta(minutes=30)
        )
        claim = claim_ops.create_claim(sample_students[0], sample_food_item, 3)
        claim_ops.complete_claim(claim['claim_id'])

        assert [i['food_item_id'] for i in food_ops.list_active_food_items()] == [short['food_item_id']]

        clock.advance(minutes=30)
        assert food_ops.list_active_food_items() == []

    def test_items_by_creator_include_inactive(self, food_ops, clock, sample_admin_user, sample_food_item):
        clock.advance(hours=7)

        items = food_ops.get_food_items_by_creator(sample_admin_user)

        assert [i['food_item_id'] for i in items] == [sample_food_item]
        assert items[0]['is_active'] is False
