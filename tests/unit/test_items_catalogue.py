import pytest

from garagesale.errors import AuthError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from garagesale.items import service as items
from garagesale.items.models import ItemStatus


def test_create_item_in_own_garage(db, users):
    garage = db.add_garage(owner_id=users.seller["id"])

    item = items.create_item(users.seller, garage["id"], " Chaise ", "https://img.example.test/c.jpg", 30.0, 20.0)

    assert item["status"] == "available"
    assert item["owner_id"] == users.seller["id"]
    assert item["name"] == "Chaise"

def test_create_item_checks_identity_and_ownership(db, users):
    garage = db.add_garage(owner_id=users.seller["id"])
    with pytest.raises(AuthError):
        items.create_item(None, garage["id"], "Chaise", "https://x/c.jpg", 30.0, 20.0)
    with pytest.raises(NotFoundError):
        items.create_item(users.seller, "missing", "Chaise", "https://x/c.jpg", 30.0, 20.0)
    with pytest.raises(AuthorizationError):
        items.create_item(users.buyer, garage["id"], "Chaise", "https://x/c.jpg", 30.0, 20.0)

@pytest.mark.parametrize("name,image,initial,sale", [
    ("", "https://x/c.jpg", 30.0, 20.0),
    ("Chaise", "  ", 30.0, 20.0),
    ("Chaise", "https://x/c.jpg", 0, 20.0),
    ("Chaise", "https://x/c.jpg", 30.0, -1.0),
    ("Chaise", "https://x/c.jpg", 30.0, 35.0),
])
def test_create_item_validation(db, users, name, image, initial, sale):
    garage = db.add_garage(owner_id=users.seller["id"])
    with pytest.raises(ValidationError):
        items.create_item(users.seller, garage["id"], name, image, initial, sale)
    assert db.rows("items") == []

def test_update_item_validates_merged_prices(db, users):
    item = db.add_item(db.add_garage(), initial_price=40.0, sale_price=25.0)

    with pytest.raises(ValidationError):
        items.update_item(users.seller, item["id"], sale_price=45.0)
    updated = items.update_item(users.seller, item["id"], name="Lampe art déco", sale_price=30.0)

    assert updated["name"] == "Lampe art déco"
    assert updated["sale_price"] == 30.0
    assert updated["status"] == "available"

def test_update_item_by_non_owner_forbidden(db, users):
    item = db.add_item(db.add_garage())
    with pytest.raises(AuthorizationError):
        items.update_item(users.buyer, item["id"], name="Volée")

def test_delete_item(db, users):
    item = db.add_item(db.add_garage())
    assert items.delete_item(users.seller, item["id"]) == item["id"]
    assert db.get("items", item["id"]) is None

def test_delete_pending_item_conflicts(db, users):
    item = db.add_item(db.add_garage(), status="pending", reserved_by=users.buyer["id"])
    with pytest.raises(ConflictError):
        items.delete_item(users.seller, item["id"])
    assert db.get("items", item["id"]) is not None

def test_queries(db):
    garage = db.add_garage()
    other = db.add_garage()
    lamp = db.add_item(garage, name="Lampe vintage", sale_price=25.0)
    db.add_item(garage, name="Vinyle jazz", sale_price=8.0, status="sold")
    db.add_item(other, name="Lampe de bureau", sale_price=12.0, status="pending")

    assert len(items.get_items_by_garage(garage["id"])) == 2
    assert [i["id"] for i in items.list_items(status=ItemStatus.AVAILABLE)] == [lamp["id"]]
    assert len(items.get_items_by_status(ItemStatus.SOLD)) == 1
    assert len(items.search_items(search_term="lampe")) == 2
    assert [i["name"] for i in items.search_items(search_term="lampe", min_price=20)] == ["Lampe vintage"]
    assert [i["name"] for i in items.search_items(max_price=10)] == ["Vinyle jazz"]
    assert items.get_item("missing") is None
