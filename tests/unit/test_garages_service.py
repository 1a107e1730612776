import pytest

from garagesale.errors import AuthError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from garagesale.garages import service as garages


def test_private_garages_visible_to_owner_only(db, users):
    public = db.add_garage(owner_id=users.seller["id"], name="Public")
    private = db.add_garage(owner_id=users.seller["id"], name="Privé", is_public=False)

    assert [g["id"] for g in garages.list_garages(None)] == [public["id"]]
    assert {g["id"] for g in garages.list_garages(users.seller)} == {public["id"], private["id"]}
    assert garages.get_garage(users.buyer, private["id"]) is None
    assert garages.get_garage(users.seller, private["id"])["id"] == private["id"]
    assert [g["id"] for g in garages.get_garages_by_owner(users.buyer, users.seller["id"])] == [public["id"]]
    assert len(garages.get_garages_by_owner(users.seller, users.seller["id"])) == 2

def test_search_matches_name_or_description(db):
    db.add_garage(name="Brocante du port", description="Outils")
    db.add_garage(name="Grenier", description="Vieux outils de jardin")
    db.add_garage(name="Vêtements", description="Enfants")

    assert len(garages.search_garages(None, "OUTILS")) == 2
    assert len(garages.search_garages(None, "")) == 3

def test_create_garage(db, users):
    with pytest.raises(AuthError):
        garages.create_garage(None, "Mon garage")
    with pytest.raises(ValidationError):
        garages.create_garage(users.seller, "   ")

    created = garages.create_garage(users.seller, "Mon garage", "  ", is_public=False)

    assert created["owner_id"] == users.seller["id"]
    assert created["description"] is None
    assert created["is_public"] is False

def test_update_and_delete_require_owner(db, users):
    garage = db.add_garage(owner_id=users.seller["id"])
    with pytest.raises(AuthorizationError):
        garages.update_garage(users.buyer, garage["id"], name="Piraté")
    with pytest.raises(AuthorizationError):
        garages.delete_garage(users.buyer, garage["id"])
    with pytest.raises(NotFoundError):
        garages.update_garage(users.seller, "missing", name="X")

    assert garages.update_garage(users.seller, garage["id"], name="Renommé")["name"] == "Renommé"

def test_delete_garage_with_items_conflicts(db, users):
    garage = db.add_garage(owner_id=users.seller["id"])
    db.add_item(garage)
    with pytest.raises(ConflictError):
        garages.delete_garage(users.seller, garage["id"])

def test_delete_empty_garage(db, users):
    garage = db.add_garage(owner_id=users.seller["id"])
    assert garages.delete_garage(users.seller, garage["id"]) == garage["id"]
    assert db.get("garages", garage["id"]) is None
