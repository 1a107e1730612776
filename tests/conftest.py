import os

# Avant tout import de garagesale (config lue à l'import)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("RESERVATION_SWEEP_ENABLED", "0")

import hashlib
import hmac
import itertools
import time
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from garagesale.app_setup.factory import create_app
from garagesale.payments.stripe_client import GatewayConfig, PaymentGateway
from garagesale.utils.security import require_user

WEBHOOK_SECRET = "whsec_test_secret"

BUYER = {"id": "buyer-1", "email": "buyer@example.com"}
OTHER_BUYER = {"id": "buyer-2", "email": "other@example.com"}
SELLER = {"id": "seller-1", "email": "seller@example.com"}


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("integration/"):
            item.add_marker(pytest.mark.integration)


# Supabase simulé en mémoire: même API chaînée que postgrest (table().select().eq()...execute())

class _Result:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Any] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, *columns):
        self._op = "select"
        return self

    def insert(self, data):
        self._op, self._payload = "insert", data
        return self

    def update(self, data):
        self._op, self._payload = "update", data
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def lt(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and r.get(column) < value)
        return self

    def gte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and r.get(column) >= value)
        return self

    def lte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and r.get(column) <= value)
        return self

    def ilike(self, column, pattern):
        needle = pattern.strip("%").lower()
        self._filters.append(lambda r: needle in str(r.get(column) or "").lower())
        return self

    def is_(self, column, value):
        if value == "null":
            self._filters.append(lambda r: r.get(column) is None)
        return self

    def contains(self, column, values):
        self._filters.append(lambda r: all(v in (r.get(column) or []) for v in values))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matching(self) -> List[dict]:
        return [r for r in self._db.rows(self._table) if all(f(r) for f in self._filters)]

    def execute(self):
        self._db.calls.append((self._table, self._op))
        if self._table in self._db.failing_tables:
            raise RuntimeError(f"supabase indisponible ({self._table})")
        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            return _Result([dict(self._db.insert(self._table, row)) for row in payload])
        if self._op == "update":
            rows = self._matching()
            for r in rows:
                r.update(self._payload)
            return _Result([dict(r) for r in rows])
        if self._op == "delete":
            rows = self._matching()
            self._db.tables[self._table] = [r for r in self._db.rows(self._table) if r not in rows]
            return _Result([dict(r) for r in rows])
        rows = self._matching()
        if self._order:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return _Result([dict(r) for r in rows])


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.failing_tables = set()
        self.calls: List[tuple] = []
        self._clock = itertools.count()

    def rows(self, table: str) -> List[dict]:
        return self.tables.setdefault(table, [])

    def insert(self, table: str, row: Dict[str, Any]) -> dict:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        created = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=next(self._clock))
        stored.setdefault("created_at", created.isoformat())
        self.rows(table).append(stored)
        return stored

    def get(self, table: str, row_id: str) -> Optional[dict]:
        return next((r for r in self.rows(table) if r.get("id") == row_id), None)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # Jeux de données
    def add_garage(self, owner_id=SELLER["id"], **fields) -> dict:
        data = {"owner_id": owner_id, "name": "Vide-grenier du dimanche", "description": "Meubles et vinyles", "is_public": True}
        data.update(fields)
        return self.insert("garages", data)

    def add_item(self, garage: dict, **fields) -> dict:
        data = {
            "garage_id": garage["id"],
            "owner_id": garage["owner_id"],
            "name": "Lampe vintage",
            "image_url": "https://img.example.test/lampe.jpg",
            "initial_price": 40.0,
            "sale_price": 25.0,
            "status": "available",
            "reserved_at": None,
            "reserved_by": None,
            "reserved_price": None,
            "purchased_at": None,
            "sold_order_id": None,
        }
        data.update(fields)
        return self.insert("items", data)

    def add_order(self, customer_id=BUYER["id"], item_ids=None, **fields) -> dict:
        data = {
            "customer_id": customer_id,
            "item_ids": list(item_ids or []),
            "stripe_session_id": "",
            "total_amount": 25.0,
            "status": "pending",
        }
        data.update(fields)
        return self.insert("orders", data)


@pytest.fixture(autouse=True)
def db(monkeypatch) -> FakeSupabase:
    """Remplace les deux clients Supabase (anon et service-role) par la même base en mémoire."""
    fake = FakeSupabase()
    monkeypatch.setattr("garagesale.infra.supabase_client.get_supabase", lambda: fake)
    monkeypatch.setattr("garagesale.infra.supabase_client.get_service_supabase", lambda: fake)
    return fake


# Client Stripe simulé: seule l'API checkout.sessions.create est utilisée par la passerelle

class FakeCheckoutSessions:
    def __init__(self):
        self.created: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def create(self, params=None, options=None):
        if self.error is not None:
            raise self.error
        self.created.append(params)
        n = len(self.created)
        return SimpleNamespace(id=f"cs_test_{n}", url=f"https://checkout.example.test/pay/cs_test_{n}")


@pytest.fixture
def stripe_sessions() -> FakeCheckoutSessions:
    return FakeCheckoutSessions()

@pytest.fixture
def gateway(stripe_sessions) -> PaymentGateway:
    fake_client = SimpleNamespace(checkout=SimpleNamespace(sessions=stripe_sessions))
    cfg = GatewayConfig(secret_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET, currency="usd")
    return PaymentGateway(cfg, client=fake_client)

@pytest.fixture
def app(gateway):
    return create_app(gateway=gateway)

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture(autouse=True)
def _override_require_user(request):
    """Utilisateur authentifié par défaut (BUYER) pour les endpoints protégés."""
    if "app" not in request.fixturenames:
        yield
        return
    app = request.getfixturevalue("app")
    app.dependency_overrides[require_user] = lambda: BUYER
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def login(app):
    """Change l'utilisateur authentifié: login(SELLER), login(None) pour un appel anonyme."""
    def _login(user: Optional[Dict[str, Any]]):
        if user is None:
            app.dependency_overrides.pop(require_user, None)
        else:
            app.dependency_overrides[require_user] = lambda: user
    return _login

@pytest.fixture
def users():
    return SimpleNamespace(buyer=BUYER, other=OTHER_BUYER, seller=SELLER)

@pytest.fixture
def sign_webhook():
    """En-têtes Stripe-Signature valides (schéma v1: HMAC-SHA256 de "<t>.<payload>")."""
    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> Dict[str, str]:
        t = int(time.time())
        digest = hmac.new(secret.encode("utf-8"), f"{t}.".encode("utf-8") + payload, hashlib.sha256).hexdigest()
        return {"Stripe-Signature": f"t={t},v1={digest}", "Content-Type": "application/json"}
    return _sign
