import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from marefa.config import settings
from marefa.core import db as db_module
from marefa.core.errors import GenerationFailed
from marefa.core.security import hash_password
from marefa.main import app
from marefa.models.enums import Role, SubscriptionTier
from marefa.models.user import User
from marefa.services.billing import get_stripe_client
from marefa.services.llm_base import ChatCompletion, ChatModelService
from marefa.services.llm_factory import get_chat_model_service


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


class FakeChatModel(ChatModelService):
    """
    Records every prompt it gets and answers with a fixed reply,
    or fails when ``fail`` is set.
    """

    def __init__(self, reply: str = "As-Salaam-Alaykum. Here is an answer."):
        self.reply = reply
        self.fail = False
        self.calls = []

    @property
    def name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True

    async def complete(self, turns, temperature, max_tokens):
        self.calls.append({"turns": list(turns), "temperature": temperature, "max_tokens": max_tokens})
        if self.fail:
            raise GenerationFailed()
        return ChatCompletion(content=self.reply, model="fake-model", finish_reason="stop")


class FakeStripeClient:
    """
    In-memory stand-in for StripeClient; subscriptions are kept in a dict.
    """

    def __init__(self):
        self.customers = []
        self.subscriptions = {}
        self.price_updates = []

    def is_available(self) -> bool:
        return True

    async def create_customer(self, email: str, name: str):
        customer = {"id": f"cus_{len(self.customers) + 1}", "email": email, "name": name}
        self.customers.append(customer)
        return customer

    async def create_subscription(self, customer_id: str, price_id: str):
        sub_id = f"sub_{len(self.subscriptions) + 1}"
        sub = {
            "id": sub_id,
            "customer": customer_id,
            "status": "incomplete",
            "items": {"data": [{"id": f"si_{sub_id}", "price": {"id": price_id}}]},
            "latest_invoice": {"payment_intent": {"client_secret": f"pi_secret_{sub_id}"}},
        }
        self.subscriptions[sub_id] = sub
        return sub

    async def retrieve_subscription(self, subscription_id: str):
        return self.subscriptions[subscription_id]

    async def update_subscription_price(self, subscription_id: str, item_id: str, price_id: str):
        self.price_updates.append((subscription_id, item_id, price_id))
        sub = self.subscriptions[subscription_id]
        sub["items"]["data"][0]["price"] = {"id": price_id}
        return sub

    async def retrieve_product(self, product_id: str):
        return {"id": product_id, "name": "Research Plan"}


@pytest_asyncio.fixture
async def fake_model():
    model = FakeChatModel()
    app.dependency_overrides[get_chat_model_service] = lambda: model
    yield model
    app.dependency_overrides.pop(get_chat_model_service, None)


@pytest_asyncio.fixture
async def fake_stripe():
    stripe = FakeStripeClient()
    app.dependency_overrides[get_stripe_client] = lambda: stripe
    yield stripe
    app.dependency_overrides.pop(get_stripe_client, None)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """
    Point document uploads at a temporary directory.
    """
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(target))
    return target


@pytest_asyncio.fixture
async def client(fake_model):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    The chat model is always replaced by FakeChatModel.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_admin():
    """
    Factory fixture to create admin users directly via ORM for privileged endpoints.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user = await User.create(
            username=f"admin_{uuid.uuid4().hex[:6]}",
            email=f"admin_{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role=Role.ADMIN,
            subscription_tier=SubscriptionTier.TEAMS,
        )
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create regular users directly.
    """

    async def _create_user(
        password: str = "UserPass!23",
        tier: SubscriptionTier = SubscriptionTier.FREE,
        message_count: int = 0,
    ) -> tuple[User, str]:
        user = await User.create(
            username=f"user_{uuid.uuid4().hex[:6]}",
            email=f"{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role=Role.USER,
            subscription_tier=tier,
            message_count=message_count,
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        # Requests without the header should stay anonymous
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
