import asyncio
import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("CONTACT_SWEEP_ENABLED", "false")

from mycircle import container
from mycircle.domain.identity.models import UserSummary
from mycircle.domain.posts.models import Post
from mycircle.infra import postgres
from mycircle.main import app
from mycircle.settings import settings


# Ensure a selector-based event loop policy on Windows to avoid Proactor issues with async IO
if hasattr(asyncio, "WindowsSelectorEventLoopPolicy"):
	asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


class RecordingBroker:
	"""RoomBroker double that keeps every room change and emit."""

	def __init__(self) -> None:
		self.emits: list[tuple[str, str, object, str | None]] = []
		self.rooms: dict[str, set[str]] = {}

	async def add_to_room(self, sid: str, room: str) -> None:
		self.rooms.setdefault(room, set()).add(sid)

	async def remove_from_room(self, sid: str, room: str) -> None:
		self.rooms.get(room, set()).discard(sid)

	async def emit_to_room(self, room, event, payload, *, skip_sid=None) -> None:
		self.emits.append((room, event, payload, skip_sid))

	def events(self, event: str) -> list[tuple[str, object]]:
		return [(room, payload) for room, name, payload, _ in self.emits if name == event]


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from mycircle.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Most tests authenticate via X-User-Id, which is only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture(autouse=True)
def fresh_container():
	container.reset_in_memory()
	yield
	container.reset_in_memory()


@pytest.fixture
def broker():
	recording = RecordingBroker()
	container.configure(broker=recording)
	return recording


@pytest.fixture
def world(broker):
	"""Three users and two posts: alice owns `post-bike`, bob owns `post-desk`."""
	users = container.get_users()
	for user_id, name in (("alice", "Alice"), ("bob", "Bob"), ("carol", "Carol")):
		users.add(UserSummary(id=user_id, display_name=name))
	posts = container.get_posts()
	posts.add(
		Post(
			id="post-bike",
			user_id="alice",
			title="Road bike",
			type="sell",
			images=("bike.jpg",),
			contact_phone="+15550001",
			contact_whatsapp="+15550002",
		)
	)
	posts.add(Post(id="post-desk", user_id="bob", title="Standing desk", type="sell"))
	return SimpleNamespace(
		broker=broker,
		contacts=container.get_contact_service(),
		chat=container.get_chat_service(),
		notifications=container.get_notification_service(),
		identity=container.get_identity_service(),
		presence=container.get_presence(),
	)


@pytest_asyncio.fixture
async def connected(world):
	"""Bob asked alice about her bike and she approved; returns the conversation id."""
	created = await world.contacts.create_request("bob", "post-bike", message="Still available?")
	result = await world.contacts.update_status(created.id, "alice", "approved")
	world.broker.emits.clear()
	return result.conversation_id


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
