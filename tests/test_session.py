import time

import pytest

from vellum.http.request import Request
from vellum.http.session import (
    FileSessionBackend,
    MemorySessionBackend,
    Session,
    SessionConfig,
    SessionManager,
)


class FakeResponse:
    def __init__(self):
        self.cookies = {}
        self.deleted = []

    def set_cookie(self, name, value, **options):
        self.cookies[name] = (value, options)

    def delete_cookie(self, name, path="/"):
        self.deleted.append(name)


class TestSession:
    def test_put_and_get_dotted_keys(self):
        session = Session("sid")
        session.put("user.id", 5).put("user.name", "Ann")

        assert session.get("user") == {"id": 5, "name": "Ann"}
        assert session.get("user.name") == "Ann"
        assert session.get("user.email", "none") == "none"
        assert session.is_modified

    def test_put_mapping_merges_top_level(self):
        session = Session("sid", {"locale": "fr"})
        session.put({"locale": "en", "theme": "dark"})
        assert session.all() == {"locale": "en", "theme": "dark"}

    def test_put_none_is_stored(self):
        session = Session("sid")
        session.put("draft", None)
        assert session.exists("draft")
        assert not session.has("draft")

    def test_has(self):
        session = Session("sid", {"user": {"id": 0}})
        assert session.has("user.id")
        assert "user" in session
        assert not session.has("user.name")

    def test_pull_returns_and_removes(self):
        session = Session("sid", {"user": {"id": 5, "name": "Ann"}})

        assert session.pull("user.name") == "Ann"
        assert session.get("user") == {"id": 5}
        assert session.pull("user.name", "gone") == "gone"

    def test_forget_single_and_many(self):
        session = Session("sid", {"a": 1, "b": 2, "c": {"d": 3}})
        session.forget("a").forget(["b", "c.d", "missing"])
        assert session.all() == {"c": {}}

    def test_forget_missing_key_does_not_modify(self):
        session = Session("sid", {"a": 1})
        session.forget("missing")
        assert not session.is_modified

    def test_flash_then_pull(self):
        session = Session("sid")
        session.flash("status", "Saved!")

        assert session.get("flash.status") == "Saved!"
        assert session.pull("flash.status") == "Saved!"
        assert not session.has("flash.status")

    def test_all_returns_copy(self):
        session = Session("sid", {"a": 1})
        session.all()["a"] = 2
        assert session.get("a") == 1


@pytest.mark.asyncio
async def test_manager_creates_then_resumes_session():
    manager = SessionManager(MemorySessionBackend())

    session = await manager.start(Request())
    assert session.is_new
    session.put("cart.items", [42])

    response = FakeResponse()
    await manager.save(session, response)

    value, options = response.cookies["vellum_session"]
    assert value == session.id
    assert options["httponly"] is True
    assert options["max_age"] == 7200

    resumed = await manager.start(Request(cookies={"vellum_session": session.id}))
    assert not resumed.is_new
    assert resumed.id == session.id
    assert resumed.get("cart.items") == [42]


@pytest.mark.asyncio
async def test_unmodified_resumed_session_is_not_rewritten():
    backend = MemorySessionBackend()
    await backend.write("sid", {"a": 1}, 60)
    manager = SessionManager(backend)

    session = await manager.start(Request(cookies={"vellum_session": "sid"}))
    response = FakeResponse()
    await manager.save(session, response)

    assert response.cookies == {}


@pytest.mark.asyncio
async def test_unknown_cookie_starts_fresh_session():
    manager = SessionManager()
    session = await manager.start(Request(cookies={"vellum_session": "stale"}))

    assert session.is_new
    assert session.id != "stale"


@pytest.mark.asyncio
async def test_regenerate_moves_data_to_new_id():
    backend = MemorySessionBackend()
    manager = SessionManager(backend)
    session = await manager.start(Request())
    session.put("user.id", 1)
    await manager.save(session, FakeResponse())
    old_id = session.id

    new_id = await manager.regenerate(session)
    await manager.save(session, FakeResponse())

    assert new_id != old_id
    assert await backend.read(old_id) is None
    assert (await backend.read(new_id))["user"] == {"id": 1}


@pytest.mark.asyncio
async def test_destroy_clears_data_and_cookie():
    backend = MemorySessionBackend()
    manager = SessionManager(backend, SessionConfig(cookie_name="sess"))
    session = await manager.start(Request())
    await manager.save(session, FakeResponse())

    response = FakeResponse()
    await manager.destroy(session, response)

    assert await backend.read(session.id) is None
    assert response.deleted == ["sess"]
    assert session.all() == {}


@pytest.mark.asyncio
async def test_memory_backend_expiry_and_gc(monkeypatch):
    backend = MemorySessionBackend()
    await backend.write("old", {"a": 1}, 10)
    await backend.write("fresh", {"b": 2}, 1000)

    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now + 100)

    assert await backend.gc() == 1
    assert await backend.read("old") is None
    assert await backend.read("fresh") == {"b": 2}


@pytest.mark.asyncio
async def test_memory_backend_returns_independent_copies():
    backend = MemorySessionBackend()
    data = {"user": {"id": 1}}
    await backend.write("sid", data, 60)
    data["user"]["id"] = 2

    loaded = await backend.read("sid")
    loaded["user"]["id"] = 3

    assert await backend.read("sid") == {"user": {"id": 1}}


@pytest.mark.asyncio
async def test_file_backend_round_trip(tmp_path):
    backend = FileSessionBackend(tmp_path / "sessions")
    await backend.write("sid", {"user": {"id": 1}}, 60)

    assert await backend.read("sid") == {"user": {"id": 1}}
    assert await backend.read("missing") is None

    await backend.destroy("sid")
    assert await backend.read("sid") is None


@pytest.mark.asyncio
async def test_file_backend_expiry_and_gc(tmp_path):
    backend = FileSessionBackend(tmp_path)
    await backend.write("expired", {"a": 1}, -1)
    await backend.write("live", {"b": 2}, 60)

    assert await backend.gc() == 1
    assert await backend.read("live") == {"b": 2}
    assert len(list(tmp_path.glob("*.json"))) == 1


@pytest.mark.asyncio
async def test_file_backend_discards_corrupt_file(tmp_path, log_records):
    backend = FileSessionBackend(tmp_path)
    backend._get_path("sid").write_text("{not json", encoding="utf-8")

    assert await backend.read("sid") is None
    assert not backend._get_path("sid").exists()
    assert any(r.message == "Discarding corrupt session file" for r in log_records)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["[1, 2]", '"text"', '{"expires": 9e18, "data": [1]}'])
async def test_file_backend_discards_payloads_that_are_not_sessions(tmp_path, content):
    backend = FileSessionBackend(tmp_path)
    backend._get_path("sid").write_text(content, encoding="utf-8")

    assert await backend.read("sid") is None
    assert not backend._get_path("sid").exists()


@pytest.mark.asyncio
async def test_file_backend_treats_unreadable_file_as_missing(tmp_path, monkeypatch):
    backend = FileSessionBackend(tmp_path)
    await backend.write("sid", {"a": 1}, 60)

    def unreadable(self, *args, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(type(backend._get_path("sid")), "read_text", unreadable)

    assert await backend.read("sid") is None


def test_session_config_from_app_config(app_config):
    app_config.set("session.cookie", "shop_session")
    app_config.set("session.lifetime", "600")
    app_config.set("session.secure", False)

    session_config = SessionConfig.from_config()

    assert session_config.cookie_name == "shop_session"
    assert session_config.lifetime == 600
    assert session_config.secure is False
    assert session_config.same_site == "lax"
    assert SessionManager().config == session_config
