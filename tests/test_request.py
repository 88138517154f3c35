import pytest

from vellum.exceptions import RuleNotImplementedError
from vellum.http.request import Headers, Request


def make_receive(*chunks):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ] or [{"type": "http.request", "body": b"", "more_body": False}]

    async def receive():
        return messages.pop(0)

    return receive


def scope(**overrides):
    base = {
        "type": "http",
        "method": "POST",
        "path": "/users",
        "query_string": b"page=2&tag=a&tag=b",
        "headers": [(b"host", b"shop.test"), (b"content-type", b"application/x-www-form-urlencoded")],
        "scheme": "https",
        "root_path": "",
    }
    base.update(overrides)
    return base


def test_get_reads_query_and_input_reads_form():
    request = Request(query={"page": "2"}, form={"name": "Ann"})

    assert request.get("page") == "2"
    assert request.get("missing", "1") == "1"
    assert request.input("name") == "Ann"
    assert request.input("missing") is None


def test_request_data_is_read_only():
    request = Request(form={"name": "Ann"})

    with pytest.raises(TypeError):
        request.form["name"] = "Bob"

    copied = request.all()
    copied["name"] = "Bob"
    assert request.input("name") == "Ann"


def test_source_mapping_changes_do_not_leak_in():
    form = {"name": "Ann"}
    request = Request(form=form)
    form["name"] = "Bob"
    assert request.input("name") == "Ann"


def test_validate_runs_one_pass_over_form_data():
    request = Request(form={"name": "Ann", "email": "bad"})

    validator = request.validate({"name": "required|string", "email": "required|email"})

    assert validator.errors() == {"email": ["email"]}


def test_validate_propagates_configuration_errors():
    with pytest.raises(RuleNotImplementedError):
        Request(form={"name": "Ann"}).validate({"name": "required|max:255"})


def test_headers_are_case_insensitive():
    headers = Headers([(b"Content-Type", b"text/html")])
    assert headers["content-type"] == "text/html"
    assert headers.get("CONTENT-TYPE") == "text/html"
    assert "Content-type" in headers


def test_base_url_and_url():
    request = Request(path="/users/5", query={"tab": "info"}, headers={"Host": "shop.test"}, scheme="https")

    assert request.base_url() == "https://shop.test/"
    assert request.url == "https://shop.test/users/5?tab=info"
    assert request.is_secure


@pytest.mark.asyncio
async def test_from_scope_parses_urlencoded_form():
    request = await Request.from_scope(scope(), make_receive(b"name=Ann&", b"age=42&age=43"))

    assert request.method == "POST"
    assert request.path == "/users"
    assert request.all() == {"name": "Ann", "age": "42"}
    assert request.get("page") == "2"
    assert request.get("tag") == "a"
    assert request.host == "shop.test"


@pytest.mark.asyncio
async def test_from_scope_parses_json_object():
    headers = [(b"content-type", b"application/json")]
    request = await Request.from_scope(
        scope(headers=headers),
        make_receive(b'{"name": "Ann", "age": 42}'),
    )

    assert request.all() == {"name": "Ann", "age": 42}
    assert request.validate({"age": "numeric"}).errors() is None


@pytest.mark.asyncio
async def test_from_scope_ignores_json_arrays():
    headers = [(b"content-type", b"application/json")]
    request = await Request.from_scope(scope(headers=headers), make_receive(b"[1, 2]"))
    assert request.all() == {}


@pytest.mark.asyncio
async def test_from_scope_reads_cookies():
    headers = [(b"cookie", b"vellum_session=abc123; theme=dark")]
    request = await Request.from_scope(scope(method="GET", headers=headers), make_receive())

    assert request.cookies["vellum_session"] == "abc123"
    assert request.all() == {}


@pytest.mark.asyncio
async def test_from_scope_raises_on_disconnect():
    async def receive():
        return {"type": "http.disconnect"}

    with pytest.raises(ConnectionError):
        await Request.from_scope(scope(), receive)
