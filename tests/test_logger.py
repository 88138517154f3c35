import io
import json

from vellum.utils.logger import (
    JsonFormatter,
    Logger,
    LogLevel,
    MemoryHandler,
    StreamHandler,
    TextFormatter,
    configure_logging,
    get_logger,
)


def test_level_filtering():
    handler = MemoryHandler()
    logger = Logger("test", level=LogLevel.WARNING, handlers=[handler])

    logger.info("ignored")
    logger.warning("kept")

    assert [r.message for r in handler.records] == ["kept"]


def test_with_context_binds_values_and_shares_handlers():
    handler = MemoryHandler()
    logger = Logger("test", level=LogLevel.DEBUG, handlers=[handler])

    logger.with_context(request_id="abc").info("hello", path="/users")

    record = handler.records[0]
    assert record.context == {"request_id": "abc", "path": "/users"}
    assert record.logger_name == "test"


def test_text_formatter_output():
    stream = io.StringIO()
    logger = Logger(
        "vellum.test",
        level=LogLevel.DEBUG,
        handlers=[StreamHandler(stream=stream, formatter=TextFormatter(colors=False))],
    )

    logger.warning("Validation failed", fields=["email"])

    line = stream.getvalue()
    assert "[WARNING] vellum.test: Validation failed fields=['email']" in line


def test_json_formatter_includes_exception():
    stream = io.StringIO()
    logger = Logger(
        "vellum.test",
        level=LogLevel.DEBUG,
        handlers=[StreamHandler(stream=stream, formatter=JsonFormatter())],
    )

    logger.error("boom", exception=ValueError("bad"), code=7)

    payload = json.loads(stream.getvalue())
    assert payload["level"] == "ERROR"
    assert payload["context"] == {"code": 7}
    assert payload["exception"] == {"type": "ValueError", "message": "bad"}


def test_get_logger_is_cached():
    assert get_logger("vellum.cache-test") is get_logger("vellum.cache-test")


def test_configure_logging_switches_format_and_level():
    stream = io.StringIO()
    try:
        configure_logging(level=LogLevel.INFO, format="json", stream=stream)
        get_logger("vellum.configured").info("ready")
    finally:
        configure_logging(level=LogLevel.WARNING)

    assert json.loads(stream.getvalue())["message"] == "ready"


def test_handlers_are_not_shared_between_sibling_loggers():
    handler = MemoryHandler()
    view_logger = get_logger("vellum.isolation.view")
    view_logger.add_handler(handler)
    try:
        get_logger("vellum.isolation.routing").error("unrelated")
        view_logger.error("render failed")
    finally:
        view_logger.remove_handler(handler)

    assert [r.message for r in handler.records] == ["render failed"]


def test_child_records_reach_parent_handlers():
    handler = MemoryHandler()
    parent = get_logger("vellum.propagation")
    child = get_logger("vellum.propagation.child")
    parent.add_handler(handler)
    try:
        child.warning("bubbled")
        child.propagate = False
        child.warning("kept local")
    finally:
        child.propagate = True
        parent.remove_handler(handler)

    assert child.parent is parent
    assert [r.message for r in handler.records] == ["bubbled"]
    assert handler.records[0].logger_name == "vellum.propagation.child"


def test_configure_logging_keeps_handlers_added_to_child_loggers():
    handler = MemoryHandler()
    child = get_logger("vellum.configure-keep")
    child.add_handler(handler)
    try:
        configure_logging(level=LogLevel.INFO, stream=io.StringIO())
        child.info("still here")
    finally:
        configure_logging(level=LogLevel.WARNING)
        child.remove_handler(handler)

    assert [r.message for r in handler.records] == ["still here"]
