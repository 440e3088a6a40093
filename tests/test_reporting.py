import asyncio
import io
import json

import pytest

from gltfkun.api import import_slice
from gltfkun.graph import Graph
from gltfkun.logging import section
from gltfkun.reporting import (
    JsonLinesReporter,
    PlainReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
    task,
)

from gltf_helpers import to_bytes, triangle_gltf


@pytest.fixture
def jsonl_stream():
    stream = io.StringIO()
    set_reporter(JsonLinesReporter(stream))
    yield stream
    set_reporter(SilentReporter())


def _events(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_import_reports_task_stats(jsonl_stream):
    asyncio.run(import_slice(Graph(), to_bytes(triangle_gltf())))
    ends = {e["id"]: e for e in _events(jsonl_stream) if e["event"] == "task_end"}
    assert ends["import.resolve"]["uris"] == 1
    assert ends["import.resolve"]["bytes"] == 36
    assert ends["import.graph"]["nodes"] == 1
    assert ends["import.graph"]["status"] == "success"


def test_failed_task_is_reported(jsonl_stream):
    with pytest.raises(RuntimeError):
        with task("demo", "Demo task") as stats:
            stats["nodes"] = 2
            raise RuntimeError("stop")
    (end,) = [e for e in _events(jsonl_stream) if e["event"] == "task_end"]
    assert end["status"] == "failed"
    assert end["nodes"] == 2


def test_plain_reporter_summary_line():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream, use_color=False))
    try:
        with task("demo", "Demo task") as stats:
            stats["buffers"] = 3
    finally:
        set_reporter(SilentReporter())
    line = stream.getvalue()
    assert "Demo task" in line and "[buffers=3]" in line


def test_message_levels_and_sections(jsonl_stream):
    rep = get_reporter()
    rep.status("hello")
    rep.warning("careful")
    rep.error("broken")
    rep.verbose("hidden")
    set_verbosity(1)
    try:
        rep.verbose("shown")
        with section("Document tri.gltf") as logger:
            assert logger.name == "gltfkun"
    finally:
        set_verbosity(0)
    events = _events(jsonl_stream)
    logs = [(e["level"], e["message"]) for e in events if e["event"] == "log"]
    assert logs == [
        ("info", "hello"),
        ("warning", "careful"),
        ("error", "broken"),
        ("debug", "shown"),
    ]
    assert {"event": "section", "title": "Document tri.gltf"} in events
