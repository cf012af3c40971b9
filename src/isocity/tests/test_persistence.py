from concurrent.futures import ThreadPoolExecutor
import json
from pathlib import Path
import socket
import threading

import pytest
import requests
from werkzeug.serving import make_server

from isocity.io.persistence import FileStore, HttpStore, SaveResult, SaveTracker
from isocity.io.save_server import MAX_BODY_BYTES, create_app, handle_save_request


class _FakeStore:
    def __init__(self, result: SaveResult, gate: threading.Event | None = None) -> None:
        self.result = result
        self.gate = gate
        self.calls: list[dict] = []

    def save(self, document: dict) -> SaveResult:
        self.calls.append(document)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        return self.result


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_file_store_writes_whole_document(tmp_path: Path, example_document: dict) -> None:
    target = tmp_path / "city.json"
    result = FileStore(target).save(example_document)
    assert result == SaveResult("success", "Map saved successfully!")
    assert json.loads(target.read_text(encoding="utf-8")) == example_document


@pytest.mark.parametrize("document", [{"size": 3}, {"tiles": []}, []])
def test_file_store_rejects_incomplete_documents_without_touching_file(tmp_path: Path, document) -> None:
    target = tmp_path / "city.json"
    target.write_text('{"size": 1, "tiles": []}', encoding="utf-8")
    result = FileStore(target).save(document)
    assert result.status == "error"
    assert target.read_text(encoding="utf-8") == '{"size": 1, "tiles": []}'


def test_tracker_reports_saving_then_success(example_document: dict) -> None:
    gate = threading.Event()
    store = _FakeStore(SaveResult("success", "ok"), gate)
    clock = _Clock()
    tracker = SaveTracker(store, message_ttl_sec=3.0, clock=clock)

    assert tracker.submit(example_document)
    assert tracker.status.state == "saving"
    assert tracker.in_flight
    assert not tracker.submit(example_document)

    gate.set()
    status = tracker.wait(timeout=5)
    assert (status.state, status.message) == ("success", "ok")
    assert not tracker.in_flight
    assert len(store.calls) == 1

    clock.now += 3.5
    assert tracker.poll().state == "idle"
    tracker.shutdown()


def test_tracker_reports_failure_and_allows_retry(example_document: dict) -> None:
    store = _FakeStore(SaveResult("error", "disk full"))
    tracker = SaveTracker(store, executor=ThreadPoolExecutor(max_workers=1))

    tracker.submit(example_document)
    status = tracker.wait(timeout=5)
    assert (status.state, status.message) == ("error", "disk full")

    assert tracker.submit(example_document)
    tracker.wait(timeout=5)
    assert len(store.calls) == 2
    tracker.shutdown()


def test_tracker_turns_store_exception_into_error() -> None:
    class _Exploding:
        def save(self, document: dict) -> SaveResult:
            raise RuntimeError("boom")

    tracker = SaveTracker(_Exploding())
    tracker.submit({"size": 1, "tiles": []})
    status = tracker.wait(timeout=5)
    assert status.state == "error"
    assert "boom" in status.message
    tracker.shutdown()


def test_save_request_handling(tmp_path: Path, example_document: dict) -> None:
    store = FileStore(tmp_path / "city.json")

    assert handle_save_request("GET", b"", store)[0] == 405
    assert handle_save_request("POST", b"{oops", store) == (
        400,
        {"status": "error", "message": "Invalid JSON payload."},
    )
    assert handle_save_request("POST", b'{"size": 2}', store)[0] == 400
    assert not (tmp_path / "city.json").exists()

    status, reply = handle_save_request("POST", json.dumps(example_document).encode("utf-8"), store)
    assert (status, reply["status"]) == (200, "success")
    assert json.loads((tmp_path / "city.json").read_text(encoding="utf-8")) == example_document


def test_save_endpoint_replies_with_json_for_every_outcome(tmp_path: Path, example_document: dict) -> None:
    target = tmp_path / "city.json"
    client = create_app(target).test_client()

    resp = client.get("/save")
    assert resp.status_code == 405
    assert resp.get_json() == {"status": "error", "message": "Method Not Allowed"}

    resp = client.post("/save", data=b"{oops", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid JSON payload."
    assert not target.exists()

    resp = client.post("/save", json=example_document)
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "success", "message": "Map saved successfully!"}
    assert json.loads(target.read_text(encoding="utf-8")) == example_document


@pytest.mark.parametrize("length", ["abc", "-5"])
def test_save_endpoint_rejects_bad_content_length(tmp_path: Path, length: str) -> None:
    client = create_app(tmp_path / "city.json").test_client()
    resp = client.post(
        "/save",
        data=b'{"size": 1, "tiles": []}',
        content_type="application/json",
        environ_overrides={"CONTENT_LENGTH": length},
    )
    assert resp.status_code == 400
    assert resp.get_json() == {"status": "error", "message": "Invalid JSON payload."}
    assert not (tmp_path / "city.json").exists()


def test_save_endpoint_rejects_oversized_body(tmp_path: Path) -> None:
    client = create_app(tmp_path / "city.json").test_client()
    resp = client.post("/save", data=b" " * (MAX_BODY_BYTES + 1), content_type="application/json")
    assert resp.status_code == 413
    assert resp.get_json()["status"] == "error"


def test_http_store_round_trip_through_save_endpoint(tmp_path: Path, example_document: dict) -> None:
    target = tmp_path / "served.json"
    server = make_server("127.0.0.1", 0, create_app(target), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        url = f"http://127.0.0.1:{server.server_port}/save"
        ok = HttpStore(url, timeout_sec=5).save(example_document)
        bad = HttpStore(url, timeout_sec=5).save({"size": 2})
    finally:
        server.shutdown()
        server.server_close()

    assert ok == SaveResult("success", "Map saved successfully!")
    assert bad == SaveResult("error", "Invalid JSON payload.")
    assert json.loads(target.read_text(encoding="utf-8")) == example_document


def test_http_store_network_error_is_an_error_result() -> None:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    result = HttpStore(f"http://127.0.0.1:{port}/save", timeout_sec=2).save({"size": 1, "tiles": []})
    assert result.status == "error"
    assert result.message.startswith("Network error")


def test_http_store_non_json_reply_is_an_error(monkeypatch) -> None:
    class _Reply:
        status_code = 502

        def json(self):
            raise ValueError("not json")

    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: _Reply())
    assert HttpStore("http://example.invalid/save").save({"size": 1, "tiles": []}) == SaveResult("error", "HTTP 502")
