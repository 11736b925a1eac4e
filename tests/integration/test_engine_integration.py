"""
End-to-end tests: LifecycleController driving a ThreadedMultiplexer.

HTTP traffic is mocked with responses; retries, redirects, file output and
header/body delivery go through the real worker threads and callbacks.
"""

import json

import pytest
import requests
import responses

from transfer_engine import (
    EngineConfig,
    LifecycleController,
    LifecycleState,
    LoggingConfig,
    RequestDescriptor,
    RetryBudgetExhaustedError,
    TransferCode,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def engine(threaded):
    controller = LifecycleController(threaded, EngineConfig(max_workers=4))
    yield controller, threaded
    controller.close()


def test_simple_get(engine, mock_responses):
    controller, multi = engine
    mock_responses.add(
        responses.GET, "https://api.example.com/users",
        json={"users": ["alice"]}, status=200,
    )
    finished = []

    request = RequestDescriptor("https://api.example.com/users")
    assert controller.submit(request, finished.append)
    assert multi.run(timeout=5) == 0

    assert finished == [request]
    assert request.state is LifecycleState.COMPLETED
    assert request.status == 200
    assert json.loads(request.in_data) == {"users": ["alice"]}
    assert request.find_response_header("content-type") == "application/json"
    assert request.transfer_info.download_size == len(request.in_data)
    assert request.token is None
    assert request.retry_budget == request.max_retry_count


def test_post_sends_content_type_and_headers(engine, mock_responses):
    controller, multi = engine
    mock_responses.add(responses.POST, "https://api.example.com/items", status=200)

    request = RequestDescriptor(
        "https://api.example.com/items",
        method="POST",
        content_type="application/json",
        out_data=b'{"name": "widget"}',
    )
    request.set_header("X-Trace", "t-1")
    controller.submit(request, None)
    multi.run(timeout=5)

    sent = mock_responses.calls[0].request
    assert sent.headers["Content-Type"] == "application/json"
    assert sent.headers["X-Trace"] == "t-1"
    assert sent.body == b'{"name": "widget"}'
    assert request.succeeded


def test_redirect_followed_by_controller(engine, mock_responses):
    controller, multi = engine
    mock_responses.add(
        responses.GET, "https://example.com/old",
        status=302, headers={"Location": "/new"},
    )
    mock_responses.add(responses.GET, "https://example.com/new", body=b"moved here")

    request = RequestDescriptor("https://example.com/old", max_retry_count=3)
    controller.submit(request, None)
    multi.run(timeout=5)

    assert request.succeeded
    assert request.url == "https://example.com/new"
    assert request.in_data == b"moved here"
    assert request.retry_budget == 2
    assert [c.request.url for c in mock_responses.calls] == [
        "https://example.com/old",
        "https://example.com/new",
    ]


def test_retry_after_connection_error(engine, mock_responses):
    controller, multi = engine
    url = "https://flaky.example.com/"
    mock_responses.add(responses.GET, url, body=requests.exceptions.ConnectionError("refused"))
    mock_responses.add(responses.GET, url, body=b"finally")

    request = RequestDescriptor(url, max_retry_count=2)
    controller.submit(request, None)
    multi.run(timeout=5)

    assert request.succeeded
    assert request.in_data == b"finally"
    assert request.attempts == 2
    assert request.retry_budget == 1


def test_gives_up_after_budget(engine, mock_responses):
    controller, multi = engine
    url = "https://down.example.com/"
    mock_responses.add(responses.GET, url, body=requests.exceptions.ConnectionError("refused"))

    request = RequestDescriptor(url, max_retry_count=2)
    controller.submit(request, None)
    multi.run(timeout=5)

    assert request.failed
    assert request.attempts == 3
    assert len(mock_responses.calls) == 3
    assert request.last_result.code is TransferCode.COULDNT_CONNECT
    with pytest.raises(RetryBudgetExhaustedError):
        request.raise_for_outcome()


def test_non_200_statuses_are_retried(engine, mock_responses):
    controller, multi = engine
    url = "https://api.example.com/busy"
    mock_responses.add(responses.GET, url, status=503, body=b"busy")
    mock_responses.add(responses.GET, url, status=200, body=b"ok")

    request = RequestDescriptor(url)
    controller.submit(request, None)
    multi.run(timeout=5)

    assert request.succeeded
    assert request.in_data == b"ok"


def test_body_written_to_file(engine, mock_responses, tmp_path):
    controller, multi = engine
    payload = b"0123456789" * 5000
    mock_responses.add(responses.GET, "https://files.example.com/blob", body=payload)
    target = tmp_path / "downloads" / "blob.bin"

    request = RequestDescriptor("https://files.example.com/blob", output_path=str(target))
    controller.submit(request, None)
    multi.run(timeout=5)

    assert request.succeeded
    assert request.in_data is None
    assert target.read_bytes() == payload


def test_many_descriptors_in_parallel(engine, mock_responses):
    controller, multi = engine
    for i in range(20):
        mock_responses.add(responses.GET, f"https://api.example.com/n/{i}", body=str(i))

    finished = []
    descriptors = [RequestDescriptor(f"https://api.example.com/n/{i}") for i in range(20)]
    for request in descriptors:
        controller.submit(request, finished.append)
    multi.run(timeout=10)

    assert len(finished) == 20
    assert all(r.succeeded for r in descriptors)
    assert [r.in_data for r in descriptors] == [str(i).encode() for i in range(20)]
    assert all(r.token is None for r in descriptors)


def test_debug_dump_uses_sent_headers(threaded, mock_responses, caplog):
    caplog.set_level("INFO", logger="transfer_engine")
    mock_responses.add(responses.GET, "https://api.example.com/debug", body=b"dbg")
    controller = LifecycleController(threaded, EngineConfig(debug=True))

    request = RequestDescriptor("https://api.example.com/debug")
    request.set_header("Authorization", "Bearer hidden")
    controller.submit(request, None)
    threaded.run(timeout=5)

    assert request.sent_headers["Authorization"] == "Bearer hidden"
    assert "https://api.example.com/debug [ GET ] [ HTTP/1.1 200 OK ]" in caplog.text
    assert "[Authorization] REDACTED" in caplog.text
    assert "hidden" not in caplog.text


def test_structured_events_written(threaded, mock_responses, logging_config_with_file):
    mock_responses.add(
        responses.GET, "https://api.example.com/a",
        status=301, headers={"Location": "https://api.example.com/b"},
    )
    mock_responses.add(responses.GET, "https://api.example.com/b", body=b"b")
    config = EngineConfig(logging=logging_config_with_file)
    controller = LifecycleController(threaded, config)

    controller.submit(RequestDescriptor("https://api.example.com/a"), None)
    threaded.run(timeout=5)
    controller.close()

    with open(logging_config_with_file.file_path, encoding="utf-8") as fh:
        events = [json.loads(line)["message"] for line in fh]
    assert events == ["Transfer submitted", "Following redirect", "Transfer finished"]


def test_logging_config_reaches_controller(threaded, tmp_path):
    config = EngineConfig(logging=LoggingConfig.create(enable_console=False))
    controller = LifecycleController(threaded, config)

    assert controller.config.logging is config.logging
    controller.close()
