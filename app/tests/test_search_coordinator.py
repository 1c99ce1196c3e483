"""
Tests for the search lifecycle coordinator.

The job store is faked with ``httpx.MockTransport`` so the real client code
(status handling, payload validation, match filtering) runs in every test.
"""

import asyncio
from typing import Callable, List

import httpx
import pytest

from app.libs.search import (
    SEARCH_FAILED_MESSAGE,
    JobStoreClient,
    PollError,
    SearchCoordinator,
    SearchState,
    SubmissionError,
    TerminalFailure,
)
from app.schemas.search import SearchStatus


BASE_URL = "http://jobstore.test/api"
POLL_INTERVAL = 0.01


def match_row(match_id: str, title: str = "Python Developer", company: str = "Acme") -> dict:
    return {"id": match_id, "title": title, "company": company, "keywordScore": 80}


def submitted(search_id: str, status: str = "pending") -> httpx.Response:
    return httpx.Response(
        200, json={"success": True, "message": "Search initiated", "searchId": search_id, "status": status}
    )


def polled(search_id: str, status: str, matches=None) -> httpx.Response:
    payload = {"searchId": search_id, "status": status, "query": "python"}
    if matches is not None:
        payload["matches"] = matches
    return httpx.Response(200, json=payload)


@pytest.fixture
async def make_coordinator():
    created: List[SearchCoordinator] = []
    clients: List[JobStoreClient] = []

    def factory(handler: Callable) -> SearchCoordinator:
        client = JobStoreClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        coordinator = SearchCoordinator(client=client, poll_interval=POLL_INTERVAL)
        clients.append(client)
        created.append(coordinator)
        return coordinator

    yield factory

    for coordinator in created:
        await coordinator.aclose()
    for client in clients:
        await client.aclose()


def record_states(coordinator: SearchCoordinator) -> List[SearchState]:
    states: List[SearchState] = []
    coordinator.subscribe(states.append)
    return states


def live_timers() -> List[asyncio.Task]:
    return [
        t for t in asyncio.all_tasks()
        if t.get_name().startswith("search-poll-timer-") and not t.done()
    ]


# -----------------------------------------------------------------------------
# Submission
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_synchronously_resolved_search_completes_with_matches(make_coordinator):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            return submitted("s1", status="completed")
        if request.url.path == "/api/matches":
            assert request.url.params["searchId"] == "s1"
            return httpx.Response(
                200, json={"matches": [match_row("m1"), match_row("m2", title="")]}
            )
        raise AssertionError(f"unexpected request {request.url}")

    coordinator = make_coordinator(handler)
    states = record_states(coordinator)

    state = await coordinator.submit("python")

    assert state.status is SearchStatus.COMPLETED
    assert state.search_id == "s1"
    assert [m.id for m in state.matches] == ["m1"]
    assert not coordinator.is_polling
    assert ("GET", "/api/jobs/search/s1") not in calls

    # The completed status is never observed without its matches
    completed = [s for s in states if s.status is SearchStatus.COMPLETED]
    assert len(completed) == 1
    assert [m.id for m in completed[0].matches] == ["m1"]
    assert [s.status for s in states] == [
        SearchStatus.PENDING,
        SearchStatus.PENDING,
        SearchStatus.COMPLETED,
    ]


@pytest.mark.asyncio
async def test_resolved_search_with_unavailable_matches_completes_empty(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1", status="completed")
        return httpx.Response(500, json={"error": "db down"})

    coordinator = make_coordinator(handler)
    state = await coordinator.submit("python")

    assert state.status is SearchStatus.COMPLETED
    assert state.matches == []


@pytest.mark.asyncio
async def test_resolved_search_with_network_error_fails(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1", status="completed")
        raise httpx.ConnectError("Network error", request=request)

    coordinator = make_coordinator(handler)
    state = await coordinator.submit("python")

    assert state.status is SearchStatus.FAILED
    assert state.error == "Network error"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response, expected_error",
    [
        (httpx.Response(500, json={"error": "Boom"}), "Boom"),
        (httpx.Response(500, text="oops"), "Failed to start search"),
        (httpx.Response(200, json={"success": False, "error": "Quota exceeded"}), "Quota exceeded"),
        (httpx.Response(200, json={"success": False}), "Search failed"),
        (httpx.Response(200, json={"success": True}), "Search failed"),
    ],
)
async def test_submission_failures(make_coordinator, response, expected_error):
    coordinator = make_coordinator(lambda request: response)

    state = await coordinator.submit("python")

    assert state.status is SearchStatus.FAILED
    assert state.error == expected_error
    assert state.search_id is None
    assert not coordinator.is_polling
    with pytest.raises(SubmissionError):
        await coordinator.wait(timeout=1)


@pytest.mark.asyncio
async def test_submission_transport_error(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    coordinator = make_coordinator(handler)
    state = await coordinator.submit("python")

    assert state.status is SearchStatus.FAILED
    assert state.error == "Connection refused"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_submit_rejects_empty_query(make_coordinator, query):
    coordinator = make_coordinator(lambda request: submitted("s1"))

    with pytest.raises(ValueError):
        await coordinator.submit(query)
    assert coordinator.status is SearchStatus.IDLE


# -----------------------------------------------------------------------------
# Polling
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_polling_until_completed(make_coordinator):
    polls = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        polls.append(request.url.path)
        if len(polls) < 3:
            return polled("s1", "pending")
        return polled("s1", "completed", [match_row("m1"), match_row("m2")])

    coordinator = make_coordinator(handler)
    states = record_states(coordinator)

    state = await coordinator.submit("python")
    assert state.status is SearchStatus.PENDING
    assert state.search_id == "s1"

    state = await coordinator.wait(timeout=2)

    assert state.status is SearchStatus.COMPLETED
    assert [m.id for m in state.matches] == ["m1", "m2"]
    assert all(path == "/api/jobs/search/s1" for path in polls)

    # Polling stops once the search completed
    polls_at_completion = len(polls)
    await asyncio.sleep(POLL_INTERVAL * 5)
    assert len(polls) == polls_at_completion
    assert not coordinator.is_polling
    assert live_timers() == []

    completed = [s for s in states if s.status is SearchStatus.COMPLETED]
    assert len(completed) == 1
    assert len(completed[0].matches) == 2


@pytest.mark.asyncio
async def test_first_poll_is_immediate(make_coordinator):
    polled_event = asyncio.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        polled_event.set()
        return polled("s1", "pending")

    client = JobStoreClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    coordinator = SearchCoordinator(client=client, poll_interval=60)
    try:
        await coordinator.submit("python")
        await asyncio.wait_for(polled_event.wait(), timeout=1)
    finally:
        await coordinator.aclose()
        await client.aclose()


@pytest.mark.asyncio
async def test_slow_poll_does_not_block_next_tick(make_coordinator):
    release = asyncio.Event()
    polls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        polls.append(request.url.path)
        if len(polls) == 1:
            await release.wait()
            return polled("s1", "pending")
        return polled("s1", "completed", [match_row("m1")])

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")

    state = await coordinator.wait(timeout=2)
    release.set()

    assert state.status is SearchStatus.COMPLETED
    assert len(polls) >= 2


@pytest.mark.asyncio
async def test_completed_payload_without_matches(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        return polled("s1", "completed")

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")
    state = await coordinator.wait(timeout=2)

    assert state.status is SearchStatus.COMPLETED
    assert state.matches == []


@pytest.mark.asyncio
async def test_malformed_poll_matches_are_filtered(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        return polled(
            "s1",
            "completed",
            [match_row("bad", company=""), "junk", {"id": "x"}, match_row("good")],
        )

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")
    state = await coordinator.wait(timeout=2)

    assert [m.id for m in state.matches] == ["good"]


@pytest.mark.asyncio
async def test_server_side_failure(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        return polled("s1", "failed")

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")

    with pytest.raises(TerminalFailure):
        await coordinator.wait(timeout=2)
    assert coordinator.status is SearchStatus.FAILED
    assert coordinator.error == SEARCH_FAILED_MESSAGE
    assert not coordinator.is_polling


@pytest.mark.asyncio
async def test_network_error_while_polling(make_coordinator):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        raise httpx.ConnectError("Network error", request=request)

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")

    with pytest.raises(PollError) as exc_info:
        await coordinator.wait(timeout=2)
    assert exc_info.value.status_code is None
    assert coordinator.status is SearchStatus.FAILED
    assert coordinator.error == "Network error"
    assert not coordinator.is_polling


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, payload, expected_error",
    [
        (404, {"error": "Search not found"}, "Failed to fetch search status"),
        (200, {"status": "bogus"}, "Invalid search status payload"),
        (200, {"status": "idle"}, "Invalid search status payload"),
    ],
)
async def test_bad_poll_responses_fail_the_search(make_coordinator, status_code, payload, expected_error):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        return httpx.Response(status_code, json=payload)

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")

    with pytest.raises(PollError):
        await coordinator.wait(timeout=2)
    assert coordinator.error == expected_error


# -----------------------------------------------------------------------------
# Cancellation
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_reset_discards_in_flight_poll(make_coordinator):
    release = asyncio.Event()
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        started.set()
        await release.wait()
        return polled("s1", "completed", [match_row("m1")])

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")
    await asyncio.wait_for(started.wait(), timeout=1)

    state = coordinator.reset()
    release.set()
    await asyncio.sleep(POLL_INTERVAL * 5)

    assert state == SearchState()
    assert coordinator.state == SearchState()
    assert not coordinator.is_polling
    assert live_timers() == []


@pytest.mark.asyncio
async def test_reset_is_idempotent(make_coordinator):
    coordinator = make_coordinator(lambda request: submitted("s1"))

    assert coordinator.reset() == SearchState()
    assert coordinator.reset() == SearchState()
    assert (await coordinator.wait(timeout=1)) == SearchState()


@pytest.mark.asyncio
async def test_resubmit_replaces_timer_and_ignores_stale_results(make_coordinator):
    release_first = asyncio.Event()
    first_started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            query = (await request.aread()).decode()
            return submitted("first" if "rust" in query else "second")
        if request.url.path.endswith("/first"):
            first_started.set()
            await release_first.wait()
            return polled("first", "completed", [match_row("stale")])
        return polled("second", "pending")

    coordinator = make_coordinator(handler)
    await coordinator.submit("rust")
    await asyncio.wait_for(first_started.wait(), timeout=1)

    await coordinator.submit("python")
    await asyncio.sleep(0)

    timers = live_timers()
    assert len(timers) == 1
    assert timers[0].get_name() == "search-poll-timer-second"

    release_first.set()
    await asyncio.sleep(POLL_INTERVAL * 5)

    assert coordinator.search_id == "second"
    assert coordinator.status is SearchStatus.PENDING
    assert coordinator.matches == []


@pytest.mark.asyncio
async def test_aclose_cancels_polling(make_coordinator):
    polls = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return submitted("s1")
        polls.append(request.url.path)
        return polled("s1", "pending")

    coordinator = make_coordinator(handler)
    await coordinator.submit("python")
    await asyncio.sleep(POLL_INTERVAL * 3)

    await coordinator.aclose()
    polls_at_close = len(polls)
    await asyncio.sleep(POLL_INTERVAL * 5)

    assert len(polls) == polls_at_close
    assert live_timers() == []
    with pytest.raises(RuntimeError):
        await coordinator.submit("python")


@pytest.mark.asyncio
async def test_async_context_manager_closes_owned_client():
    async with SearchCoordinator(poll_interval=POLL_INTERVAL) as coordinator:
        assert coordinator.status is SearchStatus.IDLE
        http_client = coordinator._client._client

    assert http_client.is_closed


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(make_coordinator):
    coordinator = make_coordinator(lambda request: submitted("s1"))
    states = []
    unsubscribe = coordinator.subscribe(states.append)

    coordinator.reset()
    unsubscribe()
    coordinator.reset()

    assert len(states) == 1
