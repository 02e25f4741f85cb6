import httpx
import pytest

from mycircle.domain.chat.safety import (
    ChainedSafetyChecker,
    ProfanityFilter,
    RemoteSafetyChecker,
    build_checker,
)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["hello there", "first class seats", "Shell script", "assignment due"])
async def test_profanity_filter_ignores_embedded_words(text):
    verdict = await ProfanityFilter().check(text)
    assert verdict.safe


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["what the hell", "You IDIOT!", "stop the harass"])
async def test_profanity_filter_flags_whole_words(text):
    verdict = await ProfanityFilter().check(text)
    assert not verdict.safe
    assert verdict.reason == "inappropriate language"


def _remote(handler) -> RemoteSafetyChecker:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteSafetyChecker("https://moderation.test/check", client=client)


@pytest.mark.asyncio
async def test_remote_checker_reports_unsafe_reason():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.read())
        return httpx.Response(200, json={"safe": False, "reason": "spam"})

    verdict = await _remote(handler).check("buy now")

    assert not verdict.safe
    assert verdict.reason == "spam"
    assert b"buy now" in seen[0]


@pytest.mark.asyncio
async def test_remote_checker_fails_open_on_server_error():
    verdict = await _remote(lambda request: httpx.Response(503)).check("anything")
    assert verdict.safe


@pytest.mark.asyncio
async def test_remote_checker_fails_open_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    verdict = await _remote(handler).check("anything")
    assert verdict.safe


@pytest.mark.asyncio
async def test_remote_checker_fails_open_on_malformed_body():
    verdict = await _remote(lambda request: httpx.Response(200, content=b"not json")).check("anything")
    assert verdict.safe


@pytest.mark.asyncio
async def test_chain_stops_at_first_unsafe_verdict():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"safe": True})

    chain = ChainedSafetyChecker([ProfanityFilter(), _remote(handler)])

    assert not (await chain.check("damn it")).safe
    assert calls == []
    assert (await chain.check("fine message")).safe
    assert len(calls) == 1


def test_build_checker_without_endpoint_uses_local_filter_only():
    checker = build_checker(None)
    assert isinstance(checker, ChainedSafetyChecker)
