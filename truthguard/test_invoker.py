"""In-process / network fallback invocation tests"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from truthguard.core.errors import DownstreamUnavailable
from truthguard.core.invoker import (
    IN_PROCESS,
    NETWORK,
    AuthIdentity,
    Capability,
    CapabilityDescriptor,
    CapabilityResponse,
    DualModeInvoker,
    HttpCapability,
    InProcessCapability,
    RequestContext,
    StageResult,
)


DESCRIPTOR = CapabilityDescriptor(
    name="ai-news-detect-v2",
    stage="reclassify",
    handler=None,
    endpoint="/ai-news-detect/v2",
    header_overrides={"version": "v2"},
    failure_message="Error in final analysis",
    failure_advice="Please contact Backend Developer - Final AI call failed",
)

CONTEXT = RequestContext(auth_identity=AuthIdentity(token="user-token"), headers={"x-request-id": "abc"})


class StubCapability(Capability):
    def __init__(self, mode, response=None, error=None):
        super().__init__(DESCRIPTOR)
        self.mode = mode
        self.response = response
        self.error = error
        self.calls = []

    async def handle(self, payload, context):
        self.calls.append((payload, context))
        if self.error:
            raise self.error
        return self.response


def test_in_process_success_never_touches_network():
    local = StubCapability(IN_PROCESS, response=CapabilityResponse(200, {"status": True, "data": "query"}))
    remote = StubCapability(NETWORK, error=AssertionError("network must not be called"))
    invoker = DualModeInvoker(DESCRIPTOR, local=local, remote=remote)

    result = asyncio.run(invoker.invoke({"newsText": "x"}, CONTEXT))

    assert result.status is True
    assert result.data == "query"
    assert result.via == IN_PROCESS
    assert len(local.calls) == 1
    assert remote.calls == []


def test_network_answers_when_in_process_raises(caplog):
    local = StubCapability(IN_PROCESS, error=RuntimeError("handler exploded"))
    remote = StubCapability(NETWORK, response=CapabilityResponse(200, {"status": True, "data": {"final_verdict": "REAL"}}))
    invoker = DualModeInvoker(DESCRIPTOR, local=local, remote=remote)

    with caplog.at_level("ERROR"):
        result = asyncio.run(invoker.invoke({"newsText": "x"}, CONTEXT))

    assert result.via == NETWORK
    assert result.data == {"final_verdict": "REAL"}
    assert len(remote.calls) == 1
    assert "handler exploded" in caplog.text


def test_both_paths_failing_reports_the_in_process_error(caplog):
    local = StubCapability(IN_PROCESS, error=RuntimeError("in-process boom"))
    remote = StubCapability(NETWORK, error=ConnectionError("connection refused"))
    invoker = DualModeInvoker(DESCRIPTOR, local=local, remote=remote)

    with caplog.at_level("ERROR"):
        with pytest.raises(DownstreamUnavailable) as excinfo:
            asyncio.run(invoker.invoke({"newsText": "x"}, CONTEXT))

    err = excinfo.value
    assert err.error == "in-process boom"
    assert err.stage == "reclassify"
    assert err.status_code == 500
    assert err.to_envelope()["advice"] == "Please contact Backend Developer - Final AI call failed"
    # 네트워크 오류는 로그에만 남습니다.
    assert "connection refused" in caplog.text
    assert "connection refused" not in str(err.to_envelope())
    assert len(local.calls) == 1 and len(remote.calls) == 1


def test_status_false_is_a_result_not_a_failure():
    local = StubCapability(IN_PROCESS, response=CapabilityResponse(500, {"status": False, "message": "declined"}))
    remote = StubCapability(NETWORK, error=AssertionError("network must not be called"))

    result = asyncio.run(DualModeInvoker(DESCRIPTOR, local=local, remote=remote).invoke({}, CONTEXT))

    assert result.status is False
    assert result.status_code == 500
    assert result.body == {"status": False, "message": "declined"}
    assert remote.calls == []


def test_stage_result_is_built_verbatim():
    assert StageResult.from_response(CapabilityResponse(200, {"status": "yes", "data": 1}), NETWORK).status is False
    odd = StageResult.from_response(CapabilityResponse(200, ["a", "b"]), NETWORK)
    assert (odd.status, odd.data, odd.body) == (False, None, ["a", "b"])


def test_in_process_capability_builds_synthetic_request():
    seen = {}

    async def handler(request):
        seen["request"] = request
        return CapabilityResponse(200, {"status": True, "data": "ok"})

    descriptor = CapabilityDescriptor(name="search", stage="search", handler=handler, endpoint="/search",
                                      header_overrides={"version": "v1"})
    response = asyncio.run(InProcessCapability(descriptor).handle({"query": "q"}, CONTEXT))

    request = seen["request"]
    assert response.body == {"status": True, "data": "ok"}
    assert request.body == {"query": "q"}
    assert request.auth_identity.token == "user-token"
    assert request.headers == {"x-request-id": "abc", "version": "v1"}


def test_in_process_without_response_falls_back():
    async def silent_handler(request):
        return None

    descriptor = CapabilityDescriptor(name="search", stage="search", handler=silent_handler, endpoint="/search")
    remote = StubCapability(NETWORK, response=CapabilityResponse(200, {"status": True, "data": []}))

    result = asyncio.run(DualModeInvoker(descriptor, remote=remote).invoke({"query": "q"}, CONTEXT))

    assert result.via == NETWORK
    assert len(remote.calls) == 1


def test_http_capability_posts_json_with_bearer_and_overrides():
    async def scenario():
        seen = {}

        async def endpoint(request):
            seen["authorization"] = request.headers.get("Authorization")
            seen["content_type"] = request.headers.get("Content-Type")
            seen["version"] = request.headers.get("version")
            seen["body"] = await request.json()
            return web.json_response({"status": False, "message": "declined"}, status=500)

        app = web.Application()
        app.router.add_post("/ai-news-detect/v2", endpoint)
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            capability = HttpCapability(DESCRIPTOR, base_url=str(server.make_url("/")), timeout=5)
            response = await capability.handle({"newsText": "x", "newsLink": []}, CONTEXT)
        finally:
            await server.close()
        return seen, response

    seen, response = asyncio.run(scenario())

    assert seen["authorization"] == "Bearer user-token"
    assert seen["content_type"].startswith("application/json")
    assert seen["version"] == "v2"
    assert seen["body"] == {"newsText": "x", "newsLink": []}
    # HTTP 상태와 무관하게 JSON 본문을 그대로 돌려줍니다.
    assert response.status_code == 500
    assert response.body == {"status": False, "message": "declined"}


def test_http_capability_without_identity_sends_no_authorization():
    capability = HttpCapability(DESCRIPTOR, base_url="http://example.invalid")
    headers = capability.build_headers(RequestContext())
    assert "Authorization" not in headers
    assert headers["version"] == "v2"
