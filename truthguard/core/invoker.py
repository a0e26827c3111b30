"""Dual-mode invocation of downstream capabilities.

Every downstream call of the verification pipeline goes through a
:class:`DualModeInvoker`. It first runs the capability's handler inside this
process and, only if that raises or yields nothing, calls the same capability
over HTTP. Each path is tried exactly once: no retry, no backoff.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

import aiohttp

from truthguard.core.errors import DownstreamUnavailable


IN_PROCESS = "in-process"
NETWORK = "network"


@dataclass(frozen=True)
class AuthIdentity:
    token: str
    subject: Optional[str] = None


@dataclass(frozen=True)
class RequestContext:
    auth_identity: Optional[AuthIdentity] = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass
class CapabilityRequest:
    """What an in-process handler receives instead of an HTTP request."""

    body: Dict[str, Any]
    auth_identity: Optional[AuthIdentity] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class CapabilityResponse:
    status_code: int
    body: Any


Handler = Callable[[CapabilityRequest], Awaitable[Optional[CapabilityResponse]]]


def bearer_token(identity: Optional[AuthIdentity]) -> Optional[str]:
    return identity.token if identity else None


@dataclass(frozen=True)
class CapabilityDescriptor:
    name: str
    stage: str
    handler: Optional[Handler]
    endpoint: str
    method: str = "POST"
    header_overrides: Mapping[str, str] = field(default_factory=dict)
    token_source: Callable[[Optional[AuthIdentity]], Optional[str]] = bearer_token
    failure_message: str = "Error in detecting news"
    failure_advice: str = "Please contact Backend Developer - API call failed"


@dataclass
class StageResult:
    status: bool
    data: Any
    body: Any
    status_code: Optional[int] = None
    via: str = IN_PROCESS

    @classmethod
    def from_response(cls, response: CapabilityResponse, via: str) -> "StageResult":
        # status/data are taken verbatim; anything that is not a dict carries neither
        body = response.body
        if isinstance(body, dict):
            return cls(body.get("status") is True, body.get("data"), body, response.status_code, via)
        return cls(False, None, body, response.status_code, via)


class CapabilityUnavailable(Exception):
    pass


class Capability:
    """A downstream operation reachable through one invocation mechanism."""

    mode = ""

    def __init__(self, descriptor: CapabilityDescriptor):
        self.descriptor = descriptor

    async def handle(self, payload: Dict[str, Any], context: RequestContext) -> CapabilityResponse:
        raise NotImplementedError


class InProcessCapability(Capability):
    mode = IN_PROCESS

    async def handle(self, payload: Dict[str, Any], context: RequestContext) -> CapabilityResponse:
        handler = self.descriptor.handler
        if handler is None:
            raise CapabilityUnavailable(f"{self.descriptor.name}: no in-process handler registered")

        request = CapabilityRequest(
            body=dict(payload),
            auth_identity=context.auth_identity,
            headers={**dict(context.headers), **dict(self.descriptor.header_overrides)},
        )
        response = await handler(request)
        if response is None:
            raise CapabilityUnavailable(f"{self.descriptor.name}: in-process handler returned no response")
        return response


def default_api_url() -> str:
    return os.environ.get("API_URL") or f"http://localhost:{os.environ.get('PORT', '8000')}"


class HttpCapability(Capability):
    mode = NETWORK

    def __init__(self, descriptor: CapabilityDescriptor, base_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        super().__init__(descriptor)
        self.base_url = (base_url or default_api_url()).rstrip("/")
        self.timeout = timeout or float(os.environ.get("CAPABILITY_HTTP_TIMEOUT", "60"))

    def build_headers(self, context: RequestContext) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.descriptor.token_source(context.auth_identity)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers.update(self.descriptor.header_overrides)
        return headers

    async def handle(self, payload: Dict[str, Any], context: RequestContext) -> CapabilityResponse:
        url = f"{self.base_url}{self.descriptor.endpoint}"
        headers = self.build_headers(context)
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.request(self.descriptor.method, url, json=payload, headers=headers) as resp:
                # the JSON body is returned whatever the HTTP status is
                body = await resp.json(content_type=None)
                return CapabilityResponse(resp.status, body)


class DualModeInvoker:
    """Try the in-process path, then the network path, once each."""

    def __init__(self, descriptor: CapabilityDescriptor, local: Optional[Capability] = None,
                 remote: Optional[Capability] = None):
        self.descriptor = descriptor
        self.paths: List[Capability] = [
            local or InProcessCapability(descriptor),
            remote or HttpCapability(descriptor),
        ]

    async def invoke(self, payload: Dict[str, Any], context: RequestContext) -> StageResult:
        name = self.descriptor.name
        failures: List[Tuple[str, Exception]] = []

        for path in self.paths:
            try:
                response = await path.handle(payload, context)
            except Exception as e:
                failures.append((path.mode, e))
                logging.error(f"❌ [{name}] {path.mode} 호출 실패: {e}")
                continue

            if failures:
                logging.info(f"↪️ [{name}] {path.mode} 폴백으로 응답 수신 (status_code={response.status_code})")
            return StageResult.from_response(response, path.mode)

        # the caller sees the first failure, later ones are only logged
        _, first_error = failures[0]
        logging.error(f"[{name}] 모든 호출 경로 실패: {[f'{mode}: {err}' for mode, err in failures]}")
        raise DownstreamUnavailable(
            self.descriptor.failure_message,
            stage=self.descriptor.stage,
            advice=self.descriptor.failure_advice,
            error=str(first_error),
        ) from first_error
