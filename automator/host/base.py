"""Host operation transport and the binding base class."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Protocol, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M")


class HostError(Exception):
    """Base class for failures reported by the host runtime."""


class HostCallError(HostError):
    """A single host operation failed (transport error or host-side error)."""

    def __init__(self, op: str, detail: str) -> None:
        super().__init__(f"{op}: {detail}")
        self.op = op
        self.detail = detail


class HostResponseError(HostError):
    """A host operation answered with a payload of the wrong shape."""

    def __init__(self, op: str, detail: str) -> None:
        super().__init__(f"{op}: unexpected response: {detail}")
        self.op = op


class MissingCapabilityError(HostError):
    """One or more capability namespaces are not provided by the host."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__("required capability missing: " + ", ".join(missing))
        self.missing = missing


class HostOperations(Protocol):
    """Protocol for the host automation runtime."""

    async def call(self, op: str, *args: str | None) -> str: ...

    async def available_operations(self) -> set[str]: ...


class HttpHost:
    """Invokes host operations over the runtime's local HTTP bridge.

    ``POST /ops/<op>`` with ``{"args": [...]}`` runs one operation and answers
    with its string result; ``GET /ops`` lists the operation ids.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def call(self, op: str, *args: str | None) -> str:
        logger.debug("host call", extra={"op": op, "arg_count": len(args)})
        try:
            resp = await self._client.post(f"/ops/{op}", json={"args": list(args)})
        except httpx.HTTPError as exc:
            raise HostCallError(op, str(exc) or type(exc).__name__) from exc
        if resp.status_code >= 400:
            raise HostCallError(op, f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.text

    async def available_operations(self) -> set[str]:
        try:
            resp = await self._client.get("/ops")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise HostCallError("ops", str(exc) or type(exc).__name__) from exc
        return set(resp.json())

    async def aclose(self) -> None:
        await self._client.aclose()


def stringify_arg(value: Any) -> str | None:
    """Convert a binding argument to the string form host operations take."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, ensure_ascii=False)


async def ensure_capabilities(host: HostOperations, namespaces: Iterable[str]) -> None:
    """Raise MissingCapabilityError unless every namespace has an operation."""
    available = await host.available_operations()
    provided = {op.split(".", 1)[0] for op in available}
    missing = [ns for ns in namespaces if ns not in provided]
    if missing:
        raise MissingCapabilityError(missing)


class CapabilityBinding:
    """Forwards calls to ``<namespace>.<operation>`` on the host."""

    namespace: str = ""

    def __init__(self, host: HostOperations) -> None:
        self._host = host

    async def _call(self, name: str, *args: Any) -> str:
        return await self._host.call(
            f"{self.namespace}.{name}", *(stringify_arg(a) for a in args)
        )

    async def _call_json(self, name: str, shape: type[M], *args: Any) -> M:
        raw = await self._call(name, *args)
        try:
            return TypeAdapter(shape).validate_json(raw)
        except ValidationError as exc:
            raise HostResponseError(
                f"{self.namespace}.{name}", f"{exc.error_count()} validation error(s)"
            ) from exc
