# core/transport.py

"""
Boundary to the remote service, plus an HTTP implementation over `requests`.

The engine only depends on the `Transport` protocol. `HttpTransport` maps the
canonical requests onto each record kind's `EndpointShape` and maps HTTP failures
onto the entry error taxonomy:
    - 409, or an error body with `"error": "OVERRIDE_REQUIRED"` -> `OverrideRequiredError`
    - any other non-2xx status, connection error, or timeout -> `TransportError`
    - a 2xx body that does not match the pinned schema -> `ResponseSchemaError`
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

import requests

from core.config import EntrySettings, get_settings
from core.exceptions import (
    OverrideRequiredError,
    ResponseSchemaError,
    TransportError,
    UnsupportedOperationError,
)
from core.schemas import (
    BulkSubmitRequest,
    BulkSubmitResponse,
    RosterResponse,
    UpdateRecordResponse,
)
from core.utils import wire_value
from models.context import Context
from models.record_kind import RecordKind

logger = logging.getLogger(__name__)

OVERRIDE_REQUIRED_CODE = "OVERRIDE_REQUIRED"


class Transport(Protocol):

    def fetch_roster(self, kind: RecordKind, context: Context) -> RosterResponse: ...

    def submit_bulk(
        self, kind: RecordKind, request: BulkSubmitRequest
    ) -> BulkSubmitResponse: ...

    def update_record(
        self,
        kind: RecordKind,
        record_id: str,
        status: Enum,
        remark: str | None = None,
        value: float | None = None,
    ) -> UpdateRecordResponse: ...


class HttpTransport:
    """
    `Transport` over a `requests.Session`.

    Args:
        settings (EntrySettings | None): Base URL, bearer token, and timeout. Defaults to
            the environment settings.
        session (requests.Session | None): A preconfigured session, e.g. one that already
            attaches auth headers.
    """

    def __init__(
        self,
        settings: EntrySettings | None = None,
        session: requests.Session | None = None,
    ):
        self._settings = settings or get_settings()
        self._session = session or requests.Session()

        if self._settings.api_token:
            self._session.headers["Authorization"] = f"Bearer {self._settings.api_token}"

    @property
    def settings(self) -> EntrySettings:
        return self._settings

    # === transport operations ===

    def fetch_roster(self, kind: RecordKind, context: Context) -> RosterResponse:
        shape = kind.endpoints
        params = {
            wire_name: wire_value(getattr(context, attr))
            for wire_name, attr in shape.roster_params
            if getattr(context, attr) is not None
        }

        body = self._request(
            "GET", shape.roster_path.format(**context.to_dict()), params=params
        )

        return RosterResponse.parse_body(body)

    def submit_bulk(
        self, kind: RecordKind, request: BulkSubmitRequest
    ) -> BulkSubmitResponse:
        shape = kind.endpoints
        fields = request.model_dump()
        body: dict[str, Any] = {}

        for wire_name, attr in shape.context_fields:
            if fields[attr] is not None:
                body[wire_name] = wire_value(fields[attr])

        if shape.override_field:
            body[shape.override_field] = request.allow_override

        entry_extras = {
            wire_name: wire_value(fields[attr])
            for wire_name, attr in shape.entry_context_fields
            if fields[attr] is not None
        }

        entries = []

        for entry in request.entries:
            wire_entry = {
                shape.entity_field: entry.entity_id,
                shape.status_field: entry.status,
                **entry_extras,
            }

            if shape.value_field and entry.value is not None:
                wire_entry[shape.value_field] = entry.value

            if shape.remark_field and entry.remark is not None:
                wire_entry[shape.remark_field] = entry.remark

            entries.append(wire_entry)

        body["entries"] = entries

        response_body = self._request(
            "POST", shape.submit_path.format(**fields), json=body
        )

        return BulkSubmitResponse.from_wire(response_body, shape.count_field)

    def update_record(
        self,
        kind: RecordKind,
        record_id: str,
        status: Enum,
        remark: str | None = None,
        value: float | None = None,
    ) -> UpdateRecordResponse:
        shape = kind.endpoints

        if shape.update_path is None:
            raise UnsupportedOperationError(
                f"{kind} records cannot be updated individually."
            )

        body: dict[str, Any] = {shape.status_field: wire_value(status)}

        if shape.remark_field and remark is not None:
            body[shape.remark_field] = remark

        if shape.value_field and value is not None:
            body[shape.value_field] = value

        response_body = self._request(
            "PATCH", shape.update_path.format(record_id=record_id), json=body
        )

        return UpdateRecordResponse.parse_body(response_body)

    # === helper methods ===

    def _url(self, path: str) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> dict:
        url = self._url(path)
        logger.debug("%s %s", method, url)

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self._settings.request_timeout,
            )

        except requests.Timeout as e:
            raise TransportError(f"{method} {path} timed out: {e}") from e

        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()

        except ValueError:
            body = None

        if not response.ok:
            error_body = body if isinstance(body, dict) else {}
            message = error_body.get("message") or response.reason

            if (
                response.status_code == 409
                or error_body.get("error") == OVERRIDE_REQUIRED_CODE
            ):
                logger.warning("%s %s rejected: override required", method, path)
                raise OverrideRequiredError(message, from_server=True)

            logger.warning(
                "%s %s failed with status %s: %s", method, path, response.status_code, message
            )
            raise TransportError(
                f"{method} {path} failed with status {response.status_code}: {message}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise ResponseSchemaError(
                f"{method} {path} returned a non-object body; expected a JSON object."
            )

        return body
