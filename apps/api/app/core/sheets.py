"""
Google Sheets I/O for the character sheet API.

Two calls only, one round trip each:
  batch_read(document_id, ranges)  -> spreadsheets.values.batchGet
  batch_write(document_id, writes) -> spreadsheets.values.batchUpdate

Notes:
- Authenticated with a service account. The key is taken from
  SERVICE_ACCOUNT_INFORMATION (inline JSON) first, then from the key file.
- Credentials are loaded once, lazily, so the app can start (and serve
  /health) without them. httplib2.Http is not thread-safe and sync routes
  run in a thread pool, so every call gets its own authorized Http and
  service.
- Range strings are opaque here; the field layout owns them.
"""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from oauth2client.service_account import ServiceAccountCredentials

from app.core import settings
from app.core.errors import CharacterNotFound, UpstreamIOFailure
from app.core.observability import emit

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"

CellBlock = List[List[str]]


@dataclass(frozen=True)
class CellWrite:
    range: str
    values: CellBlock


class SheetsIO(Protocol):
    """
    The only operations the transcoder facade depends on.
    Implementations raise CharacterNotFound / UpstreamIOFailure.
    """

    def batch_read(self, document_id: str, ranges: Sequence[str]) -> List[Optional[CellBlock]]:
        ...

    def batch_write(self, document_id: str, writes: Sequence[CellWrite]) -> int:
        ...


def _load_credentials() -> ServiceAccountCredentials:
    raw = settings.get_service_account_info()
    if raw:
        try:
            info = json.loads(raw)
            creds = ServiceAccountCredentials.from_json_keyfile_dict(info, SCOPES)
            emit("debug", "sheets.credentials", "parsed credentials from env variable", None, __name__)
            return creds
        except (ValueError, KeyError) as e:
            emit("warning", "sheets.credentials", f"env credentials unusable: {e}", None, __name__)

    path = settings.get_credentials_file()
    try:
        creds = ServiceAccountCredentials.from_json_keyfile_name(path, SCOPES)
    except (OSError, ValueError, KeyError) as e:
        raise UpstreamIOFailure("no usable service account credentials", {"credentials_file": path}) from e
    emit("debug", "sheets.credentials", f"parsed credentials from {path}", None, __name__)
    return creds


def _normalize_block(raw: Any) -> Optional[CellBlock]:
    if not raw:
        return None
    return [[str(cell) for cell in row] for row in raw]


class GoogleSheetsClient:
    def __init__(self, service: Any = None, credentials: Any = None) -> None:
        self._service = service
        self._credentials = credentials
        self._lock = threading.Lock()

    def _load_credentials_once(self):
        if self._credentials is None:
            with self._lock:
                if self._credentials is None:
                    self._credentials = _load_credentials()
        return self._credentials

    def _values(self):
        if self._service is not None:
            return self._service.spreadsheets().values()
        http_auth = self._load_credentials_once().authorize(httplib2.Http())
        service = build("sheets", "v4", http=http_auth, cache_discovery=False)
        return service.spreadsheets().values()

    def _raise_for(self, document_id: str, op: str, e: Exception) -> None:
        status = getattr(getattr(e, "resp", None), "status", None)
        if isinstance(e, HttpError) and int(status or 0) == 404:
            raise CharacterNotFound(f"spreadsheet not found: {document_id}", {"document_id": document_id}) from e
        emit("error", f"sheets.{op}.failed", str(e), None, __name__, document_id=document_id, status=status)
        raise UpstreamIOFailure(f"sheets {op} failed", {"document_id": document_id, "status": status}) from e

    def batch_read(self, document_id: str, ranges: Sequence[str]) -> List[Optional[CellBlock]]:
        try:
            resp = (
                self._values()
                .batchGet(spreadsheetId=document_id, ranges=list(ranges), majorDimension="ROWS")
                .execute()
            )
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            self._raise_for(document_id, "batch_read", e)

        value_ranges: List[Dict[str, Any]] = resp.get("valueRanges") or []
        if len(value_ranges) != len(ranges):
            raise UpstreamIOFailure(
                "sheets batch_read returned an unexpected number of ranges",
                {"document_id": document_id, "expected": len(ranges), "got": len(value_ranges)},
            )
        emit("debug", "sheets.batch_read", f"{len(ranges)} ranges", None, __name__, document_id=document_id)
        return [_normalize_block(vr.get("values")) for vr in value_ranges]

    def batch_write(self, document_id: str, writes: Sequence[CellWrite]) -> int:
        if not writes:
            return 0
        body = {
            "valueInputOption": VALUE_INPUT_OPTION,
            "data": [{"range": w.range, "majorDimension": "ROWS", "values": w.values} for w in writes],
        }
        try:
            resp = self._values().batchUpdate(spreadsheetId=document_id, body=body).execute()
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            self._raise_for(document_id, "batch_write", e)

        total = int(resp.get("totalUpdatedCells") or 0)
        emit("info", "sheets.batch_write", f"{total} cells updated", None, __name__, document_id=document_id)
        return total
