from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from app.core.cache import KeyValueCache, character_key, identity_key
from app.core.errors import CacheUnavailable, CharacterNotFound
from app.core.observability import emit
from app.core.sheets import SheetsIO

from . import composer
from .layout import FieldRegistry
from .schemas import Character, CharacterUpdateIn


class CharacterService:
    """
    Transcoder facade: one batch read per GET, one batch write per PUT.

    Collaborators are injected (registry, sheets, cache) so the service holds
    no global state and tests can swap any of them.
    """

    def __init__(
        self,
        registry: FieldRegistry,
        sheets: SheetsIO,
        cache: Optional[KeyValueCache],
        ttl_seconds: int,
        cache_enabled: bool = True,
        resolve_identity: bool = True,
    ) -> None:
        self.registry = registry
        self.sheets = sheets
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.cache_enabled = cache_enabled and cache is not None
        self.resolve_identity = resolve_identity

    # --- identity ---
    def resolve_document_id(self, key: str, request_id: Optional[str] = None) -> str:
        if not self.resolve_identity:
            return key
        if self.cache is None:
            raise CharacterNotFound(f"unknown character key: {key}", {"key": key})
        try:
            raw = self.cache.get(identity_key(key))
        except CacheUnavailable as e:
            # without the store no key can be resolved; reported as unknown
            emit("warning", "cache.unavailable", e.message, request_id, __name__, op="identity")
            raw = None
        if not raw:
            raise CharacterNotFound(f"unknown character key: {key}", {"key": key})
        return raw.decode("utf-8").strip()

    # --- character cache ---
    def _cached(self, key: str, request_id: Optional[str]) -> Optional[Character]:
        if not self.cache_enabled:
            return None
        try:
            raw = self.cache.get(character_key(key))
        except CacheUnavailable as e:
            emit("warning", "cache.unavailable", e.message, request_id, __name__, op="get")
            return None
        if raw is None:
            return None
        try:
            return Character.model_validate_json(raw)
        except ValidationError:
            emit("warning", "character.cache.invalid", "dropping unreadable cache entry", request_id, __name__)
            return None

    def _store(self, key: str, character: Character, request_id: Optional[str]) -> None:
        if not self.cache_enabled:
            return
        try:
            self.cache.set_with_ttl(character_key(key), character.model_dump_json().encode("utf-8"), self.ttl_seconds)
        except CacheUnavailable as e:
            emit("warning", "cache.unavailable", e.message, request_id, __name__, op="set")

    def _invalidate(self, key: str, request_id: Optional[str]) -> None:
        if not self.cache_enabled:
            return
        try:
            self.cache.delete(character_key(key))
        except CacheUnavailable as e:
            emit("warning", "cache.unavailable", e.message, request_id, __name__, op="delete")

    # --- operations ---
    def get_character(self, key: str, request_id: Optional[str] = None) -> Character:
        cached = self._cached(key, request_id)
        if cached is not None:
            emit("info", "character.cache.hit", f"character {key} served from cache", request_id, __name__)
            return cached

        document_id = self.resolve_document_id(key, request_id)
        blocks = self.sheets.batch_read(document_id, self.registry.read_ranges())
        character = composer.decode(self.registry, blocks)
        emit(
            "info",
            "character.read",
            f"character {key} read from sheet",
            request_id,
            __name__,
            ranges=len(blocks),
        )
        self._store(key, character, request_id)
        return character

    def update_character(self, key: str, payload: CharacterUpdateIn, request_id: Optional[str] = None) -> int:
        document_id = self.resolve_document_id(key, request_id)
        writes = composer.encode(self.registry, payload)
        updated = self.sheets.batch_write(document_id, writes)
        emit(
            "info",
            "character.update",
            f"character {key} updated",
            request_id,
            __name__,
            ranges=len(writes),
            updated_cells=updated,
        )
        self._invalidate(key, request_id)
        return updated
