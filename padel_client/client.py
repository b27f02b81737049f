from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List
from urllib.parse import quote

import httpx

from padel_client.adapter import (
    adapt_racket,
    decode_similar_items,
    normalize_category,
    rackets_from_envelope,
)
from padel_client.cache import CacheStats, ResponseCache, ResponseCacheConfig, cache_key
from padel_client.config import ClientSettings
from padel_client.errors import (
    ApiFailure,
    ErrorKind,
    MalformedResponseError,
    PadelApiError,
    classify_exception,
    classify_response,
    error_for,
    log_failure,
)
from padel_client.models import ProbeResult, RacketRecord, SimilarRackets
from padel_client.signer import HmacSigner, serialize_body

LOGGER = logging.getLogger(__name__)

RACKETS_PATH = "/analysis/rackets"
TOP_RACKETS_PATH = "/analysis/top-rackets"
SEARCH_RACKETS_PATH = "/analysis/search-rackets"
SIMILAR_RACKETS_PATH = "/analysis/similar-rackets"
COMPARE_RACKETS_PATH = "/analysis/compare-rackets"
RACKET_PATH = "/analysis/racket/{racket_id}"

DEFAULT_SEARCH_LIMIT = 10

# Characters encodeURIComponent leaves alone.
_QUERY_SAFE = "-_.!~*'()"


def clean_params(params: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None}


def _format_query_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def encode_query(params: Mapping[str, Any]) -> str:
    """Sequences become one comma-joined value, never repeated keys."""
    parts: list[str] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            text = ",".join(_format_query_value(item) for item in value)
        else:
            text = _format_query_value(value)
        parts.append(f"{quote(str(key), safe=_QUERY_SAFE)}={quote(text, safe=_QUERY_SAFE)}")
    return "&".join(parts)


def _as_limit(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        LOGGER.warning("invalid limit %r; using %d", value, default)
        return default


def _is_empty_body(body: Any) -> bool:
    # Empty lists and objects are valid answers; null, false, 0 and "" are not.
    if body is None or body is False:
        return True
    if isinstance(body, (int, float)) and not isinstance(body, bool):
        return body == 0
    return body == ""


class PadelApiClient:
    """Signed, cached client for the racket analysis API.

    Construct once at startup and share the instance. GET bodies are
    cached per endpoint and query; POSTs are never cached. Every request
    is signed right before it is sent.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        cache: ResponseCache | None = None,
        signer: HmacSigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._cache = cache or ResponseCache(
            ResponseCacheConfig(default_ttl=self._settings.cache_ttl_seconds)
        )
        self._signer = signer or HmacSigner(self._settings.api_key, self._settings.api_secret)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.timeout_seconds,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )
        self._inflight: Dict[str, asyncio.Task[Any]] = {}

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def base_url(self) -> str:
        return str(self._client.base_url).rstrip("/")

    async def __aenter__(self) -> "PadelApiClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def get(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        use_cache: bool = True,
    ) -> Any:
        cleaned = clean_params(params)
        key = cache_key(endpoint, cleaned)

        if use_cache:
            cached = self._cache_lookup(key)
            if cached is not None:
                LOGGER.debug("cache hit %s", key)
                return cached

        if not (use_cache and self._settings.coalesce_gets):
            return await self._fetch_get(endpoint, cleaned, key, use_cache)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_get(endpoint, cleaned, key, use_cache))
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._forget_inflight(k, done))
        return await asyncio.shield(task)

    async def post(self, endpoint: str, body: Mapping[str, Any] | None = None) -> Any:
        cleaned = clean_params(body if isinstance(body, Mapping) else None)
        body_text = serialize_body(cleaned)
        headers = self._signer.sign(body_text).as_dict()
        return await self._send(
            "POST",
            endpoint,
            endpoint,
            headers=headers,
            content=body_text.encode("utf-8"),
        )

    async def _fetch_get(
        self,
        endpoint: str,
        cleaned: Dict[str, Any],
        key: str,
        use_cache: bool,
    ) -> Any:
        query = encode_query(cleaned)
        url = f"{endpoint}?{query}" if query else endpoint
        headers = self._signer.sign("").as_dict()
        body = await self._send("GET", endpoint, url, headers=headers)
        if use_cache:
            self._cache_store(key, body)
        return body

    async def _send(
        self,
        method: str,
        endpoint: str,
        url: str,
        *,
        headers: Dict[str, str],
        content: bytes | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, headers=headers, content=content)
        except PadelApiError:
            raise
        except Exception as exc:
            raise self._fail(classify_exception(exc, endpoint=endpoint)) from exc

        if not response.is_success:
            raise self._fail(
                classify_response(response.status_code, self._decode_error_body(response), endpoint=endpoint)
            )

        if not response.content:
            raise self._fail(self._malformed("empty API response", response.status_code, endpoint))
        try:
            body = response.json()
        except ValueError as exc:
            raise self._fail(
                self._malformed(f"response is not valid JSON: {exc}", response.status_code, endpoint)
            ) from exc
        if _is_empty_body(body):
            raise self._fail(self._malformed("empty API response", response.status_code, endpoint))
        return body

    def _fail(self, failure: ApiFailure) -> PadelApiError:
        log_failure(failure, api_key=self._signer.api_key, api_secret=self._signer.api_secret)
        return error_for(failure)

    @staticmethod
    def _malformed(message: str, status: int, endpoint: str) -> ApiFailure:
        return ApiFailure(kind=ErrorKind.MALFORMED_RESPONSE, status=status, message=message, endpoint=endpoint)

    @staticmethod
    def _decode_error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _cache_lookup(self, key: str) -> Any | None:
        try:
            return self._cache.get(key)
        except Exception as exc:
            LOGGER.warning("cache lookup failed for %s; treating as miss: %s", key, exc)
            return None

    def _cache_store(self, key: str, body: Any) -> None:
        try:
            self._cache.set(key, body)
        except Exception as exc:
            LOGGER.warning("cache store failed for %s: %s", key, exc)

    def _forget_inflight(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception as retrieved when every waiter went away.
            task.exception()

    # ------------------------------------------------------------------
    # Racket operations
    # ------------------------------------------------------------------

    async def list_rackets(self) -> List[RacketRecord]:
        try:
            body = await self.get(RACKETS_PATH)
        except MalformedResponseError:
            return []
        return rackets_from_envelope(body)

    async def get_top_rackets(self, attribute: Any, limit: Any = 3) -> List[RacketRecord]:
        valid_attribute = normalize_category(attribute)
        try:
            body = await self.get(
                TOP_RACKETS_PATH,
                {"attribute": valid_attribute.value, "limit": _as_limit(limit, 3)},
            )
        except MalformedResponseError:
            return []
        return rackets_from_envelope(body)

    async def search_rackets(
        self,
        query: Any,
        filters: Mapping[str, Any] | None = None,
    ) -> List[RacketRecord]:
        extra = dict(filters or {})
        params: Dict[str, Any] = {
            "searchTerm": str(query or "").strip(),
            "limit": _as_limit(extra.pop("limit", None), DEFAULT_SEARCH_LIMIT),
        }
        params.update(extra)
        try:
            body = await self.get(SEARCH_RACKETS_PATH, params)
        except MalformedResponseError:
            return []
        return rackets_from_envelope(body)

    async def get_similar_rackets(self, racket_id: Any, limit: Any = 3) -> SimilarRackets:
        try:
            body = await self.get(
                SIMILAR_RACKETS_PATH,
                {"racketId": str(racket_id), "limit": _as_limit(limit, 3)},
            )
        except MalformedResponseError:
            return SimilarRackets()

        if not isinstance(body, Mapping):
            LOGGER.error("invalid similar-rackets response format: %r", body)
            return SimilarRackets()

        reference_raw = body.get("referenceRacket")
        reference = adapt_racket(reference_raw) if isinstance(reference_raw, Mapping) and reference_raw else None
        return SimilarRackets(
            reference_racket=reference,
            similar_rackets=decode_similar_items(body.get("similarRackets")),
        )

    async def compare_rackets(self, racket_ids: Any) -> List[RacketRecord]:
        if isinstance(racket_ids, Iterable) and not isinstance(racket_ids, (str, bytes, Mapping)):
            ids = list(racket_ids)
        else:
            ids = [racket_ids]
        try:
            body = await self.post(COMPARE_RACKETS_PATH, {"racketIds": [str(item) for item in ids]})
        except MalformedResponseError:
            return []
        return rackets_from_envelope(body)

    async def get_racket(self, racket_id: Any) -> RacketRecord | None:
        path = RACKET_PATH.format(racket_id=quote(str(racket_id), safe=""))
        try:
            body = await self.get(path)
        except MalformedResponseError:
            return None
        except PadelApiError as exc:
            LOGGER.error("failed to load racket id=%s: %s", racket_id, exc)
            raise

        if not isinstance(body, Mapping):
            LOGGER.error("invalid racket response format for id=%s: %r", racket_id, body)
            return None
        return adapt_racket(body)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    # ------------------------------------------------------------------
    # Connectivity probe
    # ------------------------------------------------------------------

    async def test_connection(self) -> ProbeResult:
        """Signed, uncached GET of the racket list with the short timeout."""
        base_url = self.base_url
        headers = self._signer.sign("").as_dict()
        try:
            response = await self._client.get(
                RACKETS_PATH,
                headers=headers,
                timeout=self._settings.probe_timeout_seconds,
            )
        except httpx.RequestError as exc:
            failure = classify_exception(exc, endpoint=RACKETS_PATH)
            LOGGER.error("API connection failed: %s", failure.message)
            if isinstance(exc, httpx.ConnectError):
                LOGGER.error("server not responding at %s; check the URL and that the API is reachable", base_url)
            return ProbeResult(ok=False, base_url=base_url, failure=failure)
        except Exception as exc:
            failure = classify_exception(exc, endpoint=RACKETS_PATH)
            LOGGER.error("API connection failed: %s", failure.message)
            return ProbeResult(ok=False, base_url=base_url, failure=failure)

        if not response.is_success:
            body = self._decode_error_body(response)
            LOGGER.warning("API reachable but returned non-2xx status=%s body=%r", response.status_code, body)
            failure = classify_response(response.status_code, body, endpoint=RACKETS_PATH)
            log_failure(failure, api_key=self._signer.api_key, api_secret=self._signer.api_secret)
            return ProbeResult(ok=False, base_url=base_url, status=response.status_code, failure=failure)

        count: int | None = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, list):
            count = len(body)
        elif isinstance(body, Mapping) and isinstance(body.get("rackets"), list):
            count = len(body["rackets"])

        LOGGER.info("API connection ok url=%s status=%s rackets=%s", base_url, response.status_code, count)
        return ProbeResult(ok=True, base_url=base_url, status=response.status_code, count=count)
