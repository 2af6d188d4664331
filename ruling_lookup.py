"""
Ruling Lookup Module
Scryfall API client plus the fuzzy-name -> rulings lookup with autocomplete fallback
"""
import requests
import time
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
from config import settings
from models import (
    CardLookupError, LookupResult, NetworkError, NotFoundError, ParseError,
    rulings_from_api,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 1.0

class ScryfallClient:
    """Thin Scryfall API client that raises typed lookup errors"""

    def __init__(self, api_base: str = None, timeout: float = None,
                 rate_limit_delay: float = None, session: requests.Session = None):
        self.api_base = (api_base or settings.SCRYFALL_API_BASE).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT
        self.rate_limit_delay = (rate_limit_delay if rate_limit_delay is not None
                                 else settings.API_RATE_LIMIT_DELAY)
        self.max_retries = settings.API_MAX_RETRIES
        self.last_request_time = 0

        # Setup session with the headers Scryfall asks clients to send
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': settings.USER_AGENT,
            'Accept': 'application/json'
        })

        # Cache for recent named-card lookups
        self.api_cache = {}
        self.cache_max_size = settings.API_CACHE_SIZE

    def _rate_limit(self):
        """Enforce Scryfall API rate limiting (10 requests per second max)"""
        elapsed = time.time() - self.last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self.last_request_time = time.time()

    def _get_json(self, url: str, params: Dict = None) -> Any:
        """GET a JSON document, mapping failures onto the lookup error types"""
        for attempt in range(self.max_retries + 1):
            self._rate_limit()
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"Network error requesting {url}: {e}") from e

            if response.status_code == 429 and attempt < self.max_retries:
                retry_after = self._retry_after(response)
                logger.warning(f"Rate limit hit, waiting {retry_after} seconds")
                time.sleep(retry_after)
                continue
            break

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}", status_code=404)
        if response.status_code != 200:
            raise NetworkError(f"API error {response.status_code} for {url}",
                               status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Malformed JSON from {url}: {e}") from e

    def _retry_after(self, response) -> float:
        """Seconds to wait from a 429 Retry-After header (delta-seconds or HTTP-date)"""
        value = response.headers.get('Retry-After')
        if value is None:
            return DEFAULT_RETRY_AFTER
        try:
            return max(0.0, float(value))
        except ValueError:
            pass
        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.debug(f"Unparseable Retry-After header {value!r}")
            return DEFAULT_RETRY_AFTER
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)
        return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())

    def named_card(self, name: str) -> Dict:
        """Fuzzy name match via /cards/named"""
        cache_key = name.lower()
        if cache_key in self.api_cache:
            logger.debug(f"Cache hit for {name}")
            return self.api_cache[cache_key]

        logger.debug(f"API request for card: {name}")
        card_data = self._get_json(f"{self.api_base}/cards/named", params={'fuzzy': name})
        if not isinstance(card_data, dict):
            raise ParseError(f"Card payload for {name!r} is not an object")

        self._cache_result(cache_key, card_data)
        return card_data

    def card_rulings(self, rulings_uri: str) -> List:
        """Follow a card's rulings_uri and return its `data` list"""
        payload = self._get_json(rulings_uri)
        if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
            raise ParseError(f"Rulings payload from {rulings_uri} has no data list")
        return payload['data']

    def autocomplete(self, query: str) -> List:
        """Near-name suggestions via /cards/autocomplete"""
        payload = self._get_json(f"{self.api_base}/cards/autocomplete", params={'q': query})
        if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
            raise ParseError(f"Autocomplete payload for {query!r} has no data list")
        return payload['data']

    def _cache_result(self, key: str, result: Dict):
        """Cache API results with size management"""
        if len(self.api_cache) >= self.cache_max_size:
            # Remove oldest entries (simple FIFO)
            oldest_keys = list(self.api_cache.keys())[:max(1, self.cache_max_size // 10)]
            for old_key in oldest_keys:
                del self.api_cache[old_key]

        self.api_cache[key] = result

class RulingLookup:
    """Looks up rulings for a card name, offering suggestions when it is not found"""

    def __init__(self, client: ScryfallClient = None, max_suggestions: int = None):
        self.client = client or ScryfallClient()
        self.max_suggestions = (max_suggestions if max_suggestions is not None
                                else settings.MAX_SUGGESTIONS)

    def lookup(self, name: str) -> LookupResult:
        """
        Fetch rulings for `name`.
        Any failure on the fuzzy-match path falls back to autocomplete; the
        error kind is kept on the result as primary_failure.
        """
        query = (name or '').strip()
        if not query:
            logger.info("Empty card name, skipping lookup")
            return LookupResult.nothing(query=query)

        try:
            card = self.client.named_card(query)
            rulings_uri = card.get('rulings_uri')
            if not rulings_uri:
                raise NotFoundError(f"No rulings reference for {query!r}")

            rulings = rulings_from_api(self.client.card_rulings(rulings_uri))
            logger.info(f"Found {len(rulings)} rulings for {card.get('name', query)}")
            return LookupResult.with_rulings(query, rulings, card_name=card.get('name'))

        except CardLookupError as e:
            logger.info(f"Primary lookup failed for {query!r} ({e.kind}): {e}")
            primary_failure = e.kind
        except Exception as e:
            logger.warning(f"Unexpected error during primary lookup for {query!r}: {str(e)}")
            primary_failure = ParseError.kind

        return self._suggest(query, primary_failure)

    def _suggest(self, query: str, primary_failure: Optional[str]) -> LookupResult:
        """Autocomplete fallback, capped at max_suggestions names"""
        try:
            names = self.client.autocomplete(query)
        except CardLookupError as e:
            logger.warning(f"Autocomplete fallback failed for {query!r} ({e.kind}): {e}")
            return LookupResult.nothing(query=query, primary_failure=primary_failure,
                                        fallback_failure=e.kind)
        except Exception as e:
            logger.warning(f"Unexpected error during autocomplete for {query!r}: {str(e)}")
            return LookupResult.nothing(query=query, primary_failure=primary_failure,
                                        fallback_failure=ParseError.kind)

        suggestions = [n for n in names if isinstance(n, str) and n][:self.max_suggestions]
        if not suggestions:
            logger.info(f"No suggestions for {query!r}")
            return LookupResult.nothing(query=query, primary_failure=primary_failure)

        logger.info(f"Card not found: {query!r}, suggesting {suggestions}")
        return LookupResult.with_suggestions(query, suggestions, primary_failure=primary_failure)

def lookup_rulings(name: str) -> LookupResult:
    """Convenience wrapper using a default client"""
    return RulingLookup().lookup(name)
