"""Link lifecycle: creating, storing and resolving short links."""

import logging
import os
import uuid
from typing import Dict, List, Optional, Sequence, Union

from .shortcode import ShortCodeGenerator
from .models import Link
from .errors import LinkDecodingFailure, LinkNotFound, ShortCodeExhausted
from .database.base import LinkStoreBase
from .database.sqlite import SQLiteLinkStore
from .database.cache import RedisCache
from .database.codec import encode_link, decode_link
from .common.validators import normalize_url, encode_aliases


class LinkManager:
    """Creates link records, persists them under their short code and resolves them.

    The manager holds no mutable state besides the store handle (and the
    optional cache), so one instance can be shared by any number of tasks.
    """

    def __init__(
        self,
        store: LinkStoreBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
    ):
        """Initialize link manager.

        Args:
            store: Open link store
            cache: Optional record cache
            short_code_generator: Optional short code generator
            logger: Optional logger
            max_collision_retries: Short code attempts per link before giving up
        """
        if max_collision_retries < 1:
            raise ValueError("max_collision_retries must be at least 1")

        self.store = store
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.max_collision_retries = max_collision_retries

    @classmethod
    async def create(
        cls,
        store_path: Optional[Union[str, os.PathLike]] = None,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
    ) -> "LinkManager":
        """Open a store and build a manager on top of it.

        Args:
            store_path: Store directory; a temporary one is used if omitted
            cache: Optional record cache
            short_code_generator: Optional short code generator
            logger: Optional logger
            max_collision_retries: Short code attempts per link before giving up

        Returns:
            Link manager

        Raises:
            StoreOpenFailure: If the store cannot be opened
        """
        logger = logger or logging.getLogger(__name__)
        store = await SQLiteLinkStore.open(store_path, logger=logger)

        logger.info(f"Link manager ready, store directory: {store.location}")

        return cls(
            store=store,
            cache=cache,
            short_code_generator=short_code_generator,
            logger=logger,
            max_collision_retries=max_collision_retries,
        )

    async def generate_link(
        self,
        raw_link: str,
        aliases: Optional[Sequence[str]] = None,
    ) -> Link:
        """Create and store a new short link.

        Args:
            raw_link: The URL to shorten
            aliases: Optional alternate names, percent-encoded before storing

        Returns:
            The stored link record

        Raises:
            InvalidLink: If the URL or an alias is invalid
            LinkEncodingFailure: If the record cannot be serialized
            StoreAccessFailure: If the store fails
            ShortCodeExhausted: If every short code attempt collided
        """
        original_url = normalize_url(raw_link)
        identifier = uuid.uuid4()
        encoded_aliases = encode_aliases(aliases)

        for attempt, short_code in enumerate(
            self.generator.candidates(identifier, self.max_collision_retries), start=1
        ):
            link = Link(
                identifier=identifier,
                original_url=original_url,
                short_code=short_code,
                aliases=encoded_aliases,
            )
            payload = encode_link(link)

            if await self.store.insert_if_absent(link.storage_key, payload):
                if self.cache:
                    await self.cache.set(short_code, payload)
                self.logger.info(f"Created short link: {short_code} -> {original_url}")
                return link

            self.logger.debug(f"Short code collision on attempt {attempt}: {short_code}")

        self.logger.error(f"Gave up generating a short code for {original_url}")
        raise ShortCodeExhausted(self.max_collision_retries)

    async def resolve_link(self, short_code: str) -> Link:
        """Find a link by its short code.

        Args:
            short_code: The short code to look up

        Returns:
            The stored link record

        Raises:
            LinkNotFound: If nothing is stored under the short code
            LinkDecodingFailure: If the stored bytes are not a valid record
            StoreAccessFailure: If the store fails
        """
        key = self._storage_key(short_code)
        if key is None:
            self.logger.debug(f"Short code is not valid UTF-8: {short_code!r}")
            raise LinkNotFound(short_code)

        if self.cache:
            cached = await self.cache.get(short_code)
            if cached is not None:
                try:
                    link = self._decode(short_code, cached)
                    self.logger.debug(f"Cache hit for {short_code}")
                    return link
                except LinkDecodingFailure as e:
                    self.logger.error(f"Dropping corrupt cache entry for {short_code}: {e}")
                    await self.cache.delete(short_code)

        payload = await self.store.get(key)
        if payload is None:
            self.logger.debug(f"Short code not found: {short_code}")
            raise LinkNotFound(short_code)

        link = self._decode(short_code, payload)

        if self.cache:
            await self.cache.set(short_code, payload)

        self.logger.debug(f"Resolved link: {short_code} -> {link.original_url}")
        return link

    async def link_exists(self, short_code: str) -> bool:
        """Check if a short code is taken.

        Args:
            short_code: The short code to check

        Returns:
            True if exists
        """
        key = self._storage_key(short_code)
        if key is None:
            return False
        return await self.store.contains(key)

    async def list_links(
        self,
        limit: int = 100,
        start_after: Optional[str] = None,
    ) -> List[Link]:
        """List links ordered by short code.

        The page is all-or-nothing: one corrupt record, or a key that is not
        valid UTF-8 and so cannot be a short code, fails the whole call with
        ``LinkDecodingFailure``. Pages never silently shrink.

        Args:
            limit: Maximum number to return
            start_after: Only return short codes after this one (for paging)

        Returns:
            List of link records

        Raises:
            LinkDecodingFailure: If a record in the page is not a valid record
            StoreAccessFailure: If the store fails
        """
        start_key = None
        if start_after is not None:
            # Keys are compared as bytes; lone surrogates still have a place in that order
            start_key = start_after.encode("utf-8", "surrogatepass")
        entries = await self.store.scan(limit=limit, start_after=start_key)
        return [self._decode(key.decode("utf-8", "replace"), value) for key, value in entries]

    async def count_links(self) -> int:
        """Count stored links."""
        return await self.store.count()

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        store_healthy = await self.store.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "store": store_healthy,
            "cache": cache_healthy,
            "overall": store_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Close store and cache connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()

    @staticmethod
    def _storage_key(short_code: str) -> Optional[bytes]:
        # Codes that cannot be encoded were never stored
        try:
            return short_code.encode("utf-8")
        except UnicodeEncodeError:
            return None

    @staticmethod
    def _decode(short_code: str, payload: bytes) -> Link:
        link = decode_link(payload)
        if link.short_code != short_code:
            raise LinkDecodingFailure(
                f"record stored under {short_code!r} carries short code {link.short_code!r}"
            )
        return link
