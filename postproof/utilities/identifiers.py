"""
Normalizes Bluesky post references into the canonical getPosts API URL.

Accepted forms:
    A. https://public.api.bsky.app/... or https://api.bsky.app/...   (returned as-is)
       or any URL under the resolver's own api_base_url
    B. at://<did-or-handle>/<collection>/<record-key>
    C. https://bsky.app/profile/<handle>/post/<record-key>[/...]      (one handle lookup)
"""
from typing import Optional
from urllib.parse import urlsplit

import httpx
from loguru import logger

import postproof.configuration.constants as global_constants
from postproof.utilities.exceptions import FetchFailed, InvalidIdentifierFormat, ResolutionFailed

# '' / profile / handle / post / rkey
MIN_WEB_URL_SEGMENTS = 5

def is_api_url(post_reference: str, api_base_url: Optional[str] = None) -> bool:
    """True for the public Bluesky API hosts, and for api_base_url when one is configured"""
    prefixes = global_constants.BSKY_API_PREFIXES
    if api_base_url:
        prefixes += (f"{api_base_url.rstrip('/')}/",)
    return post_reference.startswith(prefixes)

def is_at_uri(post_reference: str) -> bool:
    if not post_reference.startswith(global_constants.AT_URI_SCHEME):
        return False
    parts = post_reference[len(global_constants.AT_URI_SCHEME):].split('/')
    return len(parts) >= 3 and all(parts[:3])

def build_at_uri(did: str, record_key: str) -> str:
    return f"{global_constants.AT_URI_SCHEME}{did}/{global_constants.BSKY_POST_COLLECTION}/{record_key}"

def parse_web_url(post_reference: str) -> Optional[tuple[str, str]]:
    """Return (handle, record_key) for a bsky.app profile post URL, or None if it is not one"""
    if not post_reference.startswith(global_constants.BSKY_WEB_PROFILE_PREFIX):
        return None
    # query and fragment are not part of the record key
    parts = urlsplit(post_reference).path.split('/')
    if len(parts) < MIN_WEB_URL_SEGMENTS:
        return None
    handle, marker, record_key = parts[2], parts[3], parts[4]
    if not handle or marker != 'post' or not record_key:
        return None
    return handle, record_key

class PostIdentifierResolver:
    """Resolves post references to canonical API URLs and measures the fetched resource"""

    def __init__(self, http_client: httpx.AsyncClient, api_base_url: str = global_constants.BSKY_PUBLIC_API_URL):
        self.http_client = http_client
        self.api_base_url = api_base_url.rstrip('/')

    def api_url_for_at_uri(self, at_uri: str) -> str:
        """Form B rule: the AT-URI is inserted verbatim as the uris parameter"""
        if not is_at_uri(at_uri):
            raise InvalidIdentifierFormat(at_uri)
        return f"{self.api_base_url}{global_constants.GET_POSTS_PATH}?uris={at_uri}"

    async def to_at_uri(self, post_reference: str) -> str:
        """Rewrite a Form C web URL into its Form B AT-URI (performs the handle lookup)"""
        parsed = parse_web_url(post_reference)
        if parsed is None:
            raise InvalidIdentifierFormat(post_reference)
        handle, record_key = parsed
        did = await self.resolve_handle(handle)
        return build_at_uri(did, record_key)

    async def resolve(self, post_reference: str) -> str:
        """
        Normalize a post reference into the canonical getPosts API URL.

        Args:
            post_reference: API URL, AT-URI or bsky.app web URL

        Returns:
            str: canonical API URL

        Raises:
            InvalidIdentifierFormat: If the reference matches none of the accepted forms
            ResolutionFailed: If a web URL's handle cannot be resolved to a DID
        """
        if is_api_url(post_reference, self.api_base_url):
            return post_reference

        if post_reference.startswith(global_constants.AT_URI_SCHEME):
            return self.api_url_for_at_uri(post_reference)

        if parse_web_url(post_reference) is not None:
            at_uri = await self.to_at_uri(post_reference)
            api_url = self.api_url_for_at_uri(at_uri)
            logger.debug(f"PostIdentifierResolver.resolve: {post_reference} -> {api_url}")
            return api_url

        logger.error(f"PostIdentifierResolver.resolve: Unrecognized post reference {post_reference!r}")
        raise InvalidIdentifierFormat(post_reference)

    async def resolve_handle(self, handle: str) -> str:
        """Look up the DID behind a handle with com.atproto.identity.resolveHandle"""
        url = f"{self.api_base_url}{global_constants.RESOLVE_HANDLE_PATH}"
        try:
            response = await self.http_client.get(url, params={'handle': handle})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"PostIdentifierResolver.resolve_handle: Lookup for {handle} failed: {e}")
            raise ResolutionFailed(handle, e) from e

        did = data.get('did') if isinstance(data, dict) else None
        if not isinstance(did, str) or not did:
            logger.error(f"PostIdentifierResolver.resolve_handle: No DID in response for {handle}: {data}")
            raise ResolutionFailed(handle, "response did not contain a DID")

        logger.debug(f"PostIdentifierResolver.resolve_handle: {handle} -> {did}")
        return did

    async def probe_size(self, url: str) -> int:
        """Fetch url once and return the byte length of its body"""
        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"PostIdentifierResolver.probe_size: Failed to fetch {url}: {e}")
            raise FetchFailed(url, e) from e

        size = len(response.content)
        logger.debug(f"PostIdentifierResolver.probe_size: URL response size: {size} bytes")
        return size
