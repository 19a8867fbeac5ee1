"""ShopifyClient - Admin REST API for blogs, articles and files."""

from __future__ import annotations

import base64
import logging
import re
import time
from typing import Any

import httpx
from bs4 import BeautifulSoup

from blogpilot.logging import sanitize_for_log
from blogpilot.shopify.exceptions import BlogNotFoundError, ShopifyAuthError, ShopifyError
from blogpilot.shopify.models import Article, Blog, ShopifyCredentials

logger = logging.getLogger(__name__)

API_VERSION = "2024-07"
UNTITLED = "Untitled Post"

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


def slugify(text: str) -> str:
    """Lowercase text with every non-alphanumeric character replaced by '-'."""
    return re.sub(r"[^a-z0-9]", "-", text.lower())


def image_extension(content_type: str) -> str:
    """File extension for an image MIME type (jpg when unknown)."""
    return IMAGE_EXTENSIONS.get(content_type.split(";")[0].strip().lower(), "jpg")


def split_title(html: str) -> tuple[str, str, dict[str, str] | None]:
    """Pull the first <h1> out of html.

    Returns:
        (title, body without the h1, first image as {"src", "alt"} or None)
    """
    soup = BeautifulSoup(html, "html.parser")
    h1 = soup.find("h1")
    title = h1.get_text(strip=True) if h1 is not None else ""
    if h1 is not None:
        h1.decompose()
    image = None
    img = soup.find("img")
    if img is not None and img.get("src"):
        image = {"src": str(img["src"]), "alt": str(img.get("alt", ""))}
    return title or UNTITLED, str(soup), image


class ShopifyClient:
    """Async client for one store's Admin REST API.

    Credentials are bound at construction; every request carries the
    ``X-Shopify-Access-Token`` header.
    """

    def __init__(
        self,
        credentials: ShopifyCredentials,
        api_version: str = API_VERSION,
        author: str = "BlogPilot AI Writer",
        default_blog_title: str = "Blog",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Store name and admin access token.
            api_version: Admin API version segment.
            author: Author name set on created articles.
            default_blog_title: Title of the blog created when none exist.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.credentials = credentials
        self.api_version = api_version
        self.author = author
        self.default_blog_title = default_blog_title
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._download_client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return f"https://{self.credentials.store_name}.myshopify.com/admin/api/{self.api_version}"

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the authenticated HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "X-Shopify-Access-Token": self.credentials.access_token,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    @property
    def download_client(self) -> httpx.AsyncClient:
        """Unauthenticated client for fetching third-party image URLs."""
        if self._download_client is None:
            self._download_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._download_client

    async def aclose(self) -> None:
        """Close the HTTP clients."""
        for client in (self._client, self._download_client):
            if client is not None:
                await client.aclose()
        self._client = None
        self._download_client = None

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send an Admin API request.

        Raises:
            ShopifyAuthError: If credentials are missing or rejected.
            ShopifyError: On transport failure or any other non-2xx status.
        """
        if not self.credentials.store_name or not self.credentials.access_token:
            raise ShopifyAuthError("Shopify store name and access token are required.")

        logger.debug("Shopify %s %s", method, path)
        try:
            response = await self.client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise ShopifyError(f"Failed to communicate with Shopify: {e}") from e

        if response.status_code in (401, 403):
            raise ShopifyAuthError(
                f"Shopify rejected credentials ({response.status_code}) "
                f"for store {self.credentials.store_name}"
            )
        if not response.is_success:
            raise ShopifyError(
                f"Shopify API Error ({response.status_code}): "
                f"{sanitize_for_log(response.text[:500])}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ShopifyError(f"Shopify returned a non-JSON body for {path}") from e
        if not isinstance(data, dict):
            raise ShopifyError(f"Unexpected Shopify response for {path}: {type(data).__name__}")
        return data

    async def list_blogs(self) -> list[Blog]:
        """List the store's blogs, creating a default blog if there are none.

        Raises:
            BlogNotFoundError: If the store has no blog and creation fails.
        """
        data = await self._request("GET", "blogs.json")
        blogs = [
            Blog(id=int(b["id"]), title=str(b.get("title", "")), handle=str(b.get("handle", "")))
            for b in data.get("blogs") or []
        ]
        if blogs:
            return blogs

        logger.info("No blogs found, creating default blog '%s'", self.default_blog_title)
        try:
            return [await self.create_blog(self.default_blog_title)]
        except ShopifyError as e:
            raise BlogNotFoundError(
                "No blogs found and unable to create one. Create a blog in the Shopify admin first."
            ) from e

    async def create_blog(self, title: str, handle: str | None = None) -> Blog:
        """Create a blog."""
        payload = {"blog": {"title": title, "handle": handle or slugify(title)}}
        data = await self._request("POST", "blogs.json", payload)
        blog = data["blog"]
        return Blog(id=int(blog["id"]), title=str(blog.get("title", title)), handle=str(blog.get("handle", "")))

    async def create_article(
        self,
        blog_id: int,
        html: str,
        meta_title: str | None = None,
        meta_description: str | None = None,
    ) -> Article:
        """Publish an article.

        The first <h1> becomes the article title and is removed from the
        body. The first <img> is uploaded and attached as featured image.
        """
        title, body, first_image = split_title(html)

        featured_url = None
        if first_image is not None:
            featured_url = await self.upload_file(
                first_image["src"],
                f"featured-{slugify(title)}",
                first_image["alt"] or title,
            )

        metafields = []
        if meta_title:
            metafields.append(
                {
                    "key": "title_tag",
                    "namespace": "global",
                    "value": meta_title,
                    "type": "single_line_text_field",
                }
            )
        if meta_description:
            metafields.append(
                {
                    "key": "description_tag",
                    "namespace": "global",
                    "value": meta_description,
                    "type": "single_line_text_field",
                }
            )

        article: dict[str, Any] = {
            "title": title,
            "author": self.author,
            "body_html": body,
            "published": True,
        }
        if featured_url:
            article["image"] = {"src": featured_url, "alt": title}
        if metafields:
            article["metafields"] = metafields

        logger.info("Creating article '%s' (featured image: %s)", title, bool(featured_url))
        data = await self._request("POST", f"blogs/{blog_id}/articles.json", {"article": article})
        created = data["article"]
        return Article(
            id=int(created["id"]),
            blog_id=blog_id,
            title=str(created.get("title", title)),
            featured_image_url=featured_url,
        )

    async def upload_file(
        self,
        source_url: str,
        filename: str = "blog-image",
        alt_text: str = "Blog image",
    ) -> str:
        """Re-host an image on the store's file CDN.

        Never raises: any failure returns ``source_url`` unchanged.
        """
        if not self.credentials.is_configured:
            logger.warning("Shopify credentials not configured, keeping original image URL")
            return source_url

        try:
            image = await self.download_client.get(source_url)
            image.raise_for_status()
            content_type = image.headers.get("content-type", "image/jpeg")
            unique_name = f"{slugify(filename)}-{int(time.time() * 1000)}.{image_extension(content_type)}"
            payload = {
                "file": {
                    "filename": unique_name,
                    "attachment": base64.b64encode(image.content).decode("ascii"),
                    "content_type": content_type.split(";")[0],
                    "alt": alt_text,
                }
            }
            data = await self._request("POST", "files.json", payload)
        except (httpx.HTTPError, ShopifyError) as e:
            logger.warning("Image upload failed, keeping original URL: %s", e)
            return source_url

        uploaded = data.get("file")
        if not isinstance(uploaded, dict) or not uploaded:
            logger.warning("Unexpected upload response, keeping original URL")
            return source_url
        hosted = uploaded.get("public_url") or uploaded.get("url")
        if hosted:
            return str(hosted)
        return f"https://cdn.shopify.com/s/files/1/0000/0000/0000/files/{unique_name}"
