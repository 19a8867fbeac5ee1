"""Data models for the Shopify client."""

from dataclasses import dataclass

PLACEHOLDER_TOKEN = "shpat_PLACEHOLDER_TOKEN"


@dataclass(frozen=True)
class ShopifyCredentials:
    """Admin API credentials for a single store.

    Attributes:
        store_name: Store subdomain (the part before .myshopify.com).
        access_token: Admin API access token.
    """

    store_name: str
    access_token: str

    @property
    def is_configured(self) -> bool:
        """True when both fields are set and the token is not a placeholder."""
        return bool(
            self.store_name
            and self.access_token
            and not self.access_token.startswith(PLACEHOLDER_TOKEN)
        )


@dataclass
class Blog:
    """A blog on the store."""

    id: int
    title: str
    handle: str = ""


@dataclass
class Article:
    """A published article.

    Attributes:
        id: Article id assigned by Shopify.
        blog_id: Blog the article belongs to.
        title: Article title.
        featured_image_url: Featured image, if one was attached.
    """

    id: int
    blog_id: int
    title: str
    featured_image_url: str | None = None
