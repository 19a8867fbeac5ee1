"""Custom exceptions for the Shopify client."""


class ShopifyError(Exception):
    """Base exception for Shopify API errors."""


class ShopifyAuthError(ShopifyError):
    """Credentials missing or rejected by the store."""


class BlogNotFoundError(ShopifyError):
    """Store has no blog and one could not be created."""
