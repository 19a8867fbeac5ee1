"""Shopify - publishing collaborator (blogs, articles, files)."""

from blogpilot.shopify.client import API_VERSION, ShopifyClient, slugify, split_title
from blogpilot.shopify.exceptions import BlogNotFoundError, ShopifyAuthError, ShopifyError
from blogpilot.shopify.models import Article, Blog, ShopifyCredentials

__all__ = [
    "API_VERSION",
    "Article",
    "Blog",
    "BlogNotFoundError",
    "ShopifyAuthError",
    "ShopifyClient",
    "ShopifyCredentials",
    "ShopifyError",
    "slugify",
    "split_title",
]
