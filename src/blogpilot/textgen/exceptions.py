"""Custom exceptions for the text-generation client."""


class TextGenerationError(Exception):
    """Base exception for text-generation errors."""


class MissingAPIKeyError(TextGenerationError):
    """No API key configured for the model provider."""


class MalformedResponseError(TextGenerationError):
    """Model returned a body that could not be parsed."""
