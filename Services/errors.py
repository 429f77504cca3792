class ConversionError(Exception):
    """Top-level conversion failure. Never raised for malformed-but-valid nodes."""


class InvalidDocumentError(ConversionError):
    """The document root is structurally unusable (no child list at all)."""


class FigmaApiError(ConversionError):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"Figma API error ({status_code}): {message}")
        self.status_code = status_code

    @property
    def hint(self) -> str:
        if self.status_code == 404:
            return "Check the file key and ensure your token user can access the file."
        if self.status_code in (401, 403):
            return "Verify FIGMA_TOKEN is set and has file_content:read scope."
        if self.status_code == 429:
            return "Hit a rate limit. Try again in a minute; the cache will reduce calls next time."
        return "See server logs for details."
