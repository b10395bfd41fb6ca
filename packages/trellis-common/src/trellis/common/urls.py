def is_relative_url(url: str) -> bool:
    """A URL is relative when it carries no host part (no ``scheme://`` and no ``//`` prefix)."""
    return not url.startswith("//") and "://" not in url


def is_local_reference(url: str) -> bool:
    """True for references that must be prefixed with a base URL or path."""
    return is_relative_url(url) and not url.startswith("/")
