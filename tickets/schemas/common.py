from urllib.parse import urlparse


def validate_http_url(value: str) -> str:
    """Accept only absolute http(s) URLs with a host."""
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{value} is not a valid URI.")
    return value
