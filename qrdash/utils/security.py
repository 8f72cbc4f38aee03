from urllib.parse import urlparse

# Schemes a scanner's browser must never be redirected to
BLOCKED_SCHEMES = ("javascript", "data", "file", "vbscript")


def is_unsafe_url(url: str, blocked_domains=()) -> tuple[bool, str | None]:
    """
    Checks if a destination is unsafe to redirect scanners to.

    Args:
        url (str): The destination (an http(s) URL or another payload such as mailto:).
        blocked_domains: Domains refused together with their subdomains.

    Returns:
        tuple[bool, str | None]: (is_unsafe, reason)
    """
    if not url:
        return False, None

    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()

    if scheme in BLOCKED_SCHEMES:
        return True, f"URLs using '{scheme}:' cannot be used as a destination."

    if scheme not in ("http", "https"):
        return False, None

    domain = (parsed.hostname or "").lower()
    for bad_domain in blocked_domains:
        bad_domain = bad_domain.strip().lower()
        if bad_domain and (domain == bad_domain or domain.endswith("." + bad_domain)):
            return True, f"Domain '{domain}' is blocked."

    return False, None
