"""
URL utilities for extracting domains from research result URLs.
"""

from typing import Optional
from urllib.parse import urlparse


def extract_domain(url: Optional[str]) -> str:
    """
    Extract the lowercase domain (netloc) from a URL.

    Bare hostnames (``mit.edu``) are accepted as-is. Returns an empty string
    when nothing usable is present.
    """
    if not url:
        return ""

    url = url.strip()
    if "://" not in url:
        url = f"//{url}"
    try:
        netloc = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    # Strip credentials and port
    netloc = netloc.rsplit("@", 1)[-1].split(":", 1)[0]
    return netloc


def extract_base_domain(url: Optional[str]) -> str:
    """Extract domain without ``www.`` prefix."""
    domain = extract_domain(url)
    if domain.startswith("www."):
        return domain[4:]
    return domain
