"""
URL utilities for discovery results.

Discovery sources return URLs in whatever spelling the search engine or
sitemap uses, so the same page often appears several times
(``www.`` prefix, trailing slash, fragments, query order). This module
canonicalizes URLs and deduplicates lists before they are analysed, so
no remote-call budget is spent on the same page twice.

Example:
    ```python
    urls = dedupe_urls([
        "https://www.example.com/blog/",
        "https://example.com/blog",
        "https://example.com/about#team",
    ])
    # ['https://www.example.com/blog/', 'https://example.com/about#team']
    ```
"""
from typing import Iterable, List
from urllib.parse import urlparse, parse_qs, urlencode

def canonical(url: str) -> str:
    """
    Canonicalize a URL by standardizing its format.

    This function:
    1. Converts the domain to lowercase
    2. Removes URL fragments (parts after #)
    3. Removes trailing slashes from the path
    4. Normalizes query parameters (sorts them for consistency)
    5. Handles www vs non-www domains consistently

    Example:
        >>> canonical("https://Example.com/page/#section")
        'https://example.com/page'
        >>> canonical("https://www.example.com/blog/?b=2&a=1")
        'https://example.com/blog?a=1&b=2'
    """
    u = urlparse(url.strip())

    netloc = u.netloc.lower()
    if netloc.startswith('www.'):
        netloc = netloc[4:]

    if u.query:
        query_params = parse_qs(u.query, keep_blank_values=True)
        query = urlencode(dict(sorted(query_params.items())), doseq=True)
    else:
        query = ""

    return u._replace(
        scheme=u.scheme.lower(),
        netloc=netloc,
        path=u.path.rstrip('/'),
        query=query,
        fragment=""
    ).geturl()

def is_crawlable_url(url: str) -> bool:
    """
    Check if a URL is an http(s) URL.

    Example:
        >>> is_crawlable_url("https://example.com/page")
        True
        >>> is_crawlable_url("mailto:info@example.com")
        False
    """
    return url.startswith("http://") or url.startswith("https://")

def is_same_domain(url: str, domain: str) -> bool:
    """
    Check whether ``url`` belongs to ``domain`` or one of its subdomains,
    treating www and non-www as the same.
    """
    host = urlparse(url).netloc.lower().split(":")[0]
    domain = normalize_domain(domain)
    if host.startswith("www."):
        host = host[4:]
    return host == domain or host.endswith("." + domain)

def normalize_domain(domain: str) -> str:
    """
    Reduce user input to a bare host name.

    Example:
        >>> normalize_domain("https://www.Example.com/path")
        'example.com'
    """
    domain = domain.strip()
    if "://" not in domain:
        domain = "https://" + domain
    host = urlparse(domain).netloc.lower().split(":")[0]
    return host[4:] if host.startswith("www.") else host

def dedupe_urls(urls: Iterable[str]) -> List[str]:
    """
    Remove duplicate URLs, keeping the first spelling of each page.

    Non-http(s) entries and blanks are dropped.
    """
    seen = set()
    unique = []
    for url in urls:
        if not url or not is_crawlable_url(url.strip()):
            continue
        key = canonical(url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(url.strip())
    return unique
