from dataclasses import dataclass
from urllib.parse import quote, urlsplit, urlunsplit


@dataclass(frozen=True)
class Auth:
    host: str
    username: str
    token: str


def url_host(url):
    """Return the host (with port, without user info) of a repository URL."""
    netloc = urlsplit(url).netloc
    return netloc.rsplit("@", 1)[-1]


def find_auth(url, auths):
    host = url_host(url)
    if not host:
        return None
    for auth in auths:
        if auth.host == host:
            return auth
    return None


def apply_auth(url, auths):
    """
    Embed the credentials of the first auth entry whose host equals the URL's
    host. URLs without a matching entry are returned unchanged.
    """
    auth = find_auth(url, auths)
    if auth is None:
        return url
    parts = urlsplit(url)
    userinfo = quote(auth.username, safe="")
    if auth.token:
        userinfo += ":" + quote(auth.token, safe="")
    netloc = f"{userinfo}@{url_host(url)}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact(url):
    """Strip any user info from a URL so it can be logged."""
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    return urlunsplit((parts.scheme, url_host(url), parts.path, parts.query, parts.fragment))
