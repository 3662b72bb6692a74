from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Union

import httpx

from .errors import MissingCapability

CAPABILITY_LIST = (
    "Action",
    "ChangePassword",
    "GetObject",
    "Login",
    "LoginComplete",
    "Logout",
    "Search",
    "GetMetadata",
    "Update",
)


def capability_url(login_url: httpx.URL, value: str) -> httpx.URL:
    """
    Clone the login URL and replace its path with the server-supplied value.
    Example: ('http://rets.example.com:6103/rets/login', '/rets/search')
             -> 'http://rets.example.com:6103/rets/search'
    An absolute value only contributes its path.
    """
    path = httpx.URL(value.strip()).path
    if not path.startswith("/"):
        path = "/" + path
    return login_url.copy_with(path=path)


class CapabilityMap(Mapping[str, httpx.URL]):
    """Capability name -> endpoint URL, seeded with the login URL."""

    def __init__(self, login_url: Union[str, httpx.URL]):
        self.login_url = httpx.URL(login_url)
        self._urls: Dict[str, httpx.URL] = {"Login": self.login_url}

    def __getitem__(self, name: str) -> httpx.URL:
        return self._urls[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def require(self, name: str) -> httpx.URL:
        url = self._urls.get(name)
        if url is None:
            raise MissingCapability(name)
        return url

    def discover(self, response: Mapping[str, str]) -> Dict[str, httpx.URL]:
        """Build capability URLs from a parsed login response without committing them."""
        urls: Dict[str, httpx.URL] = {"Login": self.login_url}
        for capability in CAPABILITY_LIST:
            value: Optional[str] = response.get(capability)
            if not value:
                continue
            urls[capability] = capability_url(self.login_url, value)
        return urls

    def commit(self, urls: Mapping[str, httpx.URL]) -> None:
        self._urls = dict(urls)

    def reset(self) -> None:
        self._urls = {"Login": self.login_url}

    def as_dict(self) -> Dict[str, str]:
        return {name: str(url) for name, url in self._urls.items()}


__all__ = ["CapabilityMap", "CAPABILITY_LIST", "capability_url"]
