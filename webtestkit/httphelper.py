"""Small wrappers for forwarding and fetching over HTTP."""

from __future__ import annotations

import socket
import ssl
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Sequence

_TIMEOUT = 30.0
_FORWARDED_REQUEST_HEADERS = ("Content-Type", "Accept", "Accept-Encoding")


@dataclass
class ForwardedResponse:
    """The upstream answer to a forwarded request."""

    status: int
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""


def _opener() -> urllib.request.OpenerDirector:
    # Certificates are not checked: the remote ends are local test servers.
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return urllib.request.build_opener(urllib.request.HTTPSHandler(context=context))


def _open(request: urllib.request.Request, timeout: float | None) -> Any:
    try:
        return _opener().open(request, timeout=timeout)
    except urllib.error.HTTPError as exc:
        # A non-2xx answer is still an answer worth passing on.
        return exc


def _canonical(key: str) -> str:
    return "-".join(part.capitalize() for part in key.split("-"))


def _header_values(headers: Any, name: str) -> list[str]:
    if headers is None:
        return []
    get_all = getattr(headers, "get_all", None)
    if callable(get_all):
        return list(get_all(name) or [])
    wanted = name.lower()
    values: list[str] = []
    for key, value in headers.items():
        if key.lower() != wanted:
            continue
        if isinstance(value, str):
            values.append(value)
        else:
            values.extend(value)
    return values


def construct_url(base: str, path: str, prefix: str) -> str:
    """Resolve path, minus prefix, against base.

    Raises ValueError if path does not start with prefix.
    """
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    if not path.startswith(prefix):
        raise ValueError(f"{path!r} does not have expected prefix {prefix!r}")
    return urllib.parse.urljoin(base, path[len(prefix):])


def forward(
    host: str,
    trim_prefix: str,
    method: str,
    path: str,
    body: bytes = b"",
    headers: Mapping[str, str | Sequence[str]] | None = None,
) -> ForwardedResponse:
    """Send a request to host and return what host answered.

    Only the method, the path with trim_prefix removed, the body and the
    Content-Type, Accept and Accept-Encoding headers are passed on. The
    answer carries the default WebDriver response headers.
    """
    url = construct_url(host, path, trim_prefix)
    request = urllib.request.Request(url, data=body or None, method=method)
    for name in _FORWARDED_REQUEST_HEADERS:
        values = _header_values(headers, name)
        if values:
            request.add_header(name, ", ".join(values))

    with _open(request, _TIMEOUT) as resp:
        out: dict[str, list[str]] = {}
        for key, value in resp.headers.items():
            out.setdefault(_canonical(key), []).append(value)
        set_default_response_headers(out)
        return ForwardedResponse(status=resp.status, headers=out, body=resp.read())


def get(url: str, timeout: float | None = _TIMEOUT) -> Any:
    """Fetch url with GET and return the response, whatever its status."""
    request = urllib.request.Request(url, method="GET")
    return _open(request, timeout)


def fqdn() -> str:
    """Return the fully-qualified domain name, or 'localhost' if lookup fails.

    Raises OSError if the host name itself cannot be read.
    """
    hostname = socket.gethostname()
    try:
        infos = socket.getaddrinfo(hostname, None)
    except OSError:
        return "localhost"

    addresses = dict.fromkeys(info[4][0] for info in infos)
    for address in addresses:
        try:
            primary, aliases, _ = socket.gethostbyaddr(address)
        except OSError:
            continue
        names = [primary, *aliases]
        if not names:
            continue
        names.sort(key=len, reverse=True)
        for name in names:
            trimmed = name.rstrip(".")
            if trimmed.startswith(hostname):
                return trimmed
        return names[0]

    return "localhost"


def _set(headers: MutableMapping[str, list[str]], name: str, value: str) -> None:
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = [value]


def _add(headers: MutableMapping[str, list[str]], name: str, value: str) -> None:
    for key in headers:
        if key.lower() == name.lower():
            headers[key].append(value)
            return
    headers[name] = [value]


def set_default_response_headers(headers: MutableMapping[str, list[str]]) -> None:
    """Set the headers that every WebDriver response carries."""
    _set(headers, "Access-Control-Allow-Origin", "*")
    _set(
        headers,
        "Access-Control-Allow-Methods",
        "CONNECT,DELETE,GET,HEAD,OPTIONS,PATCH,POST,PUT,TRACE",
    )
    _add(headers, "Access-Control-Allow-Headers", "Accept,Content-Type")
    _set(headers, "Cache-Control", "no-cache")