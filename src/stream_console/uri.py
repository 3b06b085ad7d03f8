"""Connection URI resolution for stream configurations.

Everything in this module is a pure function of its arguments. The rule
implemented by :func:`resolve_uri`:

1. The address is trimmed; a blank address resolves to ``None``.
2. An address without a ``scheme://`` prefix gets the engine's default
   scheme.
3. When credentials are supplied and the address carries no user-info,
   ``username[:password]@`` is injected in front of the host. Both parts
   are percent-encoded so that ``@``, ``:`` and ``/`` cannot be read as
   URI structure.
4. User-info already embedded in the address wins over separately
   supplied credentials.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote, unquote

from .config import DEFAULT_SCHEME, Credentials, StreamConfig
from .errors import ConfigurationError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_AUTHORITY_END_RE = re.compile(r"[/?#]")

# RFC 3986 sub-delims; ':' is left out so it can only mean the separator.
_USER_INFO_SAFE = "!$&'()*+,;="


@dataclass(frozen=True)
class _AddressParts:
    scheme: str
    user_info: str
    host: str
    rest: str
    had_scheme: bool

    def build(self, user_info: str | None = None) -> str:
        info = self.user_info if user_info is None else user_info
        authority = f"{info}@{self.host}" if info else self.host
        return f"{self.scheme}://{authority}{self.rest}"

    def render(self, user_info: str) -> str:
        """Like build, but keeps the address scheme-less if it was typed so."""
        built = self.build(user_info)
        if self.had_scheme:
            return built
        return built[len(self.scheme) + 3:]


def _split_address(address: str, default_scheme: str) -> _AddressParts:
    raw = address.strip()
    if not raw:
        raise ConfigurationError("Stream address is empty")

    match = _SCHEME_RE.match(raw)
    if match:
        scheme = match.group(0)[:-3]
        remainder = raw[match.end():]
    else:
        scheme = default_scheme
        remainder = raw

    end = _AUTHORITY_END_RE.search(remainder)
    authority = remainder[: end.start()] if end else remainder
    rest = remainder[end.start():] if end else ""

    user_info, _, host = authority.rpartition("@")
    if not host:
        raise ConfigurationError(f"Stream address has no host: {address!r}")

    return _AddressParts(
        scheme=scheme,
        user_info=user_info,
        host=host,
        rest=rest,
        had_scheme=match is not None,
    )


def encode_user_info_component(value: str) -> str:
    """Percent-encode a username or password for use in URI user-info."""
    return quote(value, safe=_USER_INFO_SAFE)


def format_user_info(credentials: Credentials) -> str:
    info = encode_user_info_component(credentials.username)
    if credentials.password:
        info += ":" + encode_user_info_component(credentials.password)
    return info


def require_uri(config: StreamConfig, default_scheme: str = DEFAULT_SCHEME) -> str:
    """Resolve *config* into a connection URI or raise ``ConfigurationError``."""
    parts = _split_address(config.address, default_scheme)
    credentials = config.credentials
    if credentials is None or credentials.is_blank or parts.user_info.strip():
        return parts.build()
    return parts.build(format_user_info(credentials))


def resolve_uri(
    config: StreamConfig, default_scheme: str = DEFAULT_SCHEME
) -> str | None:
    """Return the resolved URI for *config*, or ``None`` if there is none."""
    try:
        return require_uri(config, default_scheme)
    except ConfigurationError:
        return None


def split_user_info(address: str, default_scheme: str = DEFAULT_SCHEME) -> Credentials:
    """Decode the credentials embedded in *address* (blank if there are none)."""
    try:
        parts = _split_address(address, default_scheme)
    except ConfigurationError:
        return Credentials()
    if not parts.user_info.strip():
        return Credentials()
    username, _, password = parts.user_info.partition(":")
    return Credentials(unquote(username), unquote(password))


def strip_user_info(address: str, default_scheme: str = DEFAULT_SCHEME) -> str:
    """Remove embedded credentials, keeping the address's scheme-less form."""
    try:
        parts = _split_address(address, default_scheme)
    except ConfigurationError:
        return address
    if not parts.user_info:
        return address
    return parts.render("")


def embed_credentials(
    address: str,
    credentials: Credentials,
    default_scheme: str = DEFAULT_SCHEME,
) -> str:
    """Return *address* showing *credentials* in place of any existing user-info."""
    if credentials.is_blank:
        return address
    try:
        parts = _split_address(address, default_scheme)
    except ConfigurationError:
        return address
    return parts.render(format_user_info(credentials))


def redact(uri: str) -> str:
    """Mask user-info so a URI can be logged."""
    try:
        parts = _split_address(uri, DEFAULT_SCHEME)
    except ConfigurationError:
        return uri
    if not parts.user_info:
        return uri
    return parts.render("***")
