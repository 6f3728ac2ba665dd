"""
Address classification and gateway URL rewriting.

Turns loosely formed IPFS addresses (bare CIDs, ``ipfs://`` and ``ipns://``
URIs, bare DNSLink names) into fully qualified gateway URLs. Everything in
this module is pure: no I/O and no shared state.

Example:
    ```python
    from ipfs_fetch import GatewayNode, transform

    node = GatewayNode(host="dweb.link")
    transform("ipns://en.wikipedia-on-ipfs.org/wiki", node)
    # 'https://dweb.link/ipns/en.wikipedia-on-ipfs.org/wiki'
    ```
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from multiformats import CID

from .exceptions import InvalidAddressError
from .models import AddressKind, ResolvedAddress

IPFS_PREFIX = "ipfs://"
IPNS_PREFIX = "ipns://"


def is_cid(value: str) -> bool:
    """
    Check if a string is a syntactically valid content identifier.

    Accepts CIDv0 (``Qm...``) and CIDv1 in any multibase encoding.
    """
    if not value:
        return False
    try:
        CID.decode(value)
        return True
    except Exception:
        return False


def subdomain_label(value: str) -> Optional[str]:
    """
    Return the DNS-safe form of a CID, or None if ``value`` is not a CID.

    Subdomain addressing needs a case-insensitive label, so the CID is
    re-encoded as base32 CIDv1. A CID that is already base32 comes back
    unchanged (lower-cased).
    """
    try:
        cid = CID.decode(value)
    except Exception:
        return None

    if cid.version == 1 and cid.base.name == "base32":
        return value.lower()
    return str(CID("base32", 1, cid.codec, cid.digest))


def _recover_case(hostname: str, uri: str) -> str:
    # urlsplit lower-cases hostnames, which corrupts CIDv0 and other
    # case-sensitive identifiers; find the original spelling in the input.
    start = uri.find("://") + 3
    match = re.search(re.escape(hostname), uri[start:], re.IGNORECASE)
    if match is None:
        return hostname
    return match.group(0)


def classify_address(address: Any) -> ResolvedAddress:
    """
    Classify an address and decompose it into protocol, hostname, path and query.

    Args:
        address: A CID, ``ipfs://``/``ipns://`` URI, DNSLink name or HTTP(S) URL

    Returns:
        ResolvedAddress describing the input

    Raises:
        InvalidAddressError: If the address cannot be decomposed
    """
    if not isinstance(address, str):
        raise InvalidAddressError(f"Address must be a string: {address!r}", address)

    uri = address
    kind: Optional[AddressKind] = None

    # Bare CID, possibly followed by a path or query
    if is_cid(uri) or is_cid(uri.split("/")[0].split("?")[0]):
        uri = IPFS_PREFIX + uri
        kind = AddressKind.RAW_IDENTIFIER

    try:
        scheme = urlsplit(uri).scheme
    except ValueError:
        scheme = ""
    if kind is None and scheme.startswith("http"):
        return ResolvedAddress(
            kind=AddressKind.ABSOLUTE_HTTP_URL,
            original=address,
            uri=uri,
            protocol=scheme,
        )

    # No protocol and not a CID: assume a naming reference
    if not uri.lower().startswith((IPFS_PREFIX, IPNS_PREFIX)):
        uri = IPNS_PREFIX + uri

    if uri.endswith("/"):
        uri = uri[:-1]

    try:
        parts = urlsplit(uri)
        protocol = parts.scheme
        hostname = parts.hostname
    except ValueError as e:
        raise InvalidAddressError(f"Failed to transform URL: {address} ({e})", address)

    if protocol not in ("ipfs", "ipns"):
        raise InvalidAddressError(f"Failed to transform URL: {address}", address)
    if not hostname:
        raise InvalidAddressError(
            f"Failed to transform URL: {address} (missing identifier)", address
        )

    if kind is None:
        kind = AddressKind.IPFS_URI if protocol == "ipfs" else AddressKind.IPNS_URI

    return ResolvedAddress(
        kind=kind,
        original=address,
        uri=uri,
        protocol=protocol,
        hostname=_recover_case(hostname, uri),
        path=parts.path,
        query=parts.query,
    )


def transform(address: str, node: Any) -> str:
    """
    Rewrite an address into a URL served by ``node``.

    Args:
        address: Address to rewrite (see :func:`classify_address`)
        node: Gateway description with ``host`` and ``remote`` attributes

    Returns:
        Fully qualified HTTP(S) URL. Absolute HTTP(S) inputs are returned as is.

    Raises:
        InvalidAddressError: If the address cannot be rewritten
    """
    resolved = classify_address(address)
    if resolved.is_http:
        return resolved.uri

    scheme = "https" if node.remote else "http"
    suffix = resolved.path + (f"?{resolved.query}" if resolved.query else "")

    if resolved.protocol == "ipfs":
        # Qm... and other non-base32 CIDs are re-encoded rather than sent
        # verbatim or via path addressing, so every CID gets a DNS-safe label
        label = subdomain_label(resolved.hostname) if node.remote else None
        if label is not None:
            return f"{scheme}://{label}.ipfs.{node.host}{suffix}"
        return f"{scheme}://{node.host}/ipfs/{resolved.hostname}{suffix}"

    # Names always use path addressing: https://github.com/ipfs/infra/issues/506
    return f"{scheme}://{node.host}/ipns/{resolved.hostname}{suffix}"
