"""Connection token parsing and duplex identity."""

from typing import Any, Mapping

from ..attributes import aliases, first_string
from ..logging_config import get_logger
from ..models import ConnectionIdentity

logger = get_logger(__name__)

UNKNOWN_ENDPOINT = "unknown"
TOKEN_PREFIXES = ("connection:", "conn:")
DIRECTION_ARROW = "->"
DUPLEX_SEPARATOR = "<->"
LEG_LABEL_ARROW = " → "
DUPLEX_LABEL_ARROW = " ⇌ "
_DUPLEX_GLYPHS = ("⇌", "⇔")


def strip_token_prefix(raw: str) -> str:
    token = raw.strip()
    for prefix in TOKEN_PREFIXES:
        if token.startswith(prefix):
            return token[len(prefix) :].strip()
    return token


def duplex_key(a: str, b: str) -> str:
    """Order-independent key for an endpoint pair."""
    left, right = (a, b) if a <= b else (b, a)
    return f"{left}{DUPLEX_SEPARATOR}{right}"


def parse_duplex_pair(value: str) -> tuple[str, str] | None:
    """Parse ``a <-> b`` (or the arrow glyphs) into a sorted endpoint pair."""
    normalized = value
    for glyph in _DUPLEX_GLYPHS:
        normalized = normalized.replace(glyph, DUPLEX_SEPARATOR)
    parts = [part.strip() for part in normalized.split(DUPLEX_SEPARATOR)]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    left, right = parts
    return (left, right) if left <= right else (right, left)


def parse_directional_token(raw: str) -> tuple[str, str, str]:
    """Split ``[conn:]src->dst[:link]`` into ``(src, dst, link)``.

    Tokens without a usable direction come back as ``("", "", body)`` so the
    caller can still try the body as a duplex link.
    """
    body = strip_token_prefix(raw)
    if parse_duplex_pair(body) is None and DIRECTION_ARROW in body:
        left, rest = body.split(DIRECTION_ARROW, 1)
        if ":" in rest:
            dst, link = rest.split(":", 1)
        else:
            dst, link = rest, ""
        src, dst = left.strip(), dst.strip()
        if src and dst:
            return src, dst, link.strip()
    return "", "", body


def connection_token(node_id: str, attrs: Mapping[str, Any]) -> str:
    """Raw connection identifier of a connection node."""
    raw = first_string(attrs, aliases.CONNECTION_TOKEN)
    if raw is None:
        raw = strip_token_prefix(node_id)
    return raw.strip() or node_id


def pending_refs_key(token: str, src: str, dst: str) -> str:
    """Per-direction key into the pending refs index."""
    if src and dst:
        return f"{token}|{src}{DIRECTION_ARROW}{dst}"
    return token


def resolve_identity(node_id: str, attrs: Mapping[str, Any]) -> ConnectionIdentity:
    """Resolve who a connection node connects, never raising on bad data."""
    token = connection_token(node_id, attrs)
    parsed_src, parsed_dst, parsed_link = parse_directional_token(token)

    src = (first_string(attrs, aliases.CONNECTION_SRC) or parsed_src).strip() or UNKNOWN_ENDPOINT
    dst = (first_string(attrs, aliases.CONNECTION_DST) or parsed_dst).strip() or UNKNOWN_ENDPOINT
    link = (first_string(attrs, aliases.CONNECTION_LINK) or parsed_link).strip()

    pair = parse_duplex_pair(link) if link else None
    if pair is None and UNKNOWN_ENDPOINT not in (src, dst):
        pair = (src, dst) if src <= dst else (dst, src)
    if pair is None:
        logger.debug("Unparseable connection token %r on node %s", token, node_id)
        pair = (UNKNOWN_ENDPOINT, UNKNOWN_ENDPOINT)

    endpoint_a, endpoint_b = pair
    return ConnectionIdentity(
        token=token,
        src=src,
        dst=dst,
        link=link or f"{src} {DUPLEX_SEPARATOR} {dst}",
        endpoint_a=endpoint_a,
        endpoint_b=endpoint_b,
        duplex_key=duplex_key(endpoint_a, endpoint_b),
        duplex_label=f"{endpoint_a}{DUPLEX_LABEL_ARROW}{endpoint_b}",
        leg_label=f"{src}{LEG_LABEL_ARROW}{dst}",
        pending_refs_key=pending_refs_key(token, src, dst),
    )
