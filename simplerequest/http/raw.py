from typing import Iterable, List, Tuple

_HTTP_VERSIONS = {9: "HTTP/0.9", 10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


def build_header_block(response) -> bytes:
    """
    Rebuild the header block of one response: status line, one line per
    header (duplicates kept) and the terminating blank line.
    """
    raw = getattr(response, "raw", None)
    version = _HTTP_VERSIONS.get(getattr(raw, "version", None), "HTTP/1.1")
    status_line = f"{version} {response.status_code} {response.reason or ''}".rstrip()

    lines = [status_line]
    lines.extend(f"{name}: {value}" for name, value in _header_items(response))
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1", errors="replace")


def _header_items(response) -> List[Tuple[str, str]]:
    raw_headers = getattr(getattr(response, "raw", None), "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "items"):
        return list(raw_headers.items())
    return list((response.headers or {}).items())


def join_raw_response(hops: Iterable, body: bytes) -> Tuple[bytes, int]:
    """
    Concatenate the header blocks of every hop (redirects first) followed by
    the final body. Returns the raw bytes and the header size.
    """
    header = b"".join(build_header_block(hop) for hop in hops)
    return header + body, len(header)


def split_raw_response(raw: bytes, header_size: int) -> Tuple[bytes, bytes]:
    header_size = max(0, min(header_size, len(raw)))
    return raw[:header_size], raw[header_size:]
