# siteaudit/engine/images.py
from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional
from urllib.parse import unquote, urlparse

import requests

from siteaudit.logging_config import log_failure

from .exceptions import ImageResolutionError

DEFAULT_MIME = "image/jpeg"


@dataclass(frozen=True)
class ResolvedImage:
    """
    Outcome for one image reference.

    `src` is always usable in the document: the inlined data URI, or the
    original reference when resolution failed.
    """
    ref: str
    src: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImageInliningReport:
    items: List[ResolvedImage] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def failed(self) -> List[ResolvedImage]:
        return [i for i in self.items if not i.ok]

    def src_for(self, ref: str) -> str:
        for i in self.items:
            if i.ref == ref:
                return i.src
        return ref


def to_data_uri(content: bytes, mime: str | None) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime or DEFAULT_MIME};base64,{encoded}"


def _guess_mime(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or DEFAULT_MIME


class ImageResolver:
    """
    Turns an image reference into a self-contained data URI.

    - data: URIs are returned unchanged
    - http(s) URLs are downloaded
    - file:// URIs and plain paths are read from disk
    Any failure raises ImageResolutionError.
    """

    def __init__(self, timeout: float = 10.0, max_bytes: int = 10 * 1024 * 1024, session=None):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.session = session or requests

    def __call__(self, ref: str) -> str:
        if not ref or not ref.strip():
            raise ImageResolutionError("Empty image reference")

        if ref.startswith("data:"):
            return ref

        try:
            parsed = urlparse(ref)
        except ValueError as e:
            raise ImageResolutionError(f"Malformed image reference: {e}") from e

        if parsed.scheme in ("http", "https"):
            return self._fetch_remote(ref)
        if parsed.scheme == "file":
            return self._read_file(Path(unquote(parsed.path)))
        if parsed.scheme == "" or len(parsed.scheme) == 1:
            # plain path (a single letter scheme is a Windows drive)
            return self._read_file(Path(ref))

        raise ImageResolutionError(f"Unsupported image reference scheme: {parsed.scheme}")

    def _check_size(self, n: int, ref: str) -> None:
        if n > self.max_bytes:
            raise ImageResolutionError(f"Image too large ({n} bytes): {ref}")

    def _fetch_remote(self, url: str) -> str:
        try:
            res = self.session.get(url, timeout=self.timeout, stream=True)
            try:
                res.raise_for_status()
                declared = res.headers.get("Content-Length")
                if declared and declared.isdigit():
                    self._check_size(int(declared), url)
                content = self._read_capped(res, url)
            finally:
                res.close()
        except requests.RequestException as e:
            raise ImageResolutionError(f"Download failed: {e}") from e

        mime = (res.headers.get("Content-Type") or "").split(";")[0].strip()
        if not mime.startswith("image/"):
            mime = _guess_mime(urlparse(url).path)
        return to_data_uri(content, mime)

    def _read_capped(self, res, url: str) -> bytes:
        buf = bytearray()
        for chunk in res.iter_content(chunk_size=64 * 1024):
            buf.extend(chunk)
            # stop reading as soon as the body passes the limit
            self._check_size(len(buf), url)
        return bytes(buf)

    def _read_file(self, path: Path) -> str:
        try:
            if not path.is_file():
                raise ImageResolutionError(f"Image file not found: {path}")
            self._check_size(path.stat().st_size, str(path))
            content = path.read_bytes()
        except OSError as e:
            raise ImageResolutionError(f"Cannot read image file {path}: {e}") from e
        return to_data_uri(content, _guess_mime(path.name))


Resolver = Callable[[str], str]


def resolve_one(ref: str, resolver: Resolver) -> ResolvedImage:
    try:
        return ResolvedImage(ref=ref, src=resolver(ref))
    except Exception as e:
        # any resolver may be plugged in; one bad image never aborts the report
        error = str(e) if isinstance(e, ImageResolutionError) else f"{type(e).__name__}: {e}"
        log_failure("IMAGE_RESOLUTION_FAILED", {"ref": ref[:200], "error": error})
        return ResolvedImage(ref=ref, src=ref, error=error)


def inline_images(refs: Iterable[str], resolver: Resolver) -> ImageInliningReport:
    """
    Resolve references one at a time, in order. A failed reference keeps its
    original value and is recorded in the report; it never stops the loop.
    Repeated references are resolved once.
    """
    report = ImageInliningReport()
    seen: set[str] = set()
    for ref in refs:
        if ref in seen:
            continue
        seen.add(ref)
        report.items.append(resolve_one(ref, resolver))
    return report
