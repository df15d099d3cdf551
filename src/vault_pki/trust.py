"""
TLS trust material loading.

Reads CA bundles from files or directories. A path that does not exist is
treated as inline PEM content, so configuration can carry either a
location or the certificate text itself.
"""

import os
import ssl
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import TLSConfig
from .exceptions import TrustLoadError
from .logging import get_logger

logger = get_logger(__name__)

PathOrContent = Union[str, bytes, os.PathLike]


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise TrustLoadError(str(path), e.strerror or str(e)) from e


def _expand(item: PathOrContent) -> List[bytes]:
    if isinstance(item, bytes):
        return [item]

    # os.path.exists tolerates inline PEM longer than NAME_MAX
    if not os.path.exists(item):
        # Not a location: inline PEM content
        return [os.fspath(item).encode("utf-8")]

    path = Path(item)
    if not path.is_dir():
        return [_read(path)]

    try:
        entries = sorted(os.scandir(path), key=lambda e: e.name)
    except OSError as e:
        raise TrustLoadError(str(path), e.strerror or str(e)) from e

    contents = []
    for entry in entries:
        if entry.is_file():
            contents.append(_read(Path(entry.path)))
        else:
            logger.debug(f"Skipping non-regular entry {entry.path}")
    return contents


def read_file_or_folder(paths: Union[PathOrContent, Sequence[PathOrContent]]) -> List[bytes]:
    """
    Read every regular file named by ``paths``.

    Directories are expanded one level, in sorted name order; nested
    directories are skipped. Paths that do not exist are returned as
    literal content.

    Raises:
        TrustLoadError: If an existing path cannot be read
    """
    if isinstance(paths, (str, bytes, os.PathLike)):
        paths = [paths]

    contents: List[bytes] = []
    for item in paths:
        contents.extend(_expand(item))
    return contents


def load_ca_bundle(paths: Union[PathOrContent, Sequence[PathOrContent]]) -> bytes:
    """Concatenate all trust material into a single PEM bundle."""
    chunks = []
    for chunk in read_file_or_folder(paths):
        if chunk and not chunk.endswith(b"\n"):
            chunk += b"\n"
        chunks.append(chunk)
    return b"".join(chunks)


def build_verify(tls: Optional[TLSConfig]) -> Union[bool, ssl.SSLContext]:
    """
    Translate TLS configuration into an httpx ``verify`` argument.

    Raises:
        TrustLoadError: If the CA bundle cannot be read or parsed
    """
    if tls is None:
        return True
    if tls.skip_verify:
        logger.warning("TLS server certificate verification is disabled")
        return False
    if not tls.ca_path:
        return True

    bundle = load_ca_bundle(tls.ca_path)
    try:
        return ssl.create_default_context(cadata=bundle.decode("ascii"))
    except (ssl.SSLError, UnicodeDecodeError, ValueError) as e:
        raise TrustLoadError(", ".join(tls.ca_path), f"invalid CA bundle: {e}") from e
