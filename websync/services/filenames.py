# services/filenames.py
import re
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, urlsplit

DEFAULT_FILENAME = "downloaded_file"
MAX_UNIQUE_ATTEMPTS = 1000
MAX_FILENAME_BYTES = 255

_ILLEGAL_CHARS = re.compile(r'[/\?<>\\:\*\|"\x00-\x1f\x80-\x9f]')
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)


class FilenameError(Exception):
    pass


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Pull the filename out of a Content-Disposition header.

    ``filename*=`` (RFC 5987) wins over plain ``filename=`` when both are present.
    """
    if not header:
        return None
    plain = None
    for part in header.split(";"):
        trimmed = part.strip()
        lowered = trimmed.lower()
        if lowered.startswith("filename*="):
            value = trimmed[len("filename*="):].strip().strip('"')
            if "''" in value:
                value = value.split("''", 1)[1]
            return unquote(value)
        if lowered.startswith("filename=") and plain is None:
            plain = trimmed[len("filename="):].strip().strip('"')
    return plain


def filename_from_url(url: str) -> str:
    path = urlsplit(url).path
    return unquote(path.rsplit("/", 1)[-1]) if path else ""


def sanitize_filename(name: str) -> str:
    name = _ILLEGAL_CHARS.sub("", name)
    if name in (".", "..") or _WINDOWS_RESERVED.match(name):
        return ""
    name = name.rstrip(". ")
    while len(name.encode("utf-8")) > MAX_FILENAME_BYTES:
        name = name[:-1]
    return name


def resolve_filename(content_disposition: Optional[str], url: str) -> str:
    candidate = filename_from_content_disposition(content_disposition) or filename_from_url(url)
    return sanitize_filename(candidate or "") or DEFAULT_FILENAME


def unique_filename(
    folder: Path,
    filename: str,
    reserved: Iterable[str] = (),
    max_attempts: int = MAX_UNIQUE_ATTEMPTS,
) -> str:
    """Return ``filename`` or the first free ``stem_N.ext`` variant in ``folder``.

    Names in ``reserved`` count as taken even before they exist on disk.
    """
    reserved = set(reserved)

    def taken(name: str) -> bool:
        return name in reserved or (folder / name).exists()

    if not taken(filename):
        return filename

    stem = Path(filename).stem or "file"
    suffix = Path(filename).suffix
    for i in range(max_attempts):
        candidate = f"{stem}_{i}{suffix}"
        if not taken(candidate):
            return candidate
    raise FilenameError(f"Could not find a unique filename after {max_attempts} attempts.")
