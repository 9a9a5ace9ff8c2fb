# core/archive.py
import io
import zipfile
from typing import Dict, Iterable, Tuple


def unique_names(names: Iterable[str]) -> Iterable[str]:
    """
    Yield archive-safe names: a name seen before gets `_<n>` before `.pdf`,
    where n is how many times it has now been seen ("a.pdf", "a_2.pdf", ...).
    """
    seen: Dict[str, int] = {}
    for name in names:
        if name in seen:
            seen[name] += 1
            stem, dot, ext = name.rpartition(".")
            yield f"{stem}_{seen[name]}.{ext}" if dot else f"{name}_{seen[name]}"
        else:
            seen[name] = 1
            yield name


def build_zip(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """Pack (file name, bytes) pairs into an in-memory ZIP."""
    entries = list(entries)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for name, (_, data) in zip(unique_names(n for n, _ in entries), entries):
            zf.writestr(name, data)
    return buf.getvalue()
