# util/functions.py
from typing import List
from urllib.parse import quote


def name_tokens(full_name: str) -> List[str]:
    """
    - Split a full name on any run of whitespace.
    - Leading/trailing whitespace never yields empty tokens.
    """
    return full_name.strip().split()


def pdf_file_name(base: str, duplicate_index: int = 0) -> str:
    """
    "5" -> "5.pdf", ("5", 1) -> "5_1.pdf".
    """
    if duplicate_index > 0:
        return f"{base}_{duplicate_index}.pdf"
    return f"{base}.pdf"


def content_disposition(filename: str) -> str:
    """
    Attachment header that survives non-ASCII student names.
    Plain `filename` carries an ASCII fallback, `filename*` the UTF-8 original.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
