# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "reportsplit"

CLASSES: Final[str] = f"{ROOT}:classes"  # set of class names
STUDENTS: Final[str] = f"{CLASSES}:students"  # roster JSON per class: name -> StudentInfo
PARSES: Final[str] = f"{ROOT}:parses"  # per-parse summary and page bytes
SESSIONS: Final[str] = f"{ROOT}:sessions"  # session id -> current parse id
