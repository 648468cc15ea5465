"""Static resolution of relative import specifiers against a project file set."""

from __future__ import annotations

import posixpath
from typing import Collection, Optional

from .models import ResolvedImport

# Probed in order after the exact path.
RESOLUTION_SUFFIXES = (".js", ".jsx", ".ts", ".tsx", "/index.js", "/index.jsx")


def is_relative(specifier: str) -> bool:
    return specifier.startswith(".")


def resolve_import_path(
    from_path: str,
    specifier: str,
    known_paths: Collection[str],
) -> Optional[str]:
    """Resolve *specifier* imported by *from_path* to a project path.

    Non-relative specifiers (``react``, ``lodash/fp``) are external and come
    back unchanged. Relative ones are joined onto the importing file's
    directory, then matched exactly or with each of
    :data:`RESOLUTION_SUFFIXES`; ``None`` means nothing matched.
    """
    if not is_relative(specifier):
        return specifier

    candidate = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), specifier))
    # Escaping the project root can never match a project file.
    if candidate == ".." or candidate.startswith("../"):
        return None

    known = known_paths if isinstance(known_paths, (set, frozenset, dict)) else set(known_paths)
    if candidate in known:
        return candidate
    for suffix in RESOLUTION_SUFFIXES:
        if candidate + suffix in known:
            return candidate + suffix
    return None


def classify_import(
    from_path: str,
    specifier: str,
    known_paths: Collection[str],
) -> ResolvedImport:
    return ResolvedImport(
        from_path=from_path,
        specifier=specifier,
        to_path=resolve_import_path(from_path, specifier, known_paths),
        is_external=not is_relative(specifier),
    )
