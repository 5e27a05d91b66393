"""
Maps request targets onto files beneath the document root.
"""

import os
from urllib.parse import unquote

from .errors import ForbiddenPath

DEFAULT_DOCUMENT = "index.html"


def is_within_root(path: str, root: str) -> bool:
    """
    Check whether a canonical path is the root itself or nested under it.

    Case is compared per host filesystem semantics (os.path.normcase
    folds it on Windows and leaves it significant on POSIX). The root is compared with a trailing separator so that a sibling such
    as /srv/web2 does not pass for /srv/web.

    Args:
        path: Canonical absolute path
        root: Canonical absolute root directory

    Returns:
        True if path is root or a descendant of root
    """
    path_key = os.path.normcase(path)
    root_key = os.path.normcase(root)
    if path_key == root_key:
        return True
    prefix = root_key if root_key.endswith(os.sep) else root_key + os.sep
    return path_key.startswith(prefix)


def resolve_path(target: str, root: str) -> str:
    """
    Resolve a request target to a canonical path under root.

    Args:
        target: Request target exactly as received on the request line
        root: Canonical absolute document root

    Returns:
        Canonical absolute filesystem path

    Raises:
        ForbiddenPath: The target contains a parent-directory token or
            canonicalizes to a location outside root
    """
    path = target.split('?', 1)[0].split('#', 1)[0]
    path = unquote(path)

    if path.startswith('/'):
        path = path[1:]
    if not path:
        path = DEFAULT_DOCUMENT

    # Checked before touching the filesystem
    if '..' in path or '\x00' in path:
        raise ForbiddenPath()

    candidate = os.path.realpath(os.path.join(root, path))
    if not is_within_root(candidate, root):
        raise ForbiddenPath()
    return candidate
