"""
Content-Type lookup for the closed set of served file types.
"""

import os

from .errors import UnsupportedType

CONTENT_TYPES = {
    '.html': 'text/html; charset=utf-8',
    '.css': 'text/css; charset=utf-8',
    '.js': 'application/javascript; charset=utf-8',
}


def content_type_for(path: str) -> str:
    """
    Return the Content-Type for a file, judged by its extension.

    Raises:
        UnsupportedType: The extension is not one of .html, .css or .js
    """
    extension = os.path.splitext(path)[1].lower()
    try:
        return CONTENT_TYPES[extension]
    except KeyError:
        raise UnsupportedType()
