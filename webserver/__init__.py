"""
Static file HTTP server.

Serves .html, .css and .js files from a single document root over a
minimal subset of HTTP/1.1, one request per connection.
"""

__version__ = "1.0.0"
