"""
Vellum Support
==============

URL generation.
"""

from vellum.support.url import URL

__all__ = ["URL"]
