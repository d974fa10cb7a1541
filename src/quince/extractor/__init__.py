"""Document token extraction utilities."""

from .html import HtmlAnalysis, analyse_html
from .tokens import HTML_MARKER, TokenExtractor

__all__ = ["HTML_MARKER", "HtmlAnalysis", "TokenExtractor", "analyse_html"]
