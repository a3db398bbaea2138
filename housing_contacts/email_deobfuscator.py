"""
Email De-obfuscation

Rewrites obfuscated addresses in a parsed page back to plain text so the
extraction strategies see them where a reader would:
- Cloudflare email protection (data-cfemail, XOR encoded)
- Text patterns: "jane [at] school [dot] edu", "jane (at) school (dot) edu"
- mailto: links whose visible text is not the address
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString
from loguru import logger

from housing_contacts.utils import EMAIL_PATTERN


DOT_PATTERNS = (
    re.compile(r'\s*\[dot\]\s*', re.IGNORECASE),
    re.compile(r'\s*\(dot\)\s*', re.IGNORECASE),
    re.compile(r'\s+DOT\s+'),
)

AT_PATTERNS = (
    re.compile(r'(\w+(?:\.\w+)*)\s*\[at\]\s*(\w+(?:\.\w+)*)', re.IGNORECASE),
    re.compile(r'(\w+(?:\.\w+)*)\s*\(at\)\s*(\w+(?:\.\w+)*)', re.IGNORECASE),
    re.compile(r'(\w+(?:\.\w+)*)\s+AT\s+(\w+(?:\.\w+)*)'),
)

OBFUSCATION_MARKER = re.compile(r'(?i:\[at\]|\(at\))|\sAT\s')


def decode_cfemail(encoded: str) -> Optional[str]:
    """
    Decode a Cloudflare data-cfemail value.

    The first byte is the XOR key for every following byte.

    Returns:
        Decoded address, or None if the value is malformed
    """
    try:
        encoded_bytes = bytes.fromhex(encoded)
    except ValueError:
        return None

    if len(encoded_bytes) < 2:
        return None

    key = encoded_bytes[0]
    email = ''.join(chr(byte ^ key) for byte in encoded_bytes[1:])
    return email if EMAIL_PATTERN.fullmatch(email) else None


def decode_text(text: str) -> str:
    """
    Replace "[at]"/"[dot]" style spellings in text with plain addresses.

    Text without an obfuscation marker is returned unchanged.
    """
    if not text or not OBFUSCATION_MARKER.search(text):
        return text

    decoded = text
    for pattern in DOT_PATTERNS:
        decoded = pattern.sub('.', decoded)
    for pattern in AT_PATTERNS:
        decoded = pattern.sub(r'\1@\2', decoded)

    # Only keep the rewrite if it actually produced an address
    return decoded if EMAIL_PATTERN.search(decoded) else text


class EmailDeobfuscator:
    """
    In-place de-obfuscation of a BeautifulSoup document.
    """

    def __init__(self):
        self.stats = {
            'cloudflare_decoded': 0,
            'text_pattern_decoded': 0,
            'mailto_revealed': 0,
        }

    def reveal(self, soup: BeautifulSoup) -> int:
        """
        Rewrite every obfuscated address in soup as plain text.

        Args:
            soup: Parsed page (modified in place)

        Returns:
            Number of addresses revealed
        """
        revealed = (
            self._reveal_cloudflare(soup)
            + self._reveal_text_patterns(soup)
            + self._reveal_mailto(soup)
        )

        if revealed:
            logger.debug(f"De-obfuscated {revealed} email addresses")

        return revealed

    def _reveal_cloudflare(self, soup: BeautifulSoup) -> int:
        count = 0
        for element in soup.find_all(attrs={'data-cfemail': True}):
            email = decode_cfemail(element.get('data-cfemail', ''))
            if not email:
                logger.debug("Skipping malformed Cloudflare email")
                continue
            element.replace_with(NavigableString(email))
            count += 1

        self.stats['cloudflare_decoded'] += count
        return count

    def _reveal_text_patterns(self, soup: BeautifulSoup) -> int:
        count = 0
        for node in list(soup.find_all(string=OBFUSCATION_MARKER)):
            if node.parent is not None and node.parent.name in ('script', 'style'):
                continue
            decoded = decode_text(str(node))
            if decoded != str(node):
                node.replace_with(NavigableString(decoded))
                count += 1

        self.stats['text_pattern_decoded'] += count
        return count

    def _reveal_mailto(self, soup: BeautifulSoup) -> int:
        """Append the address to mailto links labelled "Email me" and similar."""
        count = 0
        for link in soup.find_all('a', href=True):
            href = link['href']
            if not href.lower().startswith('mailto:'):
                continue

            email = href[len('mailto:'):].split('?')[0].strip()
            if not EMAIL_PATTERN.fullmatch(email):
                continue
            if email.lower() in link.get_text().lower():
                continue

            link.append(NavigableString(f" {email}"))
            count += 1

        self.stats['mailto_revealed'] += count
        return count

    def get_stats(self) -> dict:
        """Get de-obfuscation statistics."""
        return dict(self.stats)


__all__ = ['EmailDeobfuscator', 'decode_cfemail', 'decode_text']
