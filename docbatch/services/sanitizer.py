"""Unicode to single-font-safe text.

Generated PDFs use one standard Type 1 font (Helvetica, WinAnsi encoding), so
everything outside printable ASCII and Latin-1 has to be replaced before
layout. Replacement rules are evaluated in order, first match wins.
"""
from __future__ import annotations

import unicodedata
from typing import Callable, Dict, Optional, Tuple, Union

Replacement = Union[str, Callable[[str], str]]


def is_safe_char(ch: str) -> bool:
    """True for characters that pass through untouched."""
    o = ord(ch)
    return ch == "\n" or 0x20 <= o <= 0x7E or 0x80 <= o <= 0xFF


def _table(mapping: Dict[str, str]) -> Callable[[str], Optional[str]]:
    return mapping.get


def _block(ranges: Tuple[Tuple[int, int], ...], replacement: Replacement) -> Callable[[str], Optional[str]]:
    def rule(ch: str) -> Optional[str]:
        o = ord(ch)
        for lo, hi in ranges:
            if lo <= o <= hi:
                return replacement(ch) if callable(replacement) else replacement
        return None
    return rule


def _greek_name(ch: str) -> str:
    # "GREEK SMALL LETTER FINAL SIGMA" -> "sigma", "GREEK CAPITAL LETTER OMEGA" -> "Omega"
    try:
        name = unicodedata.name(ch)
    except ValueError:
        return "?"
    letter = name.split(" LETTER ", 1)[-1].split()[-1].lower()
    return letter if " SMALL " in name else letter.capitalize()


def _digit(ch: str) -> str:
    return str(unicodedata.digit(ch, 0))


PUNCTUATION = {
    # quotes
    "‘": "'", "’": "'", "‚": "'", "‛": "'",
    "“": '"', "”": '"', "„": '"', "‟": '"',
    "‹": "<", "›": ">",
    # dashes
    "‐": "-", "‑": "-", "‒": "-", "–": "-",
    "—": "-", "―": "-", "⁃": "-", "−": "-",
    # ellipsis and bullets
    "…": "...", "•": "*", "‣": ">", "․": ".",
    "‥": "..", "●": "*", "○": "o", "◦": "o",
    "▪": "*", "▫": "*", "■": "*", "□": "[ ]",
    "∙": "*", "★": "*", "☆": "*",
    "✓": "v", "✔": "v", "✗": "x", "✘": "x",
}

ARROWS = {
    "←": "<-", "→": "->", "↑": "^", "↓": "v",
    "↔": "<->", "⇐": "<=", "⇒": "=>", "⇔": "<=>",
    "⟵": "<--", "⟶": "-->", "↵": "<-'",
}

OPERATORS = {
    "∗": "*", "∕": "/", "∓": "-/+", "≤": "<=",
    "≥": ">=", "≠": "!=", "≈": "~=", "≡": "==",
    "≪": "<<", "≫": ">>", "≃": "~=", "∼": "~",
}

MATH = {
    "∞": "infinity", "∑": "sum", "∏": "product",
    "∫": "integral", "√": "sqrt", "∂": "d",
    "∆": "delta", "∇": "nabla", "∈": "in",
    "∉": "not in", "∀": "for all", "∃": "exists",
    "∅": "{}", "∩": "n", "∪": "u", "∝": "~",
    "′": "'", "″": '"', "‴": "'''",
}

SPACES = {
    "\u2000": " ", "\u2001": " ", "\u2002": " ", "\u2003": " ",
    "\u2004": " ", "\u2005": " ", "\u2006": " ", "\u2007": " ",
    "\u2008": " ", "\u2009": " ", "\u200a": " ", "\u202f": " ",
    "\u205f": " ", "\u3000": " ",
    # zero-width characters vanish
    "\u200b": "", "\u200c": "", "\u200d": "", "\u2060": "", "\ufeff": "",
}

CURRENCY = {
    "€": "EUR", "₹": "INR", "₽": "RUB", "₩": "KRW",
    "₪": "ILS", "₫": "VND", "₺": "TRY", "₿": "BTC",
    "₱": "PHP", "₦": "NGN", "₴": "UAH", "₡": "CRC",
}

MARKS = {
    "™": "(TM)", "℠": "(SM)", "℗": "(P)",
    "℃": "°C", "℉": "°F", "№": "No.",
    "‰": "o/oo",
}

SCRIPT_BLOCKS = (
    (((0x0400, 0x052F),), "[Cyrillic]"),
    (((0x0590, 0x05FF),), "[Hebrew]"),
    (((0x0600, 0x06FF), (0x0750, 0x077F), (0xFB50, 0xFDFF), (0xFE70, 0xFEFF)), "[Arabic]"),
    (((0x0E00, 0x0E7F),), "[Thai]"),
    (((0x4E00, 0x9FFF), (0x3400, 0x4DBF), (0xF900, 0xFAFF)), "[CJK]"),
    (((0x3040, 0x309F), (0x30A0, 0x30FF)), "[Japanese]"),
    (((0xAC00, 0xD7AF), (0x1100, 0x11FF), (0x3130, 0x318F)), "[Korean]"),
    (((0x1F300, 0x1FAFF), (0x2600, 0x27BF), (0x1F000, 0x1F2FF)), "[Emoji]"),
)

RULES = (
    _table(PUNCTUATION),
    _table(ARROWS),
    _table(OPERATORS),
    _table(MATH),
    _table(SPACES),
    _table(CURRENCY),
    _table(MARKS),
    _block(((0x2070, 0x2070), (0x2074, 0x2079)), _digit),  # superscripts
    _block(((0x2080, 0x2089),), _digit),  # subscripts
    _block(((0x0391, 0x03A9), (0x03B1, 0x03C9)), _greek_name),
) + tuple(_block(ranges, tag) for ranges, tag in SCRIPT_BLOCKS)


def replace_char(ch: str) -> str:
    """Map one non-safe character to its replacement."""
    for rule in RULES:
        out = rule(ch)
        if out is not None:
            return out
    return "?"


def sanitize(text: str) -> str:
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", "    ")

    out = []
    for ch in text:
        if is_safe_char(ch):
            out.append(ch)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            continue
        else:
            out.append(replace_char(ch))
    return "".join(out)
