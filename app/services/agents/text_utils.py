"""
Text-Hilfsfunktionen, die von mehreren Prüfschichten geteilt werden.

- URL-Erkennung und -Entfernung (gleiches Muster für Compliance, AutoFix und
  Kandidatenauswahl, damit "URL-frei" überall dasselbe bedeutet)
- effektive Länge (zh-CN: Zeichen, sonst Wortanzahl * 5)
- locale-abhängiges Kürzen mit Auslassungszeichen
"""

import re

ZH_CN = "zh-CN"
ELLIPSIS = "..."
AVG_WORD_LENGTH = 5

# Schema-Präfix, www. oder nackte Domain (inkl. optionalem Pfad)
URL_PATTERN = re.compile(r"https?://|www\.|(?:[a-z0-9-]+\.)+[a-z]{2,}(?:[/?#]\S*)?", re.IGNORECASE)
# Entfernt jeweils das ganze Token
_URL_STRIP_PATTERN = re.compile(
    r"https?://\S*|www\.\S*|(?:[a-z0-9-]+\.)+[a-z]{2,}(?:[/?#]\S*)?",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def has_url(text: str) -> bool:
    return bool(URL_PATTERN.search(text or ""))


def strip_urls(text: str) -> str:
    # wiederholen, bis nichts mehr matcht (Entfernen kann neue Nachbarschaften erzeugen)
    while URL_PATTERN.search(text):
        text = _URL_STRIP_PATTERN.sub("", text)
    return collapse_whitespace(text)


def effective_length(text: str, locale: str) -> int:
    if locale == ZH_CN:
        return len(text)
    return len(text.split()) * AVG_WORD_LENGTH


def truncate_text(text: str, limit: int, locale: str) -> str:
    """
    zh-CN: die ersten `limit` Zeichen plus Auslassungszeichen (der Aufrufer
    reserviert dafür bereits Platz). Sonst an Wortgrenzen; Zeichenlänge und effektive Länge
    (Wörter * 5) bleiben inklusive Auslassungszeichen unter `limit`.

    Passt nichts mehr vor das Auslassungszeichen, ist das Ergebnis leer.
    """
    limit = max(0, limit)
    if locale == ZH_CN:
        if len(text) <= limit:
            return text
        if limit == 0:
            return ""
        return text[:limit] + ELLIPSIS

    words = text.split()
    if len(text) <= limit and len(words) * AVG_WORD_LENGTH <= limit:
        return text

    budget = limit - len(ELLIPSIS)
    kept: list[str] = []
    for word in words:
        if len(" ".join(kept + [word])) > budget:
            break
        if (len(kept) + 1) * AVG_WORD_LENGTH > budget:
            break
        kept.append(word)
    if not kept:
        # ein nacktes "..." zählt selbst als Wort
        return ""
    return " ".join(kept) + ELLIPSIS
