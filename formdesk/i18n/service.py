"""Message catalogs for visitor and dashboard responses, keyed by HTTP locale."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class I18nService:
    """Look up response messages for the best locale in an ``Accept-Language`` header.

    Catalogs are the ``<locale>.json`` files in ``locales_path``; they are read
    once on first use. Unknown keys fall back to the default locale, then to
    the key itself.
    """

    def __init__(self, *, locales_path: str | Path | None = None, default_locale: str = "en") -> None:
        self.locales_path = Path(locales_path or Path(__file__).with_name("locales"))
        self.default_locale = default_locale
        self._catalogs: dict[str, dict[str, str]] | None = None

    @property
    def catalogs(self) -> dict[str, dict[str, str]]:
        if self._catalogs is None:
            catalogs: dict[str, dict[str, str]] = {}
            for file_path in sorted(self.locales_path.glob("*.json")):
                with file_path.open("r", encoding="utf-8") as fp:
                    catalogs[file_path.stem.lower()] = json.load(fp)
            self._catalogs = catalogs
        return self._catalogs

    @property
    def available_locales(self) -> list[str]:
        return list(self.catalogs)

    def negotiate(self, accept_language: str | None) -> str:
        """Pick the supported locale with the highest quality value.

        ``"es-ES,es;q=0.9,en;q=0.8"`` resolves to ``"es"``; wildcards and
        unsupported languages resolve to the default locale.
        """

        if not accept_language:
            return self.default_locale
        ranked: list[tuple[float, int, str]] = []
        for position, part in enumerate(accept_language.split(",")):
            tag, _, params = part.strip().partition(";")
            language = tag.split("-")[0].strip().lower()
            if not language or language == "*":
                continue
            quality = 1.0
            params = params.strip()
            if params.startswith("q="):
                try:
                    quality = float(params[2:])
                except ValueError:
                    quality = 0.0
            if quality > 0:
                ranked.append((-quality, position, language))
        for _, _, language in sorted(ranked):
            if language in self.catalogs:
                return language
        return self.default_locale

    def gettext(self, key: str, *, locale: str | None = None, **kwargs: Any) -> str:
        """Translate ``key``; ``locale`` may be a raw ``Accept-Language`` value."""

        resolved = self.negotiate(locale)
        text = self.catalogs.get(resolved, {}).get(key)
        if text is None:
            text = self.catalogs.get(self.default_locale, {}).get(key, key)
        return text.format(**kwargs) if kwargs else text


__all__ = ["I18nService"]
