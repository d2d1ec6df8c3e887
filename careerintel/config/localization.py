"""Search-engine localization table for job searches.

Maps a lower-case country code to the ``hl`` (interface language), ``gl``
(Google country) and ``google_domain`` parameters the jobs engines expect.
Note that Great Britain uses ``gl=uk``, not ``gb``.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_COUNTRY_CODE = "gb"


@dataclass(frozen=True)
class Localization:
    """Language / country / domain triple sent with every jobs request."""

    hl: str
    gl: str
    google_domain: str


LOCALIZATIONS: dict[str, Localization] = {
    # English-speaking
    "gb": Localization(hl="en", gl="uk", google_domain="google.co.uk"),
    "us": Localization(hl="en", gl="us", google_domain="google.com"),
    "ca": Localization(hl="en", gl="ca", google_domain="google.ca"),
    "au": Localization(hl="en", gl="au", google_domain="google.com.au"),
    "ie": Localization(hl="en", gl="ie", google_domain="google.ie"),
    "nz": Localization(hl="en", gl="nz", google_domain="google.co.nz"),
    "za": Localization(hl="en", gl="za", google_domain="google.co.za"),
    # Europe
    "de": Localization(hl="de", gl="de", google_domain="google.de"),
    "fr": Localization(hl="fr", gl="fr", google_domain="google.fr"),
    "es": Localization(hl="es", gl="es", google_domain="google.es"),
    "it": Localization(hl="it", gl="it", google_domain="google.it"),
    "nl": Localization(hl="nl", gl="nl", google_domain="google.nl"),
    "be": Localization(hl="nl", gl="be", google_domain="google.be"),
    "ch": Localization(hl="de", gl="ch", google_domain="google.ch"),
    "at": Localization(hl="de", gl="at", google_domain="google.at"),
    # Asia-Pacific
    "in": Localization(hl="en", gl="in", google_domain="google.co.in"),
    "sg": Localization(hl="en", gl="sg", google_domain="google.com.sg"),
    "hk": Localization(hl="en", gl="hk", google_domain="google.com.hk"),
    "jp": Localization(hl="ja", gl="jp", google_domain="google.co.jp"),
    # Americas
    "br": Localization(hl="pt", gl="br", google_domain="google.com.br"),
    "mx": Localization(hl="es", gl="mx", google_domain="google.com.mx"),
}


def get_localization(country_code: str | None) -> Localization:
    """Return the localization for *country_code*, falling back to GB."""
    if not country_code:
        return LOCALIZATIONS[DEFAULT_COUNTRY_CODE]
    return LOCALIZATIONS.get(country_code.strip().lower(), LOCALIZATIONS[DEFAULT_COUNTRY_CODE])
