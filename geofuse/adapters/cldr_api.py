import requests
from typing import Dict, Iterable, Optional

from ..utils.log import log_line

CLDR_TERRITORIES_URL = (
    "https://raw.githubusercontent.com/unicode-org/cldr-json/main/cldr-json/"
    "cldr-localenames-full/main/{lang}/territories.json"
)
CLDR_TIMEOUT_S = 30

CLDR_LANGS = (
    "ar", "bn", "de", "el", "en", "es", "fa", "fr", "he", "hi", "hu", "id", "it",
    "ja", "ko", "nl", "pl", "pt", "ru", "sv", "tr", "uk", "ur", "vi", "zh", "zh-Hant",
)

# Territories commonly missing translations in Natural Earth style datasets
ALPHA2_TO_ALPHA3 = {
    "AD": "AND", "BB": "BRB", "BH": "BHR", "CG": "COG", "CV": "CPV",
    "CZ": "CZE", "DM": "DMA", "FM": "FSM", "FR": "FRA",
    "GD": "GRD", "KI": "KIR", "KM": "COM", "KP": "PRK", "LC": "LCA",
    "LI": "LIE", "MC": "MCO", "MH": "MHL", "MK": "MKD", "MT": "MLT",
    "MU": "MUS", "MV": "MDV", "NO": "NOR",
    "NR": "NRU", "PW": "PLW", "SC": "SYC", "SG": "SGP", "SM": "SMR",
    "SZ": "SWZ", "TO": "TGA", "VA": "VAT", "WS": "WSM",
}


def fetch_territory_names(lang: str, user_agent: Optional[str] = None) -> Dict[str, str]:
    """Alpha-2 code -> territory name for one CLDR locale; {} on any failure."""
    headers = {"User-Agent": user_agent} if user_agent else None
    url = CLDR_TERRITORIES_URL.format(lang=lang)
    try:
        r = requests.get(url, headers=headers, timeout=CLDR_TIMEOUT_S)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        log_line(f"WARN | cldr fetch failed | lang={lang} err={e!r}")
        return {}
    try:
        territories = data["main"][lang]["localeDisplayNames"]["territories"]
    except (KeyError, TypeError):
        log_line(f"WARN | cldr payload unexpected | lang={lang}")
        return {}
    return territories if isinstance(territories, dict) else {}


def build_dictionary(
    names_by_lang: Dict[str, Dict[str, str]],
    langs: Iterable[str] = CLDR_LANGS,
    alpha2_to_alpha3: Optional[Dict[str, str]] = None,
) -> Dict[str, Dict[str, str]]:
    """
    Translation dictionary keyed by upper-case ISO alpha-3 and by lower-case
    English name. Languages without a name fall back to English; territories
    without an English name are skipped.
    """
    langs = tuple(langs)
    english = names_by_lang.get("en") or {}
    out: Dict[str, Dict[str, str]] = {}
    for alpha2, alpha3 in (alpha2_to_alpha3 or ALPHA2_TO_ALPHA3).items():
        en_name = english.get(alpha2)
        if not en_name:
            log_line(f"WARN | cldr missing english name | alpha2={alpha2} alpha3={alpha3}")
            continue
        entry = {lang: (names_by_lang.get(lang) or {}).get(alpha2) or en_name for lang in langs}
        out[alpha3.upper()] = entry
        out[en_name.lower()] = entry
    return out


def fetch_cldr_dictionary(
    langs: Iterable[str] = CLDR_LANGS,
    user_agent: Optional[str] = None,
) -> Dict[str, Dict[str, str]]:
    langs = tuple(langs)
    names_by_lang = {lang: fetch_territory_names(lang, user_agent) for lang in langs}
    if "en" not in names_by_lang:
        names_by_lang["en"] = fetch_territory_names("en", user_agent)
    dictionary = build_dictionary(names_by_lang, langs)
    log_line(f"CLDR | langs={len(langs)} keys={len(dictionary)}")
    return dictionary
