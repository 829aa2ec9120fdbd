"""Location endpoint comparison - continuity test and gap classification."""

import math
import re

from tripline.models.common import Coordinates, LocationEndpoint
from tripline.models.issues import GapType

EARTH_RADIUS_KM = 6371.0
# Names this short or shorter never match by containment
MIN_CONTAINED_NAME = 5

# Simplified IATA lookup: code -> (city, ISO country)
AIRPORTS: dict[str, tuple[str, str]] = {
    "JFK": ("New York", "US"),
    "LGA": ("New York", "US"),
    "EWR": ("New York", "US"),
    "BOS": ("Boston", "US"),
    "PHL": ("Philadelphia", "US"),
    "IAD": ("Washington", "US"),
    "DCA": ("Washington", "US"),
    "ATL": ("Atlanta", "US"),
    "ORD": ("Chicago", "US"),
    "DFW": ("Dallas", "US"),
    "DEN": ("Denver", "US"),
    "LAX": ("Los Angeles", "US"),
    "SFO": ("San Francisco", "US"),
    "SEA": ("Seattle", "US"),
    "MIA": ("Miami", "US"),
    "HNL": ("Honolulu", "US"),
    "YYZ": ("Toronto", "CA"),
    "YVR": ("Vancouver", "CA"),
    "MEX": ("Mexico City", "MX"),
    "LHR": ("London", "GB"),
    "LGW": ("London", "GB"),
    "CDG": ("Paris", "FR"),
    "ORY": ("Paris", "FR"),
    "NCE": ("Nice", "FR"),
    "AMS": ("Amsterdam", "NL"),
    "BRU": ("Brussels", "BE"),
    "FRA": ("Frankfurt", "DE"),
    "MUC": ("Munich", "DE"),
    "BER": ("Berlin", "DE"),
    "ZRH": ("Zurich", "CH"),
    "GVA": ("Geneva", "CH"),
    "VIE": ("Vienna", "AT"),
    "MAD": ("Madrid", "ES"),
    "BCN": ("Barcelona", "ES"),
    "LIS": ("Lisbon", "PT"),
    "FCO": ("Rome", "IT"),
    "CIA": ("Rome", "IT"),
    "MXP": ("Milan", "IT"),
    "LIN": ("Milan", "IT"),
    "VCE": ("Venice", "IT"),
    "ATH": ("Athens", "GR"),
    "IST": ("Istanbul", "TR"),
    "DXB": ("Dubai", "AE"),
    "DEL": ("Delhi", "IN"),
    "SIN": ("Singapore", "SG"),
    "HKG": ("Hong Kong", "HK"),
    "NRT": ("Tokyo", "JP"),
    "HND": ("Tokyo", "JP"),
    "ICN": ("Seoul", "KR"),
    "SYD": ("Sydney", "AU"),
}

_CITY_SUFFIX = re.compile(r"\s+(airport|international|city|municipal)$")
_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lower-case, collapse whitespace, drop punctuation."""
    return _NON_WORD.sub("", _SPACES.sub(" ", name.lower().strip()))


def normalize_city(city: str) -> str:
    return _CITY_SUFFIX.sub("", normalize_name(city))


def resolve_city(location: LocationEndpoint) -> str | None:
    """Normalized city of ``location``: explicit city first, then airport code."""
    if location.city:
        return normalize_city(location.city)
    if location.code and location.code in AIRPORTS:
        return normalize_city(AIRPORTS[location.code][0])
    return None


def resolve_country(location: LocationEndpoint) -> str | None:
    if location.country:
        return location.country
    if location.code and location.code in AIRPORTS:
        return AIRPORTS[location.code][1]
    return None


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in kilometres."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _address_matches(a: LocationEndpoint, b: LocationEndpoint) -> bool:
    """One endpoint's street address names the other endpoint."""
    if a.street and normalize_name(a.street) == normalize_name(b.name):
        return True
    return bool(b.street and normalize_name(b.street) == normalize_name(a.name))


def _names_overlap(name_a: str, name_b: str) -> bool:
    """One normalized name contains the other, ignoring very short names."""
    if len(name_a) <= MIN_CONTAINED_NAME or len(name_b) <= MIN_CONTAINED_NAME:
        return False
    return name_a in name_b or name_b in name_a


def are_continuous(
    a: LocationEndpoint, b: LocationEndpoint, proximity_threshold_km: float
) -> bool | None:
    """Decide whether a traveler at ``a`` is already at ``b``.

    Rules, first match wins:
    1. equal codes -> continuous
    2. both have coordinates within ``proximity_threshold_km`` -> continuous
    3. one street address equals the other's name -> continuous
    4. equal normalized names, or one containing the other -> continuous
    5. both cities resolve -> continuous iff same city and countries agree

    Coordinates that are too far apart only decide the pair when no later
    rule has anything to say about it.

    Returns:
        True or False, or None when there is not enough data to decide.
    """
    if a.code and b.code and a.code == b.code:
        return True

    far_apart = False
    if a.coordinates and b.coordinates:
        if haversine_km(a.coordinates, b.coordinates) <= proximity_threshold_km:
            return True
        far_apart = True

    if _address_matches(a, b):
        return True

    name_a = normalize_name(a.name)
    name_b = normalize_name(b.name)
    if name_a == name_b or _names_overlap(name_a, name_b):
        return True

    city_a = resolve_city(a)
    city_b = resolve_city(b)
    if city_a is None or city_b is None:
        return False if far_apart else None
    if city_a != city_b:
        return False

    country_a = resolve_country(a)
    country_b = resolve_country(b)
    return not (country_a and country_b and country_a != country_b)


def classify_gap(a: LocationEndpoint, b: LocationEndpoint) -> GapType:
    """Classify the gap between two non-continuous endpoints."""
    country_a = resolve_country(a)
    country_b = resolve_country(b)
    if country_a and country_b and country_a != country_b:
        return GapType.international

    city_a = resolve_city(a)
    if city_a is not None and city_a == resolve_city(b):
        return GapType.local
    if not country_a or not country_b:
        return GapType.unknown
    return GapType.domestic


def describe_gap(a: LocationEndpoint, b: LocationEndpoint, gap_type: GapType) -> str:
    """Human-readable description of a geographic gap."""
    start = a.display_name()
    end = b.display_name()
    if gap_type == GapType.international:
        return f"International travel needed from {start} to {end}"
    if gap_type == GapType.domestic:
        return f"Domestic travel needed from {start} to {end}"
    if gap_type == GapType.local:
        return f"Local transfer needed from {start} to {end}"
    return f"Transportation gap between {start} and {end}"
