"""Tests for endpoint continuity and gap classification."""

from factories import airport, place

from tripline.models import Coordinates, GapType, LocationEndpoint
from tripline.scheduling.locations import (
    are_continuous,
    classify_gap,
    describe_gap,
    haversine_km,
    resolve_city,
)

THRESHOLD_KM = 30.0

PARIS = Coordinates(latitude=48.8566, longitude=2.3522)
VERSAILLES = Coordinates(latitude=48.8049, longitude=2.1204)
LONDON = Coordinates(latitude=51.5074, longitude=-0.1278)
DULLES = Coordinates(latitude=38.9531, longitude=-77.4565)
WHITE_HOUSE = Coordinates(latitude=38.8977, longitude=-77.0365)


def test_equal_codes_are_continuous() -> None:
    assert are_continuous(airport("CDG"), airport("CDG"), THRESHOLD_KM) is True


def test_two_airports_of_one_city_are_continuous() -> None:
    assert are_continuous(airport("JFK"), airport("LGA"), THRESHOLD_KM) is True


def test_airport_code_resolves_to_city() -> None:
    assert resolve_city(airport("CDG")) == "paris"
    assert are_continuous(airport("CDG"), place("Hotel Le Marais", "Paris"), THRESHOLD_KM) is True


def test_different_cities_are_not_continuous() -> None:
    louvre = place("Louvre", "Paris")
    assert are_continuous(louvre, place("Vieux Lyon", "Lyon"), THRESHOLD_KM) is False


def test_same_city_name_in_different_countries() -> None:
    paris_fr = LocationEndpoint(name="Eiffel Tower", city="Paris", country="FR")
    paris_tx = LocationEndpoint(name="Eiffel Tower replica", city="Paris", country="US")
    assert are_continuous(paris_fr, paris_tx, THRESHOLD_KM) is False


def test_coordinates_within_threshold() -> None:
    a = LocationEndpoint(name="Notre Dame", coordinates=PARIS)
    b = LocationEndpoint(name="Versailles", coordinates=VERSAILLES)
    c = LocationEndpoint(name="Big Ben", coordinates=LONDON)

    assert are_continuous(a, b, THRESHOLD_KM) is True
    assert are_continuous(a, c, THRESHOLD_KM) is False


def test_far_coordinates_in_one_city_are_continuous() -> None:
    dulles = LocationEndpoint(
        name="Dulles International", code="IAD", country="US", coordinates=DULLES
    )
    hotel = LocationEndpoint(
        name="Hotel Washington", city="Washington", country="US", coordinates=WHITE_HOUSE
    )

    assert haversine_km(DULLES, WHITE_HOUSE) > THRESHOLD_KM
    assert are_continuous(dulles, hotel, THRESHOLD_KM) is True


def test_street_address_matches_named_endpoint() -> None:
    hotel = LocationEndpoint(
        name="King George Hotel", street="3 Vasileos Georgiou A St.", city="Athens"
    )
    pickup = LocationEndpoint(name="3 Vasileos Georgiou A St")

    assert are_continuous(hotel, pickup, THRESHOLD_KM) is True
    assert are_continuous(pickup, hotel, THRESHOLD_KM) is True


def test_contained_names_are_continuous() -> None:
    lobby = place("Four Seasons Lobby")
    assert are_continuous(place("Four Seasons"), lobby, THRESHOLD_KM) is True
    assert are_continuous(place("Ritz"), place("Ritz Carlton Bar"), THRESHOLD_KM) is None


def test_equal_names_are_continuous() -> None:
    assert are_continuous(place("Louvre Museum"), place("louvre  museum"), THRESHOLD_KM) is True


def test_undecidable_without_city_data() -> None:
    assert are_continuous(place("Somewhere"), place("Elsewhere"), THRESHOLD_KM) is None


def test_haversine_paris_london() -> None:
    assert 330 < haversine_km(PARIS, LONDON) < 360


def test_classify_gap() -> None:
    assert classify_gap(place("Louvre", "Paris"), place("Vieux Lyon", "Lyon")) == GapType.domestic
    assert classify_gap(airport("CDG"), airport("FCO")) == GapType.international
    assert classify_gap(place("Somewhere"), place("Elsewhere")) == GapType.unknown
    assert classify_gap(place("Louvre", "Paris"), place("Orly", "Paris")) == GapType.local


def test_describe_gap_mentions_both_ends() -> None:
    description = describe_gap(airport("CDG"), airport("FCO"), GapType.international)
    assert description.startswith("International travel needed")
    assert "CDG" in description and "FCO" in description


def test_describe_local_gap() -> None:
    louvre = place("Louvre", "Paris")
    description = describe_gap(louvre, place("Orly", "Paris"), GapType.local)
    assert description == "Local transfer needed from Louvre, Paris to Orly, Paris"
