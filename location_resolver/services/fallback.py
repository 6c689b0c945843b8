"""Static fallback table.

A small, code-embedded map of well-known city names to their main airport.
It is consulted only after the repository path misses or fails, so a
resolver with an unreachable dataset still answers the common cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..domain.models import LocationType, LookupResult, ResultSource
from ..domain.normalization import looks_like_iata, normalize_query


@dataclass(frozen=True, slots=True)
class FallbackAirport:
    iata_code: str
    name: str
    city: str
    country: str


_TABLE = {
    "toronto": ("YYZ", "Toronto Pearson International Airport", "Toronto", "Canada"),
    "vancouver": ("YVR", "Vancouver International Airport", "Vancouver", "Canada"),
    "montreal": ("YUL", "Montreal-Pierre Elliott Trudeau International Airport", "Montreal", "Canada"),
    "calgary": ("YYC", "Calgary International Airport", "Calgary", "Canada"),
    "ottawa": ("YOW", "Ottawa Macdonald-Cartier International Airport", "Ottawa", "Canada"),
    "new york": ("JFK", "John F. Kennedy International Airport", "New York", "USA"),
    "nyc": ("JFK", "John F. Kennedy International Airport", "New York", "USA"),
    "los angeles": ("LAX", "Los Angeles International Airport", "Los Angeles", "USA"),
    "la": ("LAX", "Los Angeles International Airport", "Los Angeles", "USA"),
    "san francisco": ("SFO", "San Francisco International Airport", "San Francisco", "USA"),
    "sf": ("SFO", "San Francisco International Airport", "San Francisco", "USA"),
    "miami": ("MIA", "Miami International Airport", "Miami", "USA"),
    "seattle": ("SEA", "Seattle-Tacoma International Airport", "Seattle", "USA"),
    "boston": ("BOS", "Logan International Airport", "Boston", "USA"),
    "chicago": ("ORD", "O'Hare International Airport", "Chicago", "USA"),
    "dallas": ("DFW", "Dallas/Fort Worth International Airport", "Dallas", "USA"),
    "houston": ("IAH", "George Bush Intercontinental Airport", "Houston", "USA"),
    "denver": ("DEN", "Denver International Airport", "Denver", "USA"),
    "atlanta": ("ATL", "Hartsfield-Jackson Atlanta International Airport", "Atlanta", "USA"),
    "las vegas": ("LAS", "Harry Reid International Airport", "Las Vegas", "USA"),
    "vegas": ("LAS", "Harry Reid International Airport", "Las Vegas", "USA"),
    "orlando": ("MCO", "Orlando International Airport", "Orlando", "USA"),
    "phoenix": ("PHX", "Phoenix Sky Harbor International Airport", "Phoenix", "USA"),
    "philadelphia": ("PHL", "Philadelphia International Airport", "Philadelphia", "USA"),
    "san diego": ("SAN", "San Diego International Airport", "San Diego", "USA"),
    "portland": ("PDX", "Portland International Airport", "Portland", "USA"),
    "nashville": ("BNA", "Nashville International Airport", "Nashville", "USA"),
    "austin": ("AUS", "Austin-Bergstrom International Airport", "Austin", "USA"),
    "washington": ("IAD", "Washington Dulles International Airport", "Washington", "USA"),
    "dc": ("DCA", "Ronald Reagan Washington National Airport", "Washington DC", "USA"),
    "london": ("LHR", "London Heathrow Airport", "London", "UK"),
    "paris": ("CDG", "Charles de Gaulle Airport", "Paris", "France"),
    "madrid": ("MAD", "Adolfo Suárez Madrid–Barajas Airport", "Madrid", "Spain"),
    "barcelona": ("BCN", "Barcelona-El Prat Airport", "Barcelona", "Spain"),
    "rome": ("FCO", "Leonardo da Vinci–Fiumicino Airport", "Rome", "Italy"),
    "amsterdam": ("AMS", "Amsterdam Airport Schiphol", "Amsterdam", "Netherlands"),
    "frankfurt": ("FRA", "Frankfurt Airport", "Frankfurt", "Germany"),
    "dublin": ("DUB", "Dublin Airport", "Dublin", "Ireland"),
    "berlin": ("BER", "Berlin Brandenburg Airport", "Berlin", "Germany"),
    "munich": ("MUC", "Munich Airport", "Munich", "Germany"),
    "vienna": ("VIE", "Vienna International Airport", "Vienna", "Austria"),
    "zurich": ("ZRH", "Zurich Airport", "Zurich", "Switzerland"),
    "brussels": ("BRU", "Brussels Airport", "Brussels", "Belgium"),
    "lisbon": ("LIS", "Lisbon Portela Airport", "Lisbon", "Portugal"),
    "copenhagen": ("CPH", "Copenhagen Airport", "Copenhagen", "Denmark"),
    "stockholm": ("ARN", "Stockholm Arlanda Airport", "Stockholm", "Sweden"),
    "oslo": ("OSL", "Oslo Airport", "Oslo", "Norway"),
    "helsinki": ("HEL", "Helsinki-Vantaa Airport", "Helsinki", "Finland"),
    "reykjavik": ("KEF", "Keflavík International Airport", "Reykjavik", "Iceland"),
    "athens": ("ATH", "Athens International Airport", "Athens", "Greece"),
    "istanbul": ("IST", "Istanbul Airport", "Istanbul", "Turkey"),
    "prague": ("PRG", "Václav Havel Airport Prague", "Prague", "Czech Republic"),
    "warsaw": ("WAW", "Warsaw Chopin Airport", "Warsaw", "Poland"),
    "bucharest": ("OTP", "Henri Coandă International Airport", "Bucharest", "Romania"),
    "budapest": ("BUD", "Budapest Ferenc Liszt International Airport", "Budapest", "Hungary"),
    "milan": ("MXP", "Milan Malpensa Airport", "Milan", "Italy"),
    "venice": ("VCE", "Venice Marco Polo Airport", "Venice", "Italy"),
    "edinburgh": ("EDI", "Edinburgh Airport", "Edinburgh", "UK"),
    "manchester": ("MAN", "Manchester Airport", "Manchester", "UK"),
    "tokyo": ("NRT", "Narita International Airport", "Tokyo", "Japan"),
    "singapore": ("SIN", "Singapore Changi Airport", "Singapore", "Singapore"),
    "sydney": ("SYD", "Sydney Kingsford Smith Airport", "Sydney", "Australia"),
    "melbourne": ("MEL", "Melbourne Airport", "Melbourne", "Australia"),
    "brisbane": ("BNE", "Brisbane Airport", "Brisbane", "Australia"),
    "auckland": ("AKL", "Auckland Airport", "Auckland", "New Zealand"),
    "dubai": ("DXB", "Dubai International Airport", "Dubai", "UAE"),
    "bangkok": ("BKK", "Suvarnabhumi Airport", "Bangkok", "Thailand"),
    "hong kong": ("HKG", "Hong Kong International Airport", "Hong Kong", "Hong Kong"),
    "seoul": ("ICN", "Incheon International Airport", "Seoul", "South Korea"),
    "beijing": ("PEK", "Beijing Capital International Airport", "Beijing", "China"),
    "shanghai": ("PVG", "Shanghai Pudong International Airport", "Shanghai", "China"),
    "delhi": ("DEL", "Indira Gandhi International Airport", "Delhi", "India"),
    "mumbai": ("BOM", "Chhatrapati Shivaji Maharaj International Airport", "Mumbai", "India"),
    "kuala lumpur": ("KUL", "Kuala Lumpur International Airport", "Kuala Lumpur", "Malaysia"),
    "jakarta": ("CGK", "Soekarno-Hatta International Airport", "Jakarta", "Indonesia"),
    "manila": ("MNL", "Ninoy Aquino International Airport", "Manila", "Philippines"),
    "taipei": ("TPE", "Taiwan Taoyuan International Airport", "Taipei", "Taiwan"),
    "bali": ("DPS", "Ngurah Rai International Airport", "Denpasar", "Indonesia"),
    "phuket": ("HKT", "Phuket International Airport", "Phuket", "Thailand"),
    "mexico city": ("MEX", "Mexico City International Airport", "Mexico City", "Mexico"),
    "cancun": ("CUN", "Cancún International Airport", "Cancun", "Mexico"),
    "sao paulo": ("GRU", "São Paulo/Guarulhos International Airport", "São Paulo", "Brazil"),
    "rio de janeiro": ("GIG", "Rio de Janeiro/Galeão International Airport", "Rio de Janeiro", "Brazil"),
    "rio": ("GIG", "Rio de Janeiro/Galeão International Airport", "Rio de Janeiro", "Brazil"),
    "buenos aires": ("EZE", "Ministro Pistarini International Airport", "Buenos Aires", "Argentina"),
    "santiago": ("SCL", "Arturo Merino Benítez International Airport", "Santiago", "Chile"),
    "bogota": ("BOG", "El Dorado International Airport", "Bogotá", "Colombia"),
    "lima": ("LIM", "Jorge Chávez International Airport", "Lima", "Peru"),
    "johannesburg": ("JNB", "O.R. Tambo International Airport", "Johannesburg", "South Africa"),
    "cape town": ("CPT", "Cape Town International Airport", "Cape Town", "South Africa"),
    "cairo": ("CAI", "Cairo International Airport", "Cairo", "Egypt"),
    "doha": ("DOH", "Hamad International Airport", "Doha", "Qatar"),
    "tel aviv": ("TLV", "Ben Gurion Airport", "Tel Aviv", "Israel"),
}

FALLBACK_AIRPORTS: Dict[str, FallbackAirport] = {
    key: FallbackAirport(*row) for key, row in _TABLE.items()
}


def lookup_fallback(
    query: str,
    confidence: float = 0.9,
    code_confidence: float = 0.8,
) -> Optional[LookupResult]:
    """Resolve a query against the static table.

    Known city keys answer with ``confidence``. Any other bare three-letter
    query is assumed to be a valid IATA code and answers with the lower
    ``code_confidence``; its name is synthesized and its city and country
    are unknown.

    Args:
        query: Raw or normalized query text.
        confidence: Confidence for table hits.
        code_confidence: Confidence for assumed codes.

    Returns:
        An airport result with source ``fallback`` and no alternatives, or
        None when the query is neither a table key nor a code.
    """
    normalized = normalize_query(query)
    entry = FALLBACK_AIRPORTS.get(normalized) or FALLBACK_AIRPORTS.get(
        query.lower().strip()
    )
    if entry is not None:
        return LookupResult(
            type=LocationType.AIRPORT,
            iata_code=entry.iata_code,
            name=entry.name,
            city=entry.city,
            country=entry.country,
            confidence=round(confidence, 2),
            source=ResultSource.FALLBACK,
        )

    if looks_like_iata(normalized):
        code = normalized.upper()
        return LookupResult(
            type=LocationType.AIRPORT,
            iata_code=code,
            name=f"{code} Airport",
            city="Unknown",
            country="Unknown",
            confidence=round(code_confidence, 2),
            source=ResultSource.FALLBACK,
        )

    return None
