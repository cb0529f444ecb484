"""
Shared fixtures: a small catalog export exercising every cleaning step.

Expected outcome with ImputationConfig.default():
- s1 duplicate (second row) removed
- s2 director imputed from identical cast, country from director
- s3 director imputed from a shared cast member
- s5 dropped (blank rating)
- s6 country has no evidence → "Not Given" (registry override → Canada)
- s7 director and country → "Not Given"
- s8 country reduced to "United States"
"""
import pytest

from catalog_pipeline.cleaners.config import ImputationConfig


def _row(show_id, type_, title, director, cast, country, date_added, release_year,
         rating, duration, listed_in, description="x"):
    return {
        "show_id": show_id,
        "type": type_,
        "title": title,
        "director": director,
        "cast": cast,
        "country": country,
        "date_added": date_added,
        "release_year": release_year,
        "rating": rating,
        "duration": duration,
        "listed_in": listed_in,
        "description": description,
    }


@pytest.fixture
def raw_records():
    """Raw catalog rows with blanks, duplicates and multi-valued fields."""
    return [
        _row("s1", "Movie", "Our Planet Special", "Alastair Fothergill", "David Attenborough",
             "United Kingdom", "September 25, 2021", "2020", "TV-G", "90 min",
             "Documentaries, International Movies"),
        _row("s2", "Movie", "Night on Earth", None, "David Attenborough",
             "", "September 24, 2021", "2021", "TV-PG", "45 min", "Documentaries"),
        _row("s3", "TV Show", "Kota Factory", "  ", "Jitendra Kumar, Mayur More",
             "India", "September 24, 2021", "2021", "TV-MA", "2 Seasons",
             "International TV Shows, TV Comedies"),
        _row("s4", "Movie", "Dry Day", "Saurabh Shukla", "Jitendra Kumar, Shriya Pilgaonkar",
             "India", "January 1, 2022", "2022", "TV-14", "120 min", "Comedies, Dramas"),
        _row("s1", "Movie", "Duplicate Entry", "Someone Else", None,
             "France", "May 1, 2020", "2019", "R", "100 min", "Dramas"),
        _row("s5", "Movie", "No Rating", "Someone", None,
             "Spain", "May 1, 2020", "2019", "", "100 min", "Dramas"),
        _row("s6", "Movie", "Joey Film", "Joey So", None,
             None, "March 3, 2020", "2018", "TV-Y", "61 min", "Children & Family Movies"),
        _row("s7", "TV Show", "Mystery Show", None, None,
             None, "June 5, 2021", "2020", "TV-14", "1 Season", "Docuseries"),
        _row("s8", "Movie", "Border Story", "Ana Lee", None,
             " United States, India ", "July 4, 2019", "2019", "PG-13", "150 min",
             "Dramas, Independent Movies"),
    ]


@pytest.fixture
def config():
    """Default catalog cleaning configuration."""
    return ImputationConfig.default()


@pytest.fixture
def by_id():
    """Index canonical records by show_id."""
    def index(records):
        return {record["show_id"]: record for record in records}
    return index
