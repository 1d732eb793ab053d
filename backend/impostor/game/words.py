from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


CHARACTERS: tuple[str, ...] = (
    "Lion", "Wolf", "Owl", "Fox", "Bear", "Cat", "Dog", "Panda",
    "Shark", "Eagle", "Snake", "Rabbit", "Mouse", "Turtle", "Monkey",
    "Elephant", "Tiger", "Dolphin", "Horse", "Goat",
)

CATEGORIES: dict[str, tuple[str, ...]] = {
    "Movies": (
        "Dark Knight", "Inception", "No Smoking", "Welcome", "Dhamaal", "Phir Hera Pheri",
        "Oppenheimer", "Black Phone", "PK", "Interstellar", "12 Angry Men", "The Godfather",
    ),
    "Sports": (
        "Cricket", "Football", "Hockey", "Kabbadi", "Tennis", "Badminton",
        "Table Tennis", "Basketball", "Baseball", "Boxing", "Golf", "Wrestling",
    ),
    "Country": (
        "Pakistan", "Nepal", "Sri Lanka", "Thailand", "Maldives", "China",
        "Russia", "USA", "Germany", "Australia", "France", "Brazil",
    ),
    "Food": (
        "Dal Chawal", "Dhokla", "Veg Biryani", "Chicken Biryani", "Poha", "Puran Poli",
        "Chole Bhature", "Vada Pav", "Dosa", "Shawarma", "Momos", "Prawns",
    ),
    "Famous Personality": (
        "Nikola Tesla", "Einstein", "Thomas Young", "Huygens", "Newton", "Pablo Picasso",
        "Michael Jackson", "Marie Curie", "Gandhi", "Sigmund Freud", "Muhammad Ali", "Stephen Hawking",
    ),
    "Random Object": (
        "Mirror", "Umbrella", "Pillow", "Clock", "Toothbrush", "Hammer",
        "Soap", "Map", "Helmet", "Bucket", "Charger", "Laptop",
    ),
    "Animal": (
        "Giraffe", "Penguin", "Kangaroo", "Camel", "Octopus", "Zebra",
        "Crocodile", "Peacock", "Hippo", "Koala", "Bat", "Squirrel",
    ),
    "Place": (
        "Airport", "Hospital", "Library", "Beach", "Cinema", "Temple",
        "Railway Station", "School", "Museum", "Zoo", "Market", "Stadium",
    ),
}


def random_choice(items: Sequence[T], rng: random.Random | None = None) -> T:
    if not items:
        raise ValueError("random_choice() needs a non-empty sequence")
    return (rng or random).choice(items)


def pick_secret(rng: random.Random | None = None) -> tuple[str, str]:
    """Returns (category, secret) with the secret drawn from that category."""
    category = random_choice(sorted(CATEGORIES), rng)
    return category, random_choice(CATEGORIES[category], rng)


def is_valid_character(character: str) -> bool:
    return character in CHARACTERS
