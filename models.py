"""
Domain catalog for Planet Heroes
Badge kinds, mini-game types, user roles, the award rule and the eco fact list
"""

import math
import random
from dataclasses import dataclass
from enum import Enum

USERS_COLLECTION = 'users'
DEFAULT_BADGE_ICON = 'fa-medal'


class UserRole(str, Enum):
    STUDENT = 'student'
    TEACHER = 'teacher'


class BadgeKind(str, Enum):
    WASTE_WARRIOR = 'waste_warrior'
    WATER_SAVER = 'water_saver'
    GREEN_THUMB = 'green_thumb'
    ECO_CHAMPION = 'eco_champion'
    PLANET_PROTECTOR = 'planet_protector'
    CARBON_CRUSHER = 'carbon_crusher'


class GameType(str, Enum):
    WASTE_SORTING = 'waste_sorting'
    WATER_SAVER = 'water_saver'
    PLANT_TREE = 'plant_tree'


@dataclass(frozen=True)
class BadgeInfo:
    name: str
    icon: str


@dataclass(frozen=True)
class GameInfo:
    title: str
    description: str
    icon: str


@dataclass(frozen=True)
class AwardRule:
    threshold: int
    badge: BadgeKind


@dataclass(frozen=True)
class EcoFact:
    title: str
    description: str


BADGES = {
    BadgeKind.WASTE_WARRIOR: BadgeInfo('Waste Warrior', 'fa-recycle'),
    BadgeKind.WATER_SAVER: BadgeInfo('Water Saver', 'fa-tint'),
    BadgeKind.GREEN_THUMB: BadgeInfo('Green Thumb', 'fa-seedling'),
    BadgeKind.ECO_CHAMPION: BadgeInfo('Eco Champion', 'fa-leaf'),
    BadgeKind.PLANET_PROTECTOR: BadgeInfo('Planet Protector', 'fa-globe'),
    BadgeKind.CARBON_CRUSHER: BadgeInfo('Carbon Crusher', 'fa-industry'),
}

GAMES = {
    GameType.WASTE_SORTING: GameInfo(
        'Waste Sorting Hero',
        'Drag and drop items into the correct recycling bins. Master waste segregation and save the planet!',
        'fa-recycle',
    ),
    GameType.WATER_SAVER: GameInfo(
        'Water Saver Hero',
        'Click to stop dripping taps before the bucket overflows! Every drop saved counts toward saving our planet.',
        'fa-tint',
    ),
    GameType.PLANT_TREE: GameInfo(
        'Tree Planting Hero',
        'Click to water your tree and watch it grow through 3 stages. Nurture life and become a Green Thumb hero!',
        'fa-seedling',
    ),
}

AWARD_RULES = {
    GameType.WASTE_SORTING: AwardRule(50, BadgeKind.WASTE_WARRIOR),
    GameType.WATER_SAVER: AwardRule(25, BadgeKind.WATER_SAVER),
    GameType.PLANT_TREE: AwardRule(100, BadgeKind.GREEN_THUMB),
}

ECO_FACTS = (
    EcoFact(
        'Every minute, one million plastic bottles are purchased worldwide!',
        'By reducing single-use plastics, you can help save marine life and reduce ocean pollution.',
    ),
    EcoFact(
        'A single tree can absorb 48 pounds of CO2 per year!',
        'Planting trees is one of the most effective ways to combat climate change.',
    ),
    EcoFact(
        'Turning off the tap while brushing teeth saves 8 gallons of water!',
        'Small water-saving habits can make a huge environmental impact.',
    ),
)


def _check_covers(table, enum_cls):
    missing = set(enum_cls) - set(table)
    if missing:
        names = ', '.join(sorted(m.value for m in missing))
        raise RuntimeError(f"{enum_cls.__name__} table is missing entries for: {names}")


_check_covers(BADGES, BadgeKind)
_check_covers(GAMES, GameType)
_check_covers(AWARD_RULES, GameType)


def parse_game_type(value):
    """
    Return the GameType for a raw value, or None when it is not a known game
    """
    try:
        return GameType(value)
    except ValueError:
        return None


def badge_for(game_type, score):
    """
    Award rule: the badge a single completion qualifies for, or None
    """
    game = parse_game_type(game_type)
    if game is None:
        return None
    rule = AWARD_RULES[game]
    return rule.badge if score >= rule.threshold else None


def badge_display(badge):
    """
    Display record for a stored badge value; unknown values fall back to the raw string
    """
    try:
        info = BADGES[BadgeKind(badge)]
    except ValueError:
        return {'id': badge, 'name': badge, 'icon': DEFAULT_BADGE_ICON}
    return {'id': BadgeKind(badge).value, 'name': info.name, 'icon': info.icon}


def random_fact(rng=None):
    return (rng or random).choice(ECO_FACTS)


def level_for_points(points):
    """
    Level = floor(sqrt(points / 100)) + 1
    """
    if points <= 0:
        return 1
    return math.floor(math.sqrt(points / 100)) + 1


def new_profile(email, name, role, now):
    return {
        'email': email or '',
        'name': name or '',
        'role': UserRole(role).value,
        'totalPoints': 0,
        'badges': [],
        'level': 1,
        'createdAt': now,
        'lastActive': now,
    }


def profile_with_defaults(user_id, data):
    """
    Fill in defaults for a profile document; a missing document reads as a fresh profile
    """
    data = data or {}
    return {
        'id': user_id,
        'email': data.get('email', ''),
        'name': data.get('name', ''),
        'role': data.get('role', UserRole.STUDENT.value),
        'totalPoints': data.get('totalPoints') or 0,
        'badges': list(data.get('badges') or []),
        'level': data.get('level') or 1,
        'createdAt': data.get('createdAt'),
        'lastActive': data.get('lastActive'),
    }
