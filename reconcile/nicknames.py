"""Static first-name nickname table and equivalence checks."""

from types import MappingProxyType
from typing import Mapping

# Key: canonical first name, Value: known nicknames (all lowercase)
_NICKNAMES: dict[str, tuple[str, ...]] = {
    'alexander': ('alex', 'alec', 'al', 'sandy', 'xander'),
    'alexandra': ('alex', 'alexa', 'sandy', 'lexi'),
    'andrew': ('andy', 'drew'),
    'anthony': ('tony', 'ant'),
    'barbara': ('barb', 'barbie', 'babs'),
    'benjamin': ('ben', 'benny', 'benji'),
    'catherine': ('cathy', 'cat', 'kate', 'katie'),
    'charles': ('charlie', 'chuck', 'chas'),
    'christine': ('chris', 'chrissy', 'tina'),
    'christopher': ('chris', 'kit', 'topher'),
    'daniel': ('dan', 'danny'),
    'david': ('dave', 'davey'),
    'deborah': ('deb', 'debbie', 'debby'),
    'donald': ('don', 'donny', 'donnie'),
    'dorothy': ('dot', 'dotty', 'dottie'),
    'edward': ('ed', 'eddie', 'ted', 'teddy', 'ned'),
    'elizabeth': ('liz', 'lizzy', 'beth', 'betty', 'eliza', 'libby', 'eli', 'ellie'),
    'frederick': ('fred', 'freddy', 'freddie'),
    'geoffrey': ('geoff', 'jeff'),
    'gerald': ('gerry', 'jerry'),
    'gregory': ('greg', 'gregg'),
    'james': ('jim', 'jimmy', 'jamie', 'jem'),
    'jeffrey': ('jeff', 'geoff'),
    'jennifer': ('jen', 'jenny', 'jenn'),
    'jessica': ('jess', 'jessie'),
    'john': ('jack', 'johnny', 'jon'),
    'jonathan': ('jon', 'jonny', 'john'),
    'joseph': ('joe', 'joey', 'jo'),
    'joshua': ('josh',),
    'katherine': ('kate', 'kathy', 'katie', 'katy', 'kay', 'kit', 'kitty'),
    'kenneth': ('ken', 'kenny'),
    'lawrence': ('larry', 'lars'),
    'leonard': ('leo', 'len', 'lenny'),
    'margaret': ('maggie', 'meg', 'peggy', 'marge', 'margie', 'megan'),
    'matthew': ('matt', 'matty'),
    'michael': ('mike', 'mikey', 'mick'),
    'nicholas': ('nick', 'nicky'),
    'patricia': ('pat', 'patty', 'trish', 'trisha'),
    'patrick': ('pat', 'paddy', 'patty'),
    'peter': ('pete',),
    'philip': ('phil',),
    'phillip': ('phil',),
    'raymond': ('ray',),
    'rebecca': ('becky', 'becca'),
    'richard': ('rick', 'ricky', 'dick', 'rich', 'richie'),
    'robert': ('bob', 'bobby', 'rob', 'robbie', 'bert'),
    'ronald': ('ron', 'ronny', 'ronnie'),
    'samuel': ('sam', 'sammy'),
    'sandra': ('sandy',),
    'stephanie': ('steph', 'stephy'),
    'stephen': ('steve', 'stevie'),
    'steven': ('steve', 'stevie'),
    'susan': ('sue', 'susie', 'suzy'),
    'theodore': ('ted', 'teddy', 'theo'),
    'thomas': ('tom', 'tommy'),
    'timothy': ('tim', 'timmy'),
    'victoria': ('vicky', 'vicki', 'tori'),
    'william': ('bill', 'billy', 'will', 'willy', 'liam'),
}


def _build_reverse(table: Mapping[str, frozenset[str]]) -> dict[str, tuple[str, ...]]:
    """Build the nickname -> canonical names lookup."""
    reverse: dict[str, list[str]] = {}
    for canonical, nicknames in table.items():
        for nick in sorted(nicknames):
            reverse.setdefault(nick, []).append(canonical)
    return {nick: tuple(canonicals) for nick, canonicals in reverse.items()}


NICKNAME_MAP: Mapping[str, frozenset[str]] = MappingProxyType(
    {canonical: frozenset(nicks) for canonical, nicks in _NICKNAMES.items()}
)
NICKNAME_REVERSE: Mapping[str, tuple[str, ...]] = MappingProxyType(
    _build_reverse(NICKNAME_MAP)
)


def name_variants(name: str) -> list[str]:
    """Return every known variant of a first name, the name itself first.

    A canonical name expands to its nicknames; a nickname expands to its
    canonical name(s) and their other nicknames. Unknown names yield only
    themselves. Used to widen data-store pre-filters.

    Args:
        name: Raw first name.

    Returns:
        Lowercase variants without duplicates, in a stable order.
    """
    normalized = name.strip().lower()
    variants = [normalized]

    def add(value: str) -> None:
        if value not in variants:
            variants.append(value)

    for nick in sorted(NICKNAME_MAP.get(normalized, ())):
        add(nick)

    for canonical in NICKNAME_REVERSE.get(normalized, ()):
        add(canonical)
        for nick in sorted(NICKNAME_MAP[canonical]):
            add(nick)

    return variants


def are_nickname_equivalent(name1: str, name2: str) -> bool:
    """Check if two first names are the same or known nicknames of each other.

    Both arguments are expected to be normalized already (lowercase, letters
    only). The check is symmetric.
    """
    if name1 == name2:
        return True

    if name2 in NICKNAME_MAP.get(name1, ()) or name1 in NICKNAME_MAP.get(name2, ()):
        return True

    canon1 = NICKNAME_REVERSE.get(name1, ())
    canon2 = NICKNAME_REVERSE.get(name2, ())
    # Both nicknames of a shared canonical name
    return any(c in canon2 for c in canon1)
