"""
Account slug generation.

Account ids are human-derived slugs rather than opaque ids. A slug is shaped
from the account name and then probed against the store, appending -1, -2, ...
until a free one is found.

The probe is check-then-act: two concurrent creators can both see a slug as
free. Account creation closes that gap with a conditional put (see
accounts.py), so a lost race surfaces as a conflict instead of an overwrite.
"""

import random
import re
import unicodedata

from ulid import ULID

from events_shared.keys import account_key
from events_shared.store import Store

MAX_SLUG_LENGTH = 50
BASE_SLUG_LENGTH = 49

_ENTITIES = re.compile(r'&\w+;')
_UNWANTED_CHARACTERS = re.compile(r'[^a-z0-9\-\s]')
_WHITESPACE = re.compile(r'\s+')
_DASHES = re.compile(r'-{2,}')
_UUID = re.compile(
    r'^(?:[0-9a-f]{32}|[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})$'
)


def _strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize('NFD', value)
    stripped = ''.join(c for c in decomposed if unicodedata.category(c) != 'Mn')
    return unicodedata.normalize('NFC', stripped)


def url_friendly(value: str) -> str:
    """
    Shape free text into a URL-friendly base slug.
    
    Lowercases, strips diacritics and HTML entities, drops anything outside
    [a-z0-9- ], turns whitespace runs into single dashes, collapses dashes,
    trims leading dashes, truncates to 49 characters and trims trailing
    dashes. A result that looks like a UUID gets a random digit appended so
    slugs never collide with system-generated tokens.
    
    Args:
        value: Free-text account name
        
    Returns:
        Base slug containing only [a-z0-9-]; may be empty
        
    Examples:
        >>> url_friendly('  Café &amp; Bar  ')
        'cafe-bar'
    """
    slug = value.lower()
    slug = _strip_diacritics(slug)
    slug = _ENTITIES.sub('', slug)
    slug = _UNWANTED_CHARACTERS.sub('', slug)
    slug = _WHITESPACE.sub('-', slug)
    slug = _DASHES.sub('-', slug)
    slug = slug.lstrip('-')
    slug = slug[:BASE_SLUG_LENGTH]
    slug = slug.rstrip('-')
    
    if _UUID.match(slug):
        slug = f'{slug}{random.randrange(9)}'
    
    return slug


def with_suffix(base: str, suffix: int) -> str:
    """Append -<suffix>, shortening the base so the slug fits MAX_SLUG_LENGTH."""
    tail = f'-{suffix}'
    head = base[:MAX_SLUG_LENGTH - len(tail)].rstrip('-')
    return f'{head}{tail}'


async def generate_unique_account_id(name: str, store: Store) -> str:
    """
    Generate an account slug that no existing account uses.
    
    The store is re-probed after every suffix increment.
    
    Args:
        name: Free-text account name
        store: Store to probe for existing accounts
        
    Returns:
        A free account slug
    """
    base = url_friendly(name)
    if not base:
        # Nothing usable in the name
        base = str(ULID()).lower()
    
    slug = base
    suffix = 0
    while await store.get(account_key(slug)) is not None:
        suffix += 1
        slug = with_suffix(base, suffix)
    
    return slug
