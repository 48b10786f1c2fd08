"""
Unit and property-based tests for account slug generation.
"""

import re

from hypothesis import given, settings, strategies as st

from events_shared.keys import account_key
from events_shared.slugs import (
    MAX_SLUG_LENGTH,
    generate_unique_account_id,
    url_friendly,
    with_suffix,
)

SLUG_PATTERN = re.compile(r'^[a-z0-9-]*$')


def seed_account(store, slug):
    store.seed({**account_key(slug), 'Name': slug, 'CreateDate': '2024-01-01T00:00:00.000000Z'})


class TestUrlFriendly:
    """Test base slug shaping."""
    
    def test_lowercases_and_dashes_whitespace(self):
        assert url_friendly('Acme   Widgets Inc') == 'acme-widgets-inc'
    
    def test_strips_diacritics(self):
        assert url_friendly('Café Crème') == 'cafe-creme'
    
    def test_strips_html_entities(self):
        assert url_friendly('Salt &amp; Pepper') == 'salt-pepper'
    
    def test_drops_unwanted_characters(self):
        assert url_friendly('Hello, World! (2024)') == 'hello-world-2024'
    
    def test_collapses_and_trims_dashes(self):
        assert url_friendly('--a -- b--') == 'a-b'
    
    def test_truncates_to_49_characters(self):
        slug = url_friendly('a' * 80)
        assert slug == 'a' * 49
    
    def test_trailing_dash_after_truncation_is_trimmed(self):
        slug = url_friendly('a' * 48 + ' b')
        assert slug == 'a' * 48
    
    def test_uuid_shaped_names_get_a_digit(self):
        name = '3f2504e0-4f89-11d3-9a0c-0305e82c3301'
        slug = url_friendly(name)
        assert slug.startswith(name)
        assert len(slug) == len(name) + 1
        assert slug[-1].isdigit()
    
    def test_nothing_usable(self):
        assert url_friendly('!!! ???') == ''
    
    @given(st.text(max_size=200))
    @settings(max_examples=300)
    def test_slug_shape(self, name):
        """
        Property: base slugs only contain [a-z0-9-], never start or end with
        a dash and fit in 50 characters.
        """
        slug = url_friendly(name)
        assert SLUG_PATTERN.match(slug)
        assert len(slug) <= MAX_SLUG_LENGTH
        assert not slug.startswith('-')
        assert not slug.endswith('-')


class TestWithSuffix:
    """Test collision suffixes."""
    
    def test_appends_suffix(self):
        assert with_suffix('acme', 2) == 'acme-2'
    
    def test_shortens_base_to_fit(self):
        slug = with_suffix('a' * 49, 12)
        assert slug == 'a' * 47 + '-12'
        assert len(slug) == MAX_SLUG_LENGTH


class TestGenerateUniqueAccountId:
    """Test collision probing against the store."""
    
    async def test_free_slug_is_used_as_is(self, store):
        assert await generate_unique_account_id('Acme', store) == 'acme'
    
    async def test_taken_slug_gets_first_free_suffix(self, store):
        seed_account(store, 'acme')
        seed_account(store, 'acme-1')
        
        assert await generate_unique_account_id('Acme', store) == 'acme-2'
        assert store.calls.count('get') == 3
    
    async def test_empty_slug_falls_back_to_ulid(self, store):
        slug = await generate_unique_account_id('???', store)
        assert len(slug) == 26
        assert slug == slug.lower()
        assert SLUG_PATTERN.match(slug)
