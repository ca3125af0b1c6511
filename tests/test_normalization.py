"""
Unit tests for free-text normalization and sanitization helpers.
"""

from utils.normalization import find_excluded, join_list, normalize_tag, normalize_tags, parse_list
from utils.sanitizer import (
    sanitize_ingredient_text, sanitize_instructions, sanitize_recipe_name,
    sanitize_text, sanitize_url,
)


class TestParseList:

    def test_splits_trims_and_lowercases(self):
        assert parse_list('Latte, Pane ,Tonno') == ['latte', 'pane', 'tonno']

    def test_drops_empty_entries(self):
        assert parse_list('a,, ,b,') == ['a', 'b']

    def test_accepts_iterables(self):
        assert parse_list(['Rice', 'black beans, Corn', None]) == ['rice', 'black beans', 'corn']

    def test_empty_values(self):
        assert parse_list(None) == []
        assert parse_list('') == []
        assert parse_list([]) == []


class TestTags:

    def test_normalize_tag(self):
        assert normalize_tag('High Satiety') == 'high_satiety'
        assert normalize_tag(' low-carb ') == 'low_carb'

    def test_normalize_tags_dedupes_in_order(self):
        assert normalize_tags('Vegan, high satiety, vegan, High-Satiety') == ['vegan', 'high_satiety']


class TestJoinList:

    def test_joins_with_comma(self):
        assert join_list(['oats', ' milk ', '', None]) == 'oats, milk'

    def test_passes_strings_through(self):
        assert join_list('oats, milk') == 'oats, milk'

    def test_empty(self):
        assert join_list(None) == ''
        assert join_list([]) == ''


class TestFindExcluded:

    def test_substring_match(self):
        assert find_excluded('black beans, rice', 'beans') == 'beans'

    def test_case_insensitive(self):
        assert find_excluded('2 tbsp Peanut Butter', 'PEANUT') == 'peanut'

    def test_short_term_matches_inside_words(self):
        assert find_excluded(['walnuts', 'honey'], 'nut') == 'nut'

    def test_no_match(self):
        assert find_excluded('rice, chicken', 'beans, pork') is None

    def test_no_exclusions(self):
        assert find_excluded('rice', '') is None
        assert find_excluded('rice', None) is None


class TestSanitizer:

    def test_text_strips_tags_and_control_chars(self):
        assert sanitize_text('<b>Hello</b>\x00 &amp; bye ') == 'Hello & bye'

    def test_text_truncates(self):
        assert sanitize_text('abcdef', max_length=3) == 'abc'

    def test_text_none(self):
        assert sanitize_text(None) == ''

    def test_url_allows_http_and_https(self):
        assert sanitize_url('https://example.com/r/1') == 'https://example.com/r/1'
        assert sanitize_url('http://example.com') == 'http://example.com'

    def test_url_rejects_other_schemes(self):
        assert sanitize_url('javascript:alert(1)') == ''
        assert sanitize_url('ftp://example.com/file') == ''
        assert sanitize_url('https://') == ''
        assert sanitize_url(None) == ''

    def test_url_rejects_overlong(self):
        assert sanitize_url('https://example.com/' + 'a' * 600) == ''

    def test_recipe_name(self):
        assert sanitize_recipe_name('  Chicken   <i>Salad</i> ') == 'Chicken Salad'
        assert sanitize_recipe_name('') == 'Imported Recipe'
        assert len(sanitize_recipe_name('x' * 500)) == 200

    def test_instructions_keep_newlines(self):
        assert sanitize_instructions('Step 1\nStep 2') == 'Step 1\nStep 2'

    def test_instructions_truncated_marker(self):
        assert sanitize_instructions('abcdef', max_length=3) == 'abc\n...(truncated)'

    def test_ingredient_text_flattens_whitespace(self):
        assert sanitize_ingredient_text('200g\n  rice') == '200g rice'
