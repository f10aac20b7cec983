from __future__ import annotations

from processed.browser import ReleaseBrowser, group_by_day


def _names(rows):
    return [row['name'] for row in rows]


def test_no_filters_returns_all_rows_in_order(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)

    rows = browser.filtered_rows()

    assert rows == release_rows
    assert rows[0]['coverUrl'] is None


def test_platform_token_filter(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.toggle_platform('PC')

    assert _names(browser.filtered_rows()) == ['Beta']


def test_text_filter_is_case_insensitive(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.set_text_filter('  SWITCH ')

    assert _names(browser.filtered_rows()) == ['Gamma']


def test_text_and_token_filters_intersect(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.toggle_platform('PC')
    browser.set_text_filter('switch')

    assert browser.filtered_rows() == []

    browser.set_text_filter('xbox')
    assert _names(browser.filtered_rows()) == ['Beta']


def test_any_active_token_matches(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.toggle_platform('pc')
    browser.toggle_platform('ps5')

    assert _names(browser.filtered_rows()) == ['Alpha', 'Beta']


def test_toggle_platform_twice_deactivates(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.toggle_platform('PC')
    browser.toggle_platform('pc')

    assert browser.active_platforms == set()
    assert len(browser.filtered_rows()) == 3


def test_platform_tokens_are_distinct_and_sorted(release_rows):
    browser = ReleaseBrowser.from_rows(
        release_rows + [dict(release_rows[1], name='Delta', platforms='pc, Switch')]
    )

    assert browser.platform_tokens() == ['PC', 'PS5', 'Switch', 'Xbox']


def test_grouped_rows_follow_consecutive_dates(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)

    groups = browser.grouped_rows()

    assert [(group.date, group.human_date) for group in groups] == [
        ('2025-01-05', 'Jan 5, 2025'),
        ('2025-01-07', 'Jan 7, 2025'),
    ]
    assert [_names(group.rows) for group in groups] == [['Alpha', 'Beta'], ['Gamma']]


def test_group_by_day_only_merges_adjacent_rows(release_rows):
    alpha, beta, gamma = release_rows

    groups = group_by_day([alpha, gamma, beta])

    assert [group.date for group in groups] == ['2025-01-05', '2025-01-07', '2025-01-05']


def test_set_mode_clears_filters_and_rows(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    browser.toggle_platform('PC')
    browser.set_text_filter('xbox')

    assert browser.set_mode('30days') == '30days'

    assert browser.text_filter == ''
    assert browser.active_platforms == set()
    assert browser.total == 0
    assert browser.filtered_rows() == []


def test_status_text(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows)
    assert browser.status_text() == 'Showing 3 games. (Next calendar month)'

    browser.set_mode('30days')
    assert browser.status_text() == 'No games found.'

    browser.set_rows(release_rows[:1])
    assert browser.status_text() == 'Showing 1 games. (Next 30 days)'


def test_unknown_mode_resolves_to_month(release_rows):
    browser = ReleaseBrowser.from_rows(release_rows, mode='yearly')

    assert browser.mode == 'month'
