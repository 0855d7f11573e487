from recruitscraper.hrmos.candidates import (
    CANDIDATE_NAV_SELECTOR, CANDIDATE_ROW_SELECTOR, COMPANY_LINK_SELECTORS, LINKS_JS,
    TABLE_ROWS_JS, USER_ROWS_JS, all_candidates, candidate_detail, discover_companies,
    map_candidate_rows,
)
from recruitscraper.hrmos.models import UNKNOWN_NAME
from recruitscraper.hrmos.progress import ProgressTracker


def _by_selector(mapping):
    return lambda selector: mapping.get(selector, [])


def test_row_mapping_uses_synonyms_first_value_wins():
    fields = map_candidate_rows([
        ('職種', 'エンジニア'),
        ('職種分類', 'ignored'),
        (' 業務内容 ', ' 開発 '),
        ('必要スキル', ''),
        ('応募要件', 'Python'),
        ('趣味', 'unmapped'),
        ('broken',),
    ])
    assert fields == {'job_category': 'エンジニア', 'job_description': '開発', 'requirements': 'Python'}


def test_companies_from_nav_list(fake_page, session, test_settings):
    base = test_settings.base_url
    fake_page.add(test_settings.listing_url, elements={'ul.nav-list': 'nav'}, scripts={
        LINKS_JS: _by_selector({COMPANY_LINK_SELECTORS[0]: [
            {'href': f'{base}/corporates/C1', 'text': 'Acme'},
            {'href': f'{base}/corporates/C1/jobs/J1', 'text': 'Acme job'},
            {'href': f'{base}/corporates/C2', 'text': 'Beta'},
        ]}),
    })
    assert discover_companies(session) == ['C1', 'C2']


def test_full_walk_with_fallbacks_and_failures(fake_page, session, test_settings):
    base = test_settings.base_url
    job_url = test_settings.job_detail_url('C1', 'J1')
    fake_page.add(test_settings.listing_url, scripts={
        # no nav list: falls through to the document-wide selector
        LINKS_JS: _by_selector({'a[href*="/corporates/"]': [
            {'href': f'{base}/corporates/C1', 'text': 'Acme'},
            {'href': f'{base}/corporates/C2', 'text': 'Beta'},
        ]}),
    })
    fake_page.add(test_settings.company_jobs_url('C1'), scripts={
        LINKS_JS: _by_selector({'nav a[href*="/jobs/"]': [
            {'href': f'{base}/corporates/C1/jobs/J1', 'text': ' Engineer '},
            {'href': f'{base}/corporates/C1/jobs/J1', 'text': 'dup'},
            {'href': f'{base}/corporates/C9/jobs/J9', 'text': 'other company'},
        ]}),
    })
    fake_page.add(test_settings.company_jobs_url('C2'), error=RuntimeError('boom'))
    fake_page.add(job_url, elements={'ul.nav-list': 'nav'}, scripts={
        LINKS_JS: _by_selector({CANDIDATE_NAV_SELECTOR: []}),
        USER_ROWS_JS: _by_selector({CANDIDATE_ROW_SELECTOR: [
            {'href': f'{job_url}/candidates/U1/D1', 'text': ' 山田  太郎 '},
            {'href': f'{job_url}/candidates/U2/D2', 'text': '佐藤 花子'},
            {'href': f'{job_url}/candidates/U1/D1', 'text': 'dup'},
        ]}),
    })
    fake_page.add(f'{job_url}/candidates/U1/D1', scripts={
        TABLE_ROWS_JS: _by_selector({'table tr': [
            ['職種', 'エンジニア'],
            ['業務内容', 'バックエンド開発'],
            ['最終更新日', '2024/5/1'],
        ]}),
    })
    fake_page.add(f'{job_url}/candidates/U2/D2', error=RuntimeError('detached'))

    progress = ProgressTracker()
    results = all_candidates(session, progress=progress)

    assert len(results) == 1
    c = results[0]
    assert c.name == '山田 太郎'
    assert (c.company_id, c.job_id, c.candidate_id, c.candidate_detail_id) == ('C1', 'J1', 'U1', 'D1')
    assert c.job_category == 'エンジニア'
    assert c.job_description == 'バックエンド開発'
    assert c.requirements == ''
    assert c.last_updated == '2024/5/1'
    assert c.url == f'{job_url}/candidates/U1/D1'
    # C9's job is filtered out, so no other job page was opened
    assert test_settings.job_detail_url('C9', 'J9') not in fake_page.visits

    snap = progress.snapshot()
    assert snap.total_companies == 2 and snap.processed_companies == 2
    assert snap.total_jobs == 1 and snap.processed_jobs == 1
    assert snap.total_candidates == 2 and snap.processed_candidates == 2
    assert snap.status == '完了'


def test_candidate_name_fallbacks(fake_page, session, test_settings):
    href = f'{test_settings.job_detail_url("C1", "J1")}/candidates/U5'
    fake_page.add(href, elements={'.user-name': 'Jane Doe'})
    link = {'href': href, 'text': '', 'candidate_id': 'U5', 'candidate_detail_id': ''}
    info = candidate_detail(session, link, 'C1', 'J1')
    assert info.name == 'Jane Doe'
    assert info.job_category == ''

    fake_page.add(href)
    assert candidate_detail(session, link, 'C1', 'J1').name == UNKNOWN_NAME


def test_no_companies_returns_empty(fake_page, session, test_settings):
    fake_page.add(test_settings.listing_url)
    assert all_candidates(session) == []


def test_user_rows_name_comes_from_nested_anchor():
    # whole-row text would pull in the other columns
    assert "a ? (a.textContent || '').trim() : ''" in USER_ROWS_JS
    assert 'label || row.textContent' in USER_ROWS_JS
