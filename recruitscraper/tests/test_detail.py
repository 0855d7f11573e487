from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from recruitscraper.hrmos.detail import (
    DATA_LABEL_JS, TABLE_EXACT_JS, all_job_details, job_detail, sample_detail,
    table_value, unretrieved_detail,
)
from recruitscraper.hrmos.listing import ANCHOR_SCAN_JS
from recruitscraper.hrmos.models import JobDetail, JobListing, NOT_RETRIEVED, UNKNOWN_TITLE
from recruitscraper.hrmos.progress import ProgressTracker


def _xpath(label):
    return f'xpath=//th[contains(normalize-space(.), "{label}")]/following-sibling::td'


def _table(values):
    return lambda label: values.get(label, '')


def test_table_value_tiers(fake_page):
    fake_page.add('u', scripts={
        TABLE_EXACT_JS: _table({'勤務地': ' 東京都 '}),
        DATA_LABEL_JS: _table({'給与': '年収500万円', '勤務地': 'never used'}),
    }, elements={_xpath('雇用形態'): '正社員'})
    fake_page.goto('u')
    assert table_value(fake_page, '勤務地') == '東京都'
    assert table_value(fake_page, '雇用形態') == '正社員'
    assert table_value(fake_page, '給与') == '年収500万円'
    assert table_value(fake_page, '休日・休暇') == ''


def test_job_detail_reads_labeled_fields(fake_page, session, test_settings):
    url = test_settings.job_detail_url('C1', 'J1')
    fake_page.add(url, scripts={TABLE_EXACT_JS: _table({
        '勤務地': '大阪',
        '雇用形態': '契約社員',
        '給与': '月給30万円',
        '勤務時間': '10:00-19:00',
        '休日・休暇': '土日祝',
        '福利厚生': '社会保険完備',
        '最終更新日': '2024/6/1',
    })}, elements={'h1': '  Data\n Engineer ', '.job-description': 'ETL'}, title='ignored')
    detail = job_detail(session, 'C1', 'J1')
    assert fake_page.visits == [url]
    assert detail.title == 'Data Engineer'
    assert detail.description == 'ETL'
    assert detail.requirements == ''
    assert detail.work_location == '大阪'
    # second synonym used when the first label is absent
    assert detail.benefits == '社会保険完備'
    assert detail.last_updated == '2024/6/1'


def test_job_detail_title_fallbacks(fake_page, session, test_settings):
    fake_page.add(test_settings.job_detail_url('C1', 'J1'), title=' Page Title ')
    fake_page.add(test_settings.job_detail_url('C1', 'J2'))
    assert job_detail(session, 'C1', 'J1').title == 'Page Title'
    detail = job_detail(session, 'C1', 'J2')
    assert detail.title == UNKNOWN_TITLE
    assert detail.last_updated


def test_job_detail_navigation_failure_is_none(fake_page, session, test_settings):
    fake_page.add(test_settings.job_detail_url('C1', 'J1'), error=PlaywrightTimeoutError('Timeout'))
    assert job_detail(session, 'C1', 'J1') is None


def test_no_listings_gives_marked_sample(fake_page, session, test_settings):
    fake_page.add(test_settings.listing_url)
    details = all_job_details(session)
    assert len(details) == 1
    assert 'sample' in details[0].title
    assert all(getattr(details[0], f) for f in JobDetail.model_fields)


def test_error_sample_is_distinguishable():
    ok = sample_detail()
    err = sample_detail(error=True)
    assert ok.title != err.title
    assert 'sample' in err.title and 'エラー' in err.title


def test_bulk_details_keep_listing_parity(fake_page, session, test_settings):
    base = test_settings.base_url
    fake_page.add(test_settings.listing_url, scripts={ANCHOR_SCAN_JS: [
        {'href': f'{base}/corporates/C1/jobs/J1', 'text': 'Engineer', 'context': '2024/5/1'},
        {'href': f'{base}/corporates/C1/jobs/J2', 'text': 'Designer', 'context': '2024/5/2'},
        {'href': 'https://hrmos.test/jobs/J3', 'text': 'Orphan', 'context': ''},
    ]})
    fake_page.add(test_settings.job_detail_url('C1', 'J1'), elements={'h1': 'Engineer (detail)'})
    fake_page.add(test_settings.job_detail_url('C1', 'J2'), error=PlaywrightTimeoutError('Timeout'))
    progress = ProgressTracker()
    details = all_job_details(session, progress=progress)
    # J3 has no company id and is skipped; J2 failed and keeps its listing title
    assert [d.title for d in details] == ['Engineer (detail)', 'Designer']
    assert details[1].description == NOT_RETRIEVED
    assert details[1].last_updated == '2024/5/2'
    snap = progress.snapshot()
    assert snap.total_jobs == 3
    assert snap.processed_jobs == 3
    assert snap.status == '完了'


def test_unretrieved_detail_copies_listing():
    listing = JobListing(title='T', url='u', last_updated='2024/1/1', company_id='C', job_id='J')
    detail = unretrieved_detail(listing)
    assert detail.title == 'T'
    assert detail.salary == NOT_RETRIEVED
    assert detail.last_updated == '2024/1/1'


def test_all_listings_skipped_gives_sample(fake_page, session, test_settings):
    fake_page.add(test_settings.listing_url, scripts={ANCHOR_SCAN_JS: [
        {'href': 'https://hrmos.test/jobs/J1', 'text': 'Orphan 1', 'context': ''},
        {'href': 'https://hrmos.test/jobs/J2', 'text': 'Orphan 2', 'context': ''},
    ]})
    details = all_job_details(session)
    assert len(details) == 1
    assert details[0].title == sample_detail().title
    assert fake_page.visits == [test_settings.listing_url]
