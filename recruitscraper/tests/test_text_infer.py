import re
from datetime import date
import pytest
from recruitscraper.hrmos.text_infer import (
    find_date, infer_last_updated, infer_status, infer_title, today_str,
)


@pytest.mark.parametrize('text,expected', [
    ('応募受付中 2024/5/1', 'OPEN'),
    ('募集終了', 'CLOSE'),
    ('Status: CLOSED', 'CLOSE'),
    ('close', 'CLOSE'),
    ('', 'OPEN'),
    (None, 'OPEN'),
])
def test_infer_status(text, expected):
    assert infer_status(text) == expected


@pytest.mark.parametrize('text', ['2024/5/1', '2024-05-01', '5/1', '5月1日'])
def test_date_patterns_returned_verbatim(text):
    assert find_date(f'更新 {text} 済') == text
    assert infer_last_updated(text) == text


def test_listing_example():
    text = '応募受付中 2024/5/1'
    assert infer_status(text) == 'OPEN'
    assert infer_last_updated(text) == '2024/5/1'


def test_missing_date_falls_back_to_today():
    value = infer_last_updated('no date here')
    assert re.fullmatch(r'\d{4}/\d{1,2}/\d{1,2}', value)
    assert infer_last_updated('nothing', today=date(2024, 1, 9)) == '2024/1/9'
    assert today_str(date(2025, 12, 31)) == '2025/12/31'


def test_title_fallbacks():
    assert infer_title('  Backend\n Engineer ', 'ctx', 'X') == 'Backend Engineer'
    assert infer_title('', 'a' * 150, 'X') == 'a' * 100
    assert infer_title('', '   ', 'X') == 'X'
