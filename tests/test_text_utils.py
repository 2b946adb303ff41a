from recruitment.config import Settings, parse_positive_int
from recruitment.utils.text_utils import (
    normalize_text,
    sort_unique,
    split_career_type,
    split_csv,
    strip_code_fence,
    truncate_text,
)


def test_normalize_text_handles_none_and_numbers():
    assert normalize_text(None) == ""
    assert normalize_text("  서울 ") == "서울"
    assert normalize_text(123) == "123"


def test_split_csv_drops_empty_tokens():
    assert split_csv("서울, 경기,, ,인천 ") == ["서울", "경기", "인천"]
    assert split_csv(None) == []
    assert split_csv("") == []


def test_split_career_type_adds_combined_tokens():
    assert sorted(set(split_career_type("신입/경력"))) == ["경력", "신입"]
    assert split_career_type("경력") == ["경력", "경력"]
    assert "신입+경력" in split_career_type("신입+경력")
    assert "신입" in split_career_type("신입+경력")
    assert split_career_type("") == []
    assert split_career_type("비정규") == ["비정규"]


def test_truncate_text():
    assert truncate_text("abc", 5) == "abc"
    assert truncate_text("abcdef", 3) == "abc..."


def test_sort_unique_orders_korean_syllables():
    assert sort_unique(["서울", "경기", "서울", "부산"]) == ["경기", "부산", "서울"]


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"items": []}\n```') == '{"items": []}'
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'


def test_parse_positive_int_falls_back():
    assert parse_positive_int("25", 10) == 25
    assert parse_positive_int("abc", 10) == 10
    assert parse_positive_int("-3", 10) == 10
    assert parse_positive_int("0", 10) == 10
    assert parse_positive_int("nan", 10) == 10
    assert parse_positive_int(None, 10) == 10


def test_settings_replaces_invalid_numbers_and_caps_page_size():
    config = Settings(
        RECRUITMENT_SYNC_PAGE_SIZE="500",
        RECRUITMENT_SYNC_INTERVAL_MINUTES="not-a-number",
        RECRUITMENT_MATCH_BATCH_LIMIT=-1,
    )
    assert config.RECRUITMENT_SYNC_PAGE_SIZE == 500
    assert config.sync_page_size == 200
    assert config.RECRUITMENT_SYNC_INTERVAL_MINUTES == 30
    assert config.RECRUITMENT_MATCH_BATCH_LIMIT == 20


def test_sort_unique_puts_hangul_before_other_scripts():
    values = ["IT", "서울", "1종", "경기", "it", "경기도", "Seoul"]

    assert sort_unique(values) == ["경기", "경기도", "서울", "1종", "IT", "it", "Seoul"]
