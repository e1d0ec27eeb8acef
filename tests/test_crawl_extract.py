import pytest

from app.services.crawl.base import NO_NUMBER
from app.services.crawl.extract import extract_institution_id, extract_number, extract_student_count


def test_student_count_single_pattern():
    assert extract_student_count("У нас учатся: 120") == 120


def test_student_count_sums_pupils_and_foreign_nationals():
    assert extract_student_count("Воспитанников: 30 Иностранных граждан: -2") == 28


def test_student_count_sums_every_matching_pattern():
    # "N обучающихся" matches both the specific and the generic phrasing
    assert extract_student_count("У нас учатся: 300 обучающихся") == 600


def test_student_count_without_matches_is_zero():
    assert extract_student_count("") == 0
    assert extract_student_count("Контакты и реквизиты") == 0


@pytest.mark.parametrize(
    "short_name,expected",
    [
        ("МБОУ «Школа №12»", "12"),
        ("Гимназия № 3", "3"),
        ("Лицей-интернат", NO_NUMBER),
        ("", NO_NUMBER),
    ],
)
def test_extract_number(short_name, expected):
    assert extract_number(short_name) == expected


def test_extract_institution_id_from_detail_url():
    assert extract_institution_id("https://edu.tatar.ru/kazan/org/page1234.htm") == "page1234"
    assert extract_institution_id("https://edu.tatar.ru/kazan/org/school_5") == "school_5"
