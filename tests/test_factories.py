from datetime import date

import pytest

from portal.factories import EntityFactory

BASIC = {
    'title': 'Intro to Django',
    'description': 'Build web apps',
    'category': 'Web Development',
    'level': 'beginner',
    'price': '49.99',
    'original_price': '',
    'requirements': 'Python basics\n\n  A laptop  ',
    'objectives': '',
}


def _lesson(title='Setup', duration='300'):
    return {'title': title, 'duration': duration, 'description': '', 'videoUrl': '', 'videoFile': None, 'isPreview': False}


def test_parse_curriculum_orders_chapters_and_lessons_numerically() -> None:
    fields = {
        'chapter-10-title': 'Deploy',
        'chapter-10-lesson-0-title': 'Gunicorn',
        'chapter-10-lesson-0-duration': '120',
        'chapter-2-title': 'Models',
        'chapter-2-lesson-3-title': 'Queries',
        'chapter-2-lesson-3-duration': '200',
        'chapter-2-lesson-1-title': 'Fields',
        'chapter-2-lesson-1-duration': '100',
        'chapter-2-lesson-1-is_preview': 'on',
    }

    chapters = EntityFactory.parse_curriculum(fields, {'chapter-2-lesson-3-video': 'file'})

    assert [c['title'] for c in chapters] == ['Models', 'Deploy']
    assert [lesson['title'] for lesson in chapters[0]['lessons']] == ['Fields', 'Queries']
    assert chapters[0]['lessons'][0]['isPreview'] is True
    assert chapters[0]['lessons'][1]['videoFile'] == 'file'


@pytest.mark.parametrize('basic, chapters, message', [
    (dict(BASIC, title=''), [{'title': 'A', 'lessons': [_lesson()]}], 'Please fill in all required fields'),
    (BASIC, [], 'Please add at least one chapter'),
    (BASIC, [{'title': '', 'lessons': [_lesson()]}], 'Please provide titles for all chapters'),
    (BASIC, [{'title': 'A', 'lessons': []}], 'Each chapter must have at least one lesson'),
    (BASIC, [{'title': 'A', 'lessons': [_lesson(duration='')]}], 'Please provide title and duration for all lessons'),
])
def test_validate_course_messages(basic, chapters, message) -> None:
    with pytest.raises(ValueError, match=message):
        EntityFactory.validate_course(basic, chapters)


def test_free_course_price_counts_as_filled_in() -> None:
    EntityFactory.validate_course(dict(BASIC, price='0'), [{'title': 'A', 'lessons': [_lesson()]}])


def test_course_payload_defaults_original_price_to_price() -> None:
    payload = EntityFactory.build_course_create(BASIC, [{'title': 'A', 'lessons': [_lesson()]}], 'thumb.png')

    assert payload['price'] == 49.99
    assert payload['originalPrice'] == 49.99
    assert payload['thumbnail'] == 'thumb.png'
    assert payload['requirements'] == ['Python basics', 'A laptop']
    assert payload['chapters'][0]['lessons'][0]['duration'] == 300


def test_discount_requires_code_and_value() -> None:
    with pytest.raises(ValueError, match='Please fill in required fields'):
        EntityFactory.build_discount({'code': '', 'value': 10})


def test_instructor_discount_requires_course_or_all() -> None:
    with pytest.raises(ValueError, match='Please select a course or make it applicable to all courses'):
        EntityFactory.build_discount({'code': 'x', 'value': 10}, require_course=True)


def test_discount_payload() -> None:
    payload = EntityFactory.build_discount({
        'code': ' spring25 ',
        'value': 25,
        'type': 'percentage',
        'valid_from': date(2026, 3, 1),
        'valid_until': None,
        'course': 'c1',
        'usage_limit': 100,
    }, require_course=True)

    assert payload['code'] == 'SPRING25'
    assert payload['applicableCourses'] == ['c1']
    assert payload['validFrom'] == '2026-03-01'
    assert payload['validUntil'] is None
    assert payload['usageLimit'] == 100


def test_registration_normalizes_email() -> None:
    data = EntityFactory.build_registration({
        'first_name': 'Ada', 'last_name': 'Lovelace', 'email': ' Ada@Example.com ', 'password': 'Secret1',
    })

    assert data == {'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com', 'password': 'Secret1'}


@pytest.mark.parametrize('field, value', [('price', 'abc'), ('price', '-5'), ('original_price', '12,50'), ('price', 'NaN')])
def test_unreadable_price_is_rejected(field, value) -> None:
    with pytest.raises(ValueError, match='Please enter a valid price'):
        EntityFactory.validate_course(dict(BASIC, **{field: value}), [{'title': 'A', 'lessons': [_lesson()]}])
