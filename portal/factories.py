import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, List, Optional

from portal.models import money

_CHAPTER_FIELD = re.compile(r'^chapter-(\d+)-title$')
_LESSON_FIELD = re.compile(r'^chapter-(\d+)-lesson-(\d+)-title$')


def _split_lines(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value or '').splitlines()
    return [str(item).strip() for item in items if str(item).strip()]


def _truthy(value) -> bool:
    return str(value or '').strip().lower() in {'1', 'true', 'on', 'yes'}


def _valid_price(value) -> bool:
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        return False
    return price.is_finite() and price >= 0


class EntityFactory:
    @staticmethod
    def build_registration(payload: Dict[str, Any]) -> Dict[str, Any]:
        required = ['first_name', 'last_name', 'email', 'password']
        if not all(payload.get(k) for k in required):
            raise ValueError("Missing required registration fields")
        return {
            'firstName': str(payload['first_name']).strip(),
            'lastName': str(payload['last_name']).strip(),
            'email': str(payload['email']).strip().lower(),
            'password': payload['password'],
        }

    @staticmethod
    def build_instructor_registration(payload: Dict[str, Any]) -> Dict[str, Any]:
        data = EntityFactory.build_registration(payload)
        data['bio'] = str(payload.get('bio', '')).strip()
        data['expertise'] = [item.strip() for item in str(payload.get('expertise', '')).split(',') if item.strip()]
        return data

    @staticmethod
    def parse_curriculum(fields, files=None) -> List[Dict[str, Any]]:
        """Collect chapters and lessons from flat form fields.

        Fields look like ``chapter-0-title`` and ``chapter-0-lesson-1-duration``;
        lesson video files are ``chapter-0-lesson-1-video`` in ``files``.
        Indices are sorted numerically so gaps left by removed rows are fine.
        """
        files = files or {}
        chapter_indices = sorted({int(m.group(1)) for key in fields for m in [_CHAPTER_FIELD.match(key)] if m})
        lesson_indices: Dict[int, set] = {}
        for key in fields:
            match = _LESSON_FIELD.match(key)
            if match:
                lesson_indices.setdefault(int(match.group(1)), set()).add(int(match.group(2)))

        chapters = []
        for c in chapter_indices:
            lessons = []
            for l in sorted(lesson_indices.get(c, ())):
                prefix = f'chapter-{c}-lesson-{l}-'
                lessons.append({
                    'title': str(fields.get(prefix + 'title', '')).strip(),
                    'duration': str(fields.get(prefix + 'duration', '')).strip(),
                    'description': str(fields.get(prefix + 'description', '')).strip(),
                    'videoUrl': str(fields.get(prefix + 'video_url', '')).strip(),
                    'videoFile': files.get(prefix + 'video'),
                    'isPreview': _truthy(fields.get(prefix + 'is_preview')),
                })
            chapters.append({
                'title': str(fields.get(f'chapter-{c}-title', '')).strip(),
                'description': str(fields.get(f'chapter-{c}-description', '')).strip(),
                'lessons': lessons,
            })
        return chapters

    @staticmethod
    def validate_course(basic: Dict[str, Any], chapters: List[Dict[str, Any]]) -> None:
        required = ['title', 'description', 'category', 'level', 'price']
        if any(basic.get(k) in (None, '') for k in required):
            raise ValueError("Please fill in all required fields")
        original = basic.get('original_price')
        if not _valid_price(basic['price']) or (original not in (None, '') and not _valid_price(original)):
            raise ValueError("Please enter a valid price")
        if not chapters:
            raise ValueError("Please add at least one chapter")
        for chapter in chapters:
            if not chapter.get('title'):
                raise ValueError("Please provide titles for all chapters")
            if not chapter.get('lessons'):
                raise ValueError("Each chapter must have at least one lesson")
            for lesson in chapter['lessons']:
                if not lesson.get('title') or not lesson.get('duration'):
                    raise ValueError("Please provide title and duration for all lessons")

    @staticmethod
    def build_course_create(
        basic: Dict[str, Any],
        chapters: List[Dict[str, Any]],
        thumbnail_url: str = '',
        preview_video_url: str = '',
    ) -> Dict[str, Any]:
        price = money(basic.get('price'))
        original = basic.get('original_price')
        return {
            'title': str(basic['title']).strip(),
            'description': str(basic['description']).strip(),
            'category': basic['category'],
            'level': basic['level'],
            'price': float(price),
            'originalPrice': float(money(original)) if original not in (None, '') else float(price),
            'thumbnail': thumbnail_url,
            'previewVideo': preview_video_url,
            'requirements': _split_lines(basic.get('requirements')),
            'objectives': _split_lines(basic.get('objectives')),
            'chapters': [
                {
                    'title': chapter['title'],
                    'description': chapter.get('description', ''),
                    'lessons': [
                        {
                            'title': lesson['title'],
                            'description': lesson.get('description', ''),
                            'duration': _int(lesson.get('duration')),
                            'videoUrl': lesson.get('videoUrl', ''),
                            'isPreview': bool(lesson.get('isPreview', False)),
                            'resources': [],
                        }
                        for lesson in chapter['lessons']
                    ],
                }
                for chapter in chapters
            ],
        }

    @staticmethod
    def build_discount(payload: Dict[str, Any], require_course: bool = False) -> Dict[str, Any]:
        if not payload.get('code') or payload.get('value') in (None, ''):
            raise ValueError("Please fill in required fields")
        applicable_to_all = bool(payload.get('applicable_to_all'))
        course = payload.get('course') or ''
        if require_course and not applicable_to_all and not course:
            raise ValueError("Please select a course or make it applicable to all courses")

        data = {
            'code': str(payload['code']).strip().upper(),
            'description': str(payload.get('description', '')).strip(),
            'type': payload.get('type') or 'percentage',
            'value': float(money(payload['value'])),
            'applicableToAll': applicable_to_all,
            'applicableCourses': [] if applicable_to_all or not course else [course],
            'isActive': bool(payload.get('is_active', True)),
        }
        for key, name in (('valid_from', 'validFrom'), ('valid_until', 'validUntil')):
            value = payload.get(key)
            data[name] = value.isoformat() if hasattr(value, 'isoformat') else (value or None)
        if payload.get('min_order_amount') not in (None, ''):
            data['minOrderAmount'] = float(money(payload['min_order_amount']))
        if payload.get('max_discount_amount') not in (None, ''):
            data['maxDiscountAmount'] = float(money(payload['max_discount_amount']))
        if payload.get('usage_limit') not in (None, ''):
            data['usageLimit'] = int(payload['usage_limit'])
        return data

    @staticmethod
    def build_user_update(payload: Dict[str, Any]) -> Dict[str, Any]:
        data = {
            'firstName': str(payload.get('first_name', '')).strip(),
            'lastName': str(payload.get('last_name', '')).strip(),
            'email': str(payload.get('email', '')).strip().lower(),
        }
        if payload.get('role'):
            data['role'] = payload['role']
        if 'is_active' in payload:
            data['isActive'] = bool(payload['is_active'])
        return {k: v for k, v in data.items() if v != ''}

    @staticmethod
    def build_payment(
        course_id: str,
        amount: Decimal,
        original_amount: Decimal,
        transaction_id: str,
        gateway_response: Dict[str, Any],
        discount_code: Optional[str] = None,
        method: str = 'credit_card',
    ) -> Dict[str, Any]:
        return {
            'courseId': course_id,
            'amount': float(amount),
            'originalAmount': float(original_amount),
            'discountCode': discount_code or None,
            'paymentMethod': method,
            'transactionId': transaction_id,
            'paymentGatewayResponse': gateway_response,
            'currency': 'USD',
        }

    @staticmethod
    def build_enrollment_details(
        amount: Decimal,
        transaction_id: str,
        discount_code: Optional[str] = None,
        method: str = 'credit_card',
    ) -> Dict[str, Any]:
        return {
            'amount': float(amount),
            'currency': 'USD',
            'paymentMethod': method,
            'transactionId': transaction_id,
            'paymentStatus': 'completed',
            'discountApplied': discount_code or None,
        }


def _int(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0
