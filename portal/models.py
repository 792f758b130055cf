"""View-models built from backend JSON.

The backend owns every record; these classes only normalize field names
(``_id`` vs ``id``, camelCase) and money values for the views.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

CENT = Decimal('0.01')
TAX_RATE = Decimal('0.10')
ADMIN_COMMISSION_RATE = Decimal('0.10')


def money(value: Any) -> Decimal:
    if value in (None, ''):
        return Decimal('0.00')
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal('0.00')


def parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _id(data: Dict[str, Any]) -> str:
    return str(data.get('_id') or data.get('id') or '')


def split_commission(amount: Any):
    """Return (admin_commission, instructor_earning) for a payment amount."""
    total = money(amount)
    admin = (total * ADMIN_COMMISSION_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return admin, total - admin


@dataclass
class User:
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    is_active: bool = True
    avatar: str = ''
    bio: str = ''
    is_approved: Optional[bool] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'User':
        first = data.get('firstName') or data.get('first_name') or ''
        last = data.get('lastName') or data.get('last_name') or ''
        if not first and data.get('name'):
            first, _, last = str(data['name']).partition(' ')
        profile = data.get('instructorProfile') or {}
        return cls(
            id=_id(data),
            first_name=first,
            last_name=last,
            email=data.get('email', ''),
            role=data.get('role', 'student'),
            is_active=bool(data.get('isActive', True)),
            avatar=data.get('avatar') or '',
            bio=data.get('bio') or '',
            is_approved=profile.get('isApproved') if profile else None,
        )


@dataclass
class Lesson:
    id: str
    title: str
    duration: int = 0
    description: str = ''
    video_url: str = ''
    is_preview: bool = False
    is_completed: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any], completed_ids=()) -> 'Lesson':
        lesson_id = _id(data)
        return cls(
            id=lesson_id,
            title=data.get('title', ''),
            duration=int(data.get('duration') or 0),
            description=data.get('description') or '',
            video_url=data.get('videoUrl') or '',
            is_preview=bool(data.get('isPreview', False)),
            is_completed=lesson_id in completed_ids,
        )


@dataclass
class Chapter:
    id: str
    title: str
    description: str = ''
    lessons: List[Lesson] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any], completed_ids=()) -> 'Chapter':
        return cls(
            id=_id(data),
            title=data.get('title', ''),
            description=data.get('description') or '',
            lessons=[Lesson.from_api(item, completed_ids) for item in data.get('lessons') or []],
        )


@dataclass
class Course:
    id: str
    title: str
    description: str = ''
    category: str = ''
    level: str = ''
    price: Decimal = Decimal('0.00')
    original_price: Decimal = Decimal('0.00')
    thumbnail: str = ''
    preview_video: str = ''
    status: str = 'draft'
    instructor_name: str = ''
    chapters: List[Chapter] = field(default_factory=list)

    @property
    def total_lessons(self) -> int:
        return sum(len(chapter.lessons) for chapter in self.chapters)

    @classmethod
    def from_api(cls, data: Dict[str, Any], completed_ids=()) -> 'Course':
        instructor = data.get('instructor')
        if isinstance(instructor, dict):
            instructor_name = User.from_api(instructor).name
        else:
            instructor_name = ''
        return cls(
            id=_id(data),
            title=data.get('title', ''),
            description=data.get('description') or '',
            category=data.get('category') or '',
            level=data.get('level') or '',
            price=money(data.get('price')),
            original_price=money(data.get('originalPrice') or data.get('price')),
            thumbnail=data.get('thumbnail') or '',
            preview_video=data.get('previewVideo') or '',
            status=data.get('status') or 'draft',
            instructor_name=instructor_name,
            chapters=[Chapter.from_api(item, completed_ids) for item in data.get('chapters') or []],
        )


@dataclass
class Enrollment:
    id: str
    course_id: str = ''
    progress: int = 0
    is_completed: bool = False
    completed_lessons: List[str] = field(default_factory=list)
    last_chapter_id: str = ''
    last_lesson_id: str = ''
    course: Optional[Course] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Enrollment':
        course = data.get('course')
        completed = [
            str(item.get('lesson')) if isinstance(item, dict) else str(item)
            for item in data.get('completedLessons') or []
        ]
        last = data.get('lastAccessedLesson') or {}
        return cls(
            id=_id(data),
            course_id=_id(course) if isinstance(course, dict) else str(course or ''),
            progress=int(data.get('progress') or 0),
            is_completed=bool(data.get('isCompleted', False)),
            completed_lessons=completed,
            last_chapter_id=str(last.get('chapter') or ''),
            last_lesson_id=str(last.get('lesson') or ''),
            course=Course.from_api(course) if isinstance(course, dict) else None,
        )


@dataclass
class Cart:
    courses: List[Course] = field(default_factory=list)
    total_price: Decimal = Decimal('0.00')
    total_items: int = 0

    @property
    def course_ids(self) -> List[str]:
        return [course.id for course in self.courses]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Cart':
        courses = [Course.from_api(item) for item in data.get('courses') or []]
        total = data.get('totalPrice')
        return cls(
            courses=courses,
            total_price=money(total) if total is not None else sum((c.price for c in courses), Decimal('0.00')),
            total_items=int(data.get('totalItems', len(courses))),
        )


@dataclass
class Discount:
    id: str
    code: str
    description: str = ''
    type: str = 'percentage'
    value: Decimal = Decimal('0.00')
    min_order_amount: Decimal = Decimal('0.00')
    max_discount_amount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_to_all: bool = True
    applicable_courses: List[str] = field(default_factory=list)

    def status(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        if not self.is_active:
            return 'inactive'
        if self.valid_from and now < self.valid_from:
            return 'scheduled'
        if self.valid_until and now > self.valid_until:
            return 'expired'
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return 'exhausted'
        return 'active'

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Discount':
        max_discount = data.get('maxDiscountAmount')
        usage_limit = data.get('usageLimit')
        return cls(
            id=_id(data),
            code=data.get('code', ''),
            description=data.get('description') or '',
            type=data.get('type') or 'percentage',
            value=money(data.get('value')),
            min_order_amount=money(data.get('minOrderAmount')),
            max_discount_amount=money(max_discount) if max_discount not in (None, '') else None,
            usage_limit=int(usage_limit) if usage_limit not in (None, '') else None,
            used_count=int(data.get('usedCount') or 0),
            is_active=bool(data.get('isActive', True)),
            valid_from=parse_datetime(data.get('validFrom')),
            valid_until=parse_datetime(data.get('validUntil')),
            applicable_to_all=bool(data.get('applicableToAll', True)),
            applicable_courses=[
                _id(item) if isinstance(item, dict) else str(item)
                for item in data.get('applicableCourses') or []
            ],
        )


@dataclass
class Payment:
    id: str
    amount: Decimal
    admin_commission: Decimal
    instructor_earning: Decimal
    currency: str = 'USD'
    status: str = 'completed'
    transaction_id: str = ''
    course_title: str = ''
    student_name: str = ''
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Payment':
        amount = money(data.get('amount'))
        admin, instructor = split_commission(amount)
        if data.get('adminCommission') is not None:
            admin = money(data['adminCommission'])
        if data.get('instructorEarning') is not None:
            instructor = money(data['instructorEarning'])
        course = data.get('course')
        student = data.get('student') or data.get('user')
        return cls(
            id=_id(data),
            amount=amount,
            admin_commission=admin,
            instructor_earning=instructor,
            currency=data.get('currency') or 'USD',
            status=data.get('status') or data.get('paymentStatus') or 'completed',
            transaction_id=data.get('transactionId') or '',
            course_title=course.get('title', '') if isinstance(course, dict) else data.get('courseTitle', ''),
            student_name=User.from_api(student).name if isinstance(student, dict) else data.get('studentName', ''),
            created_at=parse_datetime(data.get('createdAt')),
        )


@dataclass
class OrderSummary:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    discount_code: str = ''

    @classmethod
    def compute(cls, courses: List[Course], discount: Any = 0, discount_code: str = '') -> 'OrderSummary':
        subtotal = sum((course.price for course in courses), Decimal('0.00'))
        tax = (subtotal * TAX_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
        discount = money(discount)
        total = max(Decimal('0.00'), subtotal + tax - discount)
        return cls(subtotal=subtotal, tax=tax, discount=discount, total=total, discount_code=discount_code)
