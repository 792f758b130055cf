from datetime import datetime, timedelta, timezone
from decimal import Decimal

from portal.models import Cart, Course, Discount, Enrollment, OrderSummary, Payment, User, split_commission


def _courses(*prices):
    return [Course.from_api({'_id': f'c{i}', 'title': f'Course {i}', 'price': price}) for i, price in enumerate(prices)]


def test_order_summary_applies_flat_ten_percent_tax() -> None:
    summary = OrderSummary.compute(_courses(50, 30))

    assert summary.subtotal == Decimal('80.00')
    assert summary.tax == Decimal('8.00')
    assert summary.total == Decimal('88.00')


def test_order_summary_subtracts_discount_after_tax() -> None:
    summary = OrderSummary.compute(_courses(100), discount=Decimal('15'), discount_code='SAVE15')

    assert summary.total == Decimal('95.00')
    assert summary.discount_code == 'SAVE15'


def test_order_summary_total_never_goes_negative() -> None:
    summary = OrderSummary.compute(_courses(10), discount=500)

    assert summary.total == Decimal('0.00')


def test_commission_split_is_ten_ninety() -> None:
    assert split_commission('49.99') == (Decimal('5.00'), Decimal('44.99'))


def test_payment_derives_split_when_backend_omits_it() -> None:
    payment = Payment.from_api({'_id': 'p1', 'amount': 120, 'course': {'title': 'Django'}})

    assert payment.admin_commission == Decimal('12.00')
    assert payment.instructor_earning == Decimal('108.00')
    assert payment.course_title == 'Django'


def test_user_from_api_reads_instructor_approval() -> None:
    user = User.from_api({
        '_id': 'i1', 'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com',
        'role': 'instructor', 'instructorProfile': {'isApproved': False},
    })

    assert user.name == 'Ada Lovelace'
    assert user.is_approved is False


def test_enrollment_reads_last_accessed_lesson() -> None:
    enrollment = Enrollment.from_api({
        '_id': 'e1',
        'course': 'c1',
        'progress': 40,
        'completedLessons': [{'lesson': 'l1'}, {'lesson': 'l2'}],
        'lastAccessedLesson': {'chapter': 'ch2', 'lesson': 'l3'},
    })

    assert enrollment.course_id == 'c1'
    assert enrollment.completed_lessons == ['l1', 'l2']
    assert (enrollment.last_chapter_id, enrollment.last_lesson_id) == ('ch2', 'l3')


def test_cart_uses_backend_totals() -> None:
    cart = Cart.from_api({'courses': [{'_id': 'c1', 'price': 20}], 'totalPrice': 20, 'totalItems': 1})

    assert cart.course_ids == ['c1']
    assert cart.total_price == Decimal('20.00')


def test_discount_status() -> None:
    now = datetime(2026, 5, 1, tzinfo=timezone.utc)
    base = {'_id': 'd1', 'code': 'SPRING', 'value': 10, 'validFrom': '2026-04-01T00:00:00Z'}

    assert Discount.from_api(dict(base)).status(now) == 'active'
    assert Discount.from_api(dict(base, isActive=False)).status(now) == 'inactive'
    assert Discount.from_api(dict(base, validUntil='2026-04-15T00:00:00Z')).status(now) == 'expired'
    assert Discount.from_api(dict(base, usageLimit=5, usedCount=5)).status(now) == 'exhausted'
    assert Discount.from_api(dict(base)).status(now - timedelta(days=60)) == 'scheduled'
