import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple, Optional, Dict, Any, List

from portal.api import ApiClient, ApiError, Unauthorized, error_message
from portal.factories import EntityFactory
from portal.models import CENT, Cart, Course, Enrollment, OrderSummary, Payment, money
from portal.repositories import (
    AdminRepository,
    AuthRepository,
    CartRepository,
    CourseRepository,
    DiscountRepository,
    EnrollmentRepository,
    InstructorRepository,
    PaymentRepository,
    UploadRepository,
    WishlistRepository,
)
from portal.strategies import get_payment_gateway, new_transaction_id

logger = logging.getLogger(__name__)

APPLIED_DISCOUNT_KEY = 'applied_discount'


class CheckoutError(Exception):
    """Checkout stopped part way; ``completed`` lists the courses already enrolled."""

    def __init__(self, message: str, completed: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.completed = completed or []


class UploadError(Exception):
    pass


class NotEnrolled(Exception):
    pass


class AuthService:
    @staticmethod
    def login(client: ApiClient, user_type: str, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        payload = AuthRepository.login(client, user_type, {'email': email, 'password': password})
        if payload.get('success') is False or not payload.get('token'):
            raise ApiError(payload.get('message') or 'Login failed', payload=payload)
        return payload['token'], payload.get('user') or {}

    @staticmethod
    def signup(client: ApiClient, data: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        registration = EntityFactory.build_registration(data)
        AuthRepository.register(client, registration)
        return AuthService.login(client, 'student', registration['email'], registration['password'])

    @staticmethod
    def register_instructor(client: ApiClient, data: Dict[str, Any]) -> str:
        payload = AuthRepository.register_instructor(client, EntityFactory.build_instructor_registration(data))
        return payload.get('message') or 'Registration successful! Your instructor account is pending admin approval.'


class DiscountService:
    @staticmethod
    def applied(session) -> Tuple[str, Decimal]:
        data = session.get(APPLIED_DISCOUNT_KEY) or {}
        return data.get('code', ''), money(data.get('amount'))

    @staticmethod
    def clear(session) -> None:
        session.pop(APPLIED_DISCOUNT_KEY, None)

    @staticmethod
    def apply(client: ApiClient, session, code: str, amount: Decimal, course_id: Optional[str] = None) -> Tuple[str, Decimal]:
        """Validate ``code`` against the backend and remember it for checkout.

        Any rejection resets the applied discount to zero before re-raising.
        """
        code = (code or '').strip()
        if not code:
            raise ValueError("Please enter a promo code")
        try:
            payload = DiscountRepository.validate(client, code, amount, course_id)
        except ApiError:
            DiscountService.clear(session)
            raise
        discount = payload.get('discount') or {}
        applied_code = discount.get('code') or code.upper()
        discount_amount = money(discount.get('discountAmount'))
        session[APPLIED_DISCOUNT_KEY] = {'code': applied_code, 'amount': str(discount_amount)}
        return applied_code, discount_amount


class CartService:
    ALREADY_IN_CART = 'already in cart'

    @staticmethod
    def get(client: ApiClient) -> Cart:
        return CartRepository.get(client)

    @staticmethod
    def add(client: ApiClient, course_id: str) -> bool:
        """Add a course; returns False when it was already in the cart."""
        try:
            CartRepository.add(client, course_id)
        except ApiError as e:
            if e.status == 400 and CartService.ALREADY_IN_CART in e.message.lower():
                return False
            raise
        return True

    @staticmethod
    def remove(client: ApiClient, session, course_id: str) -> None:
        CartRepository.remove(client, course_id)
        DiscountService.clear(session)

    @staticmethod
    def move_to_cart(client: ApiClient, course_id: str) -> bool:
        added = CartService.add(client, course_id)
        WishlistRepository.remove(client, course_id)
        return added


class CheckoutService:
    @staticmethod
    def summary(client: ApiClient, session) -> Tuple[Cart, OrderSummary]:
        cart = CartRepository.get(client)
        code, amount = DiscountService.applied(session)
        return cart, OrderSummary.compute(cart.courses, amount, code)

    @staticmethod
    def submit(client: ApiClient, session, cart: Cart, summary: OrderSummary, card_number: str) -> List[str]:
        """Pay for and enroll in every cart item, in order, then empty the cart.

        Nothing is rolled back when a call fails part way: payments and
        enrollments already created stay in place and CheckoutError reports them.
        """
        courses = cart.courses
        if not courses:
            raise CheckoutError("Your cart is empty")

        gateway = get_payment_gateway()
        transaction_id = new_transaction_id()
        share = (summary.total / len(courses)).quantize(CENT, rounding=ROUND_HALF_UP)
        discount_code = summary.discount_code or None
        enrolled: List[str] = []

        try:
            for course in courses:
                item_transaction = f'{transaction_id}_{course.id}'
                PaymentRepository.create(client, EntityFactory.build_payment(
                    course.id,
                    share,
                    course.price,
                    item_transaction,
                    gateway.authorize(card_number),
                    discount_code,
                    gateway.method,
                ))
                EnrollmentRepository.enroll(client, course.id, EntityFactory.build_enrollment_details(
                    course.price,
                    item_transaction,
                    discount_code,
                    gateway.method,
                ))
                enrolled.append(course.id)

            for course in courses:
                CartRepository.remove(client, course.id)
        except ApiError as e:
            logger.error(
                "Checkout %s stopped after %d of %d courses (enrolled: %s): %s",
                transaction_id, len(enrolled), len(courses), enrolled, e.message,
            )
            raise CheckoutError(error_message(e, 'Payment failed. Please try again.'), enrolled) from e
        except Unauthorized:
            logger.error(
                "Checkout %s lost its session after %d of %d courses (enrolled: %s)",
                transaction_id, len(enrolled), len(courses), enrolled,
            )
            raise

        DiscountService.clear(session)
        logger.info("Checkout %s completed for %d courses", transaction_id, len(courses))
        return enrolled


class CourseAuthoringService:
    @staticmethod
    def _upload(client: ApiClient, kind: str, upload, failure: str) -> str:
        try:
            return UploadRepository.upload(client, kind, upload)
        except ApiError as e:
            logger.error("%s: %s", failure, e.message)
            raise UploadError(failure) from e

    @staticmethod
    def create_course(
        client: ApiClient,
        basic: Dict[str, Any],
        chapters: List[Dict[str, Any]],
        thumbnail=None,
        preview_video=None,
    ) -> Course:
        """Validate, upload every media file, then create the course.

        The first failing upload aborts the submission; the course is only
        created once all uploads have succeeded.
        """
        EntityFactory.validate_course(basic, chapters)

        thumbnail_url = ''
        if thumbnail:
            thumbnail_url = CourseAuthoringService._upload(client, 'thumbnail', thumbnail, 'Failed to upload thumbnail')

        preview_url = ''
        if preview_video:
            preview_url = CourseAuthoringService._upload(client, 'video', preview_video, 'Failed to upload preview video')

        for chapter in chapters:
            for lesson in chapter['lessons']:
                video = lesson.get('videoFile')
                if video:
                    lesson['videoUrl'] = CourseAuthoringService._upload(
                        client, 'video', video, f"Failed to upload video for lesson: {lesson['title']}"
                    )

        payload = EntityFactory.build_course_create(basic, chapters, thumbnail_url, preview_url)
        return CourseRepository.create(client, payload)


class LearningService:
    @staticmethod
    def open_course(client: ApiClient, course_id: str) -> Tuple[Course, Enrollment]:
        course, is_enrolled = CourseRepository.get(client, course_id)
        if not is_enrolled:
            raise NotEnrolled("You are not enrolled in this course")
        enrollment = EnrollmentRepository.progress(client, course_id)
        completed = set(enrollment.completed_lessons)
        for chapter in course.chapters:
            for lesson in chapter.lessons:
                lesson.is_completed = lesson.id in completed
        return course, enrollment

    @staticmethod
    def locate(course: Course, chapter_id: str, lesson_id: str) -> Optional[Tuple[int, int]]:
        for ci, chapter in enumerate(course.chapters):
            if chapter_id and chapter.id != chapter_id:
                continue
            for li, lesson in enumerate(chapter.lessons):
                if lesson.id == lesson_id:
                    return ci, li
        return None

    @staticmethod
    def initial_position(course: Course, enrollment: Enrollment) -> Optional[Tuple[int, int]]:
        if enrollment.last_chapter_id and enrollment.last_lesson_id:
            found = LearningService.locate(course, enrollment.last_chapter_id, enrollment.last_lesson_id)
            if found:
                return found
        for ci, chapter in enumerate(course.chapters):
            if chapter.lessons:
                return ci, 0
        return None

    @staticmethod
    def neighbours(course: Course, ci: int, li: int) -> Tuple[Optional[Tuple[int, int]], Optional[Tuple[int, int]]]:
        order = [(c, l) for c, chapter in enumerate(course.chapters) for l in range(len(chapter.lessons))]
        index = order.index((ci, li))
        previous = order[index - 1] if index > 0 else None
        following = order[index + 1] if index < len(order) - 1 else None
        return previous, following

    @staticmethod
    def select_lesson(client: ApiClient, enrollment: Enrollment, chapter_id: str, lesson_id: str) -> None:
        try:
            EnrollmentRepository.update_last_accessed(client, enrollment.id, chapter_id, lesson_id)
        except ApiError as e:
            logger.warning("Could not record last accessed lesson %s: %s", lesson_id, e.message)

    @staticmethod
    def complete_lesson(client: ApiClient, enrollment: Enrollment, lesson, played: float) -> int:
        played = min(max(float(played or 0), 0.0), 1.0)
        watch_time = int(played * (lesson.duration or 0))
        EnrollmentRepository.complete_lesson(client, enrollment.id, lesson.id, watch_time)
        return watch_time

    @staticmethod
    def certificate_ready(enrollment: Enrollment) -> bool:
        return enrollment.is_completed or enrollment.progress >= 100


class InstructorService:
    @staticmethod
    def dashboard(client: ApiClient) -> Dict[str, Any]:
        return {
            'stats': InstructorRepository.dashboard(client),
            'top_courses': InstructorRepository.top_courses(client),
            'recent_activity': InstructorRepository.recent_activity(client, limit=5),
        }

    @staticmethod
    def revenue(client: ApiClient, year: Optional[int] = None) -> Dict[str, Any]:
        return {
            'stats': InstructorRepository.dashboard(client),
            'monthly': InstructorRepository.monthly_revenue(client, year),
            'top_courses': InstructorRepository.top_courses(client),
            'transactions': InstructorRepository.recent_transactions(client, limit=10),
        }


class AdminService:
    @staticmethod
    def revenue(client: ApiClient, period: str = '') -> Dict[str, Any]:
        analytics = PaymentRepository.analytics(client, period)
        stats = AdminRepository.revenue_stats(client, period)
        return {
            'summary': analytics.get('revenue') or {},
            'monthly': analytics.get('monthlyRevenue') or stats.get('revenueData') or [],
            'top_courses': analytics.get('topCourses') or [],
            'top_instructors': stats.get('topInstructors') or [],
            'transactions': [Payment.from_api(item) for item in analytics.get('recentTransactions') or []],
        }
