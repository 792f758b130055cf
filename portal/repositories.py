from typing import Tuple, List, Optional, Dict, Any

from portal.api import ApiClient
from portal.models import Cart, Course, Discount, Enrollment, Payment, User


def _paginate(payload: Dict[str, Any], items: List[Any]) -> Tuple[List[Any], Dict[str, int]]:
    pagination = payload.get('pagination') or _data(payload).get('pagination') or {}
    total = next(
        (pagination[key] for key in ('totalItems', 'totalCourses', 'totalUsers', 'total') if key in pagination),
        payload.get('total', len(items)),
    )
    return items, {
        'current_page': int(pagination.get('currentPage', payload.get('currentPage', 1)) or 1),
        'total_pages': int(pagination.get('totalPages', payload.get('totalPages', 1)) or 1),
        'total_items': int(total or 0),
    }


def _data(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = payload.get('data')
    return data if isinstance(data, dict) else payload


class AuthRepository:
    LOGIN_ENDPOINTS = {
        'student': 'auth/login',
        'instructor': 'auth/instructor/login',
        'admin': 'auth/admin/login',
    }

    @staticmethod
    def login(client: ApiClient, user_type: str, credentials: Dict[str, Any]) -> Dict[str, Any]:
        endpoint = AuthRepository.LOGIN_ENDPOINTS.get(user_type, AuthRepository.LOGIN_ENDPOINTS['student'])
        return client.post(endpoint, json=credentials)

    @staticmethod
    def register(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.post('auth/register', json=data)

    @staticmethod
    def register_instructor(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.post('auth/instructor/register', json=data)

    @staticmethod
    def profile(client: ApiClient) -> Optional[User]:
        payload = client.get('auth/profile')
        user = payload.get('user')
        return User.from_api(user) if user else None

    @staticmethod
    def update_profile(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.put('auth/profile', json=data)

    @staticmethod
    def change_password(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.put('auth/change-password', json=data)


class CourseRepository:
    @staticmethod
    def search(client: ApiClient, params: Dict[str, Any]) -> Tuple[List[Course], Dict[str, int]]:
        payload = client.get('users/search-courses', params={k: v for k, v in params.items() if v})
        data = payload.get('data')
        items = data if isinstance(data, list) else (data or {}).get('courses') or payload.get('courses') or []
        return _paginate(payload, [Course.from_api(item) for item in items])

    @staticmethod
    def categories(client: ApiClient) -> List[str]:
        payload = client.get('users/categories')
        data = payload.get('data', payload.get('categories', []))
        return [item.get('name', '') if isinstance(item, dict) else str(item) for item in data or []]

    @staticmethod
    def get(client: ApiClient, course_id: str) -> Tuple[Course, bool]:
        payload = client.get(f'courses/{course_id}')
        return Course.from_api(payload.get('course') or {}), bool(payload.get('isEnrolled', False))

    @staticmethod
    def list_for_instructor(client: ApiClient, status: str = '') -> List[Course]:
        payload = client.get('courses/instructor', params={'status': status} if status else None)
        items = payload.get('courses') or _data(payload).get('courses') or []
        return [Course.from_api(item) for item in items]

    @staticmethod
    def create(client: ApiClient, data: Dict[str, Any]) -> Course:
        payload = client.post('courses', json=data)
        return Course.from_api(payload.get('course') or _data(payload))

    @staticmethod
    def update(client: ApiClient, course_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.put(f'courses/{course_id}', json=data)

    @staticmethod
    def delete(client: ApiClient, course_id: str) -> None:
        client.delete(f'courses/{course_id}')

    @staticmethod
    def submit_for_approval(client: ApiClient, course_id: str) -> Dict[str, Any]:
        return client.put(f'courses/{course_id}/submit')

    @staticmethod
    def publish(client: ApiClient, course_id: str) -> Dict[str, Any]:
        return client.put(f'courses/{course_id}/publish')


class CartRepository:
    @staticmethod
    def get(client: ApiClient) -> Cart:
        return Cart.from_api(_data(client.get('users/cart')))

    @staticmethod
    def add(client: ApiClient, course_id: str) -> None:
        client.post(f'enrollments/cart/{course_id}')

    @staticmethod
    def remove(client: ApiClient, course_id: str) -> None:
        client.delete(f'enrollments/cart/{course_id}')


class WishlistRepository:
    @staticmethod
    def list(client: ApiClient) -> List[Course]:
        data = client.get('users/wishlist').get('data')
        items = data if isinstance(data, list) else (data or {}).get('courses') or []
        return [Course.from_api(item) for item in items]

    @staticmethod
    def add(client: ApiClient, course_id: str) -> None:
        client.post(f'enrollments/wishlist/{course_id}')

    @staticmethod
    def remove(client: ApiClient, course_id: str) -> None:
        client.delete(f'enrollments/wishlist/{course_id}')


class EnrollmentRepository:
    @staticmethod
    def enroll(client: ApiClient, course_id: str, payment_details: Dict[str, Any]) -> Dict[str, Any]:
        return client.post(f'enrollments/enroll/{course_id}', json={'paymentDetails': payment_details})

    @staticmethod
    def mine(client: ApiClient, page: int = 1, limit: int = 10) -> List[Enrollment]:
        payload = client.get('enrollments/my-enrollments', params={'page': page, 'limit': limit})
        data = payload.get('data')
        items = data if isinstance(data, list) else payload.get('enrollments') or (data or {}).get('enrollments') or []
        return [Enrollment.from_api(item) for item in items]

    @staticmethod
    def enrolled_course_ids(client: ApiClient) -> List[str]:
        data = client.get('users/enrolled-courses').get('data')
        items = data if isinstance(data, list) else (data or {}).get('courses') or []
        ids = []
        for item in items:
            course = item.get('course', item) if isinstance(item, dict) else item
            ids.append(str(course.get('_id') or course.get('id')) if isinstance(course, dict) else str(course))
        return ids

    @staticmethod
    def progress(client: ApiClient, course_id: str) -> Enrollment:
        return Enrollment.from_api(client.get(f'enrollments/progress/{course_id}').get('enrollment') or {})

    @staticmethod
    def complete_lesson(client: ApiClient, enrollment_id: str, lesson_id: str, watch_time: int) -> Dict[str, Any]:
        return client.put(f'enrollments/{enrollment_id}/lessons/{lesson_id}/complete', json={'watchTime': watch_time})

    @staticmethod
    def update_last_accessed(client: ApiClient, enrollment_id: str, chapter_id: str, lesson_id: str) -> Dict[str, Any]:
        return client.put(
            f'enrollments/{enrollment_id}/last-accessed',
            json={'chapterId': chapter_id, 'lessonId': lesson_id},
        )


class StudentRepository:
    @staticmethod
    def dashboard_stats(client: ApiClient) -> Dict[str, Any]:
        return _data(client.get('student/dashboard/stats'))

    @staticmethod
    def enrolled_courses(client: ApiClient, page: int = 1, limit: int = 10) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        payload = client.get('student/enrolled-courses', params={'page': page, 'limit': limit})
        data = payload.get('data')
        items = data if isinstance(data, list) else (data or {}).get('courses') or []
        return _paginate(payload, items)


class DiscountRepository:
    """Discount codes; ``base`` is 'discounts' for admins, 'instructor/discounts' for instructors."""

    @staticmethod
    def validate(client: ApiClient, code: str, amount, course_id: Optional[str] = None) -> Dict[str, Any]:
        return client.post('discounts/validate', json={'code': code, 'amount': float(amount), 'courseId': course_id})

    @staticmethod
    def list(client: ApiClient, base: str = 'discounts') -> List[Discount]:
        payload = client.get(base)
        items = payload.get('discounts') or _data(payload).get('discounts') or []
        return [Discount.from_api(item) for item in items]

    @staticmethod
    def get(client: ApiClient, discount_id: str, base: str = 'discounts') -> Discount:
        payload = client.get(f'{base}/{discount_id}')
        return Discount.from_api(payload.get('discount') or _data(payload))

    @staticmethod
    def create(client: ApiClient, data: Dict[str, Any], base: str = 'discounts') -> Dict[str, Any]:
        return client.post(base, json=data)

    @staticmethod
    def update(client: ApiClient, discount_id: str, data: Dict[str, Any], base: str = 'discounts') -> Dict[str, Any]:
        return client.put(f'{base}/{discount_id}', json=data)

    @staticmethod
    def delete(client: ApiClient, discount_id: str, base: str = 'discounts') -> None:
        client.delete(f'{base}/{discount_id}')

    @staticmethod
    def toggle(client: ApiClient, discount_id: str, base: str = 'discounts') -> Dict[str, Any]:
        return client.patch(f'{base}/{discount_id}/toggle-status')


class PaymentRepository:
    @staticmethod
    def create(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.post('payments', json=data)

    @staticmethod
    def mine(client: ApiClient, page: int = 1, limit: int = 10) -> List[Payment]:
        payload = client.get('payments/my-payments', params={'page': page, 'limit': limit})
        return [Payment.from_api(item) for item in payload.get('payments') or []]

    @staticmethod
    def analytics(client: ApiClient, period: str = '') -> Dict[str, Any]:
        payload = client.get('payments/admin/analytics', params={'period': period} if period else None)
        return payload.get('analytics') or {}


class UploadRepository:
    FIELDS = {
        'thumbnail': 'thumbnail',
        'video': 'video',
        'avatar': 'avatar',
        'document': 'document',
    }

    @staticmethod
    def upload(client: ApiClient, kind: str, upload) -> str:
        field_name = UploadRepository.FIELDS[kind]
        files = {field_name: (upload.name, upload.read(), getattr(upload, 'content_type', None) or 'application/octet-stream')}
        payload = client.post(f'upload/{kind}', files=files)
        return _data(payload).get('url', '')


class AdminRepository:
    @staticmethod
    def dashboard(client: ApiClient) -> Dict[str, Any]:
        return _data(client.get('admin/dashboard/stats'))

    @staticmethod
    def users(client: ApiClient, page: int = 1, limit: int = 20, search: str = '') -> Tuple[List[User], Dict[str, int]]:
        params = {'page': page, 'limit': limit}
        if search:
            params['search'] = search
        payload = client.get('admin/users', params=params)
        items = payload.get('users') or _data(payload).get('users') or []
        return _paginate(payload, [User.from_api(item) for item in items])

    @staticmethod
    def set_user_status(client: ApiClient, user_id: str, is_active: bool) -> Dict[str, Any]:
        return client.put(f'admin/users/{user_id}/status', json={'isActive': is_active})

    @staticmethod
    def update_user(client: ApiClient, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.put(f'admin/users/{user_id}', json=data)

    @staticmethod
    def delete_user(client: ApiClient, user_id: str) -> None:
        client.delete(f'admin/users/{user_id}')

    @staticmethod
    def pending_instructors(client: ApiClient) -> List[User]:
        payload = client.get('admin/instructors/pending')
        items = payload.get('instructors') or _data(payload).get('instructors') or []
        return [User.from_api(item) for item in items]

    @staticmethod
    def approve_instructor(client: ApiClient, instructor_id: str) -> Dict[str, Any]:
        return client.put(f'admin/instructors/{instructor_id}/approve')

    @staticmethod
    def reject_instructor(client: ApiClient, instructor_id: str, reason: str = '') -> Dict[str, Any]:
        return client.put(f'admin/instructors/{instructor_id}/reject', json={'reason': reason})

    @staticmethod
    def pending_courses(client: ApiClient) -> List[Course]:
        payload = client.get('admin/courses/pending')
        items = payload.get('courses') or _data(payload).get('courses') or []
        return [Course.from_api(item) for item in items]

    @staticmethod
    def approve_course(client: ApiClient, course_id: str) -> Dict[str, Any]:
        return client.put(f'admin/courses/{course_id}/approve')

    @staticmethod
    def reject_course(client: ApiClient, course_id: str, reason: str) -> Dict[str, Any]:
        return client.put(f'admin/courses/{course_id}/reject', json={'reason': reason})

    @staticmethod
    def all_courses(client: ApiClient) -> List[Course]:
        payload = client.get('admin/courses')
        items = payload.get('courses') or _data(payload).get('courses') or []
        return [Course.from_api(item) for item in items]

    @staticmethod
    def revenue_stats(client: ApiClient, period: str = '') -> Dict[str, Any]:
        return _data(client.get('admin/revenue/stats', params={'period': period} if period else None))

    @staticmethod
    def create_admin(client: ApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
        return client.post('admin/create-admin', json=data)


class InstructorRepository:
    @staticmethod
    def dashboard(client: ApiClient) -> Dict[str, Any]:
        return _data(client.get('instructor/dashboard/stats'))

    @staticmethod
    def monthly_revenue(client: ApiClient, year: Optional[int] = None) -> List[Dict[str, Any]]:
        data = client.get('instructor/revenue/monthly', params={'year': year} if year else None).get('data')
        return data if isinstance(data, list) else (data or {}).get('monthlyRevenue') or []

    @staticmethod
    def top_courses(client: ApiClient) -> List[Dict[str, Any]]:
        data = client.get('instructor/top-courses').get('data')
        return data if isinstance(data, list) else []

    @staticmethod
    def recent_activity(client: ApiClient, limit: int = 10) -> List[Dict[str, Any]]:
        data = client.get('instructor/recent-activity', params={'limit': limit}).get('data')
        return data if isinstance(data, list) else []

    @staticmethod
    def recent_transactions(client: ApiClient, limit: int = 10) -> List[Payment]:
        data = client.get('instructor/recent-transactions', params={'limit': limit}).get('data')
        return [Payment.from_api(item) for item in (data if isinstance(data, list) else [])]
