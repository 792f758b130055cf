import logging

from django.contrib import messages
from django.shortcuts import render

from portal.api import ApiClient, ApiError, error_message
from portal.auth import AuthSession
from portal.repositories import CartRepository, CourseRepository, EnrollmentRepository, WishlistRepository

logger = logging.getLogger(__name__)


def page_params(request, default_limit=12):
    try:
        page_number = int(request.GET.get('page', 1))
        limit = int(request.GET.get('limit', default_limit))
    except ValueError:
        page_number, limit = 1, default_limit
    return max(1, page_number), max(1, min(limit, 50))


def _student_marks(request, client):
    auth = AuthSession(request)
    if not auth.is_authenticated() or auth.role != 'student':
        return set(), set(), set()
    try:
        in_cart = set(CartRepository.get(client).course_ids)
        wishlisted = {course.id for course in WishlistRepository.list(client)}
        enrolled = set(EnrollmentRepository.enrolled_course_ids(client))
    except ApiError as e:
        logger.warning("Could not load cart/wishlist state: %s", e.message)
        return set(), set(), set()
    return in_cart, wishlisted, enrolled


def home_page(request):
    client = ApiClient.for_request(request)
    try:
        courses, _ = CourseRepository.search(client, {'page': 1, 'limit': 8})
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load courses'))
        courses = []
    return render(request, 'portal/home.html', {'courses': courses})


def browse_page(request):
    client = ApiClient.for_request(request)
    page_number, limit = page_params(request)
    filters = {
        'q': request.GET.get('q', '').strip(),
        'category': request.GET.get('category', ''),
        'level': request.GET.get('level', ''),
    }

    courses, pagination, categories = [], {'current_page': 1, 'total_pages': 1, 'total_items': 0}, []
    try:
        courses, pagination = CourseRepository.search(client, dict(filters, page=page_number, limit=limit))
        categories = CourseRepository.categories(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load courses'))

    in_cart, wishlisted, enrolled = _student_marks(request, client)
    return render(request, 'portal/courses.html', {
        'courses': courses,
        'pagination': pagination,
        'categories': categories,
        'filters': filters,
        'limit': limit,
        'in_cart': in_cart,
        'wishlisted': wishlisted,
        'enrolled': enrolled,
    })
