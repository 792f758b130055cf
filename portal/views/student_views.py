import datetime
import logging

from django.contrib import messages
from django.http import HttpResponse, Http404
from django.shortcuts import render, redirect
from django.views.decorators.http import require_POST
from reportlab.lib.pagesizes import landscape, A4
from reportlab.pdfgen import canvas

from portal.api import ApiClient, ApiError, error_message
from portal.auth import AuthSession
from portal.decorators import student_required
from portal.forms import PasswordChangeForm, PaymentForm, ProfileForm, PromoCodeForm
from portal.models import OrderSummary
from portal.navigation import safe_path
from portal.repositories import (
    AuthRepository,
    CourseRepository,
    EnrollmentRepository,
    StudentRepository,
    UploadRepository,
    WishlistRepository,
)
from portal.services import (
    CartService,
    CheckoutError,
    CheckoutService,
    DiscountService,
    LearningService,
    NotEnrolled,
)
from portal.views.catalog_views import page_params

logger = logging.getLogger(__name__)


@student_required
def overview_page(request):
    client = ApiClient.for_request(request)
    enrollments, recommended = [], []
    try:
        enrollments = EnrollmentRepository.mine(client, page=1, limit=20)
        recommended, _ = CourseRepository.search(client, {'page': 1, 'limit': 4})
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load dashboard'))
    enrolled_ids = {enrollment.course_id for enrollment in enrollments}
    return render(request, 'portal/student/overview.html', {
        'enrollments': enrollments,
        'certificates': sum(1 for enrollment in enrollments if LearningService.certificate_ready(enrollment)),
        'recommended': [course for course in recommended if course.id not in enrolled_ids],
    })


@student_required
def my_courses_page(request):
    client = ApiClient.for_request(request)
    page_number, limit = page_params(request, default_limit=10)
    courses, pagination, stats = [], {'current_page': 1, 'total_pages': 1, 'total_items': 0}, {}
    try:
        stats = StudentRepository.dashboard_stats(client)
        courses, pagination = StudentRepository.enrolled_courses(client, page=page_number, limit=limit)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load your courses'))
    return render(request, 'portal/student/my_courses.html', {
        'courses': courses,
        'pagination': pagination,
        'stats': stats,
    })


@student_required
@require_POST
def add_to_cart(request, course_id):
    try:
        if CartService.add(ApiClient.for_request(request), course_id):
            messages.success(request, 'Course added to cart')
        else:
            messages.info(request, 'Course is already in your cart')
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to add course to cart'))
    return redirect(safe_path(request, request.POST.get('next')) or '/courses')


@student_required
@require_POST
def toggle_wishlist(request, course_id):
    client = ApiClient.for_request(request)
    try:
        if request.POST.get('action') == 'remove':
            WishlistRepository.remove(client, course_id)
            messages.success(request, 'Removed from wishlist')
        else:
            WishlistRepository.add(client, course_id)
            messages.success(request, 'Added to wishlist')
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to update wishlist'))
    return redirect(safe_path(request, request.POST.get('next')) or '/courses')


@student_required
def wishlist_page(request):
    client = ApiClient.for_request(request)
    if request.method == 'POST':
        course_id = request.POST.get('course_id', '')
        try:
            if request.POST.get('action') == 'move':
                CartService.move_to_cart(client, course_id)
                messages.success(request, 'Moved to cart')
            else:
                WishlistRepository.remove(client, course_id)
                messages.success(request, 'Removed from wishlist')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update wishlist'))
        return redirect('/wishlist')

    courses = []
    try:
        courses = WishlistRepository.list(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load wishlist'))
    return render(request, 'portal/student/wishlist.html', {'courses': courses})


@student_required
def cart_page(request):
    client = ApiClient.for_request(request)
    promo_form = PromoCodeForm(request.POST if request.POST.get('action') == 'apply' else None)
    discount_error = ''

    if request.method == 'POST':
        action = request.POST.get('action')
        if action == 'remove':
            try:
                CartService.remove(client, request.session, request.POST.get('course_id', ''))
                messages.success(request, 'Course removed from cart')
            except ApiError as e:
                messages.error(request, error_message(e, 'Failed to remove course'))
            return redirect('/my-cart')
        if action == 'clear-discount':
            DiscountService.clear(request.session)
            return redirect('/my-cart')

    try:
        cart, summary = CheckoutService.summary(client, request.session)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load cart'))
        return render(request, 'portal/student/cart.html', {'cart': None, 'promo_form': promo_form})

    if not cart.courses and DiscountService.applied(request.session)[0]:
        DiscountService.clear(request.session)
        summary = OrderSummary.compute(cart.courses)

    if request.method == 'POST' and request.POST.get('action') == 'apply' and promo_form.is_valid():
        try:
            code, amount = DiscountService.apply(
                client, request.session, promo_form.cleaned_data['code'], cart.total_price
            )
            messages.success(request, f'Discount code "{code}" applied successfully!')
            return redirect('/my-cart')
        except ValueError as ve:
            discount_error = str(ve)
        except ApiError as e:
            discount_error = error_message(e, 'Invalid promo code')
            summary = OrderSummary.compute(cart.courses)

    return render(request, 'portal/student/cart.html', {
        'cart': cart,
        'summary': summary,
        'promo_form': promo_form,
        'discount_error': discount_error,
    })


@student_required
def checkout_page(request):
    client = ApiClient.for_request(request)
    try:
        cart, summary = CheckoutService.summary(client, request.session)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load checkout'))
        return redirect('/my-cart')

    if not cart.courses:
        return redirect('/my-cart')

    form = PaymentForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        try:
            CheckoutService.submit(client, request.session, cart, summary, form.cleaned_data['card_number'])
            messages.success(request, 'Payment successful! Redirecting to your courses...')
            return redirect('/my-courses')
        except CheckoutError as ce:
            messages.error(request, ce.message)
            return redirect('/checkout')

    return render(request, 'portal/student/checkout.html', {
        'cart': cart,
        'summary': summary,
        'form': form,
    })


def _lesson_at(course, position):
    ci, li = position
    return course.chapters[ci], course.chapters[ci].lessons[li]


@student_required
def course_watch(request, course_id):
    client = ApiClient.for_request(request)
    try:
        course, enrollment = LearningService.open_course(client, course_id)
    except NotEnrolled as ne:
        messages.error(request, str(ne))
        return redirect('/courses')
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load course data'))
        return redirect('/my-courses')

    position = None
    lesson_id = request.GET.get('lesson')
    if lesson_id:
        position = LearningService.locate(course, request.GET.get('chapter', ''), lesson_id)
        if position:
            chapter, lesson = _lesson_at(course, position)
            LearningService.select_lesson(client, enrollment, chapter.id, lesson.id)
    if position is None:
        position = LearningService.initial_position(course, enrollment)

    context = {
        'course': course,
        'enrollment': enrollment,
        'certificate_ready': LearningService.certificate_ready(enrollment),
        'chapter': None,
        'lesson': None,
        'previous': None,
        'next': None,
    }
    if position:
        context['chapter'], context['lesson'] = _lesson_at(course, position)
        previous, following = LearningService.neighbours(course, *position)
        context['previous'] = _lesson_at(course, previous) if previous else None
        context['next'] = _lesson_at(course, following) if following else None
    return render(request, 'portal/student/course_watch.html', context)


@student_required
@require_POST
def complete_lesson(request, course_id, lesson_id):
    client = ApiClient.for_request(request)
    try:
        course, enrollment = LearningService.open_course(client, course_id)
    except NotEnrolled as ne:
        messages.error(request, str(ne))
        return redirect('/courses')
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load course data'))
        return redirect('/my-courses')

    position = LearningService.locate(course, '', lesson_id)
    if position is None:
        raise Http404("Lesson not found")
    chapter, lesson = _lesson_at(course, position)
    try:
        played = float(request.POST.get('played', 1))
    except ValueError:
        played = 1.0
    try:
        LearningService.complete_lesson(client, enrollment, lesson, played)
        messages.success(request, 'Lesson marked as complete!')
    except ApiError as e:
        logger.error("Marking lesson %s complete failed: %s", lesson_id, e.message)
        messages.error(request, 'Failed to mark lesson as complete')
    return redirect(f'/student/course/{course_id}?chapter={chapter.id}&lesson={lesson.id}')


@student_required
def download_certificate(request, course_id):
    client = ApiClient.for_request(request)
    try:
        course, enrollment = LearningService.open_course(client, course_id)
    except NotEnrolled:
        return render(request, 'portal/error.html', {'error': 'Certificate not available'}, status=403)
    except ApiError as e:
        if e.status == 404:
            return render(request, 'portal/error.html', {'error': 'Course not found'}, status=404)
        raise

    if not LearningService.certificate_ready(enrollment):
        return render(request, 'portal/error.html', {'error': 'Certificate not available'}, status=403)

    user = AuthSession(request).user
    response = HttpResponse(content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{course.title}_certificate.pdf"'

    p = canvas.Canvas(response, pagesize=landscape(A4))
    p.setFont('Helvetica-Bold', 28)
    p.drawString(100, 480, "Certificate of Completion")
    p.setFont('Helvetica', 16)
    p.drawString(100, 420, f"Presented to: {user.name if user else ''}")
    p.drawString(100, 380, f"For completing the course: {course.title}")
    p.drawString(100, 340, f"Instructor: {course.instructor_name}")
    p.drawString(100, 300, f"Date: {datetime.date.today().strftime('%B %d, %Y')}")
    p.showPage()
    p.save()

    return response


@student_required
def settings_page(request):
    client = ApiClient.for_request(request)
    auth = AuthSession(request)
    user = auth.user
    action = request.POST.get('action')

    profile_form = ProfileForm(
        request.POST if action == 'profile' else None,
        request.FILES if action == 'profile' else None,
        initial={'first_name': user.first_name, 'last_name': user.last_name, 'bio': user.bio},
    )
    password_form = PasswordChangeForm(request.POST if action == 'password' else None)

    if action == 'profile' and profile_form.is_valid():
        data = profile_form.cleaned_data
        try:
            update = {'firstName': data['first_name'], 'lastName': data['last_name'], 'bio': data['bio']}
            if data.get('avatar'):
                update['avatar'] = UploadRepository.upload(client, 'avatar', data['avatar'])
            payload = AuthRepository.update_profile(client, update)
            if payload.get('user'):
                auth.update_user(payload['user'])
            messages.success(request, 'Profile updated successfully')
            return redirect('/settings')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update profile'))

    if action == 'password' and password_form.is_valid():
        data = password_form.cleaned_data
        try:
            AuthRepository.change_password(client, {
                'currentPassword': data['current_password'],
                'newPassword': data['new_password'],
            })
            messages.success(request, 'Password changed successfully')
            return redirect('/settings')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to change password'))

    return render(request, 'portal/student/settings.html', {
        'profile_form': profile_form,
        'password_form': password_form,
    })
