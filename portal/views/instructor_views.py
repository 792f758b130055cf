import logging

from django.contrib import messages
from django.shortcuts import render, redirect

from portal.api import ApiClient, ApiError, error_message
from portal.decorators import instructor_required
from portal.factories import EntityFactory
from portal.forms import CourseForm, DiscountForm
from portal.repositories import CourseRepository, DiscountRepository
from portal.services import CourseAuthoringService, InstructorService, UploadError

logger = logging.getLogger(__name__)

INSTRUCTOR_DISCOUNTS = 'instructor/discounts'


@instructor_required
def dashboard_page(request):
    client = ApiClient.for_request(request)
    context = {'stats': {}, 'top_courses': [], 'recent_activity': []}
    try:
        context.update(InstructorService.dashboard(client))
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load dashboard data'))
    return render(request, 'portal/instructor/dashboard.html', context)


@instructor_required
def add_course_page(request):
    form = CourseForm(request.POST or None, request.FILES or None)
    chapters = EntityFactory.parse_curriculum(request.POST, request.FILES) if request.method == 'POST' else []

    if request.method == 'POST' and form.is_valid():
        data = form.cleaned_data
        try:
            course = CourseAuthoringService.create_course(
                ApiClient.for_request(request),
                data,
                chapters,
                thumbnail=data.get('thumbnail'),
                preview_video=data.get('preview_video'),
            )
            logger.info("Course %s created", course.id)
            messages.success(request, 'Course created successfully!')
            return redirect('/instructor/courses')
        except (ValueError, UploadError) as e:
            messages.error(request, str(e))
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to create course'))

    return render(request, 'portal/instructor/add_course.html', {
        'form': form,
        'chapters': chapters or [{'title': '', 'description': '', 'lessons': [{}]}],
    })


@instructor_required
def courses_page(request):
    client = ApiClient.for_request(request)
    if request.method == 'POST':
        course_id = request.POST.get('course_id', '')
        action = request.POST.get('action')
        try:
            if action == 'submit':
                CourseRepository.submit_for_approval(client, course_id)
                messages.success(request, 'Course submitted for approval')
            elif action == 'publish':
                CourseRepository.publish(client, course_id)
                messages.success(request, 'Course published')
            elif action == 'delete':
                CourseRepository.delete(client, course_id)
                messages.success(request, 'Course deleted')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update course'))
        return redirect('/instructor/courses')

    status = request.GET.get('status', '')
    courses = []
    try:
        courses = CourseRepository.list_for_instructor(client, status)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load courses'))
    return render(request, 'portal/instructor/courses.html', {'courses': courses, 'status': status})


@instructor_required
def revenue_page(request):
    client = ApiClient.for_request(request)
    year = request.GET.get('year')
    context = {'stats': {}, 'monthly': [], 'top_courses': [], 'transactions': []}
    try:
        context.update(InstructorService.revenue(client, int(year) if year and year.isdigit() else None))
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load revenue data'))
    return render(request, 'portal/instructor/revenue.html', context)


@instructor_required
def tools_page(request):
    client = ApiClient.for_request(request)
    form = DiscountForm(request.POST if request.POST.get('action') == 'create' else None)

    if request.method == 'POST':
        action = request.POST.get('action')
        discount_id = request.POST.get('discount_id', '')
        try:
            if action == 'create':
                if form.is_valid():
                    DiscountRepository.create(
                        client,
                        EntityFactory.build_discount(form.cleaned_data, require_course=True),
                        base=INSTRUCTOR_DISCOUNTS,
                    )
                    messages.success(request, 'Discount code created successfully!')
                    return redirect('/instructor/tools')
            elif not discount_id:
                messages.error(request, 'Invalid discount ID')
                return redirect('/instructor/tools')
            elif action == 'toggle':
                DiscountRepository.toggle(client, discount_id, base=INSTRUCTOR_DISCOUNTS)
                messages.success(request, 'Discount status updated successfully!')
                return redirect('/instructor/tools')
            elif action == 'delete':
                DiscountRepository.delete(client, discount_id, base=INSTRUCTOR_DISCOUNTS)
                messages.success(request, 'Discount code deleted successfully!')
                return redirect('/instructor/tools')
        except ValueError as ve:
            messages.error(request, str(ve))
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to save discount code'))

    discounts, courses = [], []
    try:
        discounts = DiscountRepository.list(client, base=INSTRUCTOR_DISCOUNTS)
        courses = CourseRepository.list_for_instructor(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load discount data'))
    return render(request, 'portal/instructor/tools.html', {
        'form': form,
        'discounts': discounts,
        'courses': courses,
    })
