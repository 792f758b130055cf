import logging

from django.contrib import messages
from django.shortcuts import render, redirect

from portal.api import ApiClient, ApiError, error_message
from portal.decorators import admin_required
from portal.factories import EntityFactory
from portal.forms import CreateAdminForm, DiscountForm, RejectForm, UserEditForm
from portal.repositories import AdminRepository, DiscountRepository
from portal.services import AdminService
from portal.views.catalog_views import page_params

logger = logging.getLogger(__name__)


@admin_required
def dashboard_page(request):
    context = {'stats': {}, 'recent_enrollments': [], 'top_courses': []}
    try:
        payload = AdminRepository.dashboard(ApiClient.for_request(request))
        context.update({
            'stats': payload.get('stats') or {},
            'recent_enrollments': payload.get('recentEnrollments') or [],
            'top_courses': payload.get('topCourses') or [],
        })
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load dashboard stats'))
    return render(request, 'portal/admin/dashboard.html', context)


@admin_required
def users_page(request):
    client = ApiClient.for_request(request)
    if request.method == 'POST':
        user_id = request.POST.get('user_id', '')
        action = request.POST.get('action')
        try:
            if action in ('activate', 'deactivate'):
                AdminRepository.set_user_status(client, user_id, action == 'activate')
                messages.success(request, 'User status updated')
            elif action == 'edit':
                form = UserEditForm(request.POST)
                if form.is_valid():
                    AdminRepository.update_user(client, user_id, EntityFactory.build_user_update(form.cleaned_data))
                    messages.success(request, 'User updated successfully')
                else:
                    messages.error(request, 'Please fill in all user fields')
            elif action == 'delete':
                AdminRepository.delete_user(client, user_id)
                messages.success(request, 'User deleted successfully')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update user'))
        return redirect('/admin/users')

    page_number, limit = page_params(request, default_limit=20)
    search = request.GET.get('q', '').strip()
    users, pagination = [], {'current_page': 1, 'total_pages': 1, 'total_items': 0}
    try:
        users, pagination = AdminRepository.users(client, page=page_number, limit=limit, search=search)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load users'))
    return render(request, 'portal/admin/users.html', {
        'users': users,
        'pagination': pagination,
        'search': search,
    })


@admin_required
def instructors_page(request):
    client = ApiClient.for_request(request)
    if request.method == 'POST':
        instructor_id = request.POST.get('instructor_id', '')
        try:
            if request.POST.get('action') == 'approve':
                AdminRepository.approve_instructor(client, instructor_id)
                messages.success(request, 'Instructor approved successfully')
            else:
                AdminRepository.reject_instructor(client, instructor_id, request.POST.get('reason', '').strip())
                messages.success(request, 'Instructor rejected')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update instructor'))
        return redirect('/admin/instructors')

    instructors = []
    try:
        instructors = AdminRepository.pending_instructors(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load pending instructors'))
    return render(request, 'portal/admin/instructors.html', {'instructors': instructors})


@admin_required
def approvals_page(request):
    client = ApiClient.for_request(request)
    if request.method == 'POST':
        course_id = request.POST.get('course_id', '')
        try:
            if request.POST.get('action') == 'approve':
                AdminRepository.approve_course(client, course_id)
                messages.success(request, 'Course approved successfully')
            else:
                form = RejectForm(request.POST)
                if form.is_valid():
                    AdminRepository.reject_course(client, course_id, form.cleaned_data['reason'])
                    messages.success(request, 'Course rejected')
                else:
                    messages.error(request, 'Please provide a reason for rejection')
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to update course'))
        return redirect('/admin/approvals')

    courses, all_courses = [], []
    try:
        courses = AdminRepository.pending_courses(client)
        all_courses = AdminRepository.all_courses(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load pending courses'))
    return render(request, 'portal/admin/approvals.html', {
        'courses': courses,
        'all_courses': all_courses,
        'reject_form': RejectForm(),
    })


@admin_required
def revenue_page(request):
    period = request.GET.get('period', '')
    context = {'period': period, 'summary': {}, 'monthly': [], 'top_courses': [], 'top_instructors': [], 'transactions': []}
    try:
        context.update(AdminService.revenue(ApiClient.for_request(request), period))
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load revenue data'))
    return render(request, 'portal/admin/revenue.html', context)


def _discount_page(request, template, path):
    client = ApiClient.for_request(request)
    action = request.POST.get('action')
    form = DiscountForm(request.POST if action in ('create', 'update') else None)
    admin_form = CreateAdminForm(request.POST if action == 'create-admin' else None)

    if request.method == 'POST':
        discount_id = request.POST.get('discount_id', '')
        try:
            if action == 'create' and form.is_valid():
                DiscountRepository.create(client, EntityFactory.build_discount(form.cleaned_data))
                messages.success(request, 'Discount code created successfully!')
                return redirect(path)
            if action == 'update' and form.is_valid():
                DiscountRepository.update(client, discount_id, EntityFactory.build_discount(form.cleaned_data))
                messages.success(request, 'Discount code updated successfully!')
                return redirect(path)
            if action == 'toggle':
                DiscountRepository.toggle(client, discount_id)
                messages.success(request, 'Discount status updated successfully!')
                return redirect(path)
            if action == 'delete':
                DiscountRepository.delete(client, discount_id)
                messages.success(request, 'Discount code deleted successfully!')
                return redirect(path)
            if action == 'create-admin' and admin_form.is_valid():
                data = admin_form.cleaned_data
                AdminRepository.create_admin(client, {
                    'firstName': data['first_name'],
                    'lastName': data['last_name'],
                    'email': data['email'],
                    'password': data['password'],
                })
                messages.success(request, 'Admin created successfully')
                return redirect(path)
        except ValueError as ve:
            messages.error(request, str(ve))
        except ApiError as e:
            messages.error(request, error_message(e, 'Failed to save discount'))

    discounts, courses = [], []
    try:
        discounts = DiscountRepository.list(client)
        courses = AdminRepository.all_courses(client)
    except ApiError as e:
        messages.error(request, error_message(e, 'Failed to load discounts'))
    return render(request, template, {
        'form': form,
        'admin_form': admin_form,
        'discounts': discounts,
        'courses': courses,
    })


@admin_required
def discounts_page(request):
    return _discount_page(request, 'portal/admin/discounts.html', '/admin/discounts')


@admin_required
def tools_page(request):
    return _discount_page(request, 'portal/admin/tools.html', '/admin/tools')
