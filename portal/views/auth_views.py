import logging

from django.contrib import messages
from django.shortcuts import render, redirect

from portal.api import ApiClient, ApiError, Unauthorized, error_message
from portal.auth import AuthSession, default_path
from portal.decorators import public_only
from portal.forms import InstructorLoginForm, InstructorSignupForm, LoginForm, SignupForm
from portal.navigation import background_location, capture_background, clear_background, safe_path
from portal.services import AuthService

logger = logging.getLogger(__name__)


def _finish_login(request, token, user_data, next_path=''):
    AuthSession(request).login(token, user_data)
    clear_background(request)
    role = user_data.get('role', 'student')
    logger.info("User %s logged in as %s", user_data.get('email', ''), role)
    return redirect(next_path or default_path(role))


@public_only
def login_view(request):
    if request.method == 'GET':
        capture_background(request)
    next_path = safe_path(request, request.POST.get('next') or request.GET.get('next'))
    form = LoginForm(request.POST or None)
    error = ''

    if request.method == 'POST' and form.is_valid():
        data = form.cleaned_data
        try:
            token, user_data = AuthService.login(
                ApiClient.for_request(request), data['user_type'], data['email'], data['password']
            )
            return _finish_login(request, token, user_data, next_path)
        except (ApiError, Unauthorized) as e:
            error = error_message(e, 'Login failed')

    return render(request, 'portal/login.html', {
        'form': form,
        'error': error,
        'next': next_path,
        'background': background_location(request),
    })


@public_only
def signup_view(request):
    if request.method == 'GET':
        capture_background(request)
    form = SignupForm(request.POST or None)
    error = ''

    if request.method == 'POST' and form.is_valid():
        try:
            token, user_data = AuthService.signup(ApiClient.for_request(request), form.cleaned_data)
            return _finish_login(request, token, user_data)
        except ValueError as ve:
            error = str(ve)
        except (ApiError, Unauthorized) as e:
            error = error_message(e, 'Registration failed. Please try again.')

    return render(request, 'portal/signup.html', {
        'form': form,
        'error': error,
        'background': background_location(request),
    })


@public_only
def instructor_auth_view(request):
    if request.method == 'GET':
        capture_background(request)
    mode = request.POST.get('mode') or request.GET.get('mode') or 'login'
    login_form = InstructorLoginForm(request.POST if mode == 'login' and request.method == 'POST' else None)
    register_form = InstructorSignupForm(request.POST if mode == 'register' and request.method == 'POST' else None)
    error = ''

    if request.method == 'POST':
        client = ApiClient.for_request(request)
        if mode == 'login' and login_form.is_valid():
            try:
                token, user_data = AuthService.login(
                    client, 'instructor', login_form.cleaned_data['email'], login_form.cleaned_data['password']
                )
                return _finish_login(request, token, user_data, default_path('instructor'))
            except (ApiError, Unauthorized) as e:
                error = error_message(e, 'Login failed. Please try again.')
        elif mode == 'register' and register_form.is_valid():
            try:
                AuthService.register_instructor(client, register_form.cleaned_data)
                messages.success(
                    request,
                    'Registration successful! Your instructor account is pending admin approval. '
                    'You will be able to login once approved.',
                )
                return redirect('/instructor-auth?mode=login')
            except ValueError as ve:
                error = str(ve)
            except (ApiError, Unauthorized) as e:
                error = error_message(e, 'Registration failed. Please try again.')

    return render(request, 'portal/instructor_auth.html', {
        'mode': mode,
        'login_form': login_form,
        'register_form': register_form,
        'error': error,
        'background': background_location(request),
    })


def logout_view(request):
    AuthSession(request).logout()
    clear_background(request)
    return redirect('/')
