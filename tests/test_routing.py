from datetime import timedelta

import pytest
import requests

from conftest import login_as, make_token, user_payload


@pytest.mark.parametrize('path', ['/dashboard', '/my-cart', '/instructor/dashboard', '/admin/approvals'])
def test_anonymous_user_is_sent_to_login_with_next(client, path) -> None:
    response = client.get(path)

    assert response.status_code == 302
    assert response['Location'] == '/login?next=' + path.replace('/', '%2F')


def test_student_visiting_admin_lands_on_own_dashboard(student_client) -> None:
    response = student_client.get('/admin')

    assert response.status_code == 302
    assert response['Location'] == '/dashboard'


def test_instructor_visiting_student_page_lands_on_instructor_dashboard(instructor_client) -> None:
    response = instructor_client.get('/my-courses')

    assert response['Location'] == '/instructor/dashboard'


def test_admin_visiting_instructor_page_lands_on_admin_dashboard(admin_client) -> None:
    response = admin_client.get('/instructor/tools')

    assert response['Location'] == '/admin/dashboard'


def test_logged_in_user_is_kept_away_from_login(student_client) -> None:
    response = student_client.get('/login')

    assert response['Location'] == '/dashboard'


def test_expired_token_counts_as_logged_out(client) -> None:
    login_as(client, 'student', token=make_token(timedelta(minutes=-1)))

    response = client.get('/dashboard')

    assert response['Location'] == '/login?next=%2Fdashboard'


def test_login_returns_to_requested_page(client, backend) -> None:
    backend.on('POST', 'auth/login', {'success': True, 'token': make_token(), 'user': user_payload('student')})

    response = client.post('/login', {
        'user_type': 'student', 'email': 'student@example.com', 'password': 'Secret1', 'next': '/my-cart',
    })

    assert response.status_code == 302
    assert response['Location'] == '/my-cart'
    assert client.session['token']
    assert backend.called('POST', 'auth/login')[0].json == {'email': 'student@example.com', 'password': 'Secret1'}


def test_login_ignores_offsite_next(client, backend) -> None:
    backend.on('POST', 'auth/login', {'success': True, 'token': make_token(), 'user': user_payload('student')})

    response = client.post('/login', {
        'user_type': 'student', 'email': 'student@example.com', 'password': 'Secret1',
        'next': 'https://evil.example/steal',
    })

    assert response['Location'] == '/dashboard'


def test_login_endpoint_depends_on_user_type(client, backend) -> None:
    backend.on('POST', 'auth/admin/login', {'success': True, 'token': make_token(), 'user': user_payload('admin')})

    response = client.post('/login', {'user_type': 'admin', 'email': 'admin@example.com', 'password': 'Secret1'})

    assert response['Location'] == '/admin/dashboard'
    assert backend.paths('POST') == ['auth/admin/login']


def test_rejected_login_shows_backend_message(client, backend) -> None:
    backend.on('POST', 'auth/login', {'success': False, 'message': 'Invalid credentials'}, status=401)

    response = client.post('/login', {'user_type': 'student', 'email': 'student@example.com', 'password': 'nope'})

    assert response.status_code == 200
    assert b'Invalid credentials' in response.content
    assert 'token' not in client.session


def test_unreachable_backend_message_on_login(client, backend) -> None:
    backend.fail('POST', 'auth/login', requests.exceptions.ConnectionError())

    response = client.post('/login', {'user_type': 'student', 'email': 'student@example.com', 'password': 'x'})

    assert b'Unable to connect to server. Please check your internet connection.' in response.content


def test_login_dialog_remembers_background_page(client) -> None:
    response = client.get('/login', HTTP_REFERER='http://testserver/courses?q=python')

    assert response.status_code == 200
    assert client.session['background_location'] == '/courses?q=python'
    assert b'href="/courses?q=python"' in response.content


def test_switching_dialogs_keeps_background(client) -> None:
    client.get('/login', HTTP_REFERER='http://testserver/courses')
    client.get('/signup', HTTP_REFERER='http://testserver/login')

    assert client.session['background_location'] == '/courses'


def test_background_defaults_to_home(client) -> None:
    client.get('/signup', HTTP_REFERER='https://elsewhere.example/page')

    assert client.session['background_location'] == '/'


def test_successful_login_clears_background(client, backend) -> None:
    backend.on('POST', 'auth/login', {'success': True, 'token': make_token(), 'user': user_payload('student')})
    client.get('/login?background=/courses')

    client.post('/login', {'user_type': 'student', 'email': 'student@example.com', 'password': 'Secret1'})

    assert 'background_location' not in client.session


def test_signup_registers_then_logs_in(client, backend) -> None:
    backend.on('POST', 'auth/register', {'success': True, 'token': 'ignored', 'user': user_payload()}, status=201)
    backend.on('POST', 'auth/login', {'success': True, 'token': make_token(), 'user': user_payload()})

    response = client.post('/signup', {
        'first_name': 'Ada', 'last_name': 'Lovelace', 'email': 'ada@example.com',
        'password': 'Secret1', 'confirm_password': 'Secret1',
    })

    assert response['Location'] == '/dashboard'
    assert backend.paths('POST') == ['auth/register', 'auth/login']


def test_signup_validates_password_strength(client, backend) -> None:
    response = client.post('/signup', {
        'first_name': 'Ada', 'last_name': 'Lovelace', 'email': 'ada@example.com',
        'password': 'secret1', 'confirm_password': 'secret1',
    })

    assert response.status_code == 200
    assert b'at least one uppercase letter' in response.content
    assert backend.calls == []


def test_instructor_registration_waits_for_approval(client, backend) -> None:
    backend.on('POST', 'auth/instructor/register', {'success': True, 'message': 'awaiting approval'}, status=201)

    response = client.post('/instructor-auth', {
        'mode': 'register', 'first_name': 'Grace', 'last_name': 'Hopper', 'email': 'grace@example.com',
        'password': 'secret1', 'confirm_password': 'secret1', 'expertise': 'COBOL, Compilers',
    })

    assert response['Location'] == '/instructor-auth?mode=login'
    assert 'token' not in client.session
    assert backend.called('POST', 'auth/instructor/register')[0].json['expertise'] == ['COBOL', 'Compilers']


def test_backend_401_logs_out_and_redirects_to_login(student_client, backend) -> None:
    backend.on('GET', 'users/cart', {'message': 'Token is not valid'}, status=401)

    response = student_client.get('/my-cart')

    assert response.status_code == 302
    assert response['Location'] == '/login?next=%2Fmy-cart'
    assert 'token' not in student_client.session
    assert 'user' not in student_client.session


def test_logout_clears_session(student_client) -> None:
    response = student_client.get('/logout')

    assert response['Location'] == '/'
    assert 'token' not in student_client.session


def test_anonymous_add_to_cart_returns_to_catalog_after_login(client, backend) -> None:
    backend.on('POST', 'auth/login', {'success': True, 'token': make_token(), 'user': user_payload('student')})

    gated = client.post('/cart/add/c1', {'next': '/courses?q=django'})
    assert gated['Location'] == '/login?next=%2Fcourses%3Fq%3Ddjango'

    response = client.post('/login', {
        'user_type': 'student', 'email': 'student@example.com', 'password': 'Secret1', 'next': '/courses?q=django',
    })

    assert response['Location'] == '/courses?q=django'
    assert client.get(response['Location']).status_code == 200


def test_gated_post_without_next_uses_referring_page(client) -> None:
    response = client.post('/wishlist/toggle/c1', HTTP_REFERER='http://testserver/courses?level=beginner')

    assert response['Location'] == '/login?next=%2Fcourses%3Flevel%3Dbeginner'


def test_dialog_without_usable_background_falls_back_to_home(client) -> None:
    client.get('/login', HTTP_REFERER='http://testserver/courses')

    client.get('/signup')

    assert client.session['background_location'] == '/'
