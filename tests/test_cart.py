from decimal import Decimal

import pytest

from conftest import course_payload
from portal.api import ApiClient, ApiError
from portal.services import CartService, DiscountService

EXPIRED = 'Discount code has expired or reached usage limit'


def _cart(*courses):
    return {
        'success': True,
        'data': {
            'courses': list(courses),
            'totalPrice': sum(course['price'] for course in courses),
            'totalItems': len(courses),
        },
    }


def _valid_discount(code='SAVE10', amount=10.0):
    return {
        'success': True,
        'discount': {'code': code, 'type': 'fixed', 'value': amount, 'discountAmount': amount,
                     'originalAmount': 100, 'finalAmount': 100 - amount},
    }


def test_adding_same_course_twice_is_idempotent(backend) -> None:
    backend.on('POST', 'enrollments/cart/c1', {'success': True, 'message': 'Course added to cart'})
    backend.on('POST', 'enrollments/cart/c1', {'success': False, 'message': 'Course already in cart'}, status=400)
    client = ApiClient(token='tok')

    assert CartService.add(client, 'c1') is True
    assert CartService.add(client, 'c1') is False


def test_other_add_rejections_are_raised(backend) -> None:
    backend.on('POST', 'enrollments/cart/c1', {'message': 'Cannot add enrolled course to cart'}, status=400)

    with pytest.raises(ApiError, match='Cannot add enrolled course to cart'):
        CartService.add(ApiClient(token='tok'), 'c1')


def test_add_to_cart_view_twice_keeps_single_entry(student_client, backend) -> None:
    backend.on('POST', 'enrollments/cart/c1', {'success': True})
    backend.on('POST', 'enrollments/cart/c1', {'message': 'Course already in cart'}, status=400)
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100)))

    first = student_client.post('/cart/add/c1', {'next': '/courses'})
    second = student_client.post('/cart/add/c1', {'next': '/courses'})
    page = student_client.get('/my-cart')

    assert first['Location'] == second['Location'] == '/courses'
    assert page.content.count(b'Course c1') == 1


def test_anonymous_add_to_cart_goes_to_login(client, backend) -> None:
    response = client.post('/cart/add/c1')

    assert response['Location'] == '/login'
    assert backend.calls == []


def test_add_to_cart_ignores_offsite_next(student_client, backend) -> None:
    backend.on('POST', 'enrollments/cart/c1', {'success': True})

    response = student_client.post('/cart/add/c1', {'next': 'https://evil.example/phish'})

    assert response['Location'] == '/courses'


def test_wishlist_toggle_ignores_offsite_next(student_client, backend) -> None:
    backend.on('POST', 'enrollments/wishlist/c1', {'success': True})

    response = student_client.post('/wishlist/toggle/c1', {'next': '//evil.example/phish'})

    assert response['Location'] == '/courses'


def test_empty_promo_code_is_rejected(student_client, backend) -> None:
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100)))

    response = student_client.post('/my-cart', {'action': 'apply', 'code': '  '})

    assert b'Please enter a promo code' in response.content
    assert backend.called('POST', 'discounts/validate') == []


def test_valid_code_is_remembered_for_checkout(student_client, backend) -> None:
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100)))
    backend.on('POST', 'discounts/validate', _valid_discount())

    response = student_client.post('/my-cart', {'action': 'apply', 'code': 'save10'})

    assert response['Location'] == '/my-cart'
    assert student_client.session['applied_discount'] == {'code': 'SAVE10', 'amount': '10.00'}
    assert backend.called('POST', 'discounts/validate')[0].json == {'code': 'save10', 'amount': 100.0, 'courseId': None}

    checkout = student_client.get('/checkout')
    assert checkout.context['summary'].total == Decimal('100.00')


def test_expired_code_leaves_total_unchanged(student_client, backend) -> None:
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100)))
    backend.on('POST', 'discounts/validate', _valid_discount())
    backend.on('POST', 'discounts/validate', {'success': False, 'message': EXPIRED}, status=400)
    student_client.post('/my-cart', {'action': 'apply', 'code': 'SAVE10'})

    response = student_client.post('/my-cart', {'action': 'apply', 'code': 'OLDCODE'})

    assert response.status_code == 200
    assert EXPIRED.encode() in response.content
    assert response.context['summary'].discount == Decimal('0.00')
    assert response.context['summary'].total == Decimal('110.00')
    assert 'applied_discount' not in student_client.session


def test_removing_item_clears_discount(student_client, backend) -> None:
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100), course_payload('c2', 50)))
    backend.on('POST', 'discounts/validate', _valid_discount())
    backend.on('DELETE', 'enrollments/cart/c2', {'success': True})
    student_client.post('/my-cart', {'action': 'apply', 'code': 'SAVE10'})

    response = student_client.post('/my-cart', {'action': 'remove', 'course_id': 'c2'})

    assert response['Location'] == '/my-cart'
    assert 'applied_discount' not in student_client.session


def test_discount_service_resets_on_rejection(backend) -> None:
    backend.on('POST', 'discounts/validate', {'message': 'Invalid discount code'}, status=404)
    session = {'applied_discount': {'code': 'OLD', 'amount': '5.00'}}

    with pytest.raises(ApiError):
        DiscountService.apply(ApiClient(token='tok'), session, 'NOPE', Decimal('40'))

    assert DiscountService.applied(session) == ('', Decimal('0.00'))


def test_wishlist_move_to_cart(student_client, backend) -> None:
    backend.on('POST', 'enrollments/cart/c1', {'success': True})
    backend.on('DELETE', 'enrollments/wishlist/c1', {'success': True})

    response = student_client.post('/wishlist', {'action': 'move', 'course_id': 'c1'})

    assert response['Location'] == '/wishlist'
    assert backend.paths() == ['enrollments/cart/c1', 'enrollments/wishlist/c1']


def test_empty_promo_code_keeps_applied_discount(student_client, backend) -> None:
    backend.on('GET', 'users/cart', _cart(course_payload('c1', 100)))
    backend.on('POST', 'discounts/validate', _valid_discount())
    student_client.post('/my-cart', {'action': 'apply', 'code': 'SAVE10'})

    response = student_client.post('/my-cart', {'action': 'apply', 'code': ''})

    assert b'Please enter a promo code' in response.content
    assert response.context['summary'].discount == Decimal('10.00')
    assert response.context['summary'].total == Decimal('100.00')
    assert student_client.session['applied_discount'] == {'code': 'SAVE10', 'amount': '10.00'}
