from django.urls import path
from portal.views.auth_views import (
    login_view, signup_view,
    instructor_auth_view, logout_view,
)
from portal.views.catalog_views import home_page, browse_page
from portal.views import student_views, instructor_views, admin_views

app_name = 'portal'

urlpatterns = [
    path('', home_page, name='home'),
    path('courses', browse_page, name='courses'),
    path('login', login_view, name='login'),
    path('signup', signup_view, name='signup'),
    path('instructor-auth', instructor_auth_view, name='instructor_auth'),
    path('logout', logout_view, name='logout'),

    path('dashboard', student_views.overview_page, name='student_dashboard'),
    path('my-courses', student_views.my_courses_page, name='my_courses'),
    path('my-cart', student_views.cart_page, name='my_cart'),
    path('checkout', student_views.checkout_page, name='checkout'),
    path('wishlist', student_views.wishlist_page, name='wishlist'),
    path('settings', student_views.settings_page, name='settings'),
    path('cart/add/<str:course_id>', student_views.add_to_cart, name='add_to_cart'),
    path('wishlist/toggle/<str:course_id>', student_views.toggle_wishlist, name='toggle_wishlist'),
    path('student/course/<str:course_id>', student_views.course_watch, name='course_watch'),
    path('student/course/<str:course_id>/lessons/<str:lesson_id>/complete', student_views.complete_lesson, name='complete_lesson'),
    path('student/course/<str:course_id>/certificate', student_views.download_certificate, name='download_certificate'),

    path('instructor', instructor_views.dashboard_page, name='instructor_home'),
    path('instructor/dashboard', instructor_views.dashboard_page, name='instructor_dashboard'),
    path('instructor/course', instructor_views.add_course_page, name='instructor_add_course'),
    path('instructor/courses', instructor_views.courses_page, name='instructor_courses'),
    path('instructor/revenue', instructor_views.revenue_page, name='instructor_revenue'),
    path('instructor/tools', instructor_views.tools_page, name='instructor_tools'),

    path('admin', admin_views.dashboard_page, name='admin_home'),
    path('admin/dashboard', admin_views.dashboard_page, name='admin_dashboard'),
    path('admin/users', admin_views.users_page, name='admin_users'),
    path('admin/instructors', admin_views.instructors_page, name='admin_instructors'),
    path('admin/approvals', admin_views.approvals_page, name='admin_approvals'),
    path('admin/revenue', admin_views.revenue_page, name='admin_revenue'),
    path('admin/discounts', admin_views.discounts_page, name='admin_discounts'),
    path('admin/tools', admin_views.tools_page, name='admin_tools'),
]
