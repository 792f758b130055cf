import re

from django import forms

USER_TYPES = [('student', 'Student'), ('instructor', 'Instructor'), ('admin', 'Admin')]
LEVELS = [('beginner', 'Beginner'), ('intermediate', 'Intermediate'), ('advanced', 'Advanced')]
DISCOUNT_TYPES = [('percentage', 'Percentage'), ('fixed', 'Fixed amount')]
ROLES = [('student', 'Student'), ('instructor', 'Instructor'), ('admin', 'Admin')]


class LoginForm(forms.Form):
    user_type = forms.ChoiceField(choices=USER_TYPES, initial='student')
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)


class InstructorLoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)


class SignupForm(forms.Form):
    first_name = forms.CharField(max_length=50, error_messages={'required': 'First name is required'})
    last_name = forms.CharField(max_length=50, error_messages={'required': 'Last name is required'})
    email = forms.EmailField(error_messages={'required': 'Email is required', 'invalid': 'Email is invalid'})
    password = forms.CharField(widget=forms.PasswordInput, error_messages={'required': 'Password is required'})
    confirm_password = forms.CharField(widget=forms.PasswordInput, error_messages={'required': 'Please confirm your password'})

    def clean_password(self):
        password = self.cleaned_data['password']
        if len(password) < 6:
            raise forms.ValidationError("Password must be at least 6 characters long")
        if not (re.search(r'[a-z]', password) and re.search(r'[A-Z]', password) and re.search(r'\d', password)):
            raise forms.ValidationError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )
        return password

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('password') and cleaned.get('confirm_password') and cleaned['password'] != cleaned['confirm_password']:
            self.add_error('confirm_password', "Passwords do not match")
        return cleaned


class InstructorSignupForm(SignupForm):
    bio = forms.CharField(widget=forms.Textarea, required=False)
    expertise = forms.CharField(required=False, help_text="Comma separated")

    def clean_password(self):
        password = self.cleaned_data['password']
        if len(password) < 6:
            raise forms.ValidationError("Password must be at least 6 characters")
        return password


class CourseForm(forms.Form):
    title = forms.CharField(max_length=200, required=False)
    description = forms.CharField(widget=forms.Textarea, required=False)
    category = forms.CharField(max_length=100, required=False)
    level = forms.ChoiceField(choices=[('', '---')] + LEVELS, required=False)
    price = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    original_price = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    requirements = forms.CharField(widget=forms.Textarea, required=False, help_text="One per line")
    objectives = forms.CharField(widget=forms.Textarea, required=False, help_text="One per line")
    thumbnail = forms.FileField(required=False)
    preview_video = forms.FileField(required=False)


class PromoCodeForm(forms.Form):
    code = forms.CharField(max_length=50, required=False)


class PaymentForm(forms.Form):
    card_number = forms.CharField(max_length=23)
    expiry_date = forms.CharField(max_length=5)
    cvv = forms.CharField(max_length=4)
    card_holder = forms.CharField(max_length=100)
    email = forms.EmailField(required=False)
    street = forms.CharField(max_length=200, required=False)
    city = forms.CharField(max_length=100, required=False)
    state = forms.CharField(max_length=100, required=False)
    zip_code = forms.CharField(max_length=20, required=False)
    country = forms.CharField(max_length=100, required=False)


class DiscountForm(forms.Form):
    code = forms.CharField(max_length=50, required=False)
    description = forms.CharField(required=False)
    type = forms.ChoiceField(choices=DISCOUNT_TYPES, initial='percentage')
    value = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    min_order_amount = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    max_discount_amount = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    usage_limit = forms.IntegerField(required=False, min_value=1)
    valid_from = forms.DateField(required=False)
    valid_until = forms.DateField(required=False)
    applicable_to_all = forms.BooleanField(required=False)
    course = forms.CharField(required=False)
    is_active = forms.BooleanField(required=False, initial=True)


class UserEditForm(forms.Form):
    first_name = forms.CharField(max_length=50)
    last_name = forms.CharField(max_length=50)
    email = forms.EmailField()
    role = forms.ChoiceField(choices=ROLES)


class RejectForm(forms.Form):
    reason = forms.CharField(widget=forms.Textarea, error_messages={'required': 'Please provide a reason for rejection'})


class ProfileForm(forms.Form):
    first_name = forms.CharField(max_length=50)
    last_name = forms.CharField(max_length=50)
    bio = forms.CharField(widget=forms.Textarea, required=False)
    avatar = forms.FileField(required=False)


class PasswordChangeForm(forms.Form):
    current_password = forms.CharField(widget=forms.PasswordInput)
    new_password = forms.CharField(widget=forms.PasswordInput, min_length=6)
    confirm_password = forms.CharField(widget=forms.PasswordInput)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('new_password') and cleaned.get('new_password') != cleaned.get('confirm_password'):
            self.add_error('confirm_password', "Passwords do not match")
        return cleaned


class CreateAdminForm(forms.Form):
    first_name = forms.CharField(max_length=50)
    last_name = forms.CharField(max_length=50)
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput, min_length=6)
