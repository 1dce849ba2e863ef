from django import forms
from django.core.exceptions import ValidationError

from .permissions import Role, assignable_roles, can_edit_user


class UserCreateForm(forms.Form):
    """
    New CRM user. Role choices are limited to what the acting user
    may assign; the cleaned data is posted as-is to the API.
    """

    username = forms.CharField(max_length=150)
    email = forms.EmailField()
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)

    password = forms.CharField(
        label="Password",
        widget=forms.PasswordInput(attrs={"autocomplete": "new-password"}),
        strip=False,
    )

    role = forms.ChoiceField(choices=Role.choices, initial=Role.AGENT)

    def __init__(self, *args, acting_role=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.acting_role = acting_role
        self.fields["role"].choices = assignable_roles(acting_role)

    # ----------------------------
    # VALIDATION
    # ----------------------------
    def clean_password(self):
        password = self.cleaned_data.get("password")

        if password and len(password) < 8:
            raise ValidationError("Password must be at least 8 characters long.")

        return password

    def to_payload(self):
        return dict(self.cleaned_data)


class UserUpdateForm(forms.Form):
    """
    Edit an existing CRM user. Username is never sent: the API does
    not allow changing it.
    """

    email = forms.EmailField()
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)
    role = forms.ChoiceField(choices=Role.choices)
    is_active = forms.BooleanField(required=False, initial=True)

    def __init__(self, *args, acting_role=None, existing_role=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.acting_role = acting_role
        self.existing_role = existing_role

    def clean_role(self):
        role = self.cleaned_data["role"]

        if not can_edit_user(self.acting_role, self.existing_role, role):
            raise ValidationError("You may not give this user that role.")

        return role

    def to_payload(self):
        return dict(self.cleaned_data)
