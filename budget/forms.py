from django import forms
from django.conf import settings
from django.contrib.auth import get_user_model, password_validation
from django.core.exceptions import ValidationError

from .models import Category, TransactionType
from .summaries import is_category_compatible
from .validators import (
    CATEGORY_NAME_MAX_LENGTH,
    sanitize_description,
    sanitize_username,
    to_amount,
    to_transaction_date,
    validate_category_name,
)


class AmountField(forms.Field):
    """Accepts numbers or statement-style strings ("1.234,56")."""

    def to_python(self, value):
        if value in self.empty_values:
            return None
        return to_amount(value)


class TransactionTypeField(forms.ChoiceField):
    def __init__(self, **kwargs):
        kwargs.setdefault("choices", TransactionType.choices)
        super().__init__(**kwargs)

    def to_python(self, value):
        value = super().to_python(value)
        return value.strip().upper()

    def validate(self, value):
        if value and value not in TransactionType.values:
            raise ValidationError(f"Invalid transaction type: {value}")
        super().validate(value)


class TransactionDateField(forms.Field):
    def to_python(self, value):
        if value in self.empty_values:
            return None
        return to_transaction_date(value)


class CategoryIdField(forms.Field):
    """Positive integer id; null or "" clears the category."""

    def to_python(self, value):
        if value in self.empty_values:
            return None
        if isinstance(value, bool):
            raise ValidationError("Invalid category ID")
        try:
            category_id = int(str(value).strip())
        except ValueError:
            raise ValidationError("Invalid category ID")
        if category_id <= 0:
            raise ValidationError("Invalid category ID")
        return category_id


class OwnedCategoryMixin:
    """
    Resolves ``category_id`` to one of the form user's categories and checks
    it against the transaction type.
    """

    def _resolve_category(self, category_id, entry_type):
        if category_id is None:
            return None
        category = Category.objects.filter(pk=category_id, user=self.user).first()
        if category is None:
            self.add_error("category_id", "Category not found or access denied")
            return None
        if entry_type and not is_category_compatible(category.type, entry_type):
            self.add_error(
                "category_id",
                f"Category type {category.type} does not match transaction type {entry_type}",
            )
            return None
        return category


class TransactionForm(OwnedCategoryMixin, forms.Form):
    description = forms.CharField(max_length=1000)
    amount = AmountField()
    type = TransactionTypeField()
    date = TransactionDateField()
    category_id = CategoryIdField(required=False)

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user

    def clean_description(self):
        description = sanitize_description(self.cleaned_data["description"])
        if not description:
            raise ValidationError("Description cannot be empty")
        return description

    def clean(self):
        cleaned = super().clean()
        cleaned["category"] = self._resolve_category(cleaned.get("category_id"), cleaned.get("type"))
        return cleaned


class PendingTransactionForm(OwnedCategoryMixin, forms.Form):
    """
    Partial update of a staged row. Only keys present in the request body
    are applied.
    """
    description = forms.CharField(max_length=1000, required=False)
    amount = AmountField(required=False)
    type = TransactionTypeField(required=False)
    date = TransactionDateField(required=False)
    category_id = CategoryIdField(required=False)

    def __init__(self, *args, user=None, instance=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user
        self.instance = instance

    @property
    def provided(self):
        return [name for name in self.fields if name in self.data]

    def clean_description(self):
        if "description" not in self.data:
            return None
        description = sanitize_description(self.cleaned_data["description"])
        if not description:
            raise ValidationError("Description cannot be empty")
        return description

    def clean(self):
        cleaned = super().clean()
        if not self.provided:
            raise ValidationError("No fields to update")

        for name in ("amount", "type", "date"):
            if name in self.data and not cleaned.get(name) and name not in self.errors:
                self.add_error(name, "This field cannot be empty.")

        entry_type = cleaned.get("type") or self.instance.type
        if "category_id" in self.data:
            cleaned["category"] = self._resolve_category(cleaned.get("category_id"), entry_type)
        elif "type" in self.data and self.instance.category is not None:
            # a type change invalidates a category of the old type
            if not is_category_compatible(self.instance.category.type, entry_type):
                self.add_error(
                    "type",
                    f"Category type {self.instance.category.type} does not match transaction type {entry_type}",
                )
        return cleaned

    def save(self):
        pending = self.instance
        for name in ("description", "amount", "type", "date"):
            if name in self.data and name in self.cleaned_data:
                setattr(pending, name, self.cleaned_data[name])
        if "category_id" in self.data:
            pending.category = self.cleaned_data.get("category")
        pending.save()
        return pending


class CategoryForm(forms.ModelForm):
    type = TransactionTypeField()

    class Meta:
        model = Category
        fields = ["name", "type"]

    def clean_name(self):
        name = self.cleaned_data["name"]
        validate_category_name(name)
        return name.strip()


class CategoryUpdateForm(forms.Form):
    name = forms.CharField(max_length=CATEGORY_NAME_MAX_LENGTH, required=False, strip=False)
    type = TransactionTypeField(required=False)

    def clean_name(self):
        if "name" not in self.data:
            return None
        name = self.cleaned_data["name"]
        validate_category_name(name)
        return name.strip()

    def clean(self):
        cleaned = super().clean()
        if "name" not in self.data and "type" not in self.data:
            raise ValidationError("At least one field (name or type) must be provided")
        if "type" in self.data and not cleaned.get("type") and "type" not in self.errors:
            self.add_error("type", "This field cannot be empty.")
        return cleaned


class RegisterForm(forms.Form):
    username = forms.CharField(max_length=200)
    email = forms.EmailField()
    password = forms.CharField(strip=False)

    def clean_username(self):
        username = sanitize_username(self.cleaned_data["username"])
        if not username:
            raise ValidationError("Username is required")
        if get_user_model().objects.filter(username__iexact=username).exists():
            raise ValidationError("Email or username already exists", code="duplicate")
        return username

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if get_user_model().objects.filter(email__iexact=email).exists():
            raise ValidationError("Email or username already exists", code="duplicate")
        return email

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get("password")
        if password:
            candidate = get_user_model()(username=cleaned.get("username", ""), email=cleaned.get("email", ""))
            try:
                password_validation.validate_password(password, candidate)
            except ValidationError as exc:
                self.add_error("password", exc)
        return cleaned

    @property
    def is_duplicate(self):
        return any(
            error.code == "duplicate"
            for field in ("username", "email")
            for error in self.errors.as_data().get(field, [])
        )


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()


class StatementUploadForm(forms.Form):
    """
    The uploaded bank statement. Oversized files are flagged separately so
    the view can answer 413.
    """
    file = forms.FileField()

    @property
    def too_large(self):
        upload = self.files.get("file")
        return upload is not None and upload.size > settings.BUDGET_IMPORT_MAX_FILE_SIZE

    def clean_file(self):
        upload = self.cleaned_data["file"]
        if upload.size > settings.BUDGET_IMPORT_MAX_FILE_SIZE:
            max_mb = settings.BUDGET_IMPORT_MAX_FILE_SIZE // (1024 * 1024)
            raise ValidationError(f"File size exceeds maximum allowed size of {max_mb}MB")
        return upload
