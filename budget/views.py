import logging

from django.contrib.auth import get_user_model, login, logout
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.middleware.csrf import get_token
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .categories import initialize_default_categories
from .exceptions import ImportFileError, PendingNotFound
from .forms import (
    CategoryForm,
    CategoryUpdateForm,
    LoginForm,
    PendingTransactionForm,
    RegisterForm,
    StatementUploadForm,
    TransactionForm,
)
from .http import error_response, form_error_response
from .importing import active_pending, commit_pending, stage_import
from .models import Category, PendingTransaction, Transaction, TransactionType
from .ratelimit import ImportThrottle, LoginEmailThrottle, LoginThrottle, client_identifier
from .serializers import (
    AnnualSummarySerializer,
    CategorySerializer,
    DashboardSerializer,
    MonthlySummarySerializer,
    PendingTransactionSerializer,
    TransactionSerializer,
    UserSerializer,
)
from .summaries import (
    build_dashboard,
    get_annual_summary,
    month_end,
    recalculate_monthly_summary,
    record_transaction_change,
)
from .validators import parse_month, parse_year

logger = logging.getLogger(__name__)


def _transaction_body(request):
    """Request body with the camelCase categoryId accepted as category_id."""
    body = request.data.copy()
    if "categoryId" in body and "category_id" not in body:
        body["category_id"] = body["categoryId"]
        del body["categoryId"]
    return body


def _month_param(request):
    """?month=YYYY-MM, defaulting to the current month."""
    value = request.query_params.get("month")
    if not value:
        return timezone.localdate().replace(day=1)
    return parse_month(value)


# --- auth ---

@api_view(["POST"])
@permission_classes([AllowAny])
def register(request):
    form = RegisterForm(request.data)
    if not form.is_valid():
        if form.is_duplicate:
            return error_response("Email or username already exists", status=status.HTTP_409_CONFLICT)
        return form_error_response(form)

    cd = form.cleaned_data
    try:
        with transaction.atomic():
            user = get_user_model().objects.create_user(
                username=cd["username"],
                email=cd["email"],
                password=cd["password"],
            )
    except IntegrityError:
        return error_response("Email or username already exists", status=status.HTTP_409_CONFLICT)

    logger.info("Registered user %s", user.pk)
    return Response(
        {"message": "User created", "user": UserSerializer(user).data},
        status=status.HTTP_201_CREATED,
    )


def _authenticate_by_email(email, password):
    User = get_user_model()
    user = User.objects.filter(email__iexact=email).order_by("pk").first()
    if user is None:
        # hash anyway so unknown emails take as long as wrong passwords
        User().set_password(password)
        return None
    if not user.check_password(password) or not user.is_active:
        return None
    return user


@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([LoginThrottle, LoginEmailThrottle])
def login_view(request):
    form = LoginForm(request.data)
    if not form.is_valid():
        return form_error_response(form)

    email = form.cleaned_data["email"]
    user = _authenticate_by_email(email, form.cleaned_data["password"])
    if user is None:
        logger.warning("Rejected login for %s from %s", email, client_identifier(request))
        return error_response("Invalid email or password", status=status.HTTP_401_UNAUTHORIZED)

    login(request._request, user, backend="django.contrib.auth.backends.ModelBackend")
    LoginEmailThrottle.reset(email)
    logger.info("User %s logged in", user.pk)
    return Response({"message": "Login successful", "user": UserSerializer(user).data})


@api_view(["POST"])
@permission_classes([AllowAny])
def logout_view(request):
    user_id = request.user.pk
    logout(request._request)
    if user_id:
        logger.info("User %s logged out", user_id)
    return Response({"message": "Logged out successfully"})


@api_view(["GET"])
def me(request):
    return Response(UserSerializer(request.user).data)


@ensure_csrf_cookie
@api_view(["GET"])
@permission_classes([AllowAny])
def csrf_token(request):
    return Response({"csrfToken": get_token(request._request)})


# --- categories ---

def _category_exists(user, name, category_type, exclude_pk=None):
    return (
        Category.objects
        .filter(user=user, name=name, type=category_type)
        .exclude(pk=exclude_pk)
        .exists()
    )


@api_view(["GET", "POST"])
def category_list(request):
    if request.method == "POST":
        form = CategoryForm(request.data, instance=Category(user=request.user))
        if not form.is_valid():
            return form_error_response(form)
        if _category_exists(request.user, form.cleaned_data["name"], form.cleaned_data["type"]):
            return error_response("A category with this name and type already exists", status=status.HTTP_409_CONFLICT)
        try:
            with transaction.atomic():
                category = form.save()
        except IntegrityError:
            return error_response("A category with this name and type already exists", status=status.HTTP_409_CONFLICT)
        logger.info("User %s created category %s", request.user.pk, category.pk)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

    type_filter = (request.query_params.get("type") or "").strip().upper()
    if type_filter and type_filter not in TransactionType.values:
        return error_response(f"Invalid category type: {request.query_params.get('type')}")

    categories = Category.objects.filter(user=request.user)
    if not categories.exists():
        initialize_default_categories(request.user)

    if type_filter:
        categories = categories.filter(type=type_filter)
    return Response(CategorySerializer(categories, many=True).data)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk, user=request.user)

    if request.method == "GET":
        return Response(CategorySerializer(category).data)

    if request.method == "DELETE":
        category.delete()
        logger.info("User %s deleted category %s", request.user.pk, pk)
        return Response({"message": "Category deleted successfully"})

    form = CategoryUpdateForm(request.data)
    if not form.is_valid():
        return form_error_response(form)

    if "name" in form.data:
        category.name = form.cleaned_data["name"]
    if "type" in form.data:
        category.type = form.cleaned_data["type"]
    if _category_exists(request.user, category.name, category.type, exclude_pk=category.pk):
        return error_response("A category with this name and type already exists", status=status.HTTP_409_CONFLICT)
    try:
        with transaction.atomic():
            category.save()
    except IntegrityError:
        return error_response("A category with this name and type already exists", status=status.HTTP_409_CONFLICT)
    return Response(CategorySerializer(category).data)


@api_view(["POST"])
def category_initialize(request):
    existing = Category.objects.filter(user=request.user).count()
    created = initialize_default_categories(request.user)
    return Response({
        "message": "Default categories initialized",
        "categoriesCreated": created,
        "existingCategories": existing,
    })


# --- transactions ---

@api_view(["GET", "POST"])
def transaction_list(request):
    if request.method == "POST":
        form = TransactionForm(_transaction_body(request), user=request.user)
        if not form.is_valid():
            return form_error_response(form)

        cd = form.cleaned_data
        with transaction.atomic():
            tx = Transaction.objects.create(
                user=request.user,
                description=cd["description"],
                amount=cd["amount"],
                date=cd["date"],
                type=cd["type"],
                category=cd["category"],
            )
            record_transaction_change(request.user, new=(tx.date, tx.type, tx.amount))

        logger.info("User %s created transaction %s", request.user.pk, tx.pk)
        return Response(TransactionSerializer(tx).data, status=status.HTTP_201_CREATED)

    transactions = Transaction.objects.filter(user=request.user)
    if request.query_params.get("month"):
        try:
            first_day = parse_month(request.query_params["month"])
        except ValidationError as exc:
            return error_response(exc.messages[0])
        transactions = transactions.filter(date__range=(first_day, month_end(first_day)))
    return Response(TransactionSerializer(transactions, many=True).data)


@api_view(["GET", "PUT", "DELETE"])
def transaction_detail(request, pk):
    tx = get_object_or_404(Transaction, pk=pk, user=request.user)

    if request.method == "GET":
        return Response(TransactionSerializer(tx).data)

    old = (tx.date, tx.type, tx.amount)

    if request.method == "DELETE":
        with transaction.atomic():
            tx.delete()
            record_transaction_change(request.user, old=old)
        logger.info("User %s deleted transaction %s", request.user.pk, pk)
        return Response({"message": "Transaction deleted successfully"})

    form = TransactionForm(_transaction_body(request), user=request.user)
    if not form.is_valid():
        return form_error_response(form)

    cd = form.cleaned_data
    with transaction.atomic():
        tx.description = cd["description"]
        tx.amount = cd["amount"]
        tx.date = cd["date"]
        tx.type = cd["type"]
        tx.category = cd["category"]
        tx.save()
        record_transaction_change(request.user, old=old, new=(tx.date, tx.type, tx.amount))

    logger.info("User %s updated transaction %s", request.user.pk, pk)
    return Response(TransactionSerializer(tx).data)


# --- statement import ---

@api_view(["POST"])
@throttle_classes([ImportThrottle])
def import_transactions(request):
    if "file" not in request.FILES:
        return error_response("No file provided")

    form = StatementUploadForm(request.data, request.FILES)
    if form.too_large:
        max_mb = form.max_size // (1024 * 1024)
        return error_response(
            f"File size exceeds maximum allowed size of {max_mb}MB",
            status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    if not form.is_valid():
        return form_error_response(form)

    try:
        result = stage_import(request.user, form.cleaned_data["file"])
    except ImportFileError as exc:
        logger.warning("User %s import rejected: %s", request.user.pk, exc.message)
        return error_response(exc.message)

    return Response({
        "success": True,
        "createdIds": result.created_ids,
        "batchId": result.batch.pk,
        "stats": {
            "total": result.total,
            "valid": result.valid,
            "created": len(result.created_ids),
            "duplicates": result.duplicates,
            "errors": len(result.errors),
        },
        "errors": result.errors[:form.max_errors],
    }, status=status.HTTP_201_CREATED)


# --- pending transactions ---

@api_view(["GET"])
def pending_list(request):
    pending = active_pending(request.user).select_related("category")
    return Response(PendingTransactionSerializer(pending, many=True).data)


@api_view(["GET", "PUT", "PATCH", "DELETE"])
def pending_detail(request, pk):
    pending = get_object_or_404(
        PendingTransaction.objects.select_related("category"),
        pk=pk,
        user=request.user,
    )

    if request.method == "GET":
        return Response(PendingTransactionSerializer(pending).data)

    if request.method == "DELETE":
        pending.delete()
        return Response({"message": "Pending transaction deleted successfully"})

    form = PendingTransactionForm(_transaction_body(request), user=request.user, instance=pending)
    if not form.is_valid():
        return form_error_response(form)
    pending = form.save()
    return Response(PendingTransactionSerializer(pending).data)


def _ids_from_body(body):
    ids = body.get("ids")
    if not isinstance(ids, list):
        return None
    parsed = []
    for value in ids:
        if isinstance(value, bool):
            continue
        try:
            pending_id = int(value)
        except (TypeError, ValueError, OverflowError):
            continue
        if pending_id > 0 and pending_id not in parsed:
            parsed.append(pending_id)
    return parsed or None


@api_view(["POST"])
def pending_commit(request, pk=None):
    body = {}
    if pk is None or request.content_type == "application/json":
        body = request.data
    if "ids" in body or pk is None:
        ids = _ids_from_body(body)
        if ids is None:
            return error_response("Invalid IDs array. Must contain at least one valid ID")
    else:
        ids = [pk]

    try:
        outcome = commit_pending(request.user, ids)
    except PendingNotFound as exc:
        if len(ids) == 1:
            return error_response("Pending transaction not found", status=status.HTTP_404_NOT_FOUND)
        return error_response(exc.message, status=status.HTTP_404_NOT_FOUND)

    code = status.HTTP_200_OK if outcome["stats"]["committed"] else status.HTTP_422_UNPROCESSABLE_ENTITY
    return Response(outcome, status=code)


# --- summaries ---

@api_view(["GET"])
def monthly_summary(request):
    try:
        first_day = _month_param(request)
    except ValidationError as exc:
        return error_response(exc.messages[0])

    with transaction.atomic():
        summary = recalculate_monthly_summary(request.user, first_day)
    return Response({
        "message": "Monthly summary updated",
        "summary": MonthlySummarySerializer(summary).data,
    })


@api_view(["GET"])
def annual_summary(request):
    year = request.query_params.get("year") or timezone.localdate().year
    try:
        year = parse_year(year)
    except ValidationError as exc:
        return error_response(exc.messages[0])
    return Response(AnnualSummarySerializer(get_annual_summary(request.user, year)).data)


@api_view(["GET"])
def dashboard(request):
    try:
        first_day = _month_param(request)
    except ValidationError as exc:
        return error_response(exc.messages[0])
    return Response(DashboardSerializer(build_dashboard(request.user, first_day)).data)
