from django.urls import path

from . import views

urlpatterns = [
    path("register/", views.register, name="register"),
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("me/", views.me, name="me"),
    path("csrf-token/", views.csrf_token, name="csrf_token"),

    path("categories/", views.category_list, name="category_list"),
    path("categories/initialize/", views.category_initialize, name="category_initialize"),
    path("categories/<int:pk>/", views.category_detail, name="category_detail"),

    path("transactions/", views.transaction_list, name="transaction_list"),
    path("transactions/import/", views.import_transactions, name="import_transactions"),
    path("transactions/<int:pk>/", views.transaction_detail, name="transaction_detail"),

    path("pending-transactions/", views.pending_list, name="pending_list"),
    path("pending-transactions/commit/", views.pending_commit, name="pending_commit_batch"),
    path("pending-transactions/<int:pk>/", views.pending_detail, name="pending_detail"),
    path("pending-transactions/<int:pk>/commit/", views.pending_commit, name="pending_commit"),

    path("summary/", views.monthly_summary, name="monthly_summary"),
    path("annual-summary/", views.annual_summary, name="annual_summary"),
    path("dashboard/", views.dashboard, name="dashboard"),
]
