# dashboard/urls.py

from django.urls import path
from . import views

app_name = "dashboard"

urlpatterns = [
    path("", views.DashboardView.as_view(), name="index"),
    path("data/", views.dashboard_data_view, name="data"),
]
