"""
URL configuration for the gamematch project.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("matchmaking.urls", namespace="matchmaking")),
]
