from django.urls import path
from .views import ActivePackageList

urlpatterns = [
    path("packages/active/", ActivePackageList.as_view(), name="package-active-list"),
]
